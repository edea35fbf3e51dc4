"""
Username Routing.

Decides whether a submitted username belongs to an existing account.

Both checks fetch the whole user collection and compare in memory. That is
fine at small scale but is not a point lookup.

The two checks deliberately disagree on case:
- resolve_username / find_user_by_username: case-insensitive (sign-in side)
- is_username_unique: case-sensitive (registration side)
So "Alice" can register while "alice" exists, and then sign-in for either
finds whichever record comes first. Left as-is pending a product decision.
"""

import logging

from .collaborators import IdentityProvider, PreferenceStore, UserRecord, UserRecordStore
from .state import Route

logger = logging.getLogger(__name__)


def _fold(username: str) -> str:
    return username.lower()


def find_user_by_username(records: list[UserRecord], username: str) -> UserRecord | None:
    """First record whose username matches case-insensitively."""
    wanted = _fold(username)
    for record in records:
        if _fold(record.username) == wanted:
            return record
    return None


async def resolve_username(store: UserRecordStore, username: str) -> Route:
    """
    Route a username to sign-in or sign-up.

    Returns Route.SIGN_IN on an exact case-insensitive match, otherwise
    Route.SIGN_UP. No partial matching.
    """
    records = await store.fetch_all()
    match = find_user_by_username(records, username)
    route = Route.SIGN_IN if match else Route.SIGN_UP
    logger.debug(f"Resolved username against {len(records)} records -> {route.value}")
    return route


async def is_username_unique(store: UserRecordStore, username: str) -> bool:
    """Registration check: no record has exactly this username (case-sensitive)."""
    records = await store.fetch_all()
    return not any(record.username == username for record in records)


def route_after_auth(record: UserRecord | None) -> Route:
    """Dashboard for users who already finished the survey, survey otherwise."""
    if record is not None and record.has_completed_survey:
        return Route.DASHBOARD
    return Route.SURVEY


async def start_route(preferences: PreferenceStore, identity: IdentityProvider) -> Route:
    """
    First screen on app launch.

    - First run, nobody signed in -> WELCOME
    - First run, a session exists -> SURVEY (signed in but survey unfinished)
    - Otherwise -> DASHBOARD
    """
    if not await preferences.is_first_run():
        return Route.DASHBOARD
    session = await identity.current_session()
    return Route.WELCOME if session is None else Route.SURVEY
