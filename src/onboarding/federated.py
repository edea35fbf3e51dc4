"""
Federated Identity Linking.

Exchanges a one-tap provider token for an app session and, on the sign-up
path, creates the user's record from the provider profile.

Known gap: the provider display name becomes the username without checking
it against existing usernames, and nothing stops two concurrent sign-ups
from claiming the same name. A store-level unique constraint would close it.
"""

import logging
from dataclasses import dataclass

from .collaborators import FederatedCredential, IdentityProvider, UserRecordStore
from .errors import AuthError
from .state import Route

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkedIdentity:
    """A provider credential resolved to an app user."""
    uid: str
    is_new_user: bool
    has_completed_survey: bool = False

    @property
    def route(self) -> Route:
        return Route.DASHBOARD if self.has_completed_survey else Route.SURVEY


async def link_federated_credential(
    identity: IdentityProvider,
    store: UserRecordStore,
    credential: FederatedCredential,
    is_sign_in_attempt: bool,
) -> LinkedIdentity:
    """
    Link a federated credential to an app user.

    Raises:
        AuthError: missing/bad token or provider rejection. Nothing is written.
        StoreError: the record lookup or creation failed.
    """
    if not credential.id_token:
        raise AuthError("No identity token returned by the provider")

    session = await identity.exchange_federated_token(credential)
    existing = await store.get(session.uid)

    if existing is not None:
        logger.info(f"Federated login matched existing user {session.uid}")
        return LinkedIdentity(
            uid=session.uid,
            is_new_user=False,
            has_completed_survey=existing.has_completed_survey,
        )

    if is_sign_in_attempt:
        # Signed in with the provider but never registered here
        return LinkedIdentity(uid=session.uid, is_new_user=False)

    await store.put(
        session.uid,
        {"email": session.email, "username": session.display_name},
        merge=False,
    )
    logger.info(f"Created user record for federated sign-up {session.uid}")
    return LinkedIdentity(uid=session.uid, is_new_user=True)
