"""
Svastha - User Record Store (Supabase).

One row per registered user in the users table, keyed by the auth uid.
"""

import logging
from typing import Any

from supabase import Client

from onboarding.collaborators import UserRecord
from onboarding.errors import StoreError
from svastha.config import settings

logger = logging.getLogger(__name__)


# Every non-key column. merge=False nulls whichever of these the caller
# leaves out, which is how a full replace looks on a relational row.
USER_COLUMNS = (
    "username",
    "email",
    "gender",
    "age",
    "height",
    "weight",
    "lifestyle",
    "conditions",
    "period_start",
    "has_completed_survey",
)


class SupabaseUserRecordStore:
    """UserRecordStore backed by a PostgREST table."""

    def __init__(self, client: Client, table: str | None = None):
        self.client = client
        self.table = table or settings.users_table

    async def fetch_all(self) -> list[UserRecord]:
        try:
            response = self.client.table(self.table).select("*").execute()
        except Exception as e:
            logger.error(f"Failed to fetch users: {e}")
            raise StoreError(str(e)) from e
        return [UserRecord.from_row(row) for row in response.data or []]

    async def get(self, uid: str) -> UserRecord | None:
        try:
            response = self.client.table(self.table).select("*").eq("id", uid).limit(1).execute()
        except Exception as e:
            logger.error(f"Failed to load user {uid}: {e}")
            raise StoreError(str(e)) from e
        if not response.data:
            return None
        return UserRecord.from_row(response.data[0])

    async def put(self, uid: str, fields: dict[str, Any], merge: bool) -> None:
        unknown = set(fields) - set(USER_COLUMNS)
        if unknown:
            raise StoreError(f"Unknown user fields: {sorted(unknown)}")

        if merge:
            row = {"id": uid, **fields}
        else:
            row = {"id": uid, **{col: None for col in USER_COLUMNS}, **fields}

        try:
            self.client.table(self.table).upsert(row).execute()
        except Exception as e:
            logger.error(f"Failed to write user {uid}: {e}")
            raise StoreError(str(e)) from e
