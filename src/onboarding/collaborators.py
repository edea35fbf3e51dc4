"""
Onboarding Collaborators.

Interfaces for the three external services the orchestrator talks to, and
the value types that cross them. Implementations live in svastha.db and
svastha.preferences; tests use in-memory fakes.

Every method is async and raises an onboarding.errors type on failure.
"""

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict


# Marker written on survey submission; its presence routes to the dashboard.
SURVEY_COMPLETED_FIELD = "has_completed_survey"


class Session(BaseModel):
    """Authenticated identity session."""

    model_config = ConfigDict(frozen=True)

    uid: str
    email: str | None = None
    display_name: str | None = None
    is_anonymous: bool = False


class UserRecord(BaseModel):
    """Read-only projection of a stored user record."""

    model_config = ConfigDict(frozen=True)

    uid: str
    username: str = ""
    email: str | None = None
    has_completed_survey: bool = False

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "UserRecord":
        """Build from a store row keyed by "id" (or "uid")."""
        return cls(
            uid=str(row.get("id") or row.get("uid") or ""),
            username=str(row.get("username") or ""),
            email=row.get("email"),
            has_completed_survey=bool(row.get(SURVEY_COMPLETED_FIELD)),
        )


@dataclass(frozen=True)
class FederatedCredential:
    """Raw result of a one-tap sign-in flow."""
    id_token: str | None
    nonce: str | None = None


@runtime_checkable
class UserRecordStore(Protocol):
    """Document store with one record per registered user, keyed by uid."""

    async def fetch_all(self) -> list[UserRecord]:
        """Every record. No filtering is pushed down."""
        ...

    async def get(self, uid: str) -> UserRecord | None:
        ...

    async def put(self, uid: str, fields: dict[str, Any], merge: bool) -> None:
        """
        Write fields to the record for uid.

        merge=True keeps fields not present in `fields`; merge=False
        replaces the whole record.
        """
        ...


@runtime_checkable
class IdentityProvider(Protocol):
    """Issues authenticated sessions."""

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        ...

    async def sign_up_with_password(self, email: str, password: str) -> Session:
        ...

    async def exchange_federated_token(self, credential: FederatedCredential) -> Session:
        ...

    async def sign_in_anonymously(self) -> Session:
        ...

    async def current_session(self) -> Session | None:
        ...

    async def sign_out(self) -> None:
        ...


@runtime_checkable
class PreferenceStore(Protocol):
    """Persists the "first run" flag across restarts."""

    async def is_first_run(self) -> bool:
        """True when the flag was never written."""
        ...

    async def set_first_run(self, value: bool) -> None:
        ...
