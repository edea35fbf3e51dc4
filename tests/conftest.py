"""
Pytest configuration and fixtures for Svastha tests.

In-memory collaborators stand in for Supabase and the preference file so
the orchestrator can be driven end to end without a backend.
"""

import asyncio
import os
from typing import Any
from unittest.mock import MagicMock

import pytest

# Set test environment before importing svastha modules
os.environ["SVASTHA_ENV"] = "development"

from onboarding.collaborators import FederatedCredential, Session, UserRecord
from onboarding.errors import AuthError, PreferenceStoreError, StoreError


# ---------------------------------------------------------------------------
# In-memory collaborators
# ---------------------------------------------------------------------------


class InMemoryUserRecordStore:
    """UserRecordStore over a dict of uid -> fields."""

    def __init__(self, rows: dict[str, dict] | None = None):
        self.rows: dict[str, dict] = {uid: dict(r) for uid, r in (rows or {}).items()}
        self.writes: list[tuple[str, dict, bool]] = []
        self.fetch_error: StoreError | None = None
        self.put_errors: list[StoreError] = []
        self.gate: asyncio.Event | None = None

    async def _wait(self):
        if self.gate is not None:
            await self.gate.wait()

    async def fetch_all(self) -> list[UserRecord]:
        await self._wait()
        if self.fetch_error:
            raise self.fetch_error
        return [UserRecord.from_row({"id": uid, **row}) for uid, row in self.rows.items()]

    async def get(self, uid: str) -> UserRecord | None:
        await self._wait()
        if self.fetch_error:
            raise self.fetch_error
        row = self.rows.get(uid)
        return UserRecord.from_row({"id": uid, **row}) if row is not None else None

    async def put(self, uid: str, fields: dict[str, Any], merge: bool) -> None:
        await self._wait()
        if self.put_errors:
            raise self.put_errors.pop(0)
        self.writes.append((uid, dict(fields), merge))
        if merge:
            self.rows.setdefault(uid, {}).update(fields)
        else:
            self.rows[uid] = dict(fields)


class FakeIdentityProvider:
    """IdentityProvider with scripted accounts and failures."""

    def __init__(self):
        self.passwords: dict[str, tuple[str, Session]] = {}
        self.tokens: dict[str, Session] = {}
        self.session: Session | None = None
        self.anonymous_error: AuthError | None = None
        self.sign_up_error: AuthError | None = None
        self.calls: list[str] = []
        self._next_uid = 0

    def add_account(self, email: str, password: str, uid: str) -> Session:
        session = Session(uid=uid, email=email)
        self.passwords[email] = (password, session)
        return session

    def _uid(self, prefix: str) -> str:
        self._next_uid += 1
        return f"{prefix}-{self._next_uid}"

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        self.calls.append("password")
        known = self.passwords.get(email)
        if known is None or known[0] != password:
            raise AuthError("The password is invalid or the user does not have a password.")
        self.session = known[1]
        return self.session

    async def sign_up_with_password(self, email: str, password: str) -> Session:
        self.calls.append("sign_up")
        if self.sign_up_error:
            raise self.sign_up_error
        self.session = self.add_account(email, password, self._uid("user"))
        return self.session

    async def exchange_federated_token(self, credential: FederatedCredential) -> Session:
        self.calls.append("federated")
        session = self.tokens.get(credential.id_token)
        if session is None:
            raise AuthError("Invalid id token")
        self.session = session
        return session

    async def sign_in_anonymously(self) -> Session:
        self.calls.append("anonymous")
        if self.anonymous_error:
            raise self.anonymous_error
        self.session = Session(uid=self._uid("anon"), is_anonymous=True)
        return self.session

    async def current_session(self) -> Session | None:
        return self.session

    async def sign_out(self) -> None:
        self.calls.append("sign_out")
        self.session = None


class FakePreferenceStore:
    def __init__(self, first_run: bool | None = None):
        self.value = first_run
        self.error: PreferenceStoreError | None = None

    async def is_first_run(self) -> bool:
        return True if self.value is None else self.value

    async def set_first_run(self, value: bool) -> None:
        if self.error:
            raise self.error
        self.value = value


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store():
    return InMemoryUserRecordStore({
        "uid-manas": {"username": "manas", "email": "manas@example.com"},
        "uid-priya": {
            "username": "Priya",
            "email": "priya@example.com",
            "has_completed_survey": True,
        },
    })


@pytest.fixture
def identity():
    provider = FakeIdentityProvider()
    provider.add_account("manas@example.com", "hunter2", "uid-manas")
    provider.add_account("priya@example.com", "s3cret", "uid-priya")
    return provider


@pytest.fixture
def preferences():
    return FakePreferenceStore()


@pytest.fixture
def orchestrator(store, identity, preferences):
    from onboarding.orchestrator import OnboardingOrchestrator

    return OnboardingOrchestrator(store=store, identity=identity, preferences=preferences)


@pytest.fixture
def mock_supabase():
    """Mock Supabase client for adapter tests."""
    mock_client = MagicMock()

    # Mock table operations
    mock_table = MagicMock()
    mock_table.select.return_value = mock_table
    mock_table.upsert.return_value = mock_table
    mock_table.eq.return_value = mock_table
    mock_table.limit.return_value = mock_table
    mock_table.execute.return_value = MagicMock(data=[])

    mock_client.table.return_value = mock_table

    return mock_client
