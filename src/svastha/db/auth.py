"""
Svastha - Identity Provider (Supabase Auth).

Password, one-tap id-token, and anonymous sessions. SDK errors are wrapped
into AuthError with the provider's message kept intact.
"""

import logging

from supabase import Client

from onboarding.collaborators import FederatedCredential, Session
from onboarding.errors import AuthError
from svastha.config import settings

logger = logging.getLogger(__name__)


def _to_session(user) -> Session:
    """Convert a Supabase auth user to a Session."""
    metadata = getattr(user, "user_metadata", None) or {}
    return Session(
        uid=str(user.id),
        email=getattr(user, "email", None),
        display_name=metadata.get("full_name") or metadata.get("name"),
        is_anonymous=bool(getattr(user, "is_anonymous", False)),
    )


def _session_from_response(response, operation: str) -> Session:
    if not response or not response.user:
        raise AuthError(f"Oops! No user found. ({operation})")
    return _to_session(response.user)


class SupabaseIdentityProvider:
    """IdentityProvider backed by Supabase Auth."""

    def __init__(self, client: Client, provider: str | None = None):
        self.client = client
        self.provider = provider or settings.federated_provider

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        try:
            response = self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as e:
            logger.warning(f"Password sign-in failed: {e}")
            raise AuthError(str(e)) from e
        return _session_from_response(response, "password sign-in")

    async def sign_up_with_password(self, email: str, password: str) -> Session:
        try:
            response = self.client.auth.sign_up({"email": email, "password": password})
        except Exception as e:
            logger.warning(f"Sign-up failed: {e}")
            raise AuthError(str(e)) from e
        return _session_from_response(response, "sign-up")

    async def exchange_federated_token(self, credential: FederatedCredential) -> Session:
        params = {"provider": self.provider, "token": credential.id_token}
        if credential.nonce:
            params["nonce"] = credential.nonce
        try:
            response = self.client.auth.sign_in_with_id_token(params)
        except Exception as e:
            logger.warning(f"Token exchange with {self.provider} failed: {e}")
            raise AuthError(str(e)) from e
        return _session_from_response(response, "federated sign-in")

    async def sign_in_anonymously(self) -> Session:
        try:
            response = self.client.auth.sign_in_anonymously()
        except Exception as e:
            logger.warning(f"Anonymous sign-in failed: {e}")
            raise AuthError(str(e)) from e
        return _session_from_response(response, "guest sign-in")

    async def current_session(self) -> Session | None:
        try:
            session = self.client.auth.get_session()
        except Exception as e:
            raise AuthError(str(e)) from e
        if not session or not session.user:
            return None
        return _to_session(session.user)

    async def sign_out(self) -> None:
        try:
            self.client.auth.sign_out()
        except Exception as e:
            raise AuthError(str(e)) from e
