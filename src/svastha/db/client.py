"""
Svastha - Supabase Client.

Low-level access for the record store and identity adapters.
"""

from supabase import Client, create_client

from svastha.config import settings

# Singleton client instance
_client: Client | None = None


def get_client() -> Client:
    """
    Get the Supabase client.

    Uses singleton pattern so auth state (the current session) is shared
    between the record store and the identity provider.
    """
    global _client

    if _client is None:
        _client = create_client(
            settings.supabase_url,
            settings.supabase_anon_key,
        )

    return _client


def reset_client() -> None:
    """Drop the cached client (tests, settings reload)."""
    global _client
    _client = None
