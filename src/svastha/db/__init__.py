"""
Svastha - Collaborator adapters backed by Supabase.
"""

from svastha.db.auth import SupabaseIdentityProvider
from svastha.db.client import get_client
from svastha.db.users import SupabaseUserRecordStore

__all__ = [
    "get_client",
    "SupabaseIdentityProvider",
    "SupabaseUserRecordStore",
]
