"""Database client and operations."""

from .repository import AvailabilityRepository
from .supabase_client import SupabaseClient, get_db_client

__all__ = ["AvailabilityRepository", "SupabaseClient", "get_db_client"]
