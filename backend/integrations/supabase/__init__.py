"""Supabase PostgREST 연동."""
from .client import SupabaseClient, get_supabase_client, close_supabase_client, in_filter

__all__ = ["SupabaseClient", "get_supabase_client", "close_supabase_client", "in_filter"]
