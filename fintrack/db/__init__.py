"""
Database access layer for the fintrack backend.

All database operations MUST:
- Use a per-request client carrying the user's JWT
- Respect Row Level Security (RLS): user_id = auth.uid()
- Only touch the `accounts` and `transactions` tables

Table schemas, cascades and RLS policies live in Supabase, not here.
"""

from .client import get_supabase_client

__all__ = ["get_supabase_client"]
