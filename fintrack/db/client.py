"""
Supabase client factory with RLS enforcement.

Clients are created per request with the user's JWT so that every query is
scoped by Row Level Security to rows where user_id = auth.uid().

NEVER create a client with a service_role key for user operations.
"""

import logging

from fintrack.config import settings
from supabase import Client, create_client

logger = logging.getLogger(__name__)


def get_supabase_client(access_token: str) -> Client:
    """
    Create an authenticated Supabase client for a specific user.

    Args:
        access_token: The user's JWT access token from Supabase Auth.
                      This is the token verified in fintrack/auth/dependencies.py.

    Returns:
        An authenticated Supabase client that enforces RLS.

    Example:
        >>> client = get_supabase_client(auth_user.access_token)
        >>> result = client.table("accounts").select("*").execute()
    """
    client: Client = create_client(
        supabase_url=settings.SUPABASE_URL,
        supabase_key=settings.SUPABASE_PUBLISHABLE_KEY
    )

    # The token's 'sub' claim is what auth.uid() resolves to in RLS policies
    client.auth.set_session(access_token, access_token)

    logger.debug("Created authenticated Supabase client with user token (RLS enforced)")

    return client
