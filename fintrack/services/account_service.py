"""
Account service.

Handles CRUD operations for user accounts. Accounts are financial containers
(bank, cash, credit card, e-wallet, investment) holding a running balance that
the balance reconciler keeps in line with their transactions.
"""

import logging
from typing import Any, Dict, List, Optional, cast

from supabase import Client

from fintrack.services.balance_reconciler import format_numeric, to_decimal

logger = logging.getLogger(__name__)


async def get_user_accounts(
    supabase_client: Client,
    user_id: str,
    limit: int = 50,
    offset: int = 0
) -> List[Dict[str, Any]]:
    """
    Fetch accounts belonging to the user, newest first.

    Args:
        supabase_client: Authenticated Supabase client
        user_id: The authenticated user's ID
        limit: Maximum number of accounts to return (default 50)
        offset: Number of accounts to skip for pagination (default 0)

    Returns:
        List of account dicts
    """
    logger.debug(f"Fetching accounts for user {user_id} (limit={limit}, offset={offset})")

    result = (
        supabase_client.table("accounts")
        .select("*")
        .eq("user_id", user_id)
        .order("created_at", desc=True)
        .range(offset, offset + limit - 1)
        .execute()
    )

    accounts: List[Dict[str, Any]] = cast(List[Dict[str, Any]], result.data or [])
    logger.info(f"Found {len(accounts)} accounts for user {user_id}")

    return accounts


async def get_account_by_id(
    supabase_client: Client,
    user_id: str,
    account_id: str
) -> Optional[Dict[str, Any]]:
    """
    Fetch a single account by ID.

    Returns:
        Account dict, or None if not found
    """
    logger.debug(f"Fetching account {account_id} for user {user_id}")

    result = (
        supabase_client.table("accounts")
        .select("*")
        .eq("id", account_id)
        .eq("user_id", user_id)
        .execute()
    )

    if not result.data or len(result.data) == 0:
        logger.warning(f"Account {account_id} not found for user {user_id}")
        return None

    return cast(Dict[str, Any], result.data[0])


async def create_account(
    supabase_client: Client,
    user_id: str,
    name: str,
    account_type: str,
    currency: str,
    color: str,
    balance: float = 0.0,
) -> Dict[str, Any]:
    """
    Create a new account.

    Args:
        supabase_client: Authenticated Supabase client
        user_id: The authenticated user's ID
        name: Human-readable account name
        account_type: bank, cash, credit_card, e_wallet or investment
        currency: ISO currency code
        color: Hex color code for UI display (e.g., '#10B981')
        balance: Opening balance, stored as-is (not backed by a transaction)

    Returns:
        The created account dict
    """
    account_data = {
        "user_id": user_id,
        "name": name,
        "type": account_type,
        "balance": format_numeric(to_decimal(balance)),
        "currency": currency.upper(),
        "color": color.upper(),
    }

    logger.info(
        f"Creating account for user {user_id}: "
        f"name='{name}', type={account_type}, currency={currency}"
    )

    result = supabase_client.table("accounts").insert(account_data).execute()

    if not result.data or len(result.data) == 0:
        raise Exception("Failed to create account: no data returned")

    created_account: Dict[str, Any] = cast(Dict[str, Any], result.data[0])
    logger.info(f"Account created successfully: {created_account.get('id')}")

    return created_account


async def update_account(
    supabase_client: Client,
    user_id: str,
    account_id: str,
    **updates: Any
) -> Optional[Dict[str, Any]]:
    """
    Update account fields.

    A 'balance' in updates is an explicit user reset: it is written directly
    and bypasses reconciliation, so the balance may no longer equal the sum
    of the account's transactions afterwards.

    Args:
        **updates: Fields to update (name, type, currency, color, balance)

    Returns:
        The updated account dict, or None if not found
    """
    if 'color' in updates and updates['color']:
        updates['color'] = updates['color'].upper()

    if 'currency' in updates and updates['currency']:
        updates['currency'] = updates['currency'].upper()

    if 'balance' in updates and updates['balance'] is not None:
        updates['balance'] = format_numeric(to_decimal(updates['balance']))
        logger.warning(
            f"Account {account_id} balance reset directly by user {user_id} "
            "(bypasses reconciliation)"
        )

    logger.info(f"Updating account {account_id} for user {user_id}: {list(updates.keys())}")

    result = (
        supabase_client.table("accounts")
        .update(updates)
        .eq("id", account_id)
        .eq("user_id", user_id)
        .execute()
    )

    if not result.data or len(result.data) == 0:
        logger.warning(f"Account {account_id} not found for user {user_id}")
        return None

    updated_account: Dict[str, Any] = cast(Dict[str, Any], result.data[0])
    logger.info(f"Account {account_id} updated successfully")

    return updated_account


async def delete_account(
    supabase_client: Client,
    user_id: str,
    account_id: str
) -> bool:
    """
    Delete an account.

    The store's foreign key (ON DELETE CASCADE) removes the account's
    transactions; no application-side cleanup happens here.

    Returns:
        True if an account row was deleted, False if not found
    """
    logger.info(f"Deleting account {account_id} for user {user_id}")

    result = (
        supabase_client.table("accounts")
        .delete()
        .eq("id", account_id)
        .eq("user_id", user_id)
        .execute()
    )

    if not result.data or len(result.data) == 0:
        logger.warning(f"Deletion of account {account_id} returned no rows for user {user_id}")
        return False

    logger.info(f"Account {account_id} deleted (transactions removed by store cascade)")

    return True
