"""
Transaction persistence service.

RULES:
1. All operations MUST respect RLS (user_id = auth.uid())
2. Never trust client-provided user_id - always use authenticated user_id from JWT
3. The transaction record is written FIRST, then the account balance is
   reconciled (see balance_reconciler). Reconciliation failures propagate as
   BalanceReconciliationError; the record write is not rolled back.
"""

import logging
from typing import Any, Dict, List, Optional, cast

from supabase import Client

from fintrack.services.balance_reconciler import (
    format_numeric,
    reconcile_create,
    reconcile_delete,
    reconcile_update,
    to_decimal,
)
from fintrack.utils.constants import validate_category

logger = logging.getLogger(__name__)

# Each row carries its owning account's display fields
TRANSACTION_COLUMNS = "*, accounts(name, currency)"


async def create_transaction(
    supabase_client: Client,
    user_id: str,
    account_id: str,
    transaction_type: str,
    category: str,
    amount: float,
    date: str,
    description: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Create a transaction record and apply it to the account balance.

    This function:
    1. Validates the category against the transaction type
    2. Inserts the record into the transactions table
    3. Adds the transaction's effective delta to the account balance

    Args:
        supabase_client: Authenticated Supabase client (with user token)
        user_id: The authenticated user's ID (from JWT token)
        account_id: UUID of the account affected by this transaction
        transaction_type: 'income' or 'expense'
        category: Category key valid for the transaction type
        amount: User-entered magnitude (>= 0)
        date: Calendar date (YYYY-MM-DD)
        description: Optional free-text note

    Returns:
        The created transaction record from Supabase

    Raises:
        ValueError: If type/category are invalid
        BalanceReconciliationError: If the record was saved but the balance was not adjusted
        Exception: If the insert fails
    """
    validate_category(transaction_type, category)

    transaction_data = {
        "user_id": user_id,
        "account_id": account_id,
        "type": transaction_type,
        "category": category,
        "amount": format_numeric(to_decimal(amount)),
        "description": description or None,
        "date": date,
    }

    logger.info(
        f"Creating transaction for user {user_id}: "
        f"account={account_id}, type={transaction_type}, category={category}"
    )

    result = supabase_client.table("transactions").insert(transaction_data).execute()

    if not result.data or len(result.data) == 0:
        raise Exception("Failed to create transaction: no data returned")

    created_transaction = cast(Dict[str, Any], result.data[0])

    logger.info(
        f"Transaction created successfully: id={created_transaction.get('id')}, "
        f"user_id={user_id}"
    )

    await reconcile_create(supabase_client, user_id, created_transaction)

    return created_transaction


def _account_ids_named_like(supabase_client: Client, user_id: str, term: str) -> List[str]:
    """IDs of the user's accounts whose name contains term (case-insensitive)."""
    result = (
        supabase_client.table("accounts")
        .select("id")
        .eq("user_id", user_id)
        .ilike("name", f"%{term}%")
        .execute()
    )
    return [str(row["id"]) for row in cast(List[Dict[str, Any]], result.data or [])]


async def get_user_transactions(
    supabase_client: Client,
    user_id: str,
    limit: int = 50,
    offset: int = 0,
    account_id: Optional[str] = None,
    transaction_type: Optional[str] = None,
    category: Optional[str] = None,
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: str = "date",
    sort_order: str = "desc",
) -> List[Dict[str, Any]]:
    """
    Fetch transactions for the authenticated user with optional filters and sorting.

    Args:
        supabase_client: Authenticated Supabase client
        user_id: The authenticated user's ID
        limit: Maximum number of transactions to return
        offset: Number of transactions to skip (for pagination)
        account_id: Optional filter by account
        transaction_type: Optional filter by 'income' or 'expense'
        category: Optional filter by category key
        from_date: Optional inclusive start date (YYYY-MM-DD)
        to_date: Optional inclusive end date (YYYY-MM-DD)
        search: Optional case-insensitive match on description, category or account name
        sort_by: 'date' or 'amount' (default 'date')
        sort_order: 'asc' or 'desc' (default 'desc')

    Returns:
        List of transaction records (RLS ensures only user's own transactions)
    """
    logger.debug(
        f"Fetching transactions for user {user_id} "
        f"(limit={limit}, offset={offset}, sort_by={sort_by}, sort_order={sort_order}, "
        f"filters: account={account_id}, type={transaction_type}, category={category})"
    )

    query = supabase_client.table("transactions").select(TRANSACTION_COLUMNS).eq("user_id", user_id)

    if account_id:
        query = query.eq("account_id", account_id)
    if transaction_type:
        query = query.eq("type", transaction_type)
    if category:
        query = query.eq("category", category)
    if from_date:
        query = query.gte("date", from_date)
    if to_date:
        query = query.lte("date", to_date)
    if search:
        # PostgREST or-filter; commas and parentheses would break the filter syntax
        term = search.replace(",", " ").replace("(", " ").replace(")", " ").strip()
        if term:
            alternatives = [f"description.ilike.%{term}%", f"category.ilike.%{term}%"]
            account_ids = _account_ids_named_like(supabase_client, user_id, term)
            if account_ids:
                alternatives.append(f"account_id.in.({','.join(account_ids)})")
            query = query.or_(",".join(alternatives))

    if sort_by not in ("date", "amount"):
        logger.warning(f"Invalid sort_by '{sort_by}', defaulting to 'date'")
        sort_by = "date"

    if sort_order not in ("asc", "desc"):
        logger.warning(f"Invalid sort_order '{sort_order}', defaulting to 'desc'")
        sort_order = "desc"

    is_desc = sort_order == "desc"
    result = (
        query.order(sort_by, desc=is_desc)
        .order("created_at", desc=is_desc)
        .range(offset, offset + limit - 1)
        .execute()
    )

    transactions = cast(List[Dict[str, Any]], result.data or [])

    logger.info(f"Fetched {len(transactions)} transactions for user {user_id}")

    return transactions


async def get_transaction_by_id(
    supabase_client: Client,
    user_id: str,
    transaction_id: str,
) -> Optional[Dict[str, Any]]:
    """
    Fetch a single transaction by its ID.

    Returns:
        Transaction record if found and owned by the user, None otherwise
    """
    logger.debug(f"Fetching transaction {transaction_id} for user {user_id}")

    result = (
        supabase_client.table("transactions")
        .select(TRANSACTION_COLUMNS)
        .eq("id", transaction_id)
        .eq("user_id", user_id)
        .execute()
    )

    if not result.data or len(result.data) == 0:
        logger.warning(
            f"Transaction {transaction_id} not found or not accessible by user {user_id}"
        )
        return None

    return cast(Dict[str, Any], result.data[0])


async def update_transaction(
    supabase_client: Client,
    user_id: str,
    transaction_id: str,
    account_id: Optional[str] = None,
    transaction_type: Optional[str] = None,
    category: Optional[str] = None,
    amount: Optional[float] = None,
    date: Optional[str] = None,
    description: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """
    Update an existing transaction and reconcile the affected balance(s).

    This function:
    1. Reads the current transaction (the snapshot used for reversal)
    2. Validates the resulting type/category pair
    3. Persists only the provided fields
    4. Re-applies the balance: a net adjustment when the account is unchanged,
       or a reversal on the old account plus an application on the new one

    Args:
        description: Updated note; an empty string clears it

    Returns:
        The updated transaction record, or None if not found

    Raises:
        ValueError: If the resulting type/category pair is invalid
        BalanceReconciliationError: If the record was saved but a balance was not adjusted
    """
    existing = await get_transaction_by_id(supabase_client, user_id, transaction_id)
    if not existing:
        logger.warning(
            f"Cannot update transaction {transaction_id}: "
            f"not found or not accessible by user {user_id}"
        )
        return None

    resulting_type = transaction_type if transaction_type is not None else existing.get("type")
    resulting_category = category if category is not None else existing.get("category")
    validate_category(str(resulting_type), str(resulting_category))

    update_data: Dict[str, Any] = {}
    if account_id is not None:
        update_data["account_id"] = account_id
    if transaction_type is not None:
        update_data["type"] = transaction_type
    if category is not None:
        update_data["category"] = category
    if amount is not None:
        update_data["amount"] = format_numeric(to_decimal(amount))
    if date is not None:
        update_data["date"] = date
    if description is not None:
        update_data["description"] = description or None

    if not update_data:
        logger.warning(f"No fields to update for transaction {transaction_id}")
        return existing

    logger.info(
        f"Updating transaction {transaction_id} for user {user_id}: "
        f"fields={list(update_data.keys())}"
    )

    result = (
        supabase_client.table("transactions")
        .update(update_data)
        .eq("id", transaction_id)
        .eq("user_id", user_id)
        .execute()
    )

    if not result.data or len(result.data) == 0:
        logger.warning(f"Failed to update transaction {transaction_id}: no data returned")
        return None

    updated_transaction = cast(Dict[str, Any], result.data[0])

    logger.info(f"Transaction {transaction_id} updated successfully for user {user_id}")

    affects_balance = (
        amount is not None or
        account_id is not None or
        transaction_type is not None
    )
    if affects_balance:
        await reconcile_update(supabase_client, user_id, existing, updated_transaction)

    return updated_transaction


async def delete_transaction(
    supabase_client: Client,
    user_id: str,
    transaction_id: str,
) -> bool:
    """
    Delete a transaction record and reverse it from its account balance.

    Returns:
        True if deletion was successful, False if transaction not found or not accessible

    Raises:
        BalanceReconciliationError: If the record was deleted but the balance was not adjusted
    """
    existing = await get_transaction_by_id(supabase_client, user_id, transaction_id)
    if not existing:
        logger.warning(
            f"Cannot delete transaction {transaction_id}: "
            f"not found or not accessible by user {user_id}"
        )
        return False

    logger.info(f"Deleting transaction {transaction_id} for user {user_id}")

    result = (
        supabase_client.table("transactions")
        .delete()
        .eq("id", transaction_id)
        .eq("user_id", user_id)
        .execute()
    )

    if not result.data or len(result.data) == 0:
        logger.warning(
            f"Deletion of transaction {transaction_id} returned no rows for user {user_id}"
        )
        return False

    logger.info(f"Transaction {transaction_id} deleted successfully for user {user_id}")

    await reconcile_delete(supabase_client, user_id, existing)

    return True
