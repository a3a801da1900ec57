"""
Account balance reconciliation.

Keeps accounts.balance equal to the sum of the effective deltas of the
transactions referencing the account:

    effective_delta(type, amount) = +|amount| for income, -|amount| for expense

Protocol (the transaction record is always written by the caller first):

- Create:  balance(account) += delta(new)
- Update, same account:  balance(account) += delta(new) - delta(old)
- Update, moved:  balance(old account) -= delta(old); balance(new account) += delta(new)
- Delete:  balance(account) -= delta(old)

Each adjustment is a client-side read-modify-write of one account row. Steps
are NOT atomic with each other or with the transaction write: a failure
leaves earlier steps committed, and concurrent writers to the same account
can lose updates. recompute_account_balance() rebuilds a balance from the
transactions table and is the repair path for both cases.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional, cast

from supabase import Client

from fintrack.utils.logging import get_logger

logger = get_logger(__name__)

_CENT = Decimal("0.01")


class BalanceReconciliationError(Exception):
    """
    Raised when an account balance could not be brought in line with its
    transactions. The transaction write that preceded it is NOT rolled back.
    """

    def __init__(self, account_id: str, message: str):
        super().__init__(message)
        self.account_id = account_id


class AccountNotFoundError(BalanceReconciliationError):
    """Raised when the account to reconcile does not exist for the user."""


def to_decimal(value: Any) -> Decimal:
    """Convert a numeric-like store value (str, int, float, Decimal) to Decimal."""
    if isinstance(value, Decimal):
        return value
    if value is None:
        raise ValueError("numeric value required")
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Value is not numeric: {value!r}") from exc


def format_numeric(value: Decimal) -> str:
    """Quantize to 2 decimals (half-up) and render for a NUMERIC column."""
    return f"{value.quantize(_CENT, rounding=ROUND_HALF_UP):.2f}"


def effective_delta(transaction_type: str, amount: Any) -> Decimal:
    """
    Signed amount a transaction contributes to its account balance.

    The stored amount is a user-entered magnitude; its sign is discarded so a
    negative value in the store is normalised rather than double-negated.
    """
    magnitude = abs(to_decimal(amount))
    if transaction_type == "income":
        return magnitude
    if transaction_type == "expense":
        return -magnitude
    raise ValueError(
        f"Invalid transaction type: {transaction_type}. Must be 'income' or 'expense'"
    )


def _delta_of(transaction: Mapping[str, Any]) -> Decimal:
    return effective_delta(str(transaction.get("type")), transaction.get("amount"))


async def adjust_account_balance(
    supabase_client: Client,
    user_id: str,
    account_id: str,
    delta: Decimal,
) -> Optional[Decimal]:
    """
    Read the account's balance, add delta, and write it back.

    Args:
        supabase_client: Authenticated Supabase client
        user_id: The authenticated user's ID
        account_id: Account to adjust
        delta: Signed amount to add

    Returns:
        The new balance, or None when delta is zero (no write issued)

    Raises:
        BalanceReconciliationError: If the account cannot be read or written
    """
    if delta == 0:
        logger.debug(f"Zero delta for account {account_id}, skipping balance write")
        return None

    try:
        result = (
            supabase_client.table("accounts")
            .select("id, balance")
            .eq("id", account_id)
            .eq("user_id", user_id)
            .execute()
        )
    except Exception as e:
        raise BalanceReconciliationError(
            account_id, f"Failed to read balance of account {account_id}: {e}"
        ) from e

    if not result.data:
        raise AccountNotFoundError(
            account_id, f"Account {account_id} not found while adjusting balance"
        )

    row = cast(Dict[str, Any], result.data[0])
    current = to_decimal(row.get("balance") or 0)
    new_balance = current + delta

    try:
        update_result = (
            supabase_client.table("accounts")
            .update({"balance": format_numeric(new_balance)})
            .eq("id", account_id)
            .eq("user_id", user_id)
            .execute()
        )
    except Exception as e:
        raise BalanceReconciliationError(
            account_id, f"Failed to write balance of account {account_id}: {e}"
        ) from e

    if not update_result.data:
        raise BalanceReconciliationError(
            account_id, f"Balance update for account {account_id} affected no rows"
        )

    logger.info(f"Account {account_id} balance adjusted by {delta}")

    return new_balance


async def reconcile_create(
    supabase_client: Client,
    user_id: str,
    transaction: Mapping[str, Any],
) -> Optional[Decimal]:
    """Apply a newly persisted transaction to its account."""
    account_id = str(transaction.get("account_id"))
    return await adjust_account_balance(
        supabase_client, user_id, account_id, _delta_of(transaction)
    )


async def reconcile_update(
    supabase_client: Client,
    user_id: str,
    previous: Mapping[str, Any],
    updated: Mapping[str, Any],
) -> Dict[str, Optional[Decimal]]:
    """
    Move an edited transaction's contribution from its old state to its new one.

    Args:
        previous: Transaction snapshot before the edit
        updated: Transaction as persisted after the edit

    Returns:
        Mapping of adjusted account_id -> new balance (None where no write was needed)
    """
    old_account = str(previous.get("account_id"))
    new_account = str(updated.get("account_id"))
    old_delta = _delta_of(previous)
    new_delta = _delta_of(updated)

    if old_account == new_account:
        diff = new_delta - old_delta
        balance = await adjust_account_balance(supabase_client, user_id, new_account, diff)
        return {new_account: balance}

    # Balances of two accounts are read independently, so they cannot be
    # folded into one arithmetic step: reverse on the source, apply on the target.
    logger.info(
        f"Transaction {updated.get('id')} moved from account {old_account} to {new_account}"
    )
    reverted = await adjust_account_balance(supabase_client, user_id, old_account, -old_delta)
    applied = await adjust_account_balance(supabase_client, user_id, new_account, new_delta)
    return {old_account: reverted, new_account: applied}


async def reconcile_delete(
    supabase_client: Client,
    user_id: str,
    transaction: Mapping[str, Any],
) -> Optional[Decimal]:
    """Reverse a deleted transaction's contribution to its account."""
    account_id = str(transaction.get("account_id"))
    return await adjust_account_balance(
        supabase_client, user_id, account_id, -_delta_of(transaction)
    )


async def recompute_account_balance(
    supabase_client: Client,
    user_id: str,
    account_id: str,
) -> Decimal:
    """
    Rebuild an account's balance from its transactions and persist it.

    Used to repair drift left by a partially failed mutation or by
    concurrent writers. Note this discards any opening balance or manual
    reset that is not backed by transactions.

    Returns:
        The recomputed balance

    Raises:
        AccountNotFoundError: If the account does not exist
        BalanceReconciliationError: If the transactions cannot be read or the write fails
    """
    logger.info(f"Recomputing balance for account {account_id}, user {user_id}")

    try:
        transactions_result = (
            supabase_client.table("transactions")
            .select("type, amount")
            .eq("account_id", account_id)
            .eq("user_id", user_id)
            .execute()
        )
    except Exception as e:
        raise BalanceReconciliationError(
            account_id, f"Failed to read transactions of account {account_id}: {e}"
        ) from e

    rows = cast(list, transactions_result.data or [])
    total = sum((_delta_of(row) for row in rows), Decimal("0"))

    try:
        update_result = (
            supabase_client.table("accounts")
            .update({"balance": format_numeric(total)})
            .eq("id", account_id)
            .eq("user_id", user_id)
            .execute()
        )
    except Exception as e:
        raise BalanceReconciliationError(
            account_id, f"Failed to write recomputed balance of account {account_id}: {e}"
        ) from e

    if not update_result.data:
        raise AccountNotFoundError(
            account_id, f"Account {account_id} not found while recomputing balance"
        )

    logger.info(
        f"Account {account_id} balance recomputed from {len(rows)} transactions: {total}"
    )

    return total
