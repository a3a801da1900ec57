"""
Dashboard summary and monthly report aggregation.

Aggregates are computed in the service from the user's rows (RLS scoped).
Transaction amounts are magnitudes; the transaction type decides whether a
row counts as income or expense.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple, cast

from supabase import Client

from fintrack.services.balance_reconciler import to_decimal
from fintrack.utils.constants import (
    RECENT_TRANSACTIONS_LIMIT,
    TOP_EXPENSE_CATEGORIES_LIMIT,
)

logger = logging.getLogger(__name__)


def month_bounds(month: Optional[str] = None, today: Optional[date] = None) -> Tuple[str, str]:
    """
    Return inclusive (first_day, last_day) ISO dates for a 'YYYY-MM' month.

    Defaults to the month containing today.

    Raises:
        ValueError: If month is not 'YYYY-MM'
    """
    if month:
        try:
            year_str, month_str = month.split("-")
            year, month_num = int(year_str), int(month_str)
            first = date(year, month_num, 1)
        except ValueError as exc:
            raise ValueError(f"Invalid month '{month}', expected YYYY-MM") from exc
    else:
        current = today or date.today()
        first = current.replace(day=1)

    if first.month == 12:
        next_first = first.replace(year=first.year + 1, month=1)
    else:
        next_first = first.replace(month=first.month + 1)

    last = date.fromordinal(next_first.toordinal() - 1)
    return first.isoformat(), last.isoformat()


def _totals_by_category(transactions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    totals: Dict[str, Decimal] = {}
    for txn in transactions:
        category = str(txn.get("category"))
        totals[category] = totals.get(category, Decimal("0")) + abs(to_decimal(txn.get("amount")))

    return [
        {"category": category, "amount": float(amount)}
        for category, amount in sorted(totals.items(), key=lambda item: item[1], reverse=True)
    ]


def _sum_amounts(transactions: List[Dict[str, Any]]) -> Decimal:
    return sum((abs(to_decimal(t.get("amount"))) for t in transactions), Decimal("0"))


async def _fetch_month_transactions(
    supabase_client: Client,
    user_id: str,
    first_day: str,
    last_day: str,
) -> List[Dict[str, Any]]:
    result = (
        supabase_client.table("transactions")
        .select("*")
        .eq("user_id", user_id)
        .gte("date", first_day)
        .lte("date", last_day)
        .order("date", desc=True)
        .execute()
    )
    return cast(List[Dict[str, Any]], result.data or [])


async def build_financial_summary(
    supabase_client: Client,
    user_id: str,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Build the dashboard summary that is also fed to the chat assistant.

    Returns:
        Dict with total_balance, accounts, recent_transactions (current month,
        newest first), monthly_income, monthly_expense and
        top_expense_categories (largest first)
    """
    logger.debug(f"Building financial summary for user {user_id}")

    accounts_result = (
        supabase_client.table("accounts")
        .select("*")
        .eq("user_id", user_id)
        .execute()
    )
    accounts = cast(List[Dict[str, Any]], accounts_result.data or [])

    first_day, last_day = month_bounds(today=today)
    transactions = await _fetch_month_transactions(supabase_client, user_id, first_day, last_day)

    income = [t for t in transactions if t.get("type") == "income"]
    expenses = [t for t in transactions if t.get("type") == "expense"]

    total_balance = sum((to_decimal(a.get("balance") or 0) for a in accounts), Decimal("0"))

    logger.info(
        f"Financial summary built for user {user_id}: "
        f"{len(accounts)} accounts, {len(transactions)} transactions this month"
    )

    return {
        "total_balance": float(total_balance),
        "accounts": accounts,
        "recent_transactions": transactions[:RECENT_TRANSACTIONS_LIMIT],
        "monthly_income": float(_sum_amounts(income)),
        "monthly_expense": float(_sum_amounts(expenses)),
        "top_expense_categories": _totals_by_category(expenses)[:TOP_EXPENSE_CATEGORIES_LIMIT],
    }


async def build_monthly_report(
    supabase_client: Client,
    user_id: str,
    month: Optional[str] = None,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Income/expense totals and per-category breakdowns for one month.

    Raises:
        ValueError: If month is malformed
    """
    first_day, last_day = month_bounds(month, today=today)

    logger.debug(f"Building monthly report for user {user_id}: {first_day}..{last_day}")

    transactions = await _fetch_month_transactions(supabase_client, user_id, first_day, last_day)

    income = [t for t in transactions if t.get("type") == "income"]
    expenses = [t for t in transactions if t.get("type") == "expense"]

    total_income = _sum_amounts(income)
    total_expense = _sum_amounts(expenses)

    return {
        "month": first_day[:7],
        "from_date": first_day,
        "to_date": last_day,
        "total_income": float(total_income),
        "total_expense": float(total_expense),
        "net_income": float(total_income - total_expense),
        "expense_by_category": _totals_by_category(expenses),
        "income_by_category": _totals_by_category(income),
    }
