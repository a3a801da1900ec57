"""
Service layer for the fintrack backend.

Contains business logic that:
- Persists accounts and transactions through the per-request RLS client
- Keeps account balances reconciled with their transactions
- Aggregates dashboard summaries and monthly reports
- Proxies the finance chat to the AI gateway

Services act as the glue between routes (HTTP layer) and the database / AI gateway.
"""

from .account_service import (
    create_account,
    delete_account,
    get_account_by_id,
    get_user_accounts,
    update_account,
)
from .balance_reconciler import (
    AccountNotFoundError,
    BalanceReconciliationError,
    adjust_account_balance,
    effective_delta,
    recompute_account_balance,
)
from .summary_service import build_financial_summary, build_monthly_report
from .transaction_service import (
    create_transaction,
    delete_transaction,
    get_transaction_by_id,
    get_user_transactions,
    update_transaction,
)

__all__ = [
    "get_user_accounts",
    "get_account_by_id",
    "create_account",
    "update_account",
    "delete_account",
    "AccountNotFoundError",
    "BalanceReconciliationError",
    "adjust_account_balance",
    "effective_delta",
    "recompute_account_balance",
    "build_financial_summary",
    "build_monthly_report",
    "create_transaction",
    "get_user_transactions",
    "get_transaction_by_id",
    "update_transaction",
    "delete_transaction",
]
