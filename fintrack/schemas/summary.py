"""
Pydantic schemas for the dashboard summary and monthly report endpoints.
"""

from typing import List

from pydantic import BaseModel, Field

from fintrack.schemas.accounts import AccountResponse
from fintrack.schemas.transactions import TransactionDetailResponse


class CategoryTotal(BaseModel):
    """Total amount for one category."""
    category: str = Field(..., description="Category key", examples=["food"])
    amount: float = Field(..., description="Sum of transaction magnitudes in this category")


class FinancialSummaryResponse(BaseModel):
    """
    Response for GET /summary.

    The same structure is embedded in the chat assistant's system prompt.
    """
    total_balance: float = Field(..., description="Sum of all account balances")
    accounts: List[AccountResponse] = Field(..., description="All of the user's accounts")
    recent_transactions: List[TransactionDetailResponse] = Field(
        ...,
        description="Current month's transactions, newest first (max 10)"
    )
    monthly_income: float = Field(..., description="Income recorded this month")
    monthly_expense: float = Field(..., description="Expenses recorded this month")
    top_expense_categories: List[CategoryTotal] = Field(
        ...,
        description="Top 5 expense categories this month, largest first"
    )


class MonthlyReportResponse(BaseModel):
    """
    Response for GET /reports/monthly.
    """
    month: str = Field(..., description="Reported month (YYYY-MM)", examples=["2025-10"])
    from_date: str = Field(..., description="First day of the month (inclusive)")
    to_date: str = Field(..., description="Last day of the month (inclusive)")
    total_income: float = Field(..., description="Sum of income transactions")
    total_expense: float = Field(..., description="Sum of expense transactions")
    net_income: float = Field(..., description="total_income - total_expense")
    expense_by_category: List[CategoryTotal] = Field(..., description="Expense totals, largest first")
    income_by_category: List[CategoryTotal] = Field(..., description="Income totals, largest first")
