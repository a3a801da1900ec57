"""
Dashboard summary and monthly report endpoints.

- GET /summary          - balances, current-month totals, recent transactions
- GET /reports/monthly  - income/expense breakdown for one month
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from fintrack.auth.dependencies import AuthenticatedUser, get_authenticated_user
from fintrack.db.client import get_supabase_client
from fintrack.routes.accounts import to_account_response
from fintrack.routes.transactions import to_transaction_response
from fintrack.schemas.summary import (
    CategoryTotal,
    FinancialSummaryResponse,
    MonthlyReportResponse,
)
from fintrack.services import build_financial_summary, build_monthly_report

logger = logging.getLogger(__name__)

router = APIRouter(tags=["summary"])


@router.get(
    "/summary",
    response_model=FinancialSummaryResponse,
    status_code=status.HTTP_200_OK,
    summary="Get dashboard summary",
    description="""
    Total balance across accounts, the current month's income and expenses,
    the latest transactions of the month and the top expense categories.
    """
)
async def get_financial_summary(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> FinancialSummaryResponse:
    """Build the dashboard summary for the authenticated user."""
    logger.info(f"Summary requested by user {auth_user.user_id}")

    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        summary = await build_financial_summary(
            supabase_client=supabase_client,
            user_id=auth_user.user_id,
        )

        return FinancialSummaryResponse(
            total_balance=summary["total_balance"],
            accounts=[to_account_response(acc) for acc in summary["accounts"]],
            recent_transactions=[
                to_transaction_response(txn) for txn in summary["recent_transactions"]
            ],
            monthly_income=summary["monthly_income"],
            monthly_expense=summary["monthly_expense"],
            top_expense_categories=[
                CategoryTotal(**item) for item in summary["top_expense_categories"]
            ],
        )

    except Exception as e:
        logger.error(f"Failed to build summary for user {auth_user.user_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "fetch_error", "details": "Failed to build financial summary"}
        )


@router.get(
    "/reports/monthly",
    response_model=MonthlyReportResponse,
    status_code=status.HTTP_200_OK,
    summary="Get monthly income/expense report",
)
async def get_monthly_report(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)],
    month: Optional[str] = Query(
        None,
        pattern=r"^\d{4}-\d{2}$",
        description="Month to report (YYYY-MM). Defaults to the current month.",
    ),
) -> MonthlyReportResponse:
    """
    Monthly report for the authenticated user.

    Raises:
        HTTPException 400: If month is not a valid calendar month
    """
    logger.info(f"Monthly report requested by user {auth_user.user_id} (month={month})")

    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        report = await build_monthly_report(
            supabase_client=supabase_client,
            user_id=auth_user.user_id,
            month=month,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "invalid_request", "details": str(e)}
        )
    except Exception as e:
        logger.error(f"Failed to build monthly report: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "fetch_error", "details": "Failed to build monthly report"}
        )

    return MonthlyReportResponse(
        month=report["month"],
        from_date=report["from_date"],
        to_date=report["to_date"],
        total_income=report["total_income"],
        total_expense=report["total_expense"],
        net_income=report["net_income"],
        expense_by_category=[CategoryTotal(**item) for item in report["expense_by_category"]],
        income_by_category=[CategoryTotal(**item) for item in report["income_by_category"]],
    )
