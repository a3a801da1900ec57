"""
Transaction CRUD API endpoints.

Every mutation writes the transaction record first and then reconciles the
affected account balance(s). If the record is written but the balance
adjustment fails, the endpoint answers 500 `reconciliation_error`; the record
is not rolled back and POST /accounts/{id}/recompute repairs the balance.
"""

import logging
from typing import Annotated, Any, Literal, Optional, cast

from fastapi import APIRouter, Depends, HTTPException, Query, status

from fintrack.auth.dependencies import AuthenticatedUser, get_authenticated_user
from fintrack.db.client import get_supabase_client
from fintrack.schemas.transactions import (
    TransactionCreateRequest,
    TransactionCreateResponse,
    TransactionDeleteResponse,
    TransactionDetailResponse,
    TransactionListResponse,
    TransactionUpdateRequest,
    TransactionUpdateResponse,
)
from fintrack.services import (
    BalanceReconciliationError,
    create_transaction,
    delete_transaction,
    get_transaction_by_id,
    get_user_transactions,
    update_transaction,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/transactions", tags=["transactions"])


def _require_field(data: dict, key: str) -> Any:
    """Return data[key] or raise ValueError if missing/None."""
    val = data.get(key)
    if val is None:
        raise ValueError(f"Missing required field '{key}' in transaction data")
    return val


def _coerce_type(data: dict) -> Literal["income", "expense"]:
    val = _require_field(data, "type")
    if val not in ("income", "expense"):
        raise ValueError(f"Invalid transaction type: {val}")
    return cast(Literal["income", "expense"], val)


def _coerce_float(data: dict, key: str) -> float:
    val = _require_field(data, key)
    try:
        return float(val)
    except (TypeError, ValueError):
        raise ValueError(f"Field '{key}' is not convertible to float: {val}")


def to_transaction_response(txn: dict) -> TransactionDetailResponse:
    """Map a transactions row to its response model."""
    account = txn.get("accounts") or {}
    return TransactionDetailResponse(
        id=str(_require_field(txn, "id")),
        user_id=str(txn.get("user_id")),
        account_id=str(_require_field(txn, "account_id")),
        account_name=account.get("name"),
        account_currency=account.get("currency"),
        type=_coerce_type(txn),
        category=str(_require_field(txn, "category")),
        amount=_coerce_float(txn, "amount"),
        description=txn.get("description"),
        date=str(_require_field(txn, "date")),
        created_at=str(txn.get("created_at") or ""),
    )


def _reconciliation_failed(e: BalanceReconciliationError) -> HTTPException:
    logger.error(
        f"Transaction saved but balance of account {e.account_id} not reconciled: {e}"
    )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "reconciliation_error",
            "details": (
                f"The transaction was saved but the balance of account {e.account_id} "
                "could not be updated and may be stale. "
                f"POST /accounts/{e.account_id}/recompute rebuilds it from the account's "
                "transactions only and discards any opening balance or manual reset."
            )
        }
    )


@router.post(
    "",
    response_model=TransactionCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new transaction",
    description="""
    Record an income or expense transaction and apply it to the account balance.

    Security:
    - Requires valid Authorization Bearer token
    - RLS ensures user can only create transactions for themselves
    """
)
async def create_transaction_record(
    request: TransactionCreateRequest,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> TransactionCreateResponse:
    """
    Create a new transaction.

    **ENDPOINT FLOW:**

    Step 1: Auth - get_authenticated_user dependency
    Step 2: Parse/Validate - TransactionCreateRequest (amount >= 0, category matches type)
    Step 3: Call Service - insert the record, then add its delta to the account balance
    Step 4: Map Output -> TransactionCreateResponse
    """
    logger.info(
        f"Creating transaction for user_id={auth_user.user_id}, "
        f"account={request.account_id}, type={request.type}"
    )

    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        created_transaction = await create_transaction(
            supabase_client=supabase_client,
            user_id=auth_user.user_id,
            account_id=request.account_id,
            transaction_type=request.type,
            category=request.category,
            amount=request.amount,
            date=request.date.isoformat(),
            description=request.description,
        )

        transaction_detail = to_transaction_response(created_transaction)

        logger.info(
            f"Transaction created successfully: "
            f"id={transaction_detail.id}, user_id={auth_user.user_id}"
        )

        return TransactionCreateResponse(
            status="CREATED",
            transaction_id=transaction_detail.id,
            transaction=transaction_detail,
            message="Transaction created successfully"
        )

    except BalanceReconciliationError as e:
        raise _reconciliation_failed(e)
    except ValueError as e:
        logger.error(f"Invalid transaction data: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "invalid_request", "details": str(e)}
        )
    except Exception as e:
        logger.error(f"Failed to create transaction: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "persistence_error",
                "details": "Failed to save transaction to database"
            }
        )


@router.get(
    "",
    response_model=TransactionListResponse,
    status_code=status.HTTP_200_OK,
    summary="List user's transactions",
    description="""
    Retrieve the authenticated user's transactions, newest first by default.

    Supports filtering by account, type, category, date range and a free-text
    search over description, category and account name. Each row carries its
    account's name and currency.
    """
)
async def list_transactions(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)],
    limit: int = Query(50, ge=1, le=100, description="Maximum number of transactions to return"),
    offset: int = Query(0, ge=0, description="Number of transactions to skip for pagination"),
    account_id: Optional[str] = Query(None, description="Filter by account UUID"),
    type: Optional[Literal["income", "expense"]] = Query(None, description="Filter by type"),
    category: Optional[str] = Query(None, description="Filter by category key"),
    from_date: Optional[str] = Query(None, description="Filter by start date (YYYY-MM-DD)"),
    to_date: Optional[str] = Query(None, description="Filter by end date (YYYY-MM-DD)"),
    search: Optional[str] = Query(None, max_length=100, description="Search description/category/account name"),
    sort_by: str = Query("date", description="Sort field (date|amount)"),
    sort_order: str = Query("desc", description="Sort order (asc|desc)"),
) -> TransactionListResponse:
    """List transactions for the authenticated user."""
    logger.info(
        f"Listing transactions for user {auth_user.user_id} "
        f"(limit={limit}, offset={offset}, type={type}, account={account_id})"
    )

    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        transactions = await get_user_transactions(
            supabase_client=supabase_client,
            user_id=auth_user.user_id,
            limit=limit,
            offset=offset,
            account_id=account_id,
            transaction_type=type,
            category=category,
            from_date=from_date,
            to_date=to_date,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
        )

        transaction_responses = [to_transaction_response(txn) for txn in transactions]

        return TransactionListResponse(
            transactions=transaction_responses,
            count=len(transaction_responses),
            limit=limit,
            offset=offset
        )

    except Exception as e:
        logger.error(f"Failed to fetch transactions: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "fetch_error",
                "details": "Failed to retrieve transactions from database"
            }
        )


@router.get(
    "/{transaction_id}",
    response_model=TransactionDetailResponse,
    status_code=status.HTTP_200_OK,
    summary="Get transaction details",
)
async def get_transaction(
    transaction_id: str,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> TransactionDetailResponse:
    """
    Get details of a single transaction.

    Raises:
        HTTPException 404: If transaction not found or not accessible by user
    """
    logger.info(f"Fetching transaction {transaction_id} for user {auth_user.user_id}")

    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        transaction = await get_transaction_by_id(
            supabase_client=supabase_client,
            user_id=auth_user.user_id,
            transaction_id=transaction_id
        )

        if not transaction:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={
                    "error": "not_found",
                    "details": f"Transaction {transaction_id} not found or not accessible"
                }
            )

        return to_transaction_response(transaction)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to fetch transaction {transaction_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "fetch_error",
                "details": "Failed to retrieve transaction from database"
            }
        )


@router.patch(
    "/{transaction_id}",
    response_model=TransactionUpdateResponse,
    status_code=status.HTTP_200_OK,
    summary="Update transaction details",
    description="""
    Update an existing transaction. Only provided fields are changed.

    Balance handling:
    - Same account: the account is adjusted by the net difference
    - New account: the old value is reversed on the old account and the new
      value applied to the new account
    """
)
async def update_transaction_details(
    transaction_id: str,
    request: TransactionUpdateRequest,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> TransactionUpdateResponse:
    """Update a transaction record and reconcile affected balances."""
    logger.info(f"Updating transaction {transaction_id} for user {auth_user.user_id}")

    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        updated_transaction = await update_transaction(
            supabase_client=supabase_client,
            user_id=auth_user.user_id,
            transaction_id=transaction_id,
            account_id=request.account_id,
            transaction_type=request.type,
            category=request.category,
            amount=request.amount,
            date=request.date.isoformat() if request.date else None,
            description=request.description,
        )

        if not updated_transaction:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={
                    "error": "not_found",
                    "details": f"Transaction {transaction_id} not found or not accessible"
                }
            )

        logger.info(f"Transaction {transaction_id} updated successfully for user {auth_user.user_id}")

        return TransactionUpdateResponse(
            status="UPDATED",
            transaction_id=str(transaction_id),
            transaction=to_transaction_response(updated_transaction),
            message="Transaction updated successfully"
        )

    except HTTPException:
        raise
    except BalanceReconciliationError as e:
        raise _reconciliation_failed(e)
    except ValueError as e:
        logger.error(f"Invalid transaction data: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "invalid_request", "details": str(e)}
        )
    except Exception as e:
        logger.error(f"Failed to update transaction {transaction_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "update_error", "details": "Failed to update transaction"}
        )


@router.delete(
    "/{transaction_id}",
    response_model=TransactionDeleteResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete a transaction",
    description="""
    Delete a transaction and reverse its effect on the account balance.
    """
)
async def delete_transaction_record(
    transaction_id: str,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> TransactionDeleteResponse:
    """Delete a transaction record."""
    logger.info(f"Deleting transaction {transaction_id} for user {auth_user.user_id}")

    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        success = await delete_transaction(
            supabase_client=supabase_client,
            user_id=auth_user.user_id,
            transaction_id=transaction_id,
        )

        if not success:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={
                    "error": "not_found",
                    "details": f"Transaction {transaction_id} not found or not accessible"
                }
            )

        logger.info(f"Transaction {transaction_id} deleted successfully for user {auth_user.user_id}")

        return TransactionDeleteResponse(
            status="DELETED",
            transaction_id=str(transaction_id),
            message="Transaction deleted successfully"
        )

    except HTTPException:
        raise
    except BalanceReconciliationError as e:
        raise _reconciliation_failed(e)
    except Exception as e:
        logger.error(f"Failed to delete transaction {transaction_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "delete_error", "details": "Failed to delete transaction"}
        )
