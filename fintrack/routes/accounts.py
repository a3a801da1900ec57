"""
Account CRUD API endpoints.

Provides endpoints for managing user financial accounts. Deleting an account
relies on the store's cascade to remove its transactions. Balances drift-
repaired via POST /accounts/{id}/recompute.
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from fintrack.auth.dependencies import AuthenticatedUser, get_authenticated_user
from fintrack.db.client import get_supabase_client
from fintrack.schemas.accounts import (
    AccountCreateRequest,
    AccountCreateResponse,
    AccountDeleteResponse,
    AccountListResponse,
    AccountRecomputeResponse,
    AccountResponse,
    AccountUpdateRequest,
    AccountUpdateResponse,
)
from fintrack.services import (
    AccountNotFoundError,
    create_account,
    delete_account,
    get_account_by_id,
    get_user_accounts,
    recompute_account_balance,
    update_account,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/accounts", tags=["accounts"])


def _as_str(v: Any) -> str:
    return str(v) if v is not None else ""


def to_account_response(acc: dict) -> AccountResponse:
    """Map an accounts row to its response model."""
    return AccountResponse(
        id=_as_str(acc.get("id")),
        user_id=_as_str(acc.get("user_id")),
        name=_as_str(acc.get("name")),
        type=acc.get("type", "bank"),  # type: ignore
        balance=float(acc.get("balance") or 0),
        currency=_as_str(acc.get("currency")),
        color=_as_str(acc.get("color")),
        created_at=_as_str(acc.get("created_at")),
    )


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": "not_found", "details": "Account not found"}
    )


@router.get(
    "",
    response_model=AccountListResponse,
    status_code=status.HTTP_200_OK,
    summary="List user accounts",
    description="""
    Retrieve the authenticated user's accounts, newest first, with the total balance.
    """
)
async def list_accounts(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)],
    limit: int = Query(50, ge=1, le=100, description="Maximum number of accounts to return"),
    offset: int = Query(0, ge=0, description="Number of accounts to skip for pagination")
) -> AccountListResponse:
    """List all accounts for the authenticated user."""
    logger.info(f"Listing accounts for user {auth_user.user_id} (limit={limit}, offset={offset})")

    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        accounts = await get_user_accounts(
            supabase_client=supabase_client,
            user_id=auth_user.user_id,
            limit=limit,
            offset=offset
        )

        account_responses = [to_account_response(acc) for acc in accounts]

        return AccountListResponse(
            accounts=account_responses,
            count=len(account_responses),
            total_balance=sum(acc.balance for acc in account_responses),
            limit=limit,
            offset=offset
        )

    except Exception as e:
        logger.error(f"Failed to list accounts for user {auth_user.user_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "fetch_error",
                "details": "Failed to retrieve accounts from database"
            }
        )


@router.post(
    "",
    response_model=AccountCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create account",
)
async def create_new_account(
    request: AccountCreateRequest,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> AccountCreateResponse:
    """
    Create a new account with an optional opening balance.
    """
    logger.info(f"Creating account for user {auth_user.user_id}: {request.name}")

    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        created_account = await create_account(
            supabase_client=supabase_client,
            user_id=auth_user.user_id,
            name=request.name,
            account_type=request.type,
            currency=request.currency,
            color=request.color,
            balance=request.balance,
        )

        return AccountCreateResponse(
            status="CREATED",
            account=to_account_response(created_account),
            message="Account created successfully"
        )

    except Exception as e:
        logger.error(f"Failed to create account for user {auth_user.user_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "create_error", "details": "Failed to create account"}
        )


@router.get(
    "/{account_id}",
    response_model=AccountResponse,
    status_code=status.HTTP_200_OK,
    summary="Get account details",
)
async def get_account(
    account_id: Annotated[str, Path(description="Account UUID")],
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> AccountResponse:
    """Get account by ID."""
    logger.info(f"Fetching account {account_id} for user {auth_user.user_id}")

    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        account = await get_account_by_id(
            supabase_client=supabase_client,
            user_id=auth_user.user_id,
            account_id=account_id
        )

        if not account:
            raise _not_found()

        return to_account_response(account)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to fetch account {account_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "fetch_error", "details": "Failed to retrieve account"}
        )


@router.patch(
    "/{account_id}",
    response_model=AccountUpdateResponse,
    status_code=status.HTTP_200_OK,
    summary="Update account",
    description="""
    Update account details. A balance in the body resets the balance directly
    and is not reconciled against the account's transactions.
    """
)
async def update_existing_account(
    account_id: Annotated[str, Path(description="Account UUID")],
    request: AccountUpdateRequest,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> AccountUpdateResponse:
    """Update account details."""
    logger.info(f"Updating account {account_id} for user {auth_user.user_id}")

    updates = request.model_dump(exclude_none=True)

    if not updates:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "invalid_request",
                "details": "At least one field must be provided for update"
            }
        )

    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        updated_account = await update_account(
            supabase_client=supabase_client,
            user_id=auth_user.user_id,
            account_id=account_id,
            **updates
        )

        if not updated_account:
            raise _not_found()

        return AccountUpdateResponse(
            status="UPDATED",
            account=to_account_response(updated_account),
            message="Account updated successfully"
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update account {account_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "update_error", "details": "Failed to update account"}
        )


@router.delete(
    "/{account_id}",
    response_model=AccountDeleteResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete account",
    description="""
    Delete an account. Its transactions are deleted by the database cascade.
    """
)
async def delete_existing_account(
    account_id: Annotated[str, Path(description="Account UUID to delete")],
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> AccountDeleteResponse:
    """Delete an account and (via cascade) its transactions."""
    logger.info(f"Deleting account {account_id} for user {auth_user.user_id}")

    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        deleted = await delete_account(
            supabase_client=supabase_client,
            user_id=auth_user.user_id,
            account_id=account_id
        )

        if not deleted:
            raise _not_found()

        return AccountDeleteResponse(
            status="DELETED",
            account_id=account_id,
            message="Account deleted successfully"
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to delete account {account_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "delete_error", "details": "Failed to delete account"}
        )


@router.post(
    "/{account_id}/recompute",
    response_model=AccountRecomputeResponse,
    status_code=status.HTTP_200_OK,
    summary="Rebuild account balance from transactions",
    description="""
    Recompute the balance as the sum of the account's transaction deltas and
    store it. Repairs a balance left stale by a partially failed mutation.
    Any opening balance or manual reset not backed by transactions is discarded.
    """
)
async def recompute_balance(
    account_id: Annotated[str, Path(description="Account UUID")],
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> AccountRecomputeResponse:
    """Recompute an account's balance."""
    logger.info(f"Recompute requested for account {account_id} by user {auth_user.user_id}")

    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        balance = await recompute_account_balance(
            supabase_client=supabase_client,
            user_id=auth_user.user_id,
            account_id=account_id
        )

        return AccountRecomputeResponse(
            status="RECOMPUTED",
            account_id=account_id,
            balance=float(balance)
        )

    except AccountNotFoundError:
        raise _not_found()
    except Exception as e:
        logger.error(f"Failed to recompute account {account_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "update_error", "details": "Failed to recompute account balance"}
        )
