"""
Auth API endpoints.

- GET /auth/me - identity the bearer token resolves to
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from fintrack.auth.dependencies import AuthenticatedUser, get_authenticated_user
from fintrack.schemas.auth import AuthMeResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get(
    "/me",
    response_model=AuthMeResponse,
    status_code=status.HTTP_200_OK,
    summary="Get authenticated user identity",
)
async def get_current_user(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> AuthMeResponse:
    """
    Return the user id and email carried by the verified access token.

    Raises:
        HTTPException 401: If token is missing, invalid, or expired
    """
    logger.info(f"Auth identity requested for user {auth_user.user_id}")

    return AuthMeResponse(user_id=auth_user.user_id, email=auth_user.email)
