"""
Finance chat endpoints.

- POST /chat           - relays the AI gateway's server-sent-events stream
- POST /chat/complete  - consumes the stream and returns the assembled reply

Errors are returned as {"error": "<message>"} with the status chosen by the
chat service (429 rate limit, 402 credits, 500 otherwise).
"""

import logging
from typing import Annotated, Any, Dict, List

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, StreamingResponse

from fintrack.auth.dependencies import AuthenticatedUser, get_authenticated_user
from fintrack.db.client import get_supabase_client
from fintrack.schemas.chat import ChatCompletionResponse, ChatErrorResponse, ChatRequest
from fintrack.services import build_financial_summary
from fintrack.services.chat_service import (
    ChatServiceError,
    complete_chat,
    open_gateway_stream,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])

_ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    429: {"model": ChatErrorResponse, "description": "AI gateway rate limit reached"},
    402: {"model": ChatErrorResponse, "description": "AI gateway credits exhausted"},
    500: {"model": ChatErrorResponse, "description": "AI gateway or configuration error"},
}


def _error_response(e: ChatServiceError) -> JSONResponse:
    return JSONResponse(status_code=e.status_code, content={"error": e.message})


async def _resolve_financial_data(
    request: ChatRequest,
    auth_user: AuthenticatedUser,
) -> Dict[str, Any]:
    if request.financial_data is not None:
        return request.financial_data

    supabase_client = get_supabase_client(auth_user.access_token)
    return await build_financial_summary(
        supabase_client=supabase_client,
        user_id=auth_user.user_id,
    )


def _turns(request: ChatRequest) -> List[Dict[str, str]]:
    return [{"role": m.role, "content": m.content} for m in request.messages]


@router.post(
    "",
    status_code=status.HTTP_200_OK,
    summary="Stream a finance assistant reply",
    description="""
    Forward the conversation and the user's financial summary to the AI
    gateway and relay its server-sent-events stream unchanged.

    When `financialData` is omitted the summary is built from the user's data.
    """,
    response_class=StreamingResponse,
    responses=_ERROR_RESPONSES,
)
async def stream_chat(
    request: ChatRequest,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
):
    logger.info(f"Chat stream requested by user {auth_user.user_id}: {len(request.messages)} turns")

    try:
        financial_data = await _resolve_financial_data(request, auth_user)
    except Exception as e:
        logger.error(f"Failed to build financial data for chat: {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to load financial data"}
        )

    try:
        stream = await open_gateway_stream(_turns(request), financial_data)
    except ChatServiceError as e:
        return _error_response(e)

    return StreamingResponse(stream.iter_bytes(), media_type="text/event-stream")


@router.post(
    "/complete",
    response_model=ChatCompletionResponse,
    status_code=status.HTTP_200_OK,
    summary="Get a complete finance assistant reply",
    responses=_ERROR_RESPONSES,
)
async def complete_chat_reply(
    request: ChatRequest,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
):
    """
    Run the chat turn to completion and return the assembled assistant message.

    A stream that breaks mid-way yields an error, never partial content.
    """
    logger.info(f"Chat completion requested by user {auth_user.user_id}: {len(request.messages)} turns")

    try:
        financial_data = await _resolve_financial_data(request, auth_user)
    except Exception as e:
        logger.error(f"Failed to build financial data for chat: {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to load financial data"}
        )

    try:
        content = await complete_chat(_turns(request), financial_data)
    except ChatServiceError as e:
        return _error_response(e)

    return ChatCompletionResponse(role="assistant", content=content)
