"""
Finance chat service - AI gateway proxy.

Forwards the conversation plus the user's financial summary to an
OpenAI-compatible chat completions endpoint with `stream: true` and hands the
server-sent-events body back to the caller, either as raw bytes (relay) or
assembled into the final assistant message.

Gateway status mapping:
- 429 -> ChatRateLimitedError
- 402 -> ChatPaymentRequiredError
- any other non-2xx, or a transport failure -> ChatGatewayError
"""

from typing import Any, AsyncIterator, Dict, List, Mapping, Optional

import httpx

from fintrack.agents.finance_chat import ChatStreamParser, build_chat_messages
from fintrack.config import settings
from fintrack.utils.logging import get_logger

logger = get_logger(__name__)

RATE_LIMIT_MESSAGE = "Request limit exceeded, please try again later."
PAYMENT_REQUIRED_MESSAGE = "More credits are required to continue using the assistant."
GATEWAY_ERROR_MESSAGE = "AI connection error"


class ChatServiceError(Exception):
    """Base error for the chat proxy; carries the HTTP status to surface."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ChatConfigurationError(ChatServiceError):
    status_code = 500


class ChatRateLimitedError(ChatServiceError):
    status_code = 429


class ChatPaymentRequiredError(ChatServiceError):
    status_code = 402


class ChatGatewayError(ChatServiceError):
    status_code = 500


def _build_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.AI_GATEWAY_TIMEOUT_SECONDS)


class GatewayStream:
    """An open streaming response from the gateway; close it when done."""

    def __init__(self, client: httpx.AsyncClient, response: httpx.Response):
        self._client = client
        self._response = response
        self._closed = False

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        """Yield raw SSE bytes, closing the connection afterwards."""
        try:
            async for chunk in self._response.aiter_bytes():
                yield chunk
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._response.aclose()
        await self._client.aclose()


async def open_gateway_stream(
    messages: List[Dict[str, str]],
    financial_data: Optional[Mapping[str, Any]],
) -> GatewayStream:
    """
    Send the conversation to the AI gateway and return the open stream.

    Args:
        messages: Conversation turns [{role, content}] from the client
        financial_data: Summary embedded in the system prompt

    Raises:
        ChatConfigurationError: If AI_GATEWAY_API_KEY is missing
        ChatRateLimitedError: Gateway answered 429
        ChatPaymentRequiredError: Gateway answered 402
        ChatGatewayError: Any other failure to open the stream
    """
    if not settings.AI_GATEWAY_API_KEY:
        raise ChatConfigurationError("AI_GATEWAY_API_KEY is not configured")

    payload = {
        "model": settings.AI_MODEL,
        "messages": build_chat_messages(
            messages, financial_data, settings.CHAT_RESPONSE_LANGUAGE
        ),
        "stream": True,
    }

    logger.info(
        f"Forwarding chat to AI gateway: model={settings.AI_MODEL}, turns={len(messages)}"
    )

    client = _build_http_client()
    try:
        request = client.build_request(
            "POST",
            settings.AI_GATEWAY_URL,
            json=payload,
            headers={
                "Authorization": f"Bearer {settings.AI_GATEWAY_API_KEY}",
                "Content-Type": "application/json",
            },
        )
        response = await client.send(request, stream=True)
    except httpx.HTTPError as e:
        await client.aclose()
        logger.error(f"AI gateway request failed: {e}")
        raise ChatGatewayError(GATEWAY_ERROR_MESSAGE) from e

    if response.is_success:
        return GatewayStream(client, response)

    status_code = response.status_code
    try:
        error_text = (await response.aread()).decode("utf-8", errors="replace")
    finally:
        await response.aclose()
        await client.aclose()

    if status_code == 429:
        logger.warning("AI gateway rate limit reached")
        raise ChatRateLimitedError(RATE_LIMIT_MESSAGE)
    if status_code == 402:
        logger.warning("AI gateway credits exhausted")
        raise ChatPaymentRequiredError(PAYMENT_REQUIRED_MESSAGE)

    logger.error(f"AI gateway error: status={status_code}, body={error_text[:200]}")
    raise ChatGatewayError(GATEWAY_ERROR_MESSAGE)


async def complete_chat(
    messages: List[Dict[str, str]],
    financial_data: Optional[Mapping[str, Any]],
) -> str:
    """
    Run a chat turn to completion and return the assistant's full reply.

    Partial output is discarded if the stream breaks before [DONE] or EOF.

    Raises:
        ChatServiceError: Any gateway or stream failure
    """
    stream = await open_gateway_stream(messages, financial_data)
    parser = ChatStreamParser()

    try:
        async for chunk in stream.iter_bytes():
            parser.feed(chunk)
            if parser.done:
                break
    except httpx.HTTPError as e:
        logger.error(f"Chat stream interrupted: {e}")
        raise ChatGatewayError(GATEWAY_ERROR_MESSAGE) from e
    finally:
        await stream.aclose()

    parser.finish()
    logger.info(f"Chat completion assembled: {len(parser.content)} characters")
    return parser.content
