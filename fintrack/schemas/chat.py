"""
Pydantic schemas for the finance chat endpoints.

The request body keeps the client's camelCase `financialData` key.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """One conversation turn."""
    role: Literal["user", "assistant"] = Field(..., description="Who wrote the message")
    content: str = Field(..., description="Message text", min_length=1)


class ChatRequest(BaseModel):
    """
    Request for POST /chat and POST /chat/complete.

    When financialData is omitted the server builds the summary itself.
    """
    model_config = ConfigDict(populate_by_name=True)

    messages: List[ChatMessage] = Field(..., description="Conversation so far, oldest first", min_length=1)
    financial_data: Optional[Dict[str, Any]] = Field(
        None,
        alias="financialData",
        description="Financial summary to ground the assistant's answers"
    )


class ChatCompletionResponse(BaseModel):
    """Response for POST /chat/complete."""
    role: Literal["assistant"] = Field("assistant", description="Author of the reply")
    content: str = Field(..., description="Assembled assistant reply")


class ChatErrorResponse(BaseModel):
    """Error body returned by the chat endpoints."""
    error: str = Field(..., description="Human-readable error message")
