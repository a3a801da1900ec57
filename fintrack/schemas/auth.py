"""
Pydantic schemas for authentication endpoints.
"""

from typing import Optional
from pydantic import BaseModel, Field


class AuthMeResponse(BaseModel):
    """
    Response for GET /auth/me - the identity the current token resolves to.
    """
    user_id: str = Field(..., description="Authenticated user UUID (auth.uid())")
    email: Optional[str] = Field(None, description="Email claim from the access token")
