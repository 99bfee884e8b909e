"""
Pydantic schemas for authentication endpoints (register and login).
"""

import uuid

from pydantic import BaseModel, Field


class CredentialsRequest(BaseModel):
    """Request body for POST /v1/auth/register and POST /v1/auth/login."""
    username: str = Field(min_length=3, max_length=100)
    password: str = Field(min_length=8)


class UserResponse(BaseModel):
    """Public representation of a registered user."""
    id: uuid.UUID
    username: str

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    """Response body for a successful login - contains the JWT."""
    token: str
    token_type: str = "bearer"
