"""
Authentication router - register and login endpoints.

These are the only public (unauthenticated) endpoints besides /health.

Endpoints:
  POST /v1/auth/register  - Create an API user
  POST /v1/auth/login     - Authenticate and get a token

Plaintext passwords exist only in memory during the request; they are hashed
before any database operation and never logged.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from card_vault.database import get_db
from card_vault.schemas.auth import CredentialsRequest, TokenResponse, UserResponse
from card_vault.services import auth_service

router = APIRouter()


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
)
async def register(
    request: CredentialsRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Create a user account for API access.

    - **username**: 3-100 characters, must not already exist
    - **password**: Minimum 8 characters
    """
    return await auth_service.register(
        db=db,
        username=request.username,
        password=request.password,
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="User login",
)
async def login(
    request: CredentialsRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Authenticate with username and password.

    Include the returned token in all card requests:

        Authorization: Bearer <token>
    """
    token = await auth_service.login(
        db=db,
        username=request.username,
        password=request.password,
    )
    return TokenResponse(token=token)
