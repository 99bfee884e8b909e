"""
FastAPI dependencies: authentication and the configured core components.

  get_current_user      (JWT -> User)  - required by every /v1/cards route
  get_card_cipher       (settings -> CardCipher)
  get_card_file_parser  (settings -> CardFileParser)

The cipher and parser are built from Settings here, once, and passed into
the services explicitly. Tests override these dependencies to use their
own passphrase or size limit.
"""

from functools import lru_cache

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from card_vault.config import settings
from card_vault.crypto import CardCipher
from card_vault.database import get_db
from card_vault.models.user import User
from card_vault.parsing import CardFileParser
from card_vault.security import decode_access_token


# "Authorization: Bearer <token>"; tokenUrl feeds Swagger UI's Authorize button
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/v1/auth/login")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Validate the bearer token and return the corresponding active User.

    Raises:
        HTTPException 401: If the token is invalid or the user doesn't exist
            or is deactivated.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(token)
    except JWTError:
        raise credentials_exception

    username: str | None = payload.get("sub")
    if username is None:
        raise credentials_exception

    result = await db.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise credentials_exception

    return user


@lru_cache
def get_card_cipher() -> CardCipher:
    """The process-wide cipher; the key is derived once."""
    return CardCipher(settings.CARD_ENCRYPTION_PASSPHRASE)


def get_card_file_parser() -> CardFileParser:
    return CardFileParser(max_size_bytes=settings.MAX_UPLOAD_SIZE_BYTES)
