"""
Authentication service - registering API clients and logging them in.

Login returns the same InvalidCredentialsError for an unknown username, a
wrong password and a deactivated user, so the endpoint can't be used to
enumerate usernames.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from card_vault.exceptions import DuplicateUsernameError, InvalidCredentialsError
from card_vault.models.user import User
from card_vault.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)


async def register(db: AsyncSession, username: str, password: str) -> User:
    """
    Create a new API user.

    Raises:
        DuplicateUsernameError: If the username is already taken.
    """
    result = await db.execute(select(User).where(User.username == username))
    if result.scalar_one_or_none() is not None:
        raise DuplicateUsernameError(username)

    user = User(username=username, hashed_password=hash_password(password))
    db.add(user)
    await db.flush()

    logger.info("Registered user %s", username)
    return user


async def login(db: AsyncSession, username: str, password: str) -> str:
    """
    Authenticate a user and return a JWT token.

    Raises:
        InvalidCredentialsError: If the username doesn't exist, the password
            is wrong, or the user is deactivated.
    """
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()

    if user is None or not verify_password(password, user.hashed_password):
        raise InvalidCredentialsError()
    if not user.is_active:
        raise InvalidCredentialsError()

    return create_access_token(data={"sub": user.username})
