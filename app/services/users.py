from __future__ import annotations

import logging
import secrets
from functools import lru_cache

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AuthFailure, DuplicateUsername
from app.core.security import hash_password, verify_password
from app.models.user import User

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _dummy_password_hash() -> str:
    return hash_password(secrets.token_urlsafe(16))


async def _username_exists(db: AsyncSession, username: str) -> bool:
    result = await db.execute(select(User.id).where(User.username == username))
    return result.scalar_one_or_none() is not None


async def get_user(db: AsyncSession, user_id: int) -> User | None:
    return await db.get(User, user_id)


async def register(db: AsyncSession, username: str, display_name: str, password: str) -> int:
    if await _username_exists(db, username):
        raise DuplicateUsername()

    user = User(
        username=username,
        display_name=display_name,
        password_hash=hash_password(password),
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as exc:
        # lost a race against a concurrent registration
        await db.rollback()
        raise DuplicateUsername() from exc

    logger.info("Registered user id=%s", user.id)
    return user.id


async def verify_credentials(db: AsyncSession, username: str, password: str) -> User:
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    if user is None:
        # same bcrypt cost as a real check so timing does not reveal the username
        verify_password(password, _dummy_password_hash())
        raise AuthFailure()
    if not verify_password(password, user.password_hash):
        raise AuthFailure()
    return user
