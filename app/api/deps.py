from __future__ import annotations

from collections.abc import AsyncGenerator
import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import TokenRejected
from app.core.security import TokenIdentity, decode_access_token
from app.db.session import get_db_session

logger = logging.getLogger(__name__)

# auto_error=False so a missing header goes through our own 401 handler
bearer_scheme = HTTPBearer(auto_error=False)


async def get_db(session: AsyncSession = Depends(get_db_session)) -> AsyncGenerator[AsyncSession, None]:
    yield session


async def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> TokenIdentity:
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise TokenRejected("missing_token")

    try:
        return decode_access_token(credentials.credentials)
    except TokenRejected as exc:
        logger.debug("Rejected access token: %s", exc)
        raise
