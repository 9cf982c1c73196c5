from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from jose import ExpiredSignatureError, JWTError, jwt
import bcrypt

from app.core.config import settings
from app.core.errors import TokenRejected


_BCRYPT_MAX_BYTES = 72


@dataclass(frozen=True)
class TokenIdentity:
    user_id: int
    username: str


def hash_password(password: str, rounds: int | None = None) -> str:
    if not isinstance(password, str):
        raise TypeError("password must be a string")

    password_bytes = password.encode("utf-8")
    # bcrypt max: 72 bytes; the schema rejects longer passwords too,
    # but we guard here as well to avoid 500s.
    if len(password_bytes) > _BCRYPT_MAX_BYTES:
        raise ValueError("password must be 72 bytes or fewer")

    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(password_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not isinstance(password, str) or not isinstance(password_hash, str):
        return False
    password_bytes = password.encode("utf-8")
    if len(password_bytes) > _BCRYPT_MAX_BYTES:
        return False
    try:
        return bcrypt.checkpw(password_bytes, password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def create_access_token(user_id: int, username: str, expires_minutes: int | None = None) -> str:
    now = datetime.now(timezone.utc)
    if expires_minutes is None:
        expires_minutes = settings.access_token_expire_minutes

    payload: dict[str, object] = {
        "sub": str(user_id),
        "username": username,
        "iat": int(now.timestamp()),
    }
    if expires_minutes > 0:
        payload["exp"] = int((now + timedelta(minutes=expires_minutes)).timestamp())
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> TokenIdentity:
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError as exc:
        raise TokenRejected("expired_token") from exc
    except JWTError as exc:
        raise TokenRejected() from exc

    subject = payload.get("sub")
    username = payload.get("username")
    if not isinstance(subject, str) or not isinstance(username, str) or not username:
        raise TokenRejected()

    try:
        user_id = int(subject)
    except ValueError as exc:
        raise TokenRejected() from exc

    return TokenIdentity(user_id=user_id, username=username)
