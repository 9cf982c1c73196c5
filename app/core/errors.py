"""Domain errors raised by the services and the token authenticator.

Each error's message is a stable code string so that routes can translate it
with :func:`app.api.http_errors.value_error`.
"""
from __future__ import annotations


class ValidationError(ValueError):
    code = "invalid"

    def __init__(self, code: str | None = None) -> None:
        super().__init__(code or self.code)


class DuplicateUsername(ValidationError):
    code = "duplicate_username"


class DuplicateRequest(ValidationError):
    code = "duplicate_request"


class CannotFriendSelf(ValidationError):
    code = "cannot_friend_self"


class EmptyContent(ValidationError):
    code = "empty_content"


class NotFoundCondition(ValueError):
    code = "not_found"

    def __init__(self, code: str | None = None) -> None:
        super().__init__(code or self.code)


class NoSuchRequest(NotFoundCondition):
    code = "no_such_request"


class UnknownUser(NotFoundCondition):
    code = "unknown_user"


class AuthError(Exception):
    code = "unauthorized"

    def __init__(self, code: str | None = None) -> None:
        super().__init__(code or self.code)


class AuthFailure(AuthError):
    code = "invalid_credentials"


class TokenRejected(AuthError):
    code = "invalid_token"
