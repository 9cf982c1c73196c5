from __future__ import annotations

from collections.abc import Mapping

from fastapi import HTTPException


def value_error(
    exc: ValueError,
    *,
    code_statuses: Mapping[str, int],
    detail_overrides: Mapping[str, str] | None = None,
    default_status: int = 400,
    default_detail: str | None = None,
) -> HTTPException:
    """Translate a domain error code (the exception message) to an HTTPException."""
    code = str(exc)
    detail = (detail_overrides or {}).get(code)

    if code in code_statuses:
        return HTTPException(status_code=code_statuses[code], detail=detail or code)

    return HTTPException(
        status_code=default_status,
        detail=default_detail if default_detail is not None else code,
    )
