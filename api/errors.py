"""
api/errors.py -- HTTPException builders for the error categories routes share.

Each helper returns (does not raise) an HTTPException whose detail is an
ErrorDetail dict, so handlers read `raise not_found("User")`. The
http_exception_handler in api/main.py wraps the dict in the error envelope.
"""

from typing import Any, Optional

from fastapi import HTTPException

from api.models import ErrorDetail


def http_error(
    status_code: int,
    code: str,
    message: str,
    errors: Optional[list[dict[str, Any]]] = None,
) -> HTTPException:
    detail = ErrorDetail(code=code, message=message, errors=errors).model_dump(exclude_none=True)
    return HTTPException(status_code=status_code, detail=detail)


def not_found(entity: str) -> HTTPException:
    return http_error(404, "not_found", f"{entity} not found.")


def conflict(message: str) -> HTTPException:
    return http_error(400, "conflict", message)


def corrupt_credential() -> HTTPException:
    """The stored credential is unusable. The account id is logged, never returned."""
    return http_error(500, "corrupt_credential", "Stored credential data is invalid. Contact an administrator.")


def internal_error() -> HTTPException:
    return http_error(500, "internal_error", "An unexpected error occurred.")
