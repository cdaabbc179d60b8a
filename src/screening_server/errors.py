"""Global exception handlers — map service exceptions to HTTP status codes.

Services raise builtin exceptions instead of HTTP errors:

  - ``ValueError``       — inspected by keyword: conflict, not found, or bad input
  - ``PermissionError``  — the caller may not touch this resource
  - ``KeyError``         — unknown catalog entry

The raw message is logged; clients only ever see a generic description,
since messages carry user and row ids.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

# Checked in order; first match wins.
_VALUE_ERROR_PATTERNS: list[tuple[str, int]] = [
    # Duplicate access request, doctor already authorized, request answered
    ("already", 409),
    # Child / questionnaire / assessment / report / request missing
    ("not found", 404),
]

_SAFE_MESSAGES: dict[int, str] = {
    400: "Invalid request",
    403: "Forbidden",
    404: "Resource not found",
    409: "Resource already exists",
}


def status_for_value_error(exc: ValueError) -> int:
    msg = str(exc).lower()
    for pattern, code in _VALUE_ERROR_PATTERNS:
        if pattern in msg:
            return code
    return 400


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Map ``ValueError`` to 409, 404 or 400 by message keyword."""
    status = status_for_value_error(exc)
    logger.warning("ValueError [%d] at %s: %s", status, request.url, exc)
    return JSONResponse(status_code=status, content={"detail": _SAFE_MESSAGES[status]})


async def permission_error_handler(request: Request, exc: PermissionError) -> JSONResponse:
    logger.warning("PermissionError at %s: %s", request.url, exc)
    return JSONResponse(status_code=403, content={"detail": _SAFE_MESSAGES[403]})


async def key_error_handler(request: Request, exc: KeyError) -> JSONResponse:
    logger.warning("KeyError at %s: %s", request.url, exc)
    return JSONResponse(status_code=404, content={"detail": _SAFE_MESSAGES[404]})


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions — log full traceback, return 500."""
    logger.exception("Unhandled exception at %s", request.url)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})
