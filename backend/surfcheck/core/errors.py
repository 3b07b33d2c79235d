"""
Centralized error types and their mapping to HTTP responses.
Services raise these; routes stay thin and call domain_error_to_http.
"""
from __future__ import annotations

from typing import Callable

from fastapi import HTTPException

# ---------------------------------------------------------------------------
# Constants: status codes
# ---------------------------------------------------------------------------

STATUS_NOT_FOUND = 404
STATUS_UNPROCESSABLE = 422
STATUS_INTERNAL_ERROR = 500


class SurfCheckError(Exception):
    """Base class for errors raised by surfcheck services."""


class NotFoundError(SurfCheckError):
    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} '{identifier}' not found")


class InvalidTargetError(SurfCheckError):
    """Scheduling target references spots outside its region, or nothing at all."""


class ForecastUnavailable(SurfCheckError):
    """No forecast data could be obtained for a spot; the scheduler skips the scheduling this tick."""


class TideCacheError(SurfCheckError):
    """Tide cache write failed or timed out."""


class TideUnavailable(SurfCheckError):
    """Upstream tide source not configured or failed."""


# ---------------------------------------------------------------------------
# Error rules: (predicate, status_code, detail builder)
# Add new rules here instead of scattering checks in routes. First match wins.
# ---------------------------------------------------------------------------

ERROR_RULES: list[tuple[Callable[[Exception], bool], int, Callable[[Exception], object]]] = [
    (
        lambda e: isinstance(e, NotFoundError),
        STATUS_NOT_FOUND,
        lambda e: {"error": f"{e.kind}_not_found", "id": e.identifier},
    ),
    (
        lambda e: isinstance(e, InvalidTargetError),
        STATUS_UNPROCESSABLE,
        lambda e: [{"loc": ["body", "target"], "msg": str(e), "type": "value_error"}],
    ),
]


def domain_error_to_http(exc: Exception) -> HTTPException:
    """
    Map a service exception into an HTTPException.
    Uses ERROR_RULES for known error types; otherwise returns 500 with the exception message.
    """
    for predicate, status_code, detail in ERROR_RULES:
        if predicate(exc):
            return HTTPException(status_code=status_code, detail=detail(exc))
    return HTTPException(status_code=STATUS_INTERNAL_ERROR, detail=str(exc))
