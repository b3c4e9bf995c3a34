"""Application-level exception types.

This module defines domain errors used across services, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context returned to clients under ``details``."""

    resource: str
    resource_id: str
    field: str
    errors: list[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input validation fails or a uniqueness rule is violated."""


class NotFoundAppError(AppError):
    """Raised when a requested resource does not exist."""

    @classmethod
    def for_resource(cls, resource: str, resource_id: str | None = None) -> "NotFoundAppError":
        details: ErrorDetails = {"resource": resource}
        if resource_id is not None:
            details["resource_id"] = resource_id
        return cls(
            code="not_found",
            message=f"{resource} not found",
            details=details,
        )
