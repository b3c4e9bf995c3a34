"""Response envelope shared by all /api endpoints."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class SuccessResponse(BaseModel, Generic[T]):
    """Successful response wrapper: ``{"success": true, "message": ..., "data": ...}``."""

    success: bool = Field(True, description="Always true for successful responses.")
    message: str = Field(..., description="Human-readable outcome of the operation.")
    data: T


def success(data: T, message: str) -> SuccessResponse[T]:
    return SuccessResponse(message=message, data=data)
