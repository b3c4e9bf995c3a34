"""Pydantic schemas for user CRUD requests and responses."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field

Role = Literal["user", "admin"]


class UserCreate(BaseModel):
    """Payload for creating a user."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    email: EmailStr = Field(..., description="Unique e-mail address.")
    name: str = Field(..., min_length=1, max_length=100, description="Display name.")
    password: str = Field(..., min_length=8, description="Plain-text password; only a hash is stored.")
    role: Role | None = Field(None, description="User role; defaults to 'user'.")


class UserUpdate(BaseModel):
    """Partial update payload. Omitted fields are left untouched."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: str | None = Field(None, min_length=1, max_length=100)
    email: EmailStr | None = None
    role: Role | None = None


class UserPublic(BaseModel):
    """User representation returned to clients (never includes the password)."""

    id: str
    email: str
    name: str
    role: Role
    created_at: datetime
    updated_at: datetime


class DeletedUser(BaseModel):
    id: str
