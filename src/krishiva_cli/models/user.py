"""User data models."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, field_validator

SyncStatus = Literal["pending", "synced", "conflict"]


def normalize_email(value: str) -> str:
    """Strip and lowercase an email address."""
    return value.strip().lower()


class User(BaseModel):
    """User record as stored in the local vault.

    The password hash is stored alongside the record but never exposed
    through this model.
    """

    id: str
    name: str
    email: EmailStr
    created_at: datetime
    updated_at: datetime
    remote_id: str | None = None
    sync_status: SyncStatus = "pending"
    synced_at: datetime | None = None
    remote_updated_at: datetime | None = None
    version: int = 1


class UserCreate(BaseModel):
    """Model for creating a new user.

    Attributes:
        name: Display name, stripped
        email: Email address, stripped and lowercased before validation
        password: Plain password, hashed by the repository and never stored
    """

    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, v):
        if isinstance(v, str):
            return normalize_email(v)
        return v


class UserUpdate(BaseModel):
    """Model for updating an existing user.

    Only the name is editable; email is immutable once created.
    """

    name: str | None = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class RemoteUser(BaseModel):
    """User record as returned by the remote backend."""

    id: str
    name: str
    email: EmailStr
    created_at: datetime | None = None
    updated_at: datetime

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, v):
        if isinstance(v, str):
            return normalize_email(v)
        return v


class CreateUserResult(BaseModel):
    """Outcome of a successful signup."""

    insert_id: str
    user: User
