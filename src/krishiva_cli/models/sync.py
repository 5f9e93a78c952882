"""Sync data models."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

OutboxOperation = Literal["create", "update"]
ConflictStrategy = Literal["remote_wins", "local_wins"]


class OutboxEntry(BaseModel):
    """A local change waiting to be pushed to the backend.

    Attributes:
        id: Autoincrement row id, defines push order
        user_id: Local user the change belongs to
        operation: "create" or "update"
        payload: Fields to send
        idempotency_key: Fixed when the change is enqueued and re-sent on retry
        attempts: Number of failed push attempts
        last_error: Message of the last failed attempt
        created_at: Enqueue timestamp
    """

    id: int
    user_id: str
    operation: OutboxOperation
    payload: dict[str, Any] = Field(default_factory=dict)
    idempotency_key: str
    attempts: int = 0
    last_error: str | None = None
    created_at: datetime
