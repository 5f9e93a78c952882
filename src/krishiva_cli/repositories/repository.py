"""Repository abstraction layer for Krishiva CLI.

This module defines the abstract base classes (interfaces) for user
persistence, following the Ports & Adapters pattern. The sync service only
talks to these interfaces, so the local vault (SQLite) and the backend
(REST API) can be swapped or mocked independently.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from krishiva_cli.models import OutboxEntry, RemoteUser, User, UserCreate, UserUpdate


class UserRepository(ABC):
    """Local store of user records and their pending changes.

    Every local write (create, update) also enqueues an outbox entry in the
    same transaction; the outbox is what the sync service pushes.
    """

    @abstractmethod
    async def create(self, user_data: UserCreate) -> User:
        """Create a new user.

        Raises:
            DuplicateEmailError: If the email is already stored
        """

    @abstractmethod
    async def get(self, user_id: str) -> User:
        """Get a user by ID.

        Raises:
            NotFoundError: If the user does not exist
        """

    @abstractmethod
    async def get_by_id(self, user_id: str) -> User | None:
        """Get a user by ID, or None."""

    @abstractmethod
    async def get_by_email(self, email: str) -> User | None:
        """Get a user by (case-insensitive) email, or None."""

    @abstractmethod
    async def get_by_remote_id(self, remote_id: str) -> User | None:
        """Get the user linked to a backend record, or None."""

    @abstractmethod
    async def list_all(self) -> list[User]:
        """List all users, oldest first."""

    @abstractmethod
    async def update(self, user_id: str, updates: UserUpdate) -> User:
        """Apply a local edit, bump the version and enqueue an update.

        Raises:
            NotFoundError: If the user does not exist
        """

    @abstractmethod
    async def verify_password(self, email: str, password: str) -> User | None:
        """Return the user when the password matches, else None."""

    @abstractmethod
    async def pending_changes(self) -> list[OutboxEntry]:
        """Outbox entries in push order."""

    @abstractmethod
    async def has_pending_changes(self, user_id: str) -> bool:
        """Whether the user has unpushed local changes."""

    @abstractmethod
    async def complete_change(
        self, entry_id: int, remote_id: str, remote_updated_at: datetime | None = None
    ) -> None:
        """Remove an acknowledged outbox entry and link its user to the backend record.

        ``remote_updated_at`` is the backend version that acknowledged the
        change. The user is marked synced once no other entries of it remain.
        """

    @abstractmethod
    async def record_failure(self, entry_id: int, error: str) -> None:
        """Increment the attempt counter of an outbox entry."""

    @abstractmethod
    async def discard_changes(self, user_id: str) -> int:
        """Drop all outbox entries of a user. Returns the number removed."""

    @abstractmethod
    async def mark_conflict(self, user_id: str) -> None:
        """Flag a user whose local and remote versions collided."""

    @abstractmethod
    async def upsert_from_remote(self, remote: RemoteUser) -> tuple[User, bool]:
        """Insert or overwrite a user from a backend record.

        Returns:
            Tuple of (stored user, created)
        """


class RemoteUserRepository(ABC):
    """Backend store of user records."""

    @abstractmethod
    async def health(self) -> bool:
        """Whether the backend is reachable and healthy."""

    @abstractmethod
    async def create(self, payload: dict[str, Any], idempotency_key: str) -> RemoteUser:
        """Create a user on the backend.

        Raises:
            RemoteConflictError: If the backend already has the email
            RemoteError: For any other failure
        """

    @abstractmethod
    async def update(
        self, remote_id: str, payload: dict[str, Any], idempotency_key: str
    ) -> RemoteUser:
        """Update a user on the backend.

        Raises:
            RemoteError: On failure
        """

    @abstractmethod
    async def find_by_email(self, email: str) -> RemoteUser | None:
        """Look up a backend user by email."""

    @abstractmethod
    async def list_changed(self, since: datetime | None = None) -> list[RemoteUser]:
        """Backend users updated after ``since`` (all users when None)."""
