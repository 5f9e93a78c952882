"""SQLite implementation of UserRepository."""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from typing import Any

from krishiva_cli.adapters.sqlite.connection import (
    execute_with_retry,
    get_connection,
    transaction,
)
from krishiva_cli.adapters.sqlite.utils import (
    build_update_clause,
    generate_uuid,
    now_iso,
    row_to_dict,
    to_iso,
)
from krishiva_cli.models import (
    DuplicateEmailError,
    NotFoundError,
    OutboxEntry,
    RemoteUser,
    User,
    UserCreate,
    UserUpdate,
    normalize_email,
)
from krishiva_cli.repositories import UserRepository
from krishiva_cli.utils.passwords import hash_password, verify_password

logger = logging.getLogger(__name__)


def _row_to_user(row: sqlite3.Row) -> User:
    data = row_to_dict(row)
    data.pop("password_hash", None)
    return User(**data)


def _row_to_entry(row: sqlite3.Row) -> OutboxEntry:
    data = row_to_dict(row)
    data["payload"] = json.loads(data["payload"]) if data["payload"] else {}
    return OutboxEntry(**data)


class SqliteUserRepository(UserRepository):
    """SQLite implementation of the user repository."""

    def __init__(self, db_path: str | None = None):
        """Initialize SQLite user repository.

        Args:
            db_path: Optional database file path. If None, uses the open
                connection or the default location.
        """
        self.db_path = db_path
        self._connection: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = get_connection(self.db_path)
        return self._connection

    def _enqueue(
        self,
        conn: sqlite3.Connection,
        user_id: str,
        operation: str,
        payload: dict[str, Any],
        created_at: str,
    ) -> None:
        execute_with_retry(
            conn,
            """INSERT INTO sync_outbox (user_id, operation, payload, idempotency_key, created_at)
               VALUES (?, ?, ?, ?, ?)""",
            (user_id, operation, json.dumps(payload), generate_uuid(), created_at),
        )

    def _fetch_user(self, sql: str, params: tuple) -> User | None:
        row = execute_with_retry(self.connection, sql, params).fetchone()
        return _row_to_user(row) if row else None

    async def create(self, user_data: UserCreate) -> User:
        """Create a new user and enqueue it for push."""
        user_id = generate_uuid()
        now = now_iso()
        email = normalize_email(str(user_data.email))

        try:
            with transaction(self.connection) as conn:
                execute_with_retry(
                    conn,
                    """INSERT INTO users
                       (id, name, email, password_hash, sync_status, version, created_at, updated_at)
                       VALUES (?, ?, ?, ?, 'pending', 1, ?, ?)""",
                    (user_id, user_data.name, email, hash_password(user_data.password), now, now),
                )
                self._enqueue(
                    conn,
                    user_id,
                    "create",
                    {"client_id": user_id, "name": user_data.name, "email": email, "created_at": now},
                    now,
                )
        except sqlite3.IntegrityError as e:
            if "users.email" in str(e):
                raise DuplicateEmailError(email) from e
            raise

        logger.info("created local user %s", user_id)
        return await self.get(user_id)

    async def get(self, user_id: str) -> User:
        user = await self.get_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User not found: {user_id}")
        return user

    async def get_by_id(self, user_id: str) -> User | None:
        return self._fetch_user("SELECT * FROM users WHERE id = ?", (user_id,))

    async def get_by_email(self, email: str) -> User | None:
        return self._fetch_user(
            "SELECT * FROM users WHERE email = ?", (normalize_email(email),)
        )

    async def get_by_remote_id(self, remote_id: str) -> User | None:
        return self._fetch_user("SELECT * FROM users WHERE remote_id = ?", (remote_id,))

    async def list_all(self) -> list[User]:
        rows = execute_with_retry(
            self.connection, "SELECT * FROM users ORDER BY created_at"
        ).fetchall()
        return [_row_to_user(row) for row in rows]

    async def update(self, user_id: str, updates: UserUpdate) -> User:
        """Apply a local edit and enqueue it for push."""
        existing = await self.get(user_id)
        data = updates.model_dump(exclude_none=True)
        if not data:
            return existing

        now = now_iso()
        set_clause, params = build_update_clause(
            {**data, "updated_at": now, "sync_status": "pending"}
        )
        with transaction(self.connection) as conn:
            execute_with_retry(
                conn,
                f"UPDATE users SET {set_clause}, version = version + 1 WHERE id = ?",
                (*params, user_id),
            )
            self._enqueue(conn, user_id, "update", {**data, "updated_at": now}, now)

        logger.info("updated local user %s (%s)", user_id, ", ".join(data))
        return await self.get(user_id)

    async def verify_password(self, email: str, password: str) -> User | None:
        row = execute_with_retry(
            self.connection,
            "SELECT * FROM users WHERE email = ?", (normalize_email(email),)
        ).fetchone()
        if row is None or not verify_password(password, row["password_hash"]):
            return None
        return _row_to_user(row)

    async def pending_changes(self) -> list[OutboxEntry]:
        rows = execute_with_retry(
            self.connection, "SELECT * FROM sync_outbox ORDER BY id"
        ).fetchall()
        return [_row_to_entry(row) for row in rows]

    async def has_pending_changes(self, user_id: str) -> bool:
        row = execute_with_retry(
            self.connection,
            "SELECT 1 FROM sync_outbox WHERE user_id = ? LIMIT 1", (user_id,)
        ).fetchone()
        return row is not None

    async def complete_change(
        self, entry_id: int, remote_id: str, remote_updated_at: datetime | None = None
    ) -> None:
        with transaction(self.connection) as conn:
            row = execute_with_retry(
                conn,
                "SELECT user_id FROM sync_outbox WHERE id = ?", (entry_id,)
            ).fetchone()
            if row is None:
                return
            user_id = row["user_id"]
            execute_with_retry(conn, "DELETE FROM sync_outbox WHERE id = ?", (entry_id,))
            remaining = execute_with_retry(
                conn,
                "SELECT COUNT(*) FROM sync_outbox WHERE user_id = ?", (user_id,)
            ).fetchone()[0]
            execute_with_retry(
                conn,
                """UPDATE users
                   SET remote_id = ?, sync_status = ?, synced_at = ?,
                       remote_updated_at = COALESCE(?, remote_updated_at)
                   WHERE id = ?""",
                (
                    remote_id,
                    "pending" if remaining else "synced",
                    now_iso(),
                    to_iso(remote_updated_at),
                    user_id,
                ),
            )

    async def record_failure(self, entry_id: int, error: str) -> None:
        with transaction(self.connection) as conn:
            execute_with_retry(
                conn,
                "UPDATE sync_outbox SET attempts = attempts + 1, last_error = ? WHERE id = ?",
                (error, entry_id),
            )

    async def discard_changes(self, user_id: str) -> int:
        with transaction(self.connection) as conn:
            cursor = execute_with_retry(
                conn, "DELETE FROM sync_outbox WHERE user_id = ?", (user_id,)
            )
        return cursor.rowcount

    async def mark_conflict(self, user_id: str) -> None:
        with transaction(self.connection) as conn:
            execute_with_retry(
                conn, "UPDATE users SET sync_status = 'conflict' WHERE id = ?", (user_id,)
            )

    async def upsert_from_remote(self, remote: RemoteUser) -> tuple[User, bool]:
        """Store a backend record; the email of an existing row never changes."""
        existing = await self.get_by_remote_id(remote.id) or await self.get_by_email(
            str(remote.email)
        )
        now = now_iso()
        updated_at = to_iso(remote.updated_at)

        with transaction(self.connection) as conn:
            if existing is None:
                user_id = generate_uuid()
                execute_with_retry(
                    conn,
                    """INSERT INTO users
                       (id, name, email, password_hash, remote_id, sync_status, synced_at,
                        version, created_at, updated_at, remote_updated_at)
                       VALUES (?, ?, ?, NULL, ?, 'synced', ?, 1, ?, ?, ?)""",
                    (
                        user_id,
                        remote.name,
                        normalize_email(str(remote.email)),
                        remote.id,
                        now,
                        to_iso(remote.created_at) or updated_at,
                        updated_at,
                        updated_at,
                    ),
                )
            else:
                user_id = existing.id
                execute_with_retry(
                    conn,
                    """UPDATE users
                       SET name = ?, remote_id = ?, updated_at = ?, remote_updated_at = ?,
                           sync_status = 'synced', synced_at = ?, version = version + 1
                       WHERE id = ?""",
                    (remote.name, remote.id, updated_at, updated_at, now, user_id),
                )

        return await self.get(user_id), existing is None
