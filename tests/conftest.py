"""Shared test fixtures and configuration.

Every test runs against platform dirs redirected into tmp_path, so no test
touches the real config, vault, session file or log.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from krishiva_cli.adapters.sqlite import DatabaseConnection, SqliteUserRepository
from krishiva_cli.database import set_database
from krishiva_cli.models import RemoteConflictError, RemoteError, RemoteUser
from krishiva_cli.repositories import RemoteUserRepository
from krishiva_cli.services.config_service import get_config_service

# ---------------------------------------------------------------------------
# Isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path, monkeypatch):
    """Redirect config, data and log dirs into tmp_path and reset singletons."""
    dirs = {
        "config": tmp_path / "config",
        "data": tmp_path / "data",
        "logs": tmp_path / "logs",
    }

    monkeypatch.setattr(
        "krishiva_cli.services.config_service.user_config_dir",
        lambda *a, **k: str(dirs["config"]),
    )
    monkeypatch.setattr(
        "krishiva_cli.services.config_service.user_data_dir",
        lambda *a, **k: str(dirs["data"]),
    )
    monkeypatch.setattr(
        "krishiva_cli.adapters.sqlite.connection.user_data_dir",
        lambda *a, **k: str(dirs["data"]),
    )
    monkeypatch.setattr(
        "krishiva_cli.utils.logger.user_log_dir", lambda *a, **k: str(dirs["logs"])
    )

    get_config_service.cache_clear()
    DatabaseConnection.close_connection()
    set_database(None)
    yield dirs
    DatabaseConnection.close_connection()
    set_database(None)
    get_config_service.cache_clear()


@pytest.fixture
def config_service(isolated_dirs):
    """A real ConfigService living in tmp_path."""
    return get_config_service()


@pytest.fixture
def user_repo(tmp_path) -> SqliteUserRepository:
    """User repository on a fresh, migrated vault file."""
    return SqliteUserRepository(str(tmp_path / "vault.db"))


# ---------------------------------------------------------------------------
# Fake backend
# ---------------------------------------------------------------------------


class FakeRemoteUsers(RemoteUserRepository):
    """In-memory backend that deduplicates writes by idempotency key.

    Attributes:
        online: False makes every call fail as unreachable
        fail_status: HTTP status returned for create/update while set
        gate: When set, create() waits on it (to hold a pass open)
        calls: (operation, idempotency_key) of every write attempt
    """

    def __init__(self):
        self.users: dict[str, RemoteUser] = {}
        self.calls: list[tuple[str, str]] = []
        self.list_since: list[datetime | None] = []
        self.online = True
        self.fail_status: int | None = None
        self.gate: asyncio.Event | None = None
        self._by_key: dict[str, RemoteUser] = {}
        self._clock = datetime.now(UTC) + timedelta(hours=1)

    def tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def add(self, name: str, email: str) -> RemoteUser:
        """Seed a record as if another device had created it."""
        ts = self.tick()
        user = RemoteUser(
            id=f"r{len(self.users) + 1}", name=name, email=email, created_at=ts, updated_at=ts
        )
        self.users[user.id] = user
        return user

    def rename(self, remote_id: str, name: str) -> RemoteUser:
        """Edit a record as if another device had changed it."""
        user = self.users[remote_id].model_copy(update={"name": name, "updated_at": self.tick()})
        self.users[remote_id] = user
        return user

    def _check_online(self) -> None:
        if not self.online:
            raise RemoteError("backend unreachable")

    def _check_write(self) -> None:
        self._check_online()
        if self.fail_status is not None:
            raise RemoteError(f"HTTP {self.fail_status}", self.fail_status)

    async def health(self) -> bool:
        return self.online

    async def create(self, payload: dict[str, Any], idempotency_key: str) -> RemoteUser:
        self.calls.append(("create", idempotency_key))
        self._check_write()
        if self.gate is not None:
            await self.gate.wait()
        if idempotency_key in self._by_key:
            return self._by_key[idempotency_key]
        if any(u.email == payload["email"] for u in self.users.values()):
            raise RemoteConflictError("HTTP 409", 409)
        user = self.add(payload["name"], payload["email"])
        self._by_key[idempotency_key] = user
        return user

    async def update(
        self, remote_id: str, payload: dict[str, Any], idempotency_key: str
    ) -> RemoteUser:
        self.calls.append(("update", idempotency_key))
        self._check_write()
        if idempotency_key in self._by_key:
            return self._by_key[idempotency_key]
        user = self.rename(remote_id, payload.get("name", self.users[remote_id].name))
        self._by_key[idempotency_key] = user
        return user

    async def find_by_email(self, email: str) -> RemoteUser | None:
        self._check_online()
        return next((u for u in self.users.values() if u.email == email), None)

    async def list_changed(self, since: datetime | None = None) -> list[RemoteUser]:
        self._check_online()
        self.list_since.append(since)
        return [u for u in self.users.values() if since is None or u.updated_at > since]

    def writes(self, operation: str) -> list[str]:
        return [key for op, key in self.calls if op == operation]


@pytest.fixture
def remote() -> FakeRemoteUsers:
    return FakeRemoteUsers()
