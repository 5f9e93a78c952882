"""REST API adapter - RemoteUserRepository implemented on the Krishiva backend.

httpx failures are translated to RemoteError here so the sync service
never sees transport-level exceptions.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from datetime import datetime
from typing import Any, TypeVar

import httpx
from pydantic import ValidationError as PydanticValidationError

from krishiva_cli.models import RemoteConflictError, RemoteError, RemoteUser
from krishiva_cli.repositories import RemoteUserRepository
from krishiva_cli.services.api.client import APIClient
from krishiva_cli.services.api.users import UsersAPI

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _call(awaitable: Awaitable[T], action: str) -> T:
    try:
        return await awaitable
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        message = f"{action} failed with HTTP {status}"
        if status == 409:
            raise RemoteConflictError(message, status) from e
        raise RemoteError(message, status) from e
    except httpx.RequestError as e:
        raise RemoteError(f"{action} failed: backend unreachable ({e})") from e


def _to_remote_user(data: dict[str, Any]) -> RemoteUser:
    try:
        return RemoteUser.model_validate(data)
    except PydanticValidationError as e:
        raise RemoteError(f"Malformed user record from backend: {e}", 200) from e


class RestApiUserRepository(RemoteUserRepository):
    """User repository backed by the REST API."""

    def __init__(self, client: APIClient | None = None):
        self._client = client
        self._users_api: UsersAPI | None = None

    @property
    def users_api(self) -> UsersAPI:
        """Get or create UsersAPI instance."""
        if self._users_api is None:
            if self._client is None:
                self._client = APIClient()
            self._users_api = UsersAPI(self._client)
        return self._users_api

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()

    async def health(self) -> bool:
        try:
            return await _call(self.users_api.health(), "Health check")
        except RemoteError as e:
            logger.debug("backend health check failed: %s", e)
            return False

    async def create(self, payload: dict[str, Any], idempotency_key: str) -> RemoteUser:
        data = await _call(
            self.users_api.create_user(payload, idempotency_key), "Create user"
        )
        return _to_remote_user(data)

    async def update(
        self, remote_id: str, payload: dict[str, Any], idempotency_key: str
    ) -> RemoteUser:
        data = await _call(
            self.users_api.update_user(remote_id, payload, idempotency_key), "Update user"
        )
        return _to_remote_user(data)

    async def find_by_email(self, email: str) -> RemoteUser | None:
        users = await _call(self.users_api.find_by_email(email), "Find user")
        return _to_remote_user(users[0]) if users else None

    async def list_changed(self, since: datetime | None = None) -> list[RemoteUser]:
        users = await _call(self.users_api.list_users(updated_since=since), "List users")
        return [_to_remote_user(u) for u in users]
