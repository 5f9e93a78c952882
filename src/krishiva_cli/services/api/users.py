"""Users API endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from krishiva_cli.services.api.client import APIClient


class UsersAPI:
    """Users API client."""

    def __init__(self, client: APIClient):
        self.client = client

    async def health(self) -> bool:
        """Check backend health (no retries). Any 2xx counts, whatever the body."""
        response = await self.client.get("/health", retry=0)
        return response.is_success

    async def create_user(self, payload: dict[str, Any], idempotency_key: str) -> dict:
        """Create a user. The key lets the backend drop replays."""
        response = await self.client.post(
            "/users",
            json=payload,
            headers={"Idempotency-Key": idempotency_key},
        )
        return response.json()

    async def update_user(
        self, user_id: str, payload: dict[str, Any], idempotency_key: str
    ) -> dict:
        """Update a user."""
        response = await self.client.patch(
            f"/users/{user_id}",
            json=payload,
            headers={"Idempotency-Key": idempotency_key},
        )
        return response.json()

    async def find_by_email(self, email: str) -> list[dict]:
        """Users matching an email (zero or one)."""
        response = await self.client.get("/users", params={"email": email})
        return _unwrap_list(response.json())

    async def list_users(self, updated_since: datetime | None = None) -> list[dict]:
        """All users, or users updated after a timestamp."""
        params = {"updated_since": updated_since.isoformat()} if updated_since else None
        response = await self.client.get("/users", params=params)
        return _unwrap_list(response.json())


def _unwrap_list(data: Any) -> list[dict]:
    # Backend returns either a bare list or {"users": [...]}
    if isinstance(data, dict):
        return data.get("users", [])
    return data or []
