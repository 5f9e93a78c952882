"""Session snapshot model.

The snapshot is the denormalized subset of the logged-in user's record that
is kept in local storage under the ``userSession`` key. It is serialized with
the exact key names ``id``, ``name``, ``email`` and ``loginTime``.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from krishiva_cli.models.user import User


class SessionSnapshot(BaseModel):
    """Cached identity of the authenticated user."""

    model_config = {"populate_by_name": True}

    id: str
    name: str
    email: str
    login_time: datetime = Field(alias="loginTime")

    @classmethod
    def from_user(cls, user: User, login_time: datetime | None = None) -> SessionSnapshot:
        """Project a stored user record into a session snapshot."""
        return cls(
            id=user.id,
            name=user.name,
            email=str(user.email),
            login_time=login_time or datetime.now(UTC),
        )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str) -> SessionSnapshot:
        return cls.model_validate_json(raw)
