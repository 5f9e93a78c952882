"""Profile reads and edits for the logged-in user."""

from __future__ import annotations

import logging

from krishiva_cli.models import SessionSnapshot, User, UserUpdate, ValidationError
from krishiva_cli.repositories import UserRepository
from krishiva_cli.services.session_service import SessionManager

logger = logging.getLogger(__name__)


class ProfileService:
    """Profile operations.

    Name edits always update the session snapshot. With ``propagate`` set they
    are also written to the local vault, which queues them for sync.
    """

    def __init__(
        self,
        session_manager: SessionManager,
        user_repo: UserRepository,
        propagate: bool = False,
    ):
        self.session_manager = session_manager
        self.user_repo = user_repo
        self.propagate = propagate

    def load(self) -> SessionSnapshot:
        """Current session snapshot.

        Raises:
            SessionError: If nobody is logged in
        """
        return self.session_manager.require()

    async def stored_user(self) -> User | None:
        """The vault record behind the current session, if it still exists."""
        return await self.user_repo.get_by_id(self.load().id)

    async def update_name(self, name: str) -> SessionSnapshot:
        """Change the display name.

        The session is written first; if the vault write then fails the old
        name is restored and the error propagates.

        Raises:
            ValidationError: If the name is empty
            SessionError: If nobody is logged in
        """
        snapshot = self.load()
        name = name.strip()
        if not name:
            raise ValidationError("Name cannot be empty")

        updated = self.session_manager.update_name(name)
        if not self.propagate:
            return updated

        try:
            if await self.user_repo.get_by_id(snapshot.id) is None:
                logger.warning("session user %s missing from vault, name kept in session only", snapshot.id)
            else:
                await self.user_repo.update(snapshot.id, UserUpdate(name=name))
        except Exception:
            # Session and vault must not disagree after a failed edit
            logger.warning("vault update for %s failed, restoring session name", snapshot.id)
            self.session_manager.update_name(snapshot.name)
            raise
        return updated
