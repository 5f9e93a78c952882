"""Session management.

The SessionManager is the only owner of the ``userSession`` storage key.
Screens read identity through it and subscribe to changes instead of
reading the key themselves.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from pydantic import ValidationError as PydanticValidationError

from krishiva_cli.adapters.local_storage import LocalStorage
from krishiva_cli.models import SessionError, SessionSnapshot, User, ValidationError

SESSION_KEY = "userSession"

logger = logging.getLogger(__name__)

SessionObserver = Callable[[SessionSnapshot | None], None]


class SessionManager:
    """Typed get/set/clear access to the session snapshot, with observers."""

    def __init__(self, storage: LocalStorage, key: str = SESSION_KEY):
        self.storage = storage
        self.key = key
        self._observers: list[SessionObserver] = []

    def load(self) -> SessionSnapshot | None:
        """Return the stored snapshot, or None when logged out.

        A value that cannot be parsed counts as logged out.
        """
        raw = self.storage.get_item(self.key)
        if raw is None:
            return None
        try:
            return SessionSnapshot.from_json(raw)
        except PydanticValidationError as e:
            logger.warning("discarding unreadable session snapshot: %s", e)
            return None

    @property
    def is_logged_in(self) -> bool:
        return self.load() is not None

    def require(self) -> SessionSnapshot:
        """Return the snapshot or raise SessionError."""
        snapshot = self.load()
        if snapshot is None:
            raise SessionError("No user session found. Please login again.")
        return snapshot

    def start(self, user: User) -> SessionSnapshot:
        """Write a fresh snapshot for a user that just logged in."""
        snapshot = SessionSnapshot.from_user(user)
        self._write(snapshot)
        logger.info("session started for user %s", user.id)
        return snapshot

    def update_name(self, name: str) -> SessionSnapshot:
        """Change the display name held in the snapshot.

        Raises:
            ValidationError: If the name is empty after stripping
            SessionError: If nobody is logged in
        """
        name = name.strip()
        if not name:
            raise ValidationError("Name cannot be empty")
        snapshot = self.require().model_copy(update={"name": name})
        self._write(snapshot)
        return snapshot

    def clear(self) -> bool:
        """Remove the snapshot (logout). Returns False if there was none."""
        removed = self.storage.remove_item(self.key)
        if removed:
            logger.info("session cleared")
            self._notify(None)
        return removed

    def subscribe(self, observer: SessionObserver) -> Callable[[], None]:
        """Register an observer; returns a function that unregisters it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _write(self, snapshot: SessionSnapshot) -> None:
        self.storage.set_item(self.key, snapshot.to_json())
        self._notify(snapshot)

    def _notify(self, snapshot: SessionSnapshot | None) -> None:
        for observer in list(self._observers):
            try:
                observer(snapshot)
            except Exception:
                logger.exception("session observer %r failed", observer)
