"""Sync state manager for tracking synchronization timestamps.

Keeps the last push and pull time per backend endpoint so that pulls can
be incremental. State is persisted in ``sync-state.json`` in the data dir.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal

logger = logging.getLogger(__name__)

SyncDirection = Literal["push", "pull"]


class SyncState:
    """Manages sync state persistence."""

    def __init__(self, state_dir: Path | None = None):
        """Initialize sync state manager.

        Args:
            state_dir: Directory holding sync-state.json. Defaults to the
                application data directory.
        """
        if state_dir is None:
            from krishiva_cli.services.config_service import get_config_service

            state_dir = get_config_service().data_dir

        self.state_dir = Path(state_dir)
        self.state_file = self.state_dir / "sync-state.json"
        self._state: dict[str, Any] = {}
        self._load()

    def _load(self) -> None:
        if not self.state_file.exists():
            self._state = {"last_sync": {}}
            return

        try:
            with open(self.state_file, encoding="utf-8") as f:
                self._state = json.load(f) or {"last_sync": {}}
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("sync state %s unreadable, starting fresh: %s", self.state_file, e)
            self._state = {"last_sync": {}}

        if not isinstance(self._state.get("last_sync"), dict):
            self._state = {"last_sync": {}}

    def _save(self) -> None:
        self.state_dir.mkdir(parents=True, exist_ok=True)

        with open(self.state_file, "w", encoding="utf-8") as f:
            json.dump(self._state, f, indent=2)

    def get_last_sync(self, key: str) -> datetime | None:
        """Get last sync timestamp (aware UTC) for a key, None if never synced."""
        value = self._state["last_sync"].get(key)
        if value is None:
            return None
        return _parse(value)

    def set_last_sync(self, key: str, timestamp: datetime | None = None) -> None:
        """Set last sync timestamp for a key. Defaults to now."""
        if timestamp is None:
            timestamp = datetime.now(UTC)
        elif timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=UTC)

        # Stored as naive UTC with a Z suffix
        naive = timestamp.astimezone(UTC).replace(tzinfo=None)
        self._state["last_sync"][key] = naive.isoformat() + "Z"
        self._save()

    def clear_last_sync(self, key: str) -> None:
        if key in self._state["last_sync"]:
            del self._state["last_sync"][key]
            self._save()

    def get_all_sync_times(self) -> dict[str, datetime]:
        """Get all sync timestamps as aware UTC datetimes."""
        return {key: _parse(value) for key, value in self._state["last_sync"].items()}

    @staticmethod
    def make_key(direction: SyncDirection, endpoint: str) -> str:
        """Create a state key, e.g. ``pull http://localhost:8000/api``."""
        return f"{direction} {endpoint.rstrip('/')}"


def _parse(value: str) -> datetime:
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt
