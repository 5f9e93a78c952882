"""Sync conflict tracker.

A conflict is recorded when a remote record arrives for a user that still
has unpushed local changes. The active strategy decides the winner; the
tracker keeps both versions in ``sync-conflicts.json`` for later inspection,
holding at most ``MAX_SAVED_CONFLICTS`` entries (newest kept).
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal

logger = logging.getLogger(__name__)

MAX_SAVED_CONFLICTS = 500

Newer = Literal["local", "remote", "equal"]


class SyncConflict:
    """Represents a single sync conflict."""

    def __init__(
        self,
        resource_id: str,
        local_data: dict[str, Any],
        remote_data: dict[str, Any],
        resolution: str,
        resource_type: str = "user",
    ):
        """Initialize a sync conflict.

        Args:
            resource_id: Local id of the conflicting record
            local_data: Local version data
            remote_data: Remote version data
            resolution: How the conflict was resolved (local_wins, remote_wins)
            resource_type: Type of resource
        """
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.local_data = local_data
        self.remote_data = remote_data
        self.resolution = resolution
        self.detected_at = datetime.now(UTC).replace(tzinfo=None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "local_data": self.local_data,
            "remote_data": self.remote_data,
            "resolution": self.resolution,
            "detected_at": self.detected_at.isoformat() + "Z",
        }


class SyncConflictTracker:
    """Manages sync conflict logging and persistence."""

    def __init__(self, state_dir: Path | None = None):
        if state_dir is None:
            from krishiva_cli.services.config_service import get_config_service

            state_dir = get_config_service().data_dir

        self.state_dir = Path(state_dir)
        self.conflicts_file = self.state_dir / "sync-conflicts.json"
        self._conflicts: list[SyncConflict] = []

    def add_conflict(self, conflict: SyncConflict) -> None:
        logger.warning(
            "sync conflict on %s %s resolved as %s",
            conflict.resource_type,
            conflict.resource_id,
            conflict.resolution,
        )
        self._conflicts.append(conflict)

    def load_saved(self) -> list[dict[str, Any]]:
        """Conflicts persisted by earlier passes."""
        if not self.conflicts_file.exists():
            return []
        try:
            with open(self.conflicts_file, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("conflict log %s unreadable: %s", self.conflicts_file, e)
            return []
        return data if isinstance(data, list) else []

    def save(self) -> None:
        """Append the conflicts of this session to the conflict log.

        The log is replaced atomically and trimmed to the newest
        ``MAX_SAVED_CONFLICTS`` entries.
        """
        if not self._conflicts:
            return

        self.state_dir.mkdir(parents=True, exist_ok=True)
        all_conflicts = self.load_saved() + [c.to_dict() for c in self._conflicts]
        all_conflicts = all_conflicts[-MAX_SAVED_CONFLICTS:]

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.conflicts_file.name}.", suffix=".tmp", dir=self.state_dir
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(all_conflicts, f, indent=2)
            os.replace(tmp_name, self.conflicts_file)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get_conflicts(self) -> list[SyncConflict]:
        return self._conflicts.copy()

    def clear(self) -> None:
        """Clear tracked conflicts from memory."""
        self._conflicts.clear()

    def count(self) -> int:
        return len(self._conflicts)

    def has_conflicts(self) -> bool:
        return len(self._conflicts) > 0

    @staticmethod
    def compare_timestamps(
        local_updated_at: str | datetime | None,
        remote_updated_at: str | datetime | None,
    ) -> Newer:
        """Compare two timestamps to determine which is newer.

        Naive values are taken as UTC. Unparseable strings compare equal.
        """
        if local_updated_at is None and remote_updated_at is None:
            return "equal"
        if local_updated_at is None:
            return "remote"
        if remote_updated_at is None:
            return "local"

        try:
            local_dt = _as_utc(local_updated_at)
            remote_dt = _as_utc(remote_updated_at)
        except ValueError:
            return "equal"

        if local_dt > remote_dt:
            return "local"
        if remote_dt > local_dt:
            return "remote"
        return "equal"


def _as_utc(value: str | datetime) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
