"""Migration 003: remember the backend version of each user.

Adds ``users.remote_updated_at``, the backend ``updated_at`` of the last
record this device pushed or pulled. A pulled record only collides with
queued local changes when it is newer than that, so the device's own
acknowledged writes coming back on the next pull are not conflicts.
Existing synced rows are seeded with their local ``updated_at``.
"""

from __future__ import annotations

import sqlite3

from krishiva_cli.adapters.sqlite import schema
from krishiva_cli.adapters.sqlite.migrations.runner import Migration


class RemoteUpdatedAtMigration(Migration):
    """Add remote_updated_at to users."""

    @property
    def version(self) -> int:
        return 3

    @property
    def description(self) -> str:
        return "Add remote_updated_at column to users"

    def up(self, connection: sqlite3.Connection) -> None:
        existing_cols = {
            row[1] for row in connection.execute("PRAGMA table_info(users)").fetchall()
        }
        if "remote_updated_at" not in existing_cols:
            connection.execute(schema.ADD_USERS_REMOTE_UPDATED_AT)

        connection.execute(
            "UPDATE users SET remote_updated_at = updated_at "
            "WHERE remote_id IS NOT NULL AND remote_updated_at IS NULL"
        )


remote_updated_at_migration = RemoteUpdatedAtMigration()
