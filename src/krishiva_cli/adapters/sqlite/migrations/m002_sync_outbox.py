"""Migration 002: sync outbox.

Adds the ``sync_outbox`` table and enqueues a ``create`` entry for every
user that was stored before the outbox existed and never reached the
backend (``remote_id IS NULL``), so those rows get pushed too.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from datetime import UTC, datetime

from krishiva_cli.adapters.sqlite import schema
from krishiva_cli.adapters.sqlite.migrations.runner import Migration


class SyncOutboxMigration(Migration):
    """Create sync_outbox and backfill unsynced users."""

    @property
    def version(self) -> int:
        return 2

    @property
    def description(self) -> str:
        return "Add sync_outbox table; enqueue users that were never pushed"

    def up(self, connection: sqlite3.Connection) -> None:
        connection.execute(schema.CREATE_SYNC_OUTBOX_TABLE)
        for index_sql in schema.CREATE_OUTBOX_INDEXES:
            connection.execute(index_sql)

        now = datetime.now(UTC).isoformat()
        rows = connection.execute(
            "SELECT id, name, email FROM users WHERE remote_id IS NULL ORDER BY created_at"
        ).fetchall()
        for row in rows:
            connection.execute(
                """INSERT INTO sync_outbox (user_id, operation, payload, idempotency_key, created_at)
                   VALUES (?, 'create', ?, ?, ?)""",
                (
                    row[0],
                    json.dumps({"client_id": row[0], "name": row[1], "email": row[2]}),
                    str(uuid.uuid4()),
                    now,
                ),
            )


sync_outbox_migration = SyncOutboxMigration()
