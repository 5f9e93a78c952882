"""Database schema definitions for the local SQLite vault.

The ``users`` table mirrors the backend account record plus the sync
metadata needed to reconcile it. ``sync_outbox`` holds local changes that
have not been acknowledged by the backend yet.
"""

from __future__ import annotations

# Schema version tracking
SCHEMA_VERSION = 3

# Users table - accounts created on this device or pulled from the backend
CREATE_USERS_TABLE = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    email TEXT NOT NULL UNIQUE COLLATE NOCASE,
    password_hash TEXT,
    remote_id TEXT UNIQUE,
    sync_status TEXT NOT NULL DEFAULT 'pending',
    synced_at DATETIME,
    version INTEGER NOT NULL DEFAULT 1,
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL
)
"""

# Outbox of local changes, pushed in id order
CREATE_SYNC_OUTBOX_TABLE = """
CREATE TABLE IF NOT EXISTS sync_outbox (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    operation TEXT NOT NULL CHECK (operation IN ('create', 'update')),
    payload TEXT NOT NULL,
    idempotency_key TEXT NOT NULL UNIQUE,
    attempts INTEGER NOT NULL DEFAULT 0,
    last_error TEXT,
    created_at DATETIME NOT NULL,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
)
"""

# Last backend updated_at acknowledged for a user (backend clock)
ADD_USERS_REMOTE_UPDATED_AT = "ALTER TABLE users ADD COLUMN remote_updated_at DATETIME"

CREATE_USER_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_users_sync_status ON users(sync_status)",
    "CREATE INDEX IF NOT EXISTS idx_users_updated ON users(updated_at)",
]

CREATE_OUTBOX_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_outbox_user ON sync_outbox(user_id)",
]
