"""Database migration system for the local vault."""

from .m001_initial_schema import initial_migration
from .m002_sync_outbox import sync_outbox_migration
from .m003_remote_updated_at import remote_updated_at_migration
from .runner import Migration, MigrationRunner

ALL_MIGRATIONS: list[Migration] = [
    initial_migration,
    sync_outbox_migration,
    remote_updated_at_migration,
]

__all__ = [
    "ALL_MIGRATIONS",
    "Migration",
    "MigrationRunner",
]
