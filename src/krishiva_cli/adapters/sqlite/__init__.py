"""SQLite adapter module - Local vault implementation."""

from krishiva_cli.adapters.sqlite.connection import (
    DatabaseConnection,
    get_connection,
    transaction,
)
from krishiva_cli.adapters.sqlite.user_repository import SqliteUserRepository

__all__ = [
    "DatabaseConnection",
    "SqliteUserRepository",
    "get_connection",
    "transaction",
]
