"""Migration 001: users table."""

import sqlite3

from krishiva_cli.adapters.sqlite import schema

from .runner import Migration


class InitialSchemaMigration(Migration):
    """Create the users table and its indexes."""

    @property
    def version(self) -> int:
        return 1

    @property
    def description(self) -> str:
        return "Initial database schema (users)"

    def up(self, connection: sqlite3.Connection) -> None:
        connection.execute(schema.CREATE_USERS_TABLE)
        for index_sql in schema.CREATE_USER_INDEXES:
            connection.execute(index_sql)


initial_migration = InitialSchemaMigration()
