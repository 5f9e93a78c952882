"""Fixtures for command tests."""

from __future__ import annotations

import pytest
from typer.testing import CliRunner

from krishiva_cli.database import KrishivaDatabase, set_database
from krishiva_cli.main import app
from krishiva_cli.utils.ui.formatters import get_console


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    """Keep rich from wrapping messages the tests match on."""
    monkeypatch.setattr(get_console(), "width", 200)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def database(isolated_dirs, remote) -> KrishivaDatabase:
    """Process facade wired to the in-memory backend."""
    db = KrishivaDatabase(remote_repo=remote)
    set_database(db)
    return db


@pytest.fixture
def signed_up(runner, database):
    """Invoke signup for Asha and return the CLI result."""
    return runner.invoke(
        app,
        [
            "signup",
            "--name",
            "Asha",
            "--email",
            "asha@x.com",
            "--password",
            "secret1",
            "--confirm",
            "secret1",
        ],
    )


@pytest.fixture
def logged_in(runner, signed_up):
    return runner.invoke(app, ["login", "--email", "asha@x.com", "--password", "secret1"])
