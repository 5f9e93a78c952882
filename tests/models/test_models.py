"""Tests for data models."""

from __future__ import annotations

import json
from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from krishiva_cli.models import (
    DuplicateEmailError,
    RemoteConflictError,
    RemoteError,
    SessionSnapshot,
    User,
    UserCreate,
    UserUpdate,
)

NOW = datetime(2026, 10, 18, 9, 30, tzinfo=UTC)


def test_user_create_normalizes():
    data = UserCreate(name="  Asha ", email=" Asha@X.com ", password="secret1")
    assert data.name == "Asha"
    assert data.email == "asha@x.com"


@pytest.mark.parametrize(
    "fields",
    [
        {"name": "   ", "email": "asha@x.com", "password": "secret1"},
        {"name": "Asha", "email": "not-an-email", "password": "secret1"},
        {"name": "Asha", "email": "asha@x.com", "password": ""},
    ],
)
def test_user_create_rejects(fields):
    with pytest.raises(ValidationError):
        UserCreate(**fields)


def test_user_update_rejects_blank_name():
    assert UserUpdate().name is None
    with pytest.raises(ValidationError):
        UserUpdate(name=" ")


def test_session_snapshot_uses_login_time_key():
    user = User(id="u1", name="Asha", email="asha@x.com", created_at=NOW, updated_at=NOW)

    snapshot = SessionSnapshot.from_user(user, login_time=NOW)
    raw = json.loads(snapshot.to_json())

    assert set(raw) == {"id", "name", "email", "loginTime"}
    assert SessionSnapshot.from_json(snapshot.to_json()) == snapshot


def test_remote_errors():
    assert RemoteError("down").is_unreachable
    assert not RemoteError("bad", 422).is_unreachable
    assert isinstance(RemoteConflictError("dup", 409), RemoteError)


def test_duplicate_email_message():
    error = DuplicateEmailError("asha@x.com")
    assert "already exists" in str(error)
    assert error.email == "asha@x.com"
