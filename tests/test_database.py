"""Tests for the application database facade."""

from __future__ import annotations

import asyncio

import pytest

from krishiva_cli import database as facade
from krishiva_cli.database import KrishivaDatabase, set_database
from krishiva_cli.models import DuplicateEmailError, InitializationError, SyncError


@pytest.fixture
def db(config_service, remote) -> KrishivaDatabase:
    database = KrishivaDatabase(remote_repo=remote)
    set_database(database)
    return database


class TestInit:
    @pytest.mark.asyncio
    async def test_init_opens_default_vault(self, db, isolated_dirs):
        database = await facade.init_database()

        assert database is db
        assert db.initialized
        assert db.db_path == isolated_dirs["data"] / "krishiva.db"
        assert db.db_path.exists()

    @pytest.mark.asyncio
    async def test_init_failure(self, db, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("", encoding="utf-8")

        with pytest.raises(InitializationError):
            await db.init(blocker / "krishiva.db")
        assert not db.initialized

    @pytest.mark.asyncio
    async def test_use_before_init(self, db):
        with pytest.raises(InitializationError):
            await facade.create_user("Asha", "asha@x.com", "secret1")
        with pytest.raises(InitializationError):
            await facade.check_and_sync_data()

    def test_get_database_is_a_singleton(self, config_service):
        assert facade.get_database() is facade.get_database()


class TestCreateAndSync:
    @pytest.mark.asyncio
    async def test_create_user_then_sync(self, db, remote):
        await facade.init_database()

        created = await facade.create_user("Asha", "asha@x.com", "secret1")
        result = await facade.check_and_sync_data()

        assert created.insert_id
        assert result.success
        assert result.pushed_new == 1
        assert [u.email for u in remote.users.values()] == ["asha@x.com"]

    @pytest.mark.asyncio
    async def test_duplicate(self, db):
        await facade.init_database()
        await facade.create_user("Asha", "asha@x.com", "secret1")

        with pytest.raises(DuplicateEmailError, match="already exists"):
            await facade.create_user("Asha", "asha@x.com", "secret1")

    @pytest.mark.asyncio
    async def test_manual_sync_offline_raises(self, db, remote):
        await facade.init_database()
        remote.online = False

        assert not (await facade.check_and_sync_data()).success
        with pytest.raises(SyncError):
            await facade.check_and_sync_data(manual=True)


class TestListener:
    def test_requires_running_loop(self, db):
        with pytest.raises(RuntimeError):
            facade.setup_sync_listener()

    @pytest.mark.asyncio
    async def test_setup_is_idempotent(self, db, remote):
        await facade.init_database()

        first = facade.setup_sync_listener()
        second = facade.setup_sync_listener()
        await asyncio.sleep(0.01)

        assert first is second
        assert first.is_running
        assert first.reconnects == 1
        assert db.sync_service.passes == 1

        await facade.shutdown()
        assert not first.is_running
        assert db.listener is None
