"""Tests for SyncService: push, pull, conflicts and single-flight passes."""

from __future__ import annotations

import asyncio
import json

import pytest

from krishiva_cli.models import SyncError, UserCreate, UserUpdate
from krishiva_cli.services.sync_conflicts import SyncConflictTracker
from krishiva_cli.services.sync_service import SyncService
from krishiva_cli.services.sync_state import SyncState


@pytest.fixture
def make_service(user_repo, remote, tmp_path):
    def factory(strategy="remote_wins") -> SyncService:
        return SyncService(
            user_repo,
            remote,
            sync_state=SyncState(tmp_path / "state"),
            conflict_tracker=SyncConflictTracker(tmp_path / "state"),
            strategy=strategy,
        )

    return factory


@pytest.fixture
def service(make_service) -> SyncService:
    return make_service()


async def _signup(user_repo, name="Asha", email="asha@x.com"):
    return await user_repo.create(UserCreate(name=name, email=email, password="secret1"))


class TestPush:
    @pytest.mark.asyncio
    async def test_new_user_is_pushed_and_linked(self, service, user_repo, remote):
        user = await _signup(user_repo)

        result = await service.check_and_sync()

        assert result.success
        assert result.pushed_new == 1
        assert len(remote.users) == 1
        stored = await user_repo.get(user.id)
        assert stored.remote_id == next(iter(remote.users))
        assert stored.sync_status == "synced"
        assert await user_repo.pending_changes() == []

    @pytest.mark.asyncio
    async def test_local_edit_is_pushed_as_update(self, service, user_repo, remote):
        user = await _signup(user_repo)
        await service.check_and_sync()
        await user_repo.update(user.id, UserUpdate(name="Asha K"))

        result = await service.check_and_sync()

        assert result.pushed_updated == 1
        stored = await user_repo.get(user.id)
        assert remote.users[stored.remote_id].name == "Asha K"

    @pytest.mark.asyncio
    async def test_retry_resends_the_same_idempotency_key(self, service, user_repo, remote):
        await _signup(user_repo)
        remote.fail_status = 503

        first = await service.check_and_sync()
        assert first.success
        assert first.push_failed == 1
        assert (await user_repo.pending_changes())[0].attempts == 1

        remote.fail_status = None
        second = await service.check_and_sync()

        assert second.pushed_new == 1
        keys = remote.writes("create")
        assert len(keys) == 2
        assert keys[0] == keys[1]
        assert len(remote.users) == 1

    @pytest.mark.asyncio
    async def test_rejected_entry_blocks_later_entries_of_same_user(
        self, service, user_repo, remote
    ):
        user = await _signup(user_repo)
        await user_repo.update(user.id, UserUpdate(name="Asha K"))
        other = await _signup(user_repo, name="Ravi", email="ravi@x.com")
        remote.fail_status = 422

        result = await service.check_and_sync()

        # Asha's create fails and her update waits; Ravi's create is tried too
        assert result.push_failed == 2
        attempts = {(e.user_id, e.operation): e.attempts for e in await user_repo.pending_changes()}
        assert attempts == {
            (user.id, "create"): 1,
            (user.id, "update"): 0,
            (other.id, "create"): 1,
        }

    @pytest.mark.asyncio
    async def test_existing_remote_email_is_linked_not_duplicated(
        self, service, user_repo, remote
    ):
        existing = remote.add("Asha", "asha@x.com")
        user = await _signup(user_repo)

        result = await service.check_and_sync()

        assert result.success
        assert result.pushed_new == 1
        assert len(remote.users) == 1
        assert (await user_repo.get(user.id)).remote_id == existing.id


class TestUnreachableBackend:
    @pytest.mark.asyncio
    async def test_background_pass_reports_without_raising(self, service, user_repo, remote):
        await _signup(user_repo)
        remote.online = False

        result = await service.check_and_sync()

        assert not result.success
        assert result.retryable
        assert "unreachable" in result.error
        entries = await user_repo.pending_changes()
        assert len(entries) == 1
        assert entries[0].attempts == 0

    @pytest.mark.asyncio
    async def test_manual_pass_raises_retryable_error(self, service, remote):
        remote.online = False

        with pytest.raises(SyncError) as exc_info:
            await service.check_and_sync(manual=True)

        assert exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_sync_times_only_recorded_on_success(self, service, remote):
        remote.online = False
        await service.check_and_sync()
        assert service.sync_state.get_last_sync(service.pull_key) is None

        remote.online = True
        await service.check_and_sync()
        assert service.sync_state.get_last_sync(service.pull_key) is not None


class TestPull:
    @pytest.mark.asyncio
    async def test_unknown_remote_user_is_inserted(self, service, user_repo, remote):
        remote.add("Ravi", "ravi@x.com")

        result = await service.check_and_sync()

        assert result.pulled_new == 1
        stored = await user_repo.get_by_email("ravi@x.com")
        assert stored is not None
        assert stored.sync_status == "synced"

    @pytest.mark.asyncio
    async def test_remote_edit_replaces_clean_local_copy(self, service, user_repo, remote):
        user = await _signup(user_repo)
        await service.check_and_sync()
        stored = await user_repo.get(user.id)
        remote.rename(stored.remote_id, "Asha Remote")

        result = await service.check_and_sync()

        assert result.pulled_updated >= 1
        assert (await user_repo.get(user.id)).name == "Asha Remote"

    @pytest.mark.asyncio
    async def test_incremental_pull_uses_last_pull_time(self, service, remote):
        await service.check_and_sync()
        await service.check_and_sync()
        await service.check_and_sync(full=True)

        assert remote.list_since[0] is None
        assert remote.list_since[1] is not None
        assert remote.list_since[2] is None


class TestConflicts:
    async def _diverge(self, service, user_repo, remote):
        user = await _signup(user_repo)
        await service.check_and_sync()
        stored = await user_repo.get(user.id)
        remote.rename(stored.remote_id, "Remote Name")
        await user_repo.update(user.id, UserUpdate(name="Local Name"))
        # Keep the local edit unpushed during the next pass
        remote.fail_status = 500
        return user

    @pytest.mark.asyncio
    async def test_remote_wins_by_default(self, service, user_repo, remote):
        user = await self._diverge(service, user_repo, remote)

        result = await service.check_and_sync()

        assert result.conflicts == 1
        stored = await user_repo.get(user.id)
        assert stored.name == "Remote Name"
        assert stored.sync_status == "synced"
        assert not await user_repo.has_pending_changes(user.id)

        logged = json.loads(service.conflict_tracker.conflicts_file.read_text(encoding="utf-8"))
        assert logged[0]["resource_id"] == user.id
        assert logged[0]["resolution"] == "remote_wins"
        assert logged[0]["local_data"]["name"] == "Local Name"
        assert logged[0]["remote_data"]["name"] == "Remote Name"

    @pytest.mark.asyncio
    async def test_own_record_coming_back_is_not_a_conflict(self, service, user_repo, remote):
        user = await _signup(user_repo)
        await service.check_and_sync()
        await user_repo.update(user.id, UserUpdate(name="Asha Local"))
        remote.fail_status = 503

        result = await service.check_and_sync()

        assert result.conflicts == 0
        assert result.push_failed == 1
        stored = await user_repo.get(user.id)
        assert stored.name == "Asha Local"
        assert await user_repo.has_pending_changes(user.id)

        remote.fail_status = None
        await service.check_and_sync()

        assert (await user_repo.get(user.id)).name == "Asha Local"
        assert remote.users[stored.remote_id].name == "Asha Local"
        assert not service.conflict_tracker.conflicts_file.exists()

    @pytest.mark.asyncio
    async def test_local_wins_keeps_local_change_queued(self, make_service, user_repo, remote):
        service = make_service(strategy="local_wins")
        user = await self._diverge(service, user_repo, remote)

        result = await service.check_and_sync()

        assert result.conflicts == 1
        stored = await user_repo.get(user.id)
        assert stored.name == "Local Name"
        assert stored.sync_status == "conflict"
        assert await user_repo.has_pending_changes(user.id)

        remote.fail_status = None
        await service.check_and_sync()
        assert remote.users[stored.remote_id].name == "Local Name"


class TestSingleFlight:
    @pytest.mark.asyncio
    async def test_overlapping_calls_share_one_pass(self, service, user_repo, remote):
        await _signup(user_repo)
        remote.gate = asyncio.Event()

        first = asyncio.create_task(service.check_and_sync())
        second = asyncio.create_task(service.check_and_sync())
        await asyncio.sleep(0.01)
        assert service.is_running

        remote.gate.set()
        results = await asyncio.gather(first, second)

        assert results[0] is results[1]
        assert service.passes == 1
        assert len(remote.writes("create")) == 1
        assert len(remote.users) == 1
        assert not service.is_running

    @pytest.mark.asyncio
    async def test_full_request_runs_after_incremental_pass(self, service, user_repo, remote):
        await service.check_and_sync()
        await _signup(user_repo)
        remote.gate = asyncio.Event()

        incremental = asyncio.create_task(service.check_and_sync())
        await asyncio.sleep(0.01)
        full = asyncio.create_task(service.check_and_sync(full=True))
        await asyncio.sleep(0.01)
        remote.gate.set()
        first, second = await asyncio.gather(incremental, full)

        assert first is not second
        assert service.passes == 3
        assert remote.list_since[1] is not None
        assert remote.list_since[-1] is None

    @pytest.mark.asyncio
    async def test_next_call_after_a_pass_starts_a_new_one(self, service):
        await service.check_and_sync()
        await service.check_and_sync()
        assert service.passes == 2

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_shared_pass(self, service, user_repo, remote):
        await _signup(user_repo)
        remote.gate = asyncio.Event()

        impatient = asyncio.create_task(service.check_and_sync())
        patient = asyncio.create_task(service.check_and_sync())
        await asyncio.sleep(0.01)
        impatient.cancel()
        await asyncio.sleep(0)
        remote.gate.set()

        result = await patient
        assert result.success
        assert result.pushed_new == 1
        assert impatient.cancelled()

    @pytest.mark.asyncio
    async def test_aclose_cancels_in_flight_pass(self, service, user_repo, remote):
        await _signup(user_repo)
        remote.gate = asyncio.Event()

        caller = asyncio.create_task(service.check_and_sync())
        await asyncio.sleep(0.01)

        await service.aclose()

        assert not service.is_running
        with pytest.raises(asyncio.CancelledError):
            await caller
        # The change stays queued for the next pass
        assert len(await user_repo.pending_changes()) == 1
