"""Sync service for reconciling the local vault with the remote backend.

One pass pushes the outbox (local changes, oldest first) and then pulls
remote changes since the last pull. Passes are single-flight: a call made
while a pass is running joins that pass instead of starting another, so
overlapping triggers produce one remote write per local change.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from datetime import UTC, datetime

from krishiva_cli.models import (
    ConflictStrategy,
    OutboxEntry,
    RemoteConflictError,
    RemoteError,
    RemoteUser,
    SyncError,
    User,
)
from krishiva_cli.repositories import RemoteUserRepository, UserRepository
from krishiva_cli.services.sync_conflicts import SyncConflict, SyncConflictTracker
from krishiva_cli.services.sync_state import SyncState

logger = logging.getLogger(__name__)


class SyncResult:
    """Result of a sync pass."""

    def __init__(self, manual: bool = False):
        self.pushed_new = 0
        self.pushed_updated = 0
        self.push_failed = 0

        self.pulled_new = 0
        self.pulled_updated = 0
        self.pulled_unchanged = 0

        self.conflicts = 0

        self.manual = manual
        self.success = False
        self.error: str | None = None
        self.retryable = True
        self.duration: float = 0.0

    @property
    def pushed(self) -> int:
        return self.pushed_new + self.pushed_updated

    @property
    def pulled(self) -> int:
        return self.pulled_new + self.pulled_updated


class SyncService:
    """Runs reconciliation passes between a local and a remote user repository."""

    def __init__(
        self,
        local_repo: UserRepository,
        remote_repo: RemoteUserRepository,
        sync_state: SyncState | None = None,
        conflict_tracker: SyncConflictTracker | None = None,
        strategy: ConflictStrategy = "remote_wins",
        endpoint: str = "remote",
    ):
        """Initialize sync service.

        Args:
            local_repo: Local vault
            remote_repo: Backend
            sync_state: Last push/pull timestamps
            conflict_tracker: Conflict log
            strategy: Winner when a remote change collides with unpushed local changes
            endpoint: Backend identifier used in sync state keys
        """
        self.local_repo = local_repo
        self.remote_repo = remote_repo
        self.sync_state = sync_state or SyncState()
        self.conflict_tracker = conflict_tracker or SyncConflictTracker()
        self.strategy = strategy
        self.push_key = SyncState.make_key("push", endpoint)
        self.pull_key = SyncState.make_key("pull", endpoint)
        self.passes = 0
        self._in_flight: asyncio.Task[SyncResult] | None = None
        self._in_flight_full = False

    @property
    def is_running(self) -> bool:
        return self._in_flight is not None and not self._in_flight.done()

    async def check_and_sync(self, manual: bool = False, full: bool = False) -> SyncResult:
        """Run a reconciliation pass, or join the one already running.

        Args:
            manual: Raise SyncError when the pass fails
            full: Pull every remote record instead of changes since the last pull;
                never satisfied by joining a running incremental pass

        Raises:
            SyncError: Only when ``manual`` is set and the pass failed
        """
        task = self._in_flight
        if task is None or task.done():
            task = asyncio.ensure_future(self._run_pass(manual=manual, full=full))
            self._in_flight = task
            self._in_flight_full = full
        elif full and not self._in_flight_full:
            # An incremental pass would skip records older than the last pull
            logger.debug("incremental sync pass running, full pass follows it")
            await asyncio.shield(task)
            return await self.check_and_sync(manual=manual, full=True)
        else:
            logger.debug("sync pass already running, joining it")

        # Shielded so a cancelled caller does not cancel a pass others are awaiting
        result = await asyncio.shield(task)
        if manual and not result.success:
            raise SyncError(result.error or "Sync failed", retryable=result.retryable)
        return result

    async def aclose(self) -> None:
        """Cancel the in-flight pass, if any, and wait for it to stop."""
        task = self._in_flight
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._in_flight = None

    async def _run_pass(self, manual: bool, full: bool) -> SyncResult:
        result = SyncResult(manual=manual)
        started = time.monotonic()
        started_at = datetime.now(UTC)
        self.passes += 1
        logger.info("sync pass %d started (manual=%s)", self.passes, manual)

        try:
            await self._push(result)
            self.sync_state.set_last_sync(self.push_key, started_at)
            await self._pull(result, full=full)
            self.sync_state.set_last_sync(self.pull_key, started_at)
            result.success = True
        except SyncError as e:
            result.error = str(e)
            result.retryable = e.retryable
        except RemoteError as e:
            result.error = str(e)
            result.retryable = e.is_unreachable or (e.status_code or 0) >= 500
        except Exception as e:
            logger.exception("sync pass %d crashed", self.passes)
            result.error = str(e)
            result.retryable = False
        finally:
            self.conflict_tracker.save()
            self.conflict_tracker.clear()
            result.duration = time.monotonic() - started

        if result.success:
            logger.info(
                "sync pass %d done: pushed %d, pulled %d, conflicts %d (%.2fs)",
                self.passes,
                result.pushed,
                result.pulled,
                result.conflicts,
                result.duration,
            )
        else:
            logger.warning("sync pass %d failed: %s", self.passes, result.error)
        return result

    async def _push(self, result: SyncResult) -> None:
        """Send outbox entries in order.

        A rejected entry blocks the later entries of the same user for the
        rest of the pass. An unreachable backend aborts the pass.
        """
        blocked: set[str] = set()
        for entry in await self.local_repo.pending_changes():
            if entry.user_id in blocked:
                continue

            try:
                remote = await self._push_entry(entry)
            except RemoteError as e:
                if e.is_unreachable:
                    raise SyncError(str(e), retryable=True) from e
                await self.local_repo.record_failure(entry.id, str(e))
                blocked.add(entry.user_id)
                result.push_failed += 1
                logger.warning("push of %s for user %s failed: %s", entry.operation, entry.user_id, e)
                continue

            await self.local_repo.complete_change(entry.id, remote.id, remote.updated_at)
            if entry.operation == "create":
                result.pushed_new += 1
            else:
                result.pushed_updated += 1

    async def _push_entry(self, entry: OutboxEntry) -> RemoteUser:
        if entry.operation == "create":
            try:
                return await self.remote_repo.create(entry.payload, entry.idempotency_key)
            except RemoteConflictError:
                remote = await self.remote_repo.find_by_email(entry.payload["email"])
                if remote is None:
                    raise
                logger.info("user %s already exists remotely as %s, linking", entry.user_id, remote.id)
                return remote

        user = await self.local_repo.get(entry.user_id)
        if user.remote_id is None:
            raise RemoteError(f"User {user.id} is not linked to a backend record", 0)
        return await self.remote_repo.update(user.remote_id, entry.payload, entry.idempotency_key)

    async def _pull(self, result: SyncResult, full: bool = False) -> None:
        since = None if full else self.sync_state.get_last_sync(self.pull_key)
        remote_users = await self.remote_repo.list_changed(since)
        logger.debug("pulled %d remote users (since=%s)", len(remote_users), since)

        for remote in remote_users:
            local = await self.local_repo.get_by_remote_id(
                remote.id
            ) or await self.local_repo.get_by_email(str(remote.email))

            if local is None:
                await self.local_repo.upsert_from_remote(remote)
                result.pulled_new += 1
                continue

            if await self.local_repo.has_pending_changes(local.id):
                if self._remote_changed(local, remote):
                    await self._resolve_conflict(local, remote, result)
                else:
                    # Last acknowledged version coming back; queued changes stay
                    result.pulled_unchanged += 1
                continue

            if self._remote_changed(local, remote):
                await self.local_repo.upsert_from_remote(remote)
                result.pulled_updated += 1
            else:
                result.pulled_unchanged += 1

    def _remote_changed(self, local: User, remote: RemoteUser) -> bool:
        """Whether the backend moved past the version this device last acknowledged."""
        if local.remote_id != remote.id or local.remote_updated_at is None:
            return True
        comparison = SyncConflictTracker.compare_timestamps(
            local.remote_updated_at, remote.updated_at
        )
        return comparison == "remote"

    async def _resolve_conflict(self, local: User, remote: RemoteUser, result: SyncResult) -> None:
        result.conflicts += 1
        self.conflict_tracker.add_conflict(
            SyncConflict(
                resource_id=local.id,
                local_data=local.model_dump(mode="json"),
                remote_data=remote.model_dump(mode="json"),
                resolution=self.strategy,
            )
        )

        if self.strategy == "remote_wins":
            dropped = await self.local_repo.discard_changes(local.id)
            logger.info("dropped %d local changes of user %s, remote wins", dropped, local.id)
            await self.local_repo.upsert_from_remote(remote)
            result.pulled_updated += 1
        else:
            # Local changes stay queued and overwrite the remote on the next push
            await self.local_repo.mark_conflict(local.id)
