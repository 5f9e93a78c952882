"""Application database facade.

Screens use these few entry points and nothing else from the storage and
sync layers:

    await init_database()
    await create_user(name, email, password)
    setup_sync_listener()
    await check_and_sync_data()

Components are built lazily from the configuration on first use and live
for the rest of the process.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from pathlib import Path

from krishiva_cli.adapters.local_storage import LocalStorage
from krishiva_cli.adapters.rest_api import RestApiUserRepository
from krishiva_cli.adapters.sqlite import DatabaseConnection, SqliteUserRepository
from krishiva_cli.models import CreateUserResult, InitializationError
from krishiva_cli.repositories import RemoteUserRepository
from krishiva_cli.services.auth_service import AuthService
from krishiva_cli.services.config_service import ConfigService, get_config_service
from krishiva_cli.services.profile_service import ProfileService
from krishiva_cli.services.session_service import SessionManager
from krishiva_cli.services.sync_conflicts import SyncConflictTracker
from krishiva_cli.services.sync_listener import SyncListener
from krishiva_cli.services.sync_service import SyncResult, SyncService
from krishiva_cli.services.sync_state import SyncState

logger = logging.getLogger(__name__)


class KrishivaDatabase:
    """Process-wide owner of the vault, the session cache and the sync machinery."""

    def __init__(
        self,
        config_service: ConfigService | None = None,
        remote_repo: RemoteUserRepository | None = None,
    ):
        self.config_service = config_service or get_config_service()
        self.db_path: Path | None = None
        self.initialized = False
        self._remote_repo = remote_repo
        self._user_repo: SqliteUserRepository | None = None
        self._session_manager: SessionManager | None = None
        self._sync_service: SyncService | None = None
        self._listener: SyncListener | None = None

    async def init(self, db_path: str | Path | None = None) -> None:
        """Open the vault and apply migrations.

        Raises:
            InitializationError: If the database cannot be opened or migrated
        """
        path = Path(db_path) if db_path else self.config_service.db_path
        try:
            DatabaseConnection.get_connection(path)
        except (sqlite3.Error, OSError, RuntimeError) as e:
            logger.error("vault initialization failed for %s: %s", path, e)
            raise InitializationError(f"Failed to initialize database: {e}") from e

        if self.db_path != path:
            self._user_repo = None
            self._sync_service = None
        self.db_path = path
        self.initialized = True
        logger.info("vault ready at %s", path)

    def _require_init(self) -> None:
        if not self.initialized:
            raise InitializationError("Database is not initialized")

    @property
    def user_repo(self) -> SqliteUserRepository:
        self._require_init()
        if self._user_repo is None:
            self._user_repo = SqliteUserRepository(str(self.db_path))
        return self._user_repo

    @property
    def remote_repo(self) -> RemoteUserRepository:
        if self._remote_repo is None:
            self._remote_repo = RestApiUserRepository()
        return self._remote_repo

    @property
    def session_manager(self) -> SessionManager:
        if self._session_manager is None:
            self._session_manager = SessionManager(
                LocalStorage(self.config_service.session_path)
            )
        return self._session_manager

    @property
    def sync_service(self) -> SyncService:
        if self._sync_service is None:
            config = self.config_service.config
            data_dir = self.config_service.data_dir
            self._sync_service = SyncService(
                self.user_repo,
                self.remote_repo,
                sync_state=SyncState(data_dir),
                conflict_tracker=SyncConflictTracker(data_dir),
                strategy=config.sync.strategy,
                endpoint=config.api.endpoint,
            )
        return self._sync_service

    @property
    def listener(self) -> SyncListener | None:
        return self._listener

    def auth_service(self) -> AuthService:
        return AuthService(self.user_repo, self.session_manager)

    def profile_service(self) -> ProfileService:
        return ProfileService(
            self.session_manager,
            self.user_repo,
            propagate=self.config_service.config.profile.propagate_name_edits,
        )

    async def create_user(self, name: str, email: str, password: str) -> CreateUserResult:
        """Store a new account; it is pushed by the next sync pass.

        Raises:
            InitializationError: If init() has not completed
            ValidationError: On bad input
            DuplicateEmailError: If the email is already registered
        """
        return await self.auth_service().signup(name, email, password)

    async def check_and_sync(self, manual: bool = False, full: bool = False) -> SyncResult:
        self._require_init()
        return await self.sync_service.check_and_sync(manual=manual, full=full)

    def setup_sync_listener(self, online: bool | None = None) -> SyncListener:
        """Register the connectivity listener once per process.

        Must be called from a running event loop. Later calls return the
        already registered listener.

        Args:
            online: Backend state already known to the caller (e.g. from the
                startup pass); None lets the first probe trigger a pass
        """
        self._require_init()
        if self._listener is not None and self._listener.is_running:
            return self._listener

        self._listener = SyncListener(
            probe=self.remote_repo.health,
            on_reconnect=self.sync_service.check_and_sync,
            interval=self.config_service.config.sync.probe_interval,
            online=online,
        )
        self._listener.start()
        return self._listener

    async def teardown_sync_listener(self) -> None:
        if self._listener is not None:
            await self._listener.stop()
            self._listener = None

    async def close(self) -> None:
        """Stop background work and release the backend client."""
        await self.teardown_sync_listener()
        if self._sync_service is not None:
            await self._sync_service.aclose()
        if isinstance(self._remote_repo, RestApiUserRepository):
            await self._remote_repo.close()


_database: KrishivaDatabase | None = None


def get_database() -> KrishivaDatabase:
    """Get the process-wide database facade."""
    global _database
    if _database is None:
        _database = KrishivaDatabase()
    return _database


def set_database(database: KrishivaDatabase | None) -> None:
    """Replace the process-wide facade (None resets it)."""
    global _database
    _database = database


async def init_database(db_path: str | Path | None = None) -> KrishivaDatabase:
    """Open and migrate the local vault. Must complete before anything else."""
    database = get_database()
    await database.init(db_path)
    return database


async def create_user(name: str, email: str, password: str) -> CreateUserResult:
    """Create an account in the local vault."""
    return await get_database().create_user(name, email, password)


async def check_and_sync_data(manual: bool = False) -> SyncResult:
    """Run, or join, a reconciliation pass.

    Raises:
        SyncError: Only when ``manual`` is set and the pass failed
    """
    return await get_database().check_and_sync(manual=manual)


def setup_sync_listener(online: bool | None = None) -> SyncListener:
    """Register the connectivity listener (idempotent)."""
    asyncio.get_running_loop()
    return get_database().setup_sync_listener(online=online)


async def teardown_sync_listener() -> None:
    await get_database().teardown_sync_listener()


async def shutdown() -> None:
    """Stop background work of the facade, if one was created."""
    if _database is not None:
        await _database.close()
