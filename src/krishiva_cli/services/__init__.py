"""Services module for Krishiva CLI - Business logic layer."""

from .auth_service import AuthService, validate_signup
from .profile_service import ProfileService
from .session_service import SESSION_KEY, SessionManager
from .sync_conflicts import SyncConflict, SyncConflictTracker
from .sync_listener import SyncListener
from .sync_scheduler import SyncScheduler
from .sync_service import SyncResult, SyncService
from .sync_state import SyncState

__all__ = [
    "AuthService",
    "ProfileService",
    "SESSION_KEY",
    "SessionManager",
    "SyncConflict",
    "SyncConflictTracker",
    "SyncListener",
    "SyncResult",
    "SyncScheduler",
    "SyncService",
    "SyncState",
    "validate_signup",
]
