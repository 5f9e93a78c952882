"""Data models for Krishiva CLI."""

from .exceptions import (
    AuthenticationError,
    DuplicateEmailError,
    InitializationError,
    KrishivaError,
    NotFoundError,
    RemoteConflictError,
    RemoteError,
    SessionError,
    SyncError,
    ValidationError,
)
from .session import SessionSnapshot
from .sync import ConflictStrategy, OutboxEntry, OutboxOperation
from .user import (
    CreateUserResult,
    RemoteUser,
    SyncStatus,
    User,
    UserCreate,
    UserUpdate,
    normalize_email,
)

__all__ = [
    "AuthenticationError",
    "ConflictStrategy",
    "CreateUserResult",
    "DuplicateEmailError",
    "InitializationError",
    "KrishivaError",
    "NotFoundError",
    "OutboxEntry",
    "OutboxOperation",
    "RemoteConflictError",
    "RemoteError",
    "RemoteUser",
    "SessionError",
    "SessionSnapshot",
    "SyncError",
    "SyncStatus",
    "User",
    "UserCreate",
    "UserUpdate",
    "ValidationError",
    "normalize_email",
]
