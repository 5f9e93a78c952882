"""Custom exceptions for Krishiva."""


class KrishivaError(Exception):
    """Base exception for all Krishiva errors."""


class InitializationError(KrishivaError):
    """Raised when the local database cannot be opened or migrated."""


class ValidationError(KrishivaError):
    """Raised when user input fails a local check (empty name, short password...)."""


class DuplicateEmailError(KrishivaError):
    """Raised when an account with the same email is already stored."""

    def __init__(self, email: str):
        super().__init__(f"An account with email {email} already exists")
        self.email = email


class NotFoundError(KrishivaError):
    """Raised when a requested record does not exist."""


class AuthenticationError(KrishivaError):
    """Raised when login credentials do not match a stored account."""


class SessionError(KrishivaError):
    """Raised when an operation needs a logged-in session and there is none."""


class RemoteError(KrishivaError):
    """Raised when the remote backend rejects a request or cannot be reached.

    ``status_code`` is None for transport failures (backend unreachable).
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_unreachable(self) -> bool:
        return self.status_code is None


class RemoteConflictError(RemoteError):
    """Raised when the backend answers 409 for a create."""


class SyncError(KrishivaError):
    """Raised when a manually triggered reconciliation pass fails."""

    def __init__(self, message: str, retryable: bool = True):
        super().__init__(message)
        self.retryable = retryable
