"""Decorators for command functions."""

import asyncio
import functools
import inspect
import time
import traceback
from collections.abc import Callable

import typer

from krishiva_cli.models import (
    AuthenticationError,
    DuplicateEmailError,
    InitializationError,
    KrishivaError,
    NotFoundError,
    SessionError,
    SyncError,
    ValidationError,
)
from krishiva_cli.utils import exit_codes
from krishiva_cli.utils.logger import get_logger
from krishiva_cli.utils.ui.formatters import format_error

_EXIT_CODES: list[tuple[type[KrishivaError], int]] = [
    (ValidationError, exit_codes.ERROR_INVALID_ARGS),
    (AuthenticationError, exit_codes.ERROR_AUTH_FAILURE),
    (SessionError, exit_codes.ERROR_AUTH_FAILURE),
    (SyncError, exit_codes.ERROR_NETWORK),
    (NotFoundError, exit_codes.ERROR_NOT_FOUND),
    (DuplicateEmailError, exit_codes.ERROR_CONFLICT),
    (InitializationError, exit_codes.ERROR_INITIALIZATION),
]


class AppError(Exception):
    """Custom application error with exit code."""

    def __init__(self, message: str, exit_code: int = 1, title: str = "Error"):
        super().__init__(message)
        self.exit_code = exit_code
        self.title = title


def exit_code_for(error: KrishivaError) -> int:
    for error_type, code in _EXIT_CODES:
        if isinstance(error, error_type):
            return code
    return exit_codes.ERROR_GENERAL


def _require_session() -> None:
    """Require a logged-in session."""
    from krishiva_cli.database import get_database

    if not get_database().session_manager.is_logged_in:
        raise AppError(
            "Not logged in. Use 'krishiva login' to authenticate.",
            exit_codes.ERROR_AUTH_FAILURE,
        )


async def _run_async(func: Callable, *args, **kwargs):
    from krishiva_cli.database import shutdown

    try:
        return await func(*args, **kwargs)
    finally:
        await shutdown()


def command_wrapper(_func: Callable | None = None, *, auth_required: bool = False):
    """Decorator to wrap command functions with common functionality.

    Runs coroutine functions with asyncio, logs timing, and turns errors
    into a printed message and an exit code.
    """

    def decorator(func: Callable):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger()
            cmd = func.__name__
            start = time.monotonic()
            logger.info("command started: %s", cmd)
            try:
                if auth_required:
                    _require_session()

                if inspect.iscoroutinefunction(func):
                    result = asyncio.run(_run_async(func, *args, **kwargs))
                else:
                    result = func(*args, **kwargs)

                elapsed = time.monotonic() - start
                logger.info("command completed: %s (%.3fs)", cmd, elapsed)
                return result

            except AppError as e:
                elapsed = time.monotonic() - start
                logger.error("command failed: %s (%.3fs) - %s", cmd, elapsed, str(e))
                format_error(str(e), title=e.title)
                raise typer.Exit(code=e.exit_code) from e

            except KrishivaError as e:
                elapsed = time.monotonic() - start
                code = exit_code_for(e)
                logger.error(
                    "command failed: %s (%.3fs) - %s [%s]",
                    cmd,
                    elapsed,
                    str(e),
                    exit_codes.get_exit_code_name(code),
                )
                format_error(str(e))
                raise typer.Exit(code=code) from e

            except typer.Exit:
                raise

            except Exception as e:
                elapsed = time.monotonic() - start
                logger.error(
                    "command failed: %s (%.3fs) - %s\n%s",
                    cmd,
                    elapsed,
                    str(e),
                    traceback.format_exc(),
                )
                format_error(f"An unexpected error occurred: {str(e)}")
                raise typer.Exit(code=exit_codes.ERROR_GENERAL) from e

        return wrapper

    if _func is None:
        return decorator
    return decorator(_func)
