"""
Exit codes for Krishiva CLI.

Semantic exit codes so scripts can tell a bad form from an offline backend.
"""

# Success
SUCCESS = 0

# General error (unspecified)
ERROR_GENERAL = 1

# Invalid arguments or validation error
ERROR_INVALID_ARGS = 2

# Authentication failure (not logged in, invalid credentials)
ERROR_AUTH_FAILURE = 3

# Network or sync error (backend unreachable, pass failed)
ERROR_NETWORK = 4

# Resource not found
ERROR_NOT_FOUND = 5

# Record already exists (duplicate email)
ERROR_CONFLICT = 6

# Local database could not be opened or migrated
ERROR_INITIALIZATION = 7


def get_exit_code_name(code: int) -> str:
    """Get the name of an exit code for display purposes."""
    code_names = {
        SUCCESS: "SUCCESS",
        ERROR_GENERAL: "ERROR_GENERAL",
        ERROR_INVALID_ARGS: "ERROR_INVALID_ARGS",
        ERROR_AUTH_FAILURE: "ERROR_AUTH_FAILURE",
        ERROR_NETWORK: "ERROR_NETWORK",
        ERROR_NOT_FOUND: "ERROR_NOT_FOUND",
        ERROR_CONFLICT: "ERROR_CONFLICT",
        ERROR_INITIALIZATION: "ERROR_INITIALIZATION",
    }
    return code_names.get(code, f"UNKNOWN({code})")
