"""Repository interfaces for Krishiva CLI.

Implementations (Adapters) are in:
- krishiva_cli.adapters.sqlite (local vault)
- krishiva_cli.adapters.rest_api (remote backend)
"""

from .repository import RemoteUserRepository, UserRepository

__all__ = [
    "RemoteUserRepository",
    "UserRepository",
]
