"""
Host integration.

The host authority capability and the live server state it guards.
"""

from .authority import AuthorityUnavailableError, HostAuthority, LoopAuthority
from .server import LocalServerHost, ServerHost

__all__ = [
    "AuthorityUnavailableError",
    "HostAuthority",
    "LocalServerHost",
    "LoopAuthority",
    "ServerHost",
]
