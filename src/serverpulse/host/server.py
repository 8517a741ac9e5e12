"""Live server state as seen by the snapshot producer."""

from __future__ import annotations

from typing import Iterable, Protocol

import structlog

logger = structlog.get_logger(__name__)


class ServerHost(Protocol):
    """Read access to the running server. Only safe on the authority thread."""

    @property
    def version(self) -> str:
        ...

    @property
    def max_players(self) -> int:
        ...

    @property
    def whitelist_enabled(self) -> bool:
        ...

    def online_player_count(self) -> int:
        ...


class LocalServerHost:
    """In-process server state, mutated by the embedding application.

    Like any live host state, it is not thread-safe: joins, leaves and
    whitelist changes must happen on the authority thread.
    """

    def __init__(
        self,
        version: str,
        max_players: int,
        whitelist_enabled: bool = False,
        players: Iterable[str] = (),
    ):
        if max_players < 0:
            raise ValueError(f"max_players must be >= 0, got {max_players}")
        self._version = version
        self._max_players = max_players
        self._whitelist_enabled = whitelist_enabled
        self._players: set[str] = set(players)

    @property
    def version(self) -> str:
        return self._version

    @property
    def max_players(self) -> int:
        return self._max_players

    @property
    def whitelist_enabled(self) -> bool:
        return self._whitelist_enabled

    @property
    def players(self) -> frozenset[str]:
        return frozenset(self._players)

    def online_player_count(self) -> int:
        return len(self._players)

    def player_joined(self, name: str) -> bool:
        """Add a player. Returns False when the server is full or they are already on."""
        if name in self._players:
            return False
        if len(self._players) >= self._max_players:
            logger.info("player_rejected_server_full", player=name,
                        max_players=self._max_players)
            return False
        self._players.add(name)
        return True

    def player_left(self, name: str) -> None:
        self._players.discard(name)

    def set_whitelist(self, enabled: bool) -> None:
        self._whitelist_enabled = enabled
