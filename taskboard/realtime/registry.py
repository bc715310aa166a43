"""Bookkeeping of live connections and the board rooms they joined.

Two maps are kept in lockstep: room -> connection ids, and connection id ->
(user id, joined rooms). A connection is listed in a room exactly when the
room is listed on the connection. The Socket.IO loop mutates them while
REST worker threads read room snapshots for fan-out, so every operation
holds one lock for its whole read-modify-write.

No authorization happens here.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from dataclasses import field

from .exceptions import RegistryError

logger = logging.getLogger(__name__)


@dataclass
class _Connection:
    user_id: int
    rooms: set[str] = field(default_factory=set)


class ConnectionRegistry:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._rooms: dict[str, set[str]] = {}
        self._connections: dict[str, _Connection] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    def register(self, conn_id: str, user_id: int) -> None:
        with self._lock:
            if conn_id in self._connections:
                msg = f"Connection {conn_id} is already registered"
                raise RegistryError(msg)
            self._connections[conn_id] = _Connection(user_id=user_id)
        logger.debug("Registered connection %s for user %s", conn_id, user_id)

    def unregister(self, conn_id: str) -> bool:
        """Drop ``conn_id`` from every room it joined, then forget it."""

        with self._lock:
            conn = self._connections.pop(conn_id, None)
            if conn is None:
                return False
            for room in conn.rooms:
                self._discard_member(room, conn_id)
        logger.debug("Unregistered connection %s (%d rooms)", conn_id, len(conn.rooms))
        return True

    def join_room(self, conn_id: str, room: str) -> bool:
        """Add ``conn_id`` to ``room``. Returns False if the connection is gone."""

        with self._lock:
            conn = self._connections.get(conn_id)
            if conn is None:
                return False
            conn.rooms.add(room)
            self._rooms.setdefault(room, set()).add(conn_id)
        return True

    def leave_room(self, conn_id: str, room: str) -> None:
        with self._lock:
            conn = self._connections.get(conn_id)
            if conn is None or room not in conn.rooms:
                return
            conn.rooms.discard(room)
            self._discard_member(room, conn_id)

    def evict_user(self, room: str, user_id: int) -> list[str]:
        """Remove every connection of ``user_id`` from ``room``; returns their ids."""

        with self._lock:
            evicted = [
                conn_id
                for conn_id in self._rooms.get(room, ())
                if self._connections[conn_id].user_id == user_id
            ]
            for conn_id in evicted:
                self._connections[conn_id].rooms.discard(room)
                self._discard_member(room, conn_id)
        return evicted

    def members_of(self, room: str) -> frozenset[str]:
        with self._lock:
            return frozenset(self._rooms.get(room, ()))

    def joined_rooms_of(self, conn_id: str) -> frozenset[str]:
        with self._lock:
            conn = self._connections.get(conn_id)
            return frozenset(conn.rooms) if conn else frozenset()

    def identity_of(self, conn_id: str) -> int | None:
        with self._lock:
            conn = self._connections.get(conn_id)
            return conn.user_id if conn else None

    def is_registered(self, conn_id: str) -> bool:
        with self._lock:
            return conn_id in self._connections

    def rooms(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._rooms)

    def _discard_member(self, room: str, conn_id: str) -> None:
        members = self._rooms.get(room)
        if members is None:
            return
        members.discard(conn_id)
        if not members:
            del self._rooms[room]
