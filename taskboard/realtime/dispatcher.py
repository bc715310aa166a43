from __future__ import annotations

import logging
from collections.abc import Callable
from collections.abc import Collection
from typing import TYPE_CHECKING
from typing import Any

from .rooms import room_for_board

if TYPE_CHECKING:  # import for type checking only
    from .events import DomainEvent
    from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)

# (connection ids, event name, payload) -> None; must send in the given order.
Deliver = Callable[[Collection[str], str, dict[str, Any]], None]
# (board id, event name, payload) -> None; pushes to the board's channel.
Publish = Callable[[Any, str, dict[str, Any]], None]


class EventDispatcher:
    """Relay board events to the board's room and to its hosted channel.

    ``emit`` is best-effort: the mutation that produced the event has already
    been committed, so nothing raised while delivering may reach the caller.
    A failure on one transport does not keep the event from the other.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        deliver: Deliver | None,
        publish: Publish | None = None,
    ) -> None:
        self.registry = registry
        self.deliver = deliver
        self.publish = publish

    def emit(self, board_id, event: DomainEvent) -> None:
        if self.deliver is not None:
            self._to_room(board_id, event)
        if self.publish is not None:
            self._to_channel(board_id, event)

    def _to_room(self, board_id, event: DomainEvent) -> None:
        try:
            room = room_for_board(board_id)
            targets = self.registry.members_of(room)
            if not targets:
                logger.debug("No connections in %s for %s", room, event.name)
                return
            self.deliver(sorted(targets), event.name, event.wire_payload())
            logger.info(
                "Emitted %s on %s to %d connection(s)", event.name, room, len(targets)
            )
        except Exception:  # noqa: BLE001 - fan-out must not fail the mutation
            logger.exception("Error emitting %s on board %s", event.name, board_id)

    def _to_channel(self, board_id, event: DomainEvent) -> None:
        try:
            self.publish(board_id, event.name, event.wire_payload())
        except Exception:  # noqa: BLE001 - fan-out must not fail the mutation
            logger.exception(
                "Error triggering %s on board %s channel", event.name, board_id
            )

    def revoke(self, board_id, user_id: int) -> None:
        """Drop ``user_id``'s connections from the board's room."""

        try:
            room = room_for_board(board_id)
            evicted = self.registry.evict_user(room, user_id)
        except Exception:  # noqa: BLE001 - fan-out must not fail the mutation
            logger.exception("Error revoking user %s on board %s", user_id, board_id)
            return
        if evicted:
            logger.info(
                "Revoked %d connection(s) of user %s from %s",
                len(evicted),
                user_id,
                room,
            )
