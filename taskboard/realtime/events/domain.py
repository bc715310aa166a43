"""Typed board events relayed from REST mutations to board rooms."""

from __future__ import annotations

import enum
import json
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from rest_framework.utils.encoders import JSONEncoder


class EventKind(str, enum.Enum):
    LIST_CREATED = "list:created"
    LIST_UPDATED = "list:updated"
    LIST_DELETED = "list:deleted"
    TASK_CREATED = "task:created"
    TASK_UPDATED = "task:updated"
    TASK_DELETED = "task:deleted"
    BOARD_UPDATED = "board:updated"
    BOARD_MEMBER_ADDED = "board:member-added"
    BOARD_MEMBER_REMOVED = "board:member-removed"


# Keys each kind's payload must carry.
_REQUIRED_KEYS: dict[EventKind, tuple[str, ...]] = {
    EventKind.LIST_CREATED: ("id",),
    EventKind.LIST_UPDATED: ("id",),
    EventKind.LIST_DELETED: ("listId",),
    EventKind.TASK_CREATED: ("id",),
    EventKind.TASK_UPDATED: ("id",),
    EventKind.TASK_DELETED: ("taskId",),
    EventKind.BOARD_UPDATED: ("id",),
    EventKind.BOARD_MEMBER_ADDED: ("userId",),
    EventKind.BOARD_MEMBER_REMOVED: ("userId",),
}


def _wire_copy(payload: Mapping[str, Any]) -> dict[str, Any]:
    # UUIDs, datetimes and lazy strings become their JSON forms once, here.
    return json.loads(json.dumps(dict(payload), cls=JSONEncoder))


@dataclass(frozen=True)
class DomainEvent:
    kind: EventKind
    board_id: str
    payload: Mapping[str, Any]

    def __post_init__(self):
        kind = EventKind(self.kind)
        if not isinstance(self.payload, Mapping):
            msg = f"{kind.value} payload must be a mapping"
            raise TypeError(msg)
        missing = [k for k in _REQUIRED_KEYS[kind] if k not in self.payload]
        if missing:
            msg = f"{kind.value} payload is missing {', '.join(missing)}"
            raise ValueError(msg)
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "board_id", str(self.board_id))
        object.__setattr__(self, "payload", MappingProxyType(_wire_copy(self.payload)))

    @property
    def name(self) -> str:
        return self.kind.value

    def wire_payload(self) -> dict[str, Any]:
        """A fresh, mutable copy suitable for a transport to serialize."""
        return dict(self.payload)

    @classmethod
    def list_created(cls, board_id, board_list: Mapping[str, Any]) -> DomainEvent:
        return cls(EventKind.LIST_CREATED, board_id, board_list)

    @classmethod
    def list_updated(cls, board_id, board_list: Mapping[str, Any]) -> DomainEvent:
        return cls(EventKind.LIST_UPDATED, board_id, board_list)

    @classmethod
    def list_deleted(cls, board_id, list_id) -> DomainEvent:
        return cls(EventKind.LIST_DELETED, board_id, {"listId": list_id})

    @classmethod
    def task_created(cls, board_id, task: Mapping[str, Any]) -> DomainEvent:
        return cls(EventKind.TASK_CREATED, board_id, task)

    @classmethod
    def task_updated(cls, board_id, task: Mapping[str, Any]) -> DomainEvent:
        return cls(EventKind.TASK_UPDATED, board_id, task)

    @classmethod
    def task_deleted(cls, board_id, task_id) -> DomainEvent:
        return cls(EventKind.TASK_DELETED, board_id, {"taskId": task_id})

    @classmethod
    def board_updated(cls, board_id, board: Mapping[str, Any]) -> DomainEvent:
        return cls(EventKind.BOARD_UPDATED, board_id, board)

    @classmethod
    def board_member_added(cls, board_id, user_id: int) -> DomainEvent:
        return cls(EventKind.BOARD_MEMBER_ADDED, board_id, {"userId": user_id})

    @classmethod
    def board_member_removed(cls, board_id, user_id: int) -> DomainEvent:
        return cls(EventKind.BOARD_MEMBER_REMOVED, board_id, {"userId": user_id})
