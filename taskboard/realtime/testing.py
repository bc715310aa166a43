"""Helpers for exercising the realtime core without Socket.IO or Pusher."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from .hub import RealtimeHub
from .hub import install_hub
from .hub import uninstall_hub
from .rooms import channel_for_board


class RecordingDelivery:
    """Stands in for the Socket.IO transport; keeps every batch it is given."""

    def __init__(self) -> None:
        self.batches: list[tuple[list[str], str, dict[str, Any]]] = []

    def __call__(self, targets, event: str, payload: dict[str, Any]) -> None:
        self.batches.append((list(targets), event, payload))

    def events_for(self, conn_id: str) -> list[tuple[str, dict[str, Any]]]:
        return [
            (event, payload)
            for targets, event, payload in self.batches
            if conn_id in targets
        ]

    @property
    def names(self) -> list[str]:
        return [event for _, event, _ in self.batches]


class RecordingChannels:
    """Stands in for ``PusherChannels``; keeps triggers and grants locally."""

    key = "recording-key"

    def __init__(self) -> None:
        self.triggers: list[tuple[str, str, dict[str, Any]]] = []

    def authorize(self, socket_id: str, channel_name: str) -> dict[str, str]:
        return {"auth": f"{self.key}:{socket_id}:{channel_name}"}

    def publish(self, board_id, event: str, payload: dict[str, Any]) -> None:
        self.triggers.append((channel_for_board(board_id), event, payload))


@contextmanager
def recording_hub(**kwargs: Any) -> Iterator[tuple[RealtimeHub, RecordingDelivery]]:
    """Install a hub backed by a ``RecordingDelivery`` for the block's duration."""

    delivery = RecordingDelivery()
    hub = install_hub(RealtimeHub.create(delivery, **kwargs))
    try:
        yield hub, delivery
    finally:
        uninstall_hub()
