"""Pusher Channels transport for board events.

Every board event is also triggered on ``private-board-<boardId>``. Browsers
subscribe to that channel through Pusher, which asks
``POST /api/v1/realtime/auth/`` for a grant bound to the subscribing
``socket_id``; the grant is only issued after the same membership checks as a
Socket.IO ``join_board``.

Settings: ``PUSHER_APP_ID``, ``PUSHER_KEY``, ``PUSHER_SECRET`` and
``PUSHER_CLUSTER``.
"""

from __future__ import annotations

import logging
from typing import Any

import pusher
from django.conf import settings

from .exceptions import UnavailableError
from .rooms import channel_for_board

logger = logging.getLogger(__name__)


class PusherChannels:
    def __init__(self, client: pusher.Pusher):
        self.client = client

    @classmethod
    def from_settings(cls) -> PusherChannels:
        app_id = getattr(settings, "PUSHER_APP_ID", "")
        key = getattr(settings, "PUSHER_KEY", "")
        secret = getattr(settings, "PUSHER_SECRET", "")
        if not (app_id and key and secret):
            msg = "Pusher app id/key/secret are not configured"
            raise UnavailableError(msg)
        client = pusher.Pusher(
            app_id=str(app_id),
            key=key,
            secret=secret,
            cluster=getattr(settings, "PUSHER_CLUSTER", None) or None,
            ssl=True,
        )
        return cls(client)

    def authorize(self, socket_id: str, channel_name: str) -> dict[str, str]:
        """Grant ``socket_id`` a subscription to ``channel_name``."""

        return self.client.authenticate(channel=channel_name, socket_id=socket_id)

    def publish(self, board_id, event: str, payload: dict[str, Any]) -> None:
        channel = channel_for_board(board_id)
        self.client.trigger(channel, event, payload)
        logger.info("Triggered %s on %s", event, channel)


def configured_channels() -> PusherChannels | None:
    """Pusher transport from settings, or None when it is not configured."""

    try:
        return PusherChannels.from_settings()
    except UnavailableError:
        logger.warning("Pusher is not configured; board channels are disabled")
        return None
