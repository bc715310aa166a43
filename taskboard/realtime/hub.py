"""The realtime core and its process lifecycle.

A hub is created once at startup (``config/asgi.py`` with Socket.IO rooms,
``config/wsgi.py`` with Pusher channels only) and installed on the
``realtime`` app config. Callers reach it through ``current_hub()``, which
raises ``UnavailableError`` when no hub was installed, e.g. with
``REALTIME_ENABLED`` off.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.apps import apps
from django.conf import settings

from .credentials import CredentialVerifier
from .dispatcher import Deliver
from .dispatcher import EventDispatcher
from .exceptions import UnavailableError
from .gate import RoomAuthorizationGate
from .pusher import configured_channels
from .registry import ConnectionRegistry

if TYPE_CHECKING:  # import for type checking only
    from .membership import MembershipOracle
    from .pusher import PusherChannels

logger = logging.getLogger(__name__)


@dataclass
class RealtimeHub:
    registry: ConnectionRegistry
    gate: RoomAuthorizationGate
    dispatcher: EventDispatcher
    verifier: CredentialVerifier
    channels: PusherChannels | None = None

    @classmethod
    def create(
        cls,
        deliver: Deliver | None = None,
        *,
        channels: PusherChannels | None = None,
        oracle: MembershipOracle | None = None,
        verifier: CredentialVerifier | None = None,
    ) -> RealtimeHub:
        registry = ConnectionRegistry()
        publish = channels.publish if channels is not None else None
        return cls(
            registry=registry,
            gate=RoomAuthorizationGate(oracle),
            dispatcher=EventDispatcher(registry, deliver, publish),
            verifier=verifier or CredentialVerifier(),
            channels=channels,
        )


def _app_config():
    return apps.get_app_config("realtime")


def install_hub(hub: RealtimeHub) -> RealtimeHub:
    _app_config().hub = hub
    logger.info(
        "Realtime hub installed (socket.io: %s, pusher: %s)",
        hub.dispatcher.deliver is not None,
        hub.channels is not None,
    )
    return hub


def uninstall_hub() -> None:
    _app_config().hub = None


def current_hub() -> RealtimeHub:
    hub = getattr(_app_config(), "hub", None)
    if hub is None:
        msg = "Realtime hub not initialized"
        raise UnavailableError(msg)
    return hub


def start_hub(deliver: Deliver | None = None) -> RealtimeHub | None:
    """Install this process's hub unless ``REALTIME_ENABLED`` is off."""

    if not settings.REALTIME_ENABLED:
        logger.info("Realtime disabled; board events will not be published")
        return None
    return install_hub(RealtimeHub.create(deliver, channels=configured_channels()))
