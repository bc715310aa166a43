"""Socket.IO transport for board rooms.

Frontend convention:
- URL base: ws://<host>:8000
- Socket.IO path: /ws/boards/ (``REALTIME_SOCKETIO_PATH``)
- Auth: `query.token` (JWT access token), `auth: { token }` also accepted

Client -> server events:
- ``join_board`` ``{boardId}``: replies ``board:joined`` or ``board:error``
- ``leave_board`` ``{boardId}``: replies ``board:left``

Server -> client: every board event (``task:created``, ...) for rooms the
connection joined, payload as produced by the REST handler.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Collection
from typing import Any
from urllib.parse import parse_qs

import socketio
from asgiref.sync import async_to_sync
from django.conf import settings
from socketio import exceptions as sio_exceptions

from .exceptions import AuthError
from .exceptions import InvalidIdError
from .exceptions import RoomRejectedError
from .hub import RealtimeHub
from .hub import install_hub
from .pusher import configured_channels
from .rooms import parse_board_id
from .rooms import room_for_board

logger = logging.getLogger(__name__)

NAMESPACE = "/"

EVENT_JOINED = "board:joined"
EVENT_LEFT = "board:left"
EVENT_ERROR = "board:error"


def _extract_token(environ: dict[str, Any], auth: Any | None) -> str | None:
    """Extract JWT token from Socket.IO environ/auth.

    Handles python-socketio environ shapes across ASGI/WSGI servers.
    """

    scope: Any = environ
    if isinstance(environ, dict) and "asgi.scope" in environ:
        inner = environ.get("asgi.scope")
        if isinstance(inner, dict):
            scope = inner

    query_string: str | bytes = ""
    if isinstance(scope, dict) and "query_string" in scope:
        query_string = scope.get("query_string", b"")
    elif isinstance(scope, dict) and "QUERY_STRING" in scope:
        query_string = scope.get("QUERY_STRING", "")

    if isinstance(query_string, (bytes, bytearray)):
        query_string = query_string.decode(errors="ignore")

    token = parse_qs(str(query_string)).get("token", [None])[0]
    if isinstance(token, str) and token:
        return token

    # Allow `auth: { token }` as fallback.
    if isinstance(auth, dict):
        auth_token = auth.get("token")
        if isinstance(auth_token, str) and auth_token:
            return auth_token

    # Last resort: a regular `Authorization: Bearer <token>` header.
    header = environ.get("HTTP_AUTHORIZATION") if isinstance(environ, dict) else None
    if isinstance(header, str):
        scheme, _, value = header.partition(" ")
        if scheme.lower() == "bearer" and value.strip():
            return value.strip()

    return None


def _board_id_from(data: Any) -> Any:
    if isinstance(data, dict):
        return data.get("boardId")
    return data


class SocketIODelivery:
    """Push one event to a list of sids, in order, from sync or async code."""

    def __init__(self, sio: socketio.AsyncServer, namespace: str = NAMESPACE):
        self.sio = sio
        self.namespace = namespace
        self._lock: asyncio.Lock | None = None
        # Batches scheduled from the loop; held until they finish.
        self._pending: set[asyncio.Task] = set()

    async def send(
        self, targets: Collection[str], event: str, payload: dict[str, Any]
    ) -> None:
        if self._lock is None:
            self._lock = asyncio.Lock()
        # The lock is FIFO, so batches scheduled from the loop keep emit order.
        async with self._lock:
            for sid in targets:
                try:
                    await self.sio.emit(
                        event, payload, to=sid, namespace=self.namespace
                    )
                except Exception:  # noqa: BLE001 - one bad sid must not drop the rest
                    logger.exception("Error sending %s to %s", event, sid)

    def __call__(
        self, targets: Collection[str], event: str, payload: dict[str, Any]
    ) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Sync Django code (views, on_commit hooks) running in a worker thread.
            async_to_sync(self.send)(targets, event, payload)
            return
        task = loop.create_task(self.send(targets, event, payload))
        self._pending.add(task)
        task.add_done_callback(self._finished)

    def _finished(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Error delivering a batch", exc_info=exc)

    async def drain(self) -> None:
        """Wait for every batch scheduled from the loop to finish."""

        while self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)


class BoardNamespace(socketio.AsyncNamespace):
    """Connection lifecycle and board room membership for one Socket.IO server."""

    def __init__(self, hub: RealtimeHub, namespace: str = NAMESPACE):
        super().__init__(namespace)
        self.hub = hub

    async def on_connect(self, sid: str, environ: dict[str, Any], auth: Any = None):
        token = _extract_token(environ, auth)
        try:
            user_id = await self.hub.verifier.averify(token)
        except AuthError as exc:
            logger.info("Refused connection %s: %s", sid, exc.reason)
            raise sio_exceptions.ConnectionRefusedError(exc.reason) from exc
        except Exception as exc:
            logger.exception("Socket.IO connect error")
            msg = "server_error"
            raise sio_exceptions.ConnectionRefusedError(msg) from exc

        self.hub.registry.register(sid, user_id)
        logger.info("Connection %s opened for user %s", sid, user_id)

    async def on_disconnect(self, sid: str, reason: Any = None):
        if self.hub.registry.unregister(sid):
            logger.info("Connection %s closed (%s)", sid, reason or "client")

    async def on_join_board(self, sid: str, data: Any):
        board_id_raw = _board_id_from(data)
        user_id = self.hub.registry.identity_of(sid)
        if user_id is None:
            return

        try:
            room = await self.hub.gate.authorize(user_id, board_id_raw)
        except RoomRejectedError as exc:
            await self.emit(EVENT_ERROR, exc.as_payload(board_id_raw), to=sid)
            return
        except Exception:
            logger.exception("Error authorizing %s for board %r", sid, board_id_raw)
            await self.emit(
                EVENT_ERROR,
                {
                    "boardId": board_id_raw,
                    "reason": "server_error",
                    "message": "Could not join board",
                },
                to=sid,
            )
            return

        # The lookup above may have outlived the connection.
        if not self.hub.registry.join_room(sid, room):
            logger.info("Connection %s went away before joining %s", sid, room)
            return

        logger.info("User %s joined %s on %s", user_id, room, sid)
        await self.emit(EVENT_JOINED, {"boardId": board_id_raw}, to=sid)

    async def on_leave_board(self, sid: str, data: Any):
        board_id_raw = _board_id_from(data)
        board_id = parse_board_id(board_id_raw)
        if board_id is None:
            exc = InvalidIdError("Invalid board ID")
            await self.emit(EVENT_ERROR, exc.as_payload(board_id_raw), to=sid)
            return
        self.hub.registry.leave_room(sid, room_for_board(board_id))
        await self.emit(EVENT_LEFT, {"boardId": board_id_raw}, to=sid)


def create_realtime_server(**server_kwargs: Any) -> socketio.AsyncServer:
    """Build the Socket.IO server, create the hub around it and install it.

    The hub also triggers every board event on Pusher when it is configured.
    """

    origins = settings.REALTIME_CORS_ALLOWED_ORIGINS
    server_kwargs.setdefault(
        "cors_allowed_origins", "*" if list(origins) == ["*"] else list(origins)
    )
    sio = socketio.AsyncServer(
        async_mode="asgi",
        logger=False,
        engineio_logger=False,
        # One event at a time per connection, in arrival order.
        async_handlers=False,
        **server_kwargs,
    )
    hub = install_hub(
        RealtimeHub.create(SocketIODelivery(sio), channels=configured_channels())
    )
    sio.register_namespace(BoardNamespace(hub))
    return sio
