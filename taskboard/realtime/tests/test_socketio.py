import asyncio
import uuid
from unittest import mock

import pytest
import socketio
from django.test import override_settings
from socketio import exceptions as sio_exceptions

from taskboard.boards.membership import BoardAccess
from taskboard.realtime.dispatcher import EventDispatcher
from taskboard.realtime.events import DomainEvent
from taskboard.realtime.exceptions import AuthError
from taskboard.realtime.hub import RealtimeHub
from taskboard.realtime.hub import current_hub
from taskboard.realtime.hub import uninstall_hub
from taskboard.realtime.pusher import PusherChannels
from taskboard.realtime.registry import ConnectionRegistry
from taskboard.realtime.socketio import EVENT_ERROR
from taskboard.realtime.socketio import EVENT_JOINED
from taskboard.realtime.socketio import EVENT_LEFT
from taskboard.realtime.socketio import BoardNamespace
from taskboard.realtime.socketio import SocketIODelivery
from taskboard.realtime.socketio import _extract_token
from taskboard.realtime.socketio import create_realtime_server
from taskboard.realtime.testing import RecordingDelivery

BOARD_ID = uuid.UUID("44444444-4444-4444-8444-444444444444")
ROOM = f"board_{BOARD_ID}"
ALICE, BOB, EVE = 1, 2, 3


class StubVerifier:
    tokens = {"alice-token": ALICE, "bob-token": BOB, "eve-token": EVE}

    async def averify(self, token):
        if token == "boom":
            msg = "database unreachable"
            raise RuntimeError(msg)
        if token == "stale":
            raise AuthError("Token is expired", reason="jwt_expired")
        if token not in self.tokens:
            raise AuthError("Invalid token", reason="unauthorized")
        return self.tokens[token]


class StubOracle:
    def __init__(self):
        self.access = BoardAccess(
            board_id=BOARD_ID, owner_id=ALICE, member_ids=frozenset({BOB})
        )
        self.before_answer = None

    def lookup(self, board_id):
        return self.access if board_id == BOARD_ID else None

    async def alookup(self, board_id):
        if self.before_answer is not None:
            self.before_answer()
        return self.lookup(board_id)


@pytest.fixture
def oracle():
    return StubOracle()


@pytest.fixture
def delivery():
    return RecordingDelivery()


@pytest.fixture
def namespace(oracle, delivery):
    hub = RealtimeHub.create(delivery, oracle=oracle, verifier=StubVerifier())
    ns = BoardNamespace(hub)
    ns.emit = mock.AsyncMock()
    return ns


def connect(ns, sid, token):
    environ = {"asgi.scope": {"query_string": f"token={token}".encode()}}
    asyncio.run(ns.on_connect(sid, environ, None))


def test_connect_registers_the_verified_user(namespace):
    connect(namespace, "s1", "alice-token")

    assert namespace.hub.registry.identity_of("s1") == ALICE


@pytest.mark.parametrize(
    ("token", "reason"),
    [("", "unauthorized"), ("forged", "unauthorized"), ("stale", "jwt_expired")],
)
def test_connect_refused_with_reason(namespace, token, reason):
    with pytest.raises(sio_exceptions.ConnectionRefusedError) as exc_info:
        connect(namespace, "s1", token)

    assert exc_info.value.error_args == {"message": reason}
    assert not namespace.hub.registry.is_registered("s1")


def test_connect_internal_failure_is_server_error(namespace):
    with pytest.raises(sio_exceptions.ConnectionRefusedError) as exc_info:
        connect(namespace, "s1", "boom")

    assert exc_info.value.error_args == {"message": "server_error"}


def test_join_as_member_enters_room(namespace):
    connect(namespace, "s1", "bob-token")

    asyncio.run(namespace.on_join_board("s1", {"boardId": str(BOARD_ID)}))

    assert namespace.hub.registry.members_of(ROOM) == {"s1"}
    namespace.emit.assert_awaited_once_with(
        EVENT_JOINED, {"boardId": str(BOARD_ID)}, to="s1"
    )


def test_join_accepts_bare_board_id(namespace):
    connect(namespace, "s1", "alice-token")

    asyncio.run(namespace.on_join_board("s1", BOARD_ID.hex))

    assert namespace.hub.registry.joined_rooms_of("s1") == {ROOM}


def test_join_as_stranger_is_rejected(namespace):
    connect(namespace, "s1", "eve-token")

    asyncio.run(namespace.on_join_board("s1", {"boardId": str(BOARD_ID)}))

    assert namespace.hub.registry.members_of(ROOM) == frozenset()
    namespace.emit.assert_awaited_once_with(
        EVENT_ERROR,
        {
            "boardId": str(BOARD_ID),
            "reason": "forbidden",
            "message": "Access denied: You are not a member of this board",
        },
        to="s1",
    )


@pytest.mark.parametrize(
    ("data", "reason"),
    [
        ({"boardId": "12"}, "invalid_id"),
        ({}, "invalid_id"),
        ({"boardId": str(uuid.uuid4())}, "not_found"),
    ],
)
def test_join_rejections_report_reason(namespace, data, reason):
    connect(namespace, "s1", "alice-token")

    asyncio.run(namespace.on_join_board("s1", data))

    event, payload = namespace.emit.await_args.args
    assert event == EVENT_ERROR
    assert payload["reason"] == reason
    assert namespace.hub.registry.rooms() == frozenset()


def test_join_from_unknown_connection_is_ignored(namespace):
    asyncio.run(namespace.on_join_board("ghost", {"boardId": str(BOARD_ID)}))

    namespace.emit.assert_not_awaited()
    assert namespace.hub.registry.rooms() == frozenset()


def test_disconnect_during_join_leaves_no_trace(namespace, oracle):
    connect(namespace, "s1", "alice-token")
    oracle.before_answer = lambda: namespace.hub.registry.unregister("s1")

    asyncio.run(namespace.on_join_board("s1", {"boardId": str(BOARD_ID)}))

    assert namespace.hub.registry.rooms() == frozenset()
    namespace.emit.assert_not_awaited()


def test_revoked_member_cannot_rejoin(namespace, oracle):
    connect(namespace, "s1", "bob-token")
    asyncio.run(namespace.on_join_board("s1", {"boardId": str(BOARD_ID)}))
    asyncio.run(namespace.on_leave_board("s1", {"boardId": str(BOARD_ID)}))

    oracle.access = BoardAccess(
        board_id=BOARD_ID, owner_id=ALICE, member_ids=frozenset()
    )
    asyncio.run(namespace.on_join_board("s1", {"boardId": str(BOARD_ID)}))

    event, payload = namespace.emit.await_args.args
    assert (event, payload["reason"]) == (EVENT_ERROR, "forbidden")
    assert namespace.hub.registry.joined_rooms_of("s1") == frozenset()


def test_leave_board(namespace):
    connect(namespace, "s1", "alice-token")
    asyncio.run(namespace.on_join_board("s1", {"boardId": str(BOARD_ID)}))

    asyncio.run(namespace.on_leave_board("s1", {"boardId": str(BOARD_ID)}))

    assert namespace.hub.registry.rooms() == frozenset()
    namespace.emit.assert_awaited_with(EVENT_LEFT, {"boardId": str(BOARD_ID)}, to="s1")


def test_leave_with_invalid_id_reports_error(namespace):
    connect(namespace, "s1", "alice-token")

    asyncio.run(namespace.on_leave_board("s1", {"boardId": "nope"}))

    event, payload = namespace.emit.await_args.args
    assert (event, payload["reason"]) == (EVENT_ERROR, "invalid_id")


def test_disconnect_stops_delivery(namespace, delivery):
    connect(namespace, "s1", "alice-token")
    connect(namespace, "s2", "bob-token")
    for sid in ("s1", "s2"):
        asyncio.run(namespace.on_join_board(sid, {"boardId": str(BOARD_ID)}))

    asyncio.run(namespace.on_disconnect("s1", "transport close"))
    namespace.hub.dispatcher.emit(BOARD_ID, DomainEvent.task_deleted(BOARD_ID, "t"))

    assert delivery.batches == [(["s2"], "task:deleted", {"taskId": "t"})]


@pytest.mark.parametrize(
    ("environ", "auth", "expected"),
    [
        ({"asgi.scope": {"query_string": b"token=q1&EIO=4"}}, None, "q1"),
        ({"QUERY_STRING": "token=q2"}, None, "q2"),
        ({"asgi.scope": {"query_string": b""}}, {"token": "a1"}, "a1"),
        ({"HTTP_AUTHORIZATION": "Bearer h1"}, None, "h1"),
        ({"HTTP_AUTHORIZATION": "Basic h1"}, None, None),
        ({}, {"token": ""}, None),
    ],
)
def test_extract_token(environ, auth, expected):
    assert _extract_token(environ, auth) == expected


class FakeServer:
    def __init__(self, failing=()):
        self.sent = []
        self.failing = set(failing)

    async def emit(self, event, data, to=None, namespace=None):
        await asyncio.sleep(0)
        if to in self.failing:
            msg = f"transport gone for {to}"
            raise ConnectionResetError(msg)
        self.sent.append((to, event, data))


def test_delivery_from_sync_code_sends_in_order():
    server = FakeServer()
    deliver = SocketIODelivery(server)

    deliver(["s1", "s2"], "task:created", {"id": "t"})
    deliver(["s1"], "task:deleted", {"taskId": "t"})

    assert server.sent == [
        ("s1", "task:created", {"id": "t"}),
        ("s2", "task:created", {"id": "t"}),
        ("s1", "task:deleted", {"taskId": "t"}),
    ]


def test_delivery_from_the_event_loop_keeps_order():
    server = FakeServer()
    deliver = SocketIODelivery(server)

    async def scenario():
        deliver(["s1"], "list:created", {"id": "l"})
        deliver(["s1"], "list:updated", {"id": "l"})
        deliver(["s1"], "list:deleted", {"listId": "l"})
        await deliver.drain()

    asyncio.run(scenario())

    assert [event for _, event, _ in server.sent] == [
        "list:created",
        "list:updated",
        "list:deleted",
    ]


def test_one_failing_connection_does_not_drop_the_rest():
    server = FakeServer(failing={"a"})
    registry = ConnectionRegistry()
    for sid, user_id in (("a", ALICE), ("b", BOB), ("c", EVE)):
        registry.register(sid, user_id)
        registry.join_room(sid, ROOM)
    dispatcher = EventDispatcher(registry, SocketIODelivery(server))

    with mock.patch("taskboard.realtime.socketio.logger") as log:
        dispatcher.emit(BOARD_ID, DomainEvent.task_deleted(BOARD_ID, "t"))

    assert [to for to, _, _ in server.sent] == ["b", "c"]
    log.exception.assert_called_once()
    assert log.exception.call_args.args[1:] == ("task:deleted", "a")


def test_failing_connection_on_the_event_loop_is_logged():
    server = FakeServer(failing={"a"})
    deliver = SocketIODelivery(server)
    loop_errors = []

    async def scenario():
        asyncio.get_running_loop().set_exception_handler(
            lambda loop, context: loop_errors.append(context["message"])
        )
        deliver(["a", "b"], "task:created", {"id": "t"})
        await deliver.drain()

    with mock.patch("taskboard.realtime.socketio.logger") as log:
        asyncio.run(scenario())

    assert [to for to, _, _ in server.sent] == ["b"]
    log.exception.assert_called_once()
    assert loop_errors == []


def test_scheduled_batch_is_held_until_done_and_errors_are_logged():
    deliver = SocketIODelivery(FakeServer())

    async def broken_send(targets, event, payload):
        await asyncio.sleep(0)
        msg = "lock torn down"
        raise RuntimeError(msg)

    deliver.send = broken_send

    async def scenario():
        deliver(["s1"], "task:created", {"id": "t"})
        assert len(deliver._pending) == 1
        await deliver.drain()

    with mock.patch("taskboard.realtime.socketio.logger") as log:
        asyncio.run(scenario())

    assert deliver._pending == set()
    log.error.assert_called_once()
    assert isinstance(log.error.call_args.kwargs["exc_info"], RuntimeError)


@override_settings(REALTIME_CORS_ALLOWED_ORIGINS=["*"])
def test_create_realtime_server_installs_hub():
    try:
        sio = create_realtime_server()

        assert isinstance(sio, socketio.AsyncServer)
        handler = sio.namespace_handlers["/"]
        assert isinstance(handler, BoardNamespace)
        assert handler.hub is current_hub()
        assert isinstance(handler.hub.channels, PusherChannels)
        assert handler.hub.dispatcher.publish == handler.hub.channels.publish
    finally:
        uninstall_hub()


@override_settings(REALTIME_CORS_ALLOWED_ORIGINS=["*"], PUSHER_SECRET="")
def test_create_realtime_server_without_pusher():
    try:
        sio = create_realtime_server()

        hub = sio.namespace_handlers["/"].hub
        assert hub.channels is None
        assert hub.dispatcher.publish is None
    finally:
        uninstall_hub()
