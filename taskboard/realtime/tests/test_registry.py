import random

import pytest

from taskboard.realtime.exceptions import RegistryError
from taskboard.realtime.registry import ConnectionRegistry

ROOM_A = "board_00000000-0000-0000-0000-00000000000a"
ROOM_B = "board_00000000-0000-0000-0000-00000000000b"


def assert_consistent(registry: ConnectionRegistry) -> None:
    # Every room lists exactly the connections that list the room.
    for room in registry.rooms():
        members = registry.members_of(room)
        assert members, f"empty room {room} was kept"
        for conn_id in members:
            assert room in registry.joined_rooms_of(conn_id)
    for conn_id in list(registry._connections):  # noqa: SLF001
        for room in registry.joined_rooms_of(conn_id):
            assert conn_id in registry.members_of(room)


def test_register_and_identity():
    registry = ConnectionRegistry()
    registry.register("c1", 7)

    assert registry.identity_of("c1") == 7
    assert registry.is_registered("c1")
    assert registry.joined_rooms_of("c1") == frozenset()
    assert len(registry) == 1


def test_register_twice_is_rejected():
    registry = ConnectionRegistry()
    registry.register("c1", 7)

    with pytest.raises(RegistryError):
        registry.register("c1", 8)
    assert registry.identity_of("c1") == 7


def test_join_is_idempotent():
    registry = ConnectionRegistry()
    registry.register("c1", 1)

    assert registry.join_room("c1", ROOM_A)
    assert registry.join_room("c1", ROOM_A)

    assert registry.members_of(ROOM_A) == {"c1"}
    assert registry.joined_rooms_of("c1") == {ROOM_A}


def test_join_for_unknown_connection_is_refused():
    registry = ConnectionRegistry()

    assert registry.join_room("ghost", ROOM_A) is False
    assert registry.members_of(ROOM_A) == frozenset()
    assert registry.rooms() == frozenset()


def test_leave_room_drops_empty_room():
    registry = ConnectionRegistry()
    registry.register("c1", 1)
    registry.register("c2", 2)
    registry.join_room("c1", ROOM_A)
    registry.join_room("c2", ROOM_A)

    registry.leave_room("c1", ROOM_A)
    assert registry.members_of(ROOM_A) == {"c2"}

    registry.leave_room("c2", ROOM_A)
    assert ROOM_A not in registry.rooms()


def test_leave_room_not_joined_is_noop():
    registry = ConnectionRegistry()
    registry.register("c1", 1)
    registry.join_room("c1", ROOM_A)

    registry.leave_room("c1", ROOM_B)
    registry.leave_room("ghost", ROOM_A)

    assert registry.members_of(ROOM_A) == {"c1"}


def test_unregister_purges_every_room():
    registry = ConnectionRegistry()
    registry.register("c1", 1)
    registry.register("c2", 2)
    registry.join_room("c1", ROOM_A)
    registry.join_room("c1", ROOM_B)
    registry.join_room("c2", ROOM_B)

    assert registry.unregister("c1") is True

    assert not registry.is_registered("c1")
    assert registry.identity_of("c1") is None
    assert ROOM_A not in registry.rooms()
    assert registry.members_of(ROOM_B) == {"c2"}
    assert_consistent(registry)


def test_unregister_unknown_is_noop():
    registry = ConnectionRegistry()
    assert registry.unregister("ghost") is False


def test_members_of_returns_snapshot():
    registry = ConnectionRegistry()
    registry.register("c1", 1)
    registry.join_room("c1", ROOM_A)

    snapshot = registry.members_of(ROOM_A)
    registry.unregister("c1")

    assert snapshot == {"c1"}
    assert registry.members_of(ROOM_A) == frozenset()


def test_random_operations_keep_maps_in_lockstep():
    rng = random.Random(1234)
    registry = ConnectionRegistry()
    conns = [f"c{i}" for i in range(6)]
    rooms = [ROOM_A, ROOM_B, "board_00000000-0000-0000-0000-00000000000c"]

    for _ in range(500):
        conn_id = rng.choice(conns)
        op = rng.choice(["register", "unregister", "join", "leave"])
        if op == "register":
            if not registry.is_registered(conn_id):
                registry.register(conn_id, rng.randint(1, 3))
        elif op == "unregister":
            registry.unregister(conn_id)
        elif op == "join":
            registry.join_room(conn_id, rng.choice(rooms))
        else:
            registry.leave_room(conn_id, rng.choice(rooms))
        assert_consistent(registry)


def test_evict_user_removes_only_that_users_connections():
    registry = ConnectionRegistry()
    registry.register("c1", 1)
    registry.register("c1b", 1)
    registry.register("c2", 2)
    for conn_id in ("c1", "c1b", "c2"):
        registry.join_room(conn_id, ROOM_A)
    registry.join_room("c1", ROOM_B)

    evicted = registry.evict_user(ROOM_A, 1)

    assert sorted(evicted) == ["c1", "c1b"]
    assert registry.members_of(ROOM_A) == {"c2"}
    assert registry.joined_rooms_of("c1") == {ROOM_B}
    assert registry.is_registered("c1b")
    assert_consistent(registry)
