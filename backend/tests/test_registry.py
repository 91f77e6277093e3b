import random
import threading

import pytest

from spyroom.errors import IdentityAlreadyInRoom, NotHost, RoomNotFound
from spyroom.services.rooms import RoomRegistry, RoomState


@pytest.fixture()
def rooms():
    return RoomRegistry(code_length=4, default_settings={'spy_count': 1, 'is_random': False},
                        rng=random.Random(1))


def test_create_room_registers_lobby_with_host(rooms, identities):
    room = rooms.create_room(identities[0])
    assert len(room.id) == 4
    assert rooms.get_room(room.id) is room
    assert rooms.get_room(room.id.lower()) is room
    assert room.state == RoomState.LOBBY
    assert room.host_id == identities[0].id
    assert room.settings.is_random is False


def test_codes_are_unique(rooms, identities):
    codes = {rooms.create_room(identities[0]).id for _ in range(50)}
    assert len(codes) == 50


def test_create_room_refuses_seated_identity(rooms, identities):
    room = rooms.create_room(identities[0])
    with pytest.raises(IdentityAlreadyInRoom):
        rooms.create_room(identities[0], bound_room_id=room.id)
    # a stale binding does not block
    rooms.destroy_room(room.id)
    assert rooms.create_room(identities[0], bound_room_id=room.id)


def test_get_missing_room(rooms):
    with pytest.raises(RoomNotFound):
        rooms.get_room('NOPE')


def test_destroy_is_idempotent(rooms, identities):
    room = rooms.create_room(identities[0])
    assert rooms.destroy_room(room.id) is True
    assert rooms.destroy_room(room.id) is False
    assert room.id not in rooms


def test_last_leave_destroys_room(rooms, identities):
    room = rooms.create_room(identities[0])
    with rooms.acquire(room.id) as r:
        r.join(identities[1])
    with rooms.acquire(room.id) as r:
        r.leave(identities[0])
    assert room.id in rooms
    with rooms.acquire(room.id) as r:
        r.leave(identities[1])
    with pytest.raises(RoomNotFound):
        rooms.get_room(room.id)


def test_game_error_keeps_room(rooms, identities):
    room = rooms.create_room(identities[0])
    with pytest.raises(NotHost):
        with rooms.acquire(room.id) as r:
            r.update_spy_count(identities[1], 2)
    assert room.id in rooms


def test_unexpected_error_retires_only_that_room(rooms, identities):
    broken = rooms.create_room(identities[0])
    healthy = rooms.create_room(identities[1])
    with pytest.raises(ZeroDivisionError):
        with rooms.acquire(broken.id):
            1 / 0
    assert broken.id not in rooms
    assert rooms.get_room(healthy.id) is healthy


def test_acquire_destroyed_room_fails(rooms, identities):
    room = rooms.create_room(identities[0])
    rooms.destroy_room(room.id)
    with pytest.raises(RoomNotFound):
        with rooms.acquire(room.id):
            pass


def test_concurrent_joins_are_serialized(rooms, identities):
    room = rooms.create_room(identities[0])
    errors = []

    def _join(identity):
        try:
            with rooms.acquire(room.id) as r:
                r.join(identity)
        except Exception as exc:
            errors.append(exc)

    # each identity joins twice; exactly one of each pair must win
    threads = [threading.Thread(target=_join, args=(i,)) for i in identities[1:] * 2]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert sorted(p.id for p in room.players) == sorted(i.id for i in identities)
    assert len(errors) == len(identities) - 1
    assert len([p for p in room.players if p.is_host]) == 1
