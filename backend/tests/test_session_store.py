import random
import threading
import time

import pytest

from spyroom.errors import IdentityAlreadyInRoom
from spyroom.services.rooms import RoomRegistry
from spyroom.session_store import SessionStore, seat_creator, seat_joiner


@pytest.fixture()
def rooms():
    return RoomRegistry(code_length=4, rng=random.Random(2))


@pytest.fixture()
def sessions():
    return SessionStore()


def _run_concurrently(*targets):
    errors = []

    def _wrap(fn):
        try:
            fn()
        except IdentityAlreadyInRoom as exc:
            errors.append(exc)

    threads = [threading.Thread(target=_wrap, args=(fn,)) for fn in targets]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return errors


def _seated_rooms(rooms, identity_id, codes):
    return [code for code in codes if code in rooms and rooms.get_room(code).member(identity_id)]


def test_concurrent_creates_seat_identity_once(rooms, sessions, identities):
    alice = identities[0]
    created = []

    def _seated(room):
        created.append(room.id)
        # sleep between the seat check and the binding
        time.sleep(0.05)
        sessions.bind_room(alice.id, room.id)

    def _create():
        seat_creator(rooms, sessions, alice, _seated)

    errors = _run_concurrently(_create, _create, _create)
    assert len(created) == 1
    assert len(errors) == 2
    assert _seated_rooms(rooms, alice.id, created) == [sessions.current_room_id(alice.id)]


def test_create_racing_join_seats_identity_once(rooms, sessions, identities):
    alice, bob = identities[:2]
    other = seat_creator(rooms, sessions, bob, lambda room: sessions.bind_room(bob.id, room.id))
    codes = [other.id]

    def _seated(room):
        codes.append(room.id)
        time.sleep(0.05)
        sessions.bind_room(alice.id, room.id)

    def _joined(room, outcome):
        time.sleep(0.05)
        sessions.bind_room(alice.id, room.id)

    errors = _run_concurrently(
        lambda: seat_creator(rooms, sessions, alice, _seated),
        lambda: seat_joiner(rooms, sessions, alice, other.id, _joined),
    )
    assert len(errors) == 1
    seated = _seated_rooms(rooms, alice.id, codes)
    assert seated == [sessions.current_room_id(alice.id)]


def test_claims_are_per_identity(sessions):
    entered = threading.Event()
    with sessions.claim('id-alice'):
        def _other():
            with sessions.claim('id-bob'):
                entered.set()
        t = threading.Thread(target=_other)
        t.start()
        assert entered.wait(1.0)
        t.join()


def test_unbind_only_clears_matching_room(sessions):
    sessions.bind_room('id-alice', 'AAAA')
    assert sessions.unbind_room('id-alice', 'BBBB') is False
    assert sessions.current_room_id('id-alice') == 'AAAA'
    assert sessions.unbind_room('id-alice') is True
    assert sessions.current_room_id('id-alice') is None


def test_disconnect_counts_remaining_sockets(sessions):
    sessions.connect('sid-1', 'id-alice')
    sessions.connect('sid-2', 'id-alice')
    assert sessions.connections_of('id-alice') == ['sid-1', 'sid-2']
    assert sessions.disconnect('sid-1') == ('id-alice', 1)
    assert sessions.disconnect('sid-2') == ('id-alice', 0)
    assert sessions.disconnect('sid-2') == (None, 0)
