import threading
from contextlib import contextmanager
from typing import Dict, List, Optional, Set, Tuple


class SessionStore:
    """Binds identities to live socket ids and to the room they play in.

    Holds no game state: the room id is only a pointer into the registry
    and may go stale when a room is destroyed.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._rooms: Dict[str, str] = {}
        self._sids: Dict[str, str] = {}
        self._by_identity: Dict[str, Set[str]] = {}
        self._claims: Dict[str, threading.RLock] = {}

    @contextmanager
    def claim(self, identity_id: str):
        """Hold an identity exclusively while it is seated and bound.

        Taken before any room lock, so the order is identity, room, registry.
        """
        with self._lock:
            lock = self._claims.setdefault(identity_id, threading.RLock())
        with lock:
            yield

    def connect(self, sid: str, identity_id: str) -> None:
        with self._lock:
            self._sids[sid] = identity_id
            self._by_identity.setdefault(identity_id, set()).add(sid)

    def disconnect(self, sid: str) -> Tuple[Optional[str], int]:
        """Forget a socket. Returns its identity and how many sockets it still has."""
        with self._lock:
            identity_id = self._sids.pop(sid, None)
            if identity_id is None:
                return None, 0
            sids = self._by_identity.get(identity_id, set())
            sids.discard(sid)
            if not sids:
                self._by_identity.pop(identity_id, None)
            return identity_id, len(sids)

    def connections_of(self, identity_id: str) -> List[str]:
        with self._lock:
            return sorted(self._by_identity.get(identity_id, ()))

    def current_room_id(self, identity_id: str) -> Optional[str]:
        with self._lock:
            return self._rooms.get(identity_id)

    def bind_room(self, identity_id: str, room_id: str) -> None:
        with self._lock:
            self._rooms[identity_id] = room_id

    def unbind_room(self, identity_id: str, room_id: Optional[str] = None) -> bool:
        """Clear the binding; with ``room_id`` only if it still points there."""
        with self._lock:
            current = self._rooms.get(identity_id)
            if current is None or (room_id is not None and current != room_id):
                return False
            del self._rooms[identity_id]
            return True


def seat_creator(registry, sessions, identity, on_seated):
    """Create a room hosted by ``identity`` unless it is seated already.

    ``on_seated(room)`` runs under both the identity claim and the room lock
    and is where the caller binds the identity to the new room.
    """
    with sessions.claim(identity.id):
        room = registry.create_room(identity, bound_room_id=sessions.current_room_id(identity.id))
        with registry.acquire(room.id) as room:
            on_seated(room)
            return room


def seat_joiner(registry, sessions, identity, room_id, on_joined):
    """Seat ``identity`` in ``room_id``; ``on_joined(room, outcome)`` publishes and binds."""
    with sessions.claim(identity.id):
        with registry.acquire(room_id) as room:
            bound = sessions.current_room_id(identity.id)
            if bound != room.id:
                registry.ensure_unseated(identity.id, bound)
            outcome = room.join(identity)
            on_joined(room, outcome)
            return outcome
