import logging
import random
import string
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from spyroom.errors import GameError, IdentityAlreadyInRoom, RoomNotFound
from .room import PlayerIdentity, Room, RoomSettings

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits


class RoomRegistry:
    """In-memory map of room code -> Room.

    The registry lock only guards the map itself. Everything that changes a
    room goes through ``acquire`` which holds that room's own lock, so work
    on different rooms never contends. Lock order is room, then registry.
    """

    def __init__(self, code_length: int = 4, default_settings: Optional[dict] = None,
                 rng: Optional[random.Random] = None):
        self.code_length = code_length
        self.default_settings = dict(default_settings or {})
        self._rng = rng or random.Random()
        self._rooms: Dict[str, Room] = {}
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._rooms)

    def __contains__(self, room_id):
        with self._lock:
            return self._normalize(room_id) in self._rooms

    @staticmethod
    def _normalize(room_id) -> str:
        return str(room_id or '').strip().upper()

    def _generate_code(self) -> str:
        # caller holds self._lock
        while True:
            code = ''.join(self._rng.choices(CODE_ALPHABET, k=self.code_length))
            if code not in self._rooms:
                return code

    def seated_room(self, identity_id, bound_room_id) -> Optional[Room]:
        """The room ``identity_id`` is bound to and still seated in, if any."""
        if not bound_room_id:
            return None
        with self._lock:
            room = self._rooms.get(self._normalize(bound_room_id))
        if room is None or room.member(identity_id) is None:
            return None
        return room

    def ensure_unseated(self, identity_id, bound_room_id) -> None:
        room = self.seated_room(identity_id, bound_room_id)
        if room is not None:
            raise IdentityAlreadyInRoom(roomId=room.id)

    def create_room(self, creator: PlayerIdentity, bound_room_id=None) -> Room:
        self.ensure_unseated(creator.id, bound_room_id)
        settings = RoomSettings(**self.default_settings)
        with self._lock:
            code = self._generate_code()
            room = Room(code, creator, settings=settings, rng=random.Random(self._rng.random()))
            self._rooms[code] = room
            total = len(self._rooms)
        logger.info(f"[room-create] room={code} host={creator.id} rooms={total}")
        return room

    def get_room(self, room_id) -> Room:
        with self._lock:
            room = self._rooms.get(self._normalize(room_id))
        if room is None:
            raise RoomNotFound(roomId=room_id)
        return room

    def destroy_room(self, room_id) -> bool:
        """Drop a room. Returns False when it was already gone."""
        with self._lock:
            room = self._rooms.pop(self._normalize(room_id), None)
            total = len(self._rooms)
        if room is None:
            return False
        logger.info(f"[room-destroy] room={room.id} rooms={total}")
        return True

    @contextmanager
    def acquire(self, room_id) -> Iterator[Room]:
        """Hold a room exclusively for one mutation.

        An empty room is destroyed on the way out. Any exception that is not
        a GameError retires the room before propagating.
        """
        room = self.get_room(room_id)
        with room.lock:
            with self._lock:
                registered = self._rooms.get(room.id) is room
            if not registered:
                raise RoomNotFound(roomId=room_id)
            try:
                yield room
            except GameError:
                raise
            except Exception:
                logger.exception(f"[room-fault] room={room.id} retired after internal error")
                self.destroy_room(room.id)
                raise
            if room.is_empty:
                self.destroy_room(room.id)
