from dataclasses import dataclass, field
from typing import Any, List, Optional

# Outbound event names, shared with the browser client.
ROOM_CREATED = '/game/create'
PLAYER_JOINED = '/game/join'
ROOM_SNAPSHOT = '/game/join/all'
SETTINGS_CHANGED = '/game/setting'
PLAYER_LEFT = '/game/quit'
HOST_CHANGED = '/game/host'
GAME_STARTED = '/game/start'
WORD_ASSIGNED = '/game/role'
PLAYER_REPORTED = '/game/report'
PLAYER_KICKED = '/game/kick'
GAME_ENDED = '/game/end'
PLAYER_RENAMED = '/player/username'
PLAYER_AVATAR_CHANGED = '/player/avatar'
PLAYER_PRESENCE = '/player/presence'
MESSAGE = '/message'
ERROR = '/error'


@dataclass(frozen=True)
class Outbound:
    """One event to deliver once a mutation has been committed.

    ``recipient`` is None for room-wide fan-out, otherwise the id of the
    only identity that may receive it.
    """
    event: str
    payload: Any = None
    recipient: Optional[str] = None

    @property
    def is_private(self) -> bool:
        return self.recipient is not None


@dataclass
class Outcome:
    """What a room mutation changed, in commit order."""
    room_id: str
    events: List[Outbound] = field(default_factory=list)
    value: Any = None

    def broadcast(self, event: str, payload: Any = None) -> 'Outcome':
        self.events.append(Outbound(event, payload))
        return self

    def direct(self, recipient: str, event: str, payload: Any = None) -> 'Outcome':
        self.events.append(Outbound(event, payload, recipient))
        return self

    @property
    def changed(self) -> bool:
        return bool(self.events)

    def names(self) -> List[str]:
        return [e.event for e in self.events]
