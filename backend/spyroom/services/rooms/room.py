import logging
import random
import threading
from enum import Enum
from typing import List, Optional

from spyroom.errors import (
    AlreadyMember,
    CannotKickSelf,
    GameAlreadyStarted,
    GameNotInProgress,
    NotHost,
    TargetNotMember,
)
from . import engine, events
from .engine import AssignmentResult, Role
from .events import Outcome
from .words import WordPair

logger = logging.getLogger(__name__)


class RoomState(str, Enum):
    LOBBY = 'lobby'
    IN_PROGRESS = 'in_progress'
    ENDED = 'ended'


class PlayerIdentity:
    """Read-only view of a user, as the engine sees it."""

    __slots__ = ('id', 'username', 'avatar')

    def __init__(self, id: str, username: str, avatar: Optional[str] = None):
        self.id = id
        self.username = username
        self.avatar = avatar

    def to_dict(self):
        return {'id': self.id, 'username': self.username, 'avatar': self.avatar}

    def __repr__(self):
        return f"PlayerIdentity(id={self.id!r}, username={self.username!r})"


class Player:
    def __init__(self, identity: PlayerIdentity, is_host: bool = False):
        self.identity = identity
        self.is_host = is_host
        self.role: Optional[Role] = None
        self.reported = False
        self.connected = True

    @property
    def id(self) -> str:
        return self.identity.id

    def to_dict(self, reveal_role: bool = False):
        data = {
            'id': self.identity.id,
            'username': self.identity.username,
            'avatar': self.identity.avatar,
            'isHost': self.is_host,
            'reported': self.reported,
            'connected': self.connected,
        }
        if reveal_role:
            data['role'] = self.role.value if self.role else None
        return data


class RoomSettings:
    def __init__(self, blank_count: int = 0, spy_count: int = 1, is_random: bool = True):
        self.blank_count = engine.validate_count(blank_count, 'blankCount')
        self.spy_count = engine.validate_count(spy_count, 'spyCount')
        self.is_random = engine.validate_flag(is_random, 'isRandom')

    def to_dict(self):
        return {
            'blankCount': self.blank_count,
            'spyCount': self.spy_count,
            'isRandom': self.is_random,
        }


class Room:
    """One lobby and its round.

    Methods validate everything before touching state, so a raised GameError
    always leaves the room as it was. Callers serialize access through
    ``lock`` (see RoomRegistry.acquire); the methods themselves never block.
    """

    def __init__(self, room_id: str, creator: PlayerIdentity,
                 settings: Optional[RoomSettings] = None,
                 rng: Optional[random.Random] = None):
        self.id = room_id
        self.players: List[Player] = [Player(creator, is_host=True)]
        self.settings = settings or RoomSettings()
        self.state = RoomState.LOBBY
        self.word_pair: Optional[WordPair] = None
        self.winner: Optional[str] = None
        self.lock = threading.RLock()
        self._rng = rng or random.Random()

    # -- lookups ---------------------------------------------------------

    @property
    def host(self) -> Optional[Player]:
        for p in self.players:
            if p.is_host:
                return p
        return None

    @property
    def host_id(self) -> Optional[str]:
        host = self.host
        return host.id if host else None

    @property
    def is_empty(self) -> bool:
        return not self.players

    def member(self, identity_id) -> Optional[Player]:
        for p in self.players:
            if p.id == identity_id:
                return p
        return None

    def _require_member(self, identity_id) -> Player:
        player = self.member(identity_id)
        if player is None:
            raise TargetNotMember(playerId=identity_id)
        return player

    def _require_host(self, identity: PlayerIdentity) -> Player:
        host = self.host
        if host is None or host.id != identity.id:
            raise NotHost()
        return host

    def _require_lobby(self) -> None:
        if self.state != RoomState.LOBBY:
            raise GameAlreadyStarted(state=self.state.value)

    def _require_in_progress(self) -> None:
        if self.state != RoomState.IN_PROGRESS:
            raise GameNotInProgress(state=self.state.value)

    def _outcome(self, value=None) -> Outcome:
        return Outcome(self.id, value=value)

    # -- membership ------------------------------------------------------

    def join(self, identity: PlayerIdentity) -> Outcome:
        self._require_lobby()
        if self.member(identity.id) is not None:
            raise AlreadyMember(roomId=self.id)
        player = Player(identity)
        self.players.append(player)
        logger.info(f"[room-join] room={self.id} player={identity.id} members={len(self.players)}")
        outcome = self._outcome(player)
        outcome.broadcast(events.PLAYER_JOINED, player.to_dict())
        outcome.direct(identity.id, events.ROOM_SNAPSHOT, self.view_for(identity.id))
        return outcome

    def leave(self, identity: PlayerIdentity) -> Outcome:
        """Remove a player. Leaving a room you are not in does nothing."""
        player = self.member(identity.id)
        if player is None:
            return self._outcome()
        return self._remove(player, events.PLAYER_LEFT)

    def kick(self, acting: PlayerIdentity, target_id) -> Outcome:
        self._require_host(acting)
        if target_id == acting.id:
            raise CannotKickSelf()
        target = self._require_member(target_id)
        logger.info(f"[room-kick] room={self.id} host={acting.id} target={target_id}")
        return self._remove(target, events.PLAYER_KICKED)

    def _remove(self, player: Player, event: str) -> Outcome:
        self.players.remove(player)
        new_host = None
        if player.is_host and self.players:
            # oldest remaining seat inherits the room
            self.players[0].is_host = True
            new_host = self.players[0].id
        player.is_host = False
        logger.info(
            f"[room-leave] room={self.id} player={player.id} members={len(self.players)} new_host={new_host}"
        )
        outcome = self._outcome(player)
        if event == events.PLAYER_KICKED:
            outcome.broadcast(event, player.id)
        else:
            outcome.broadcast(event, {'roomId': self.id, 'playerId': player.id, 'hostId': self.host_id})
        if new_host is not None:
            outcome.broadcast(events.HOST_CHANGED, new_host)
        return outcome

    def update_host(self, acting: PlayerIdentity, new_host_id) -> Outcome:
        current = self._require_host(acting)
        target = self._require_member(new_host_id)
        if target is current:
            return self._outcome(target)
        current.is_host = False
        target.is_host = True
        logger.info(f"[room-host] room={self.id} from={current.id} to={target.id}")
        return self._outcome(target).broadcast(events.HOST_CHANGED, target.id)

    # -- settings --------------------------------------------------------

    def _apply_setting(self, attr: str, value) -> Outcome:
        setattr(self.settings, attr, value)
        return self._outcome(self.settings).broadcast(events.SETTINGS_CHANGED, self.settings.to_dict())

    def update_blank_count(self, acting: PlayerIdentity, count) -> Outcome:
        self._require_host(acting)
        self._require_lobby()
        return self._apply_setting('blank_count', engine.validate_count(count, 'blankCount'))

    def update_spy_count(self, acting: PlayerIdentity, count) -> Outcome:
        self._require_host(acting)
        self._require_lobby()
        return self._apply_setting('spy_count', engine.validate_count(count, 'spyCount'))

    def update_is_random(self, acting: PlayerIdentity, is_random) -> Outcome:
        self._require_host(acting)
        self._require_lobby()
        return self._apply_setting('is_random', engine.validate_flag(is_random, 'isRandom'))

    # -- round -----------------------------------------------------------

    def start_game(self, acting: PlayerIdentity, word_pair: Optional[WordPair] = None) -> Outcome:
        """Deal roles and move to ``in_progress``.

        The returned outcome carries one public ``/game/start`` broadcast and
        one private word per player; ``value`` is the AssignmentResult.
        """
        self._require_host(acting)
        self._require_lobby()
        s = self.settings
        engine.validate_start(s.blank_count, s.spy_count, len(self.players))
        if word_pair is None:
            word_pair = engine.resolve_word_pair(rng=self._rng)
        else:
            word_pair = engine.resolve_word_pair(word_pair[0], word_pair[1])
        roles = engine.build_roles(s.blank_count, s.spy_count, len(self.players), s.is_random, self._rng)

        for player, role in zip(self.players, roles):
            player.role = role
            player.reported = False
        self.word_pair = word_pair
        self.winner = None
        self.state = RoomState.IN_PROGRESS

        assignment = AssignmentResult({p.id: p.role for p in self.players}, word_pair)
        logger.info(
            f"[game-start] room={self.id} players={len(assignment)} "
            f"roles={engine.role_counts(roles)} random={s.is_random}"
        )
        outcome = self._outcome(assignment)
        outcome.broadcast(events.GAME_STARTED, self.to_dict())
        for player_id in assignment.player_ids:
            outcome.direct(player_id, events.WORD_ASSIGNED, assignment.for_player(player_id))
        return outcome

    def projection_for(self, player_id) -> Optional[dict]:
        """The word one player may see, or None before any deal."""
        player = self.member(player_id)
        if player is None or player.role is None or self.word_pair is None:
            return None
        return {'playerId': player.id, 'word': engine.word_for(player.role, self.word_pair)}

    def report(self, reporter: PlayerIdentity, target_id) -> Outcome:
        self._require_in_progress()
        target = self._require_member(target_id)
        already = target.reported
        target.reported = True
        state = self.report_state(target.id)
        outcome = self._outcome(state)
        if not already:
            logger.info(f"[game-report] room={self.id} by={reporter.id} target={target.id}")
            outcome.broadcast(events.PLAYER_REPORTED, state)
        return outcome

    def report_state(self, target_id=None) -> dict:
        return {
            'playerId': target_id,
            'reported': True,
            'reportedIds': [p.id for p in self.players if p.reported],
            'suggestedWinner': engine.suggest_winner(self.players),
        }

    def end_game(self, winner) -> Outcome:
        self._require_in_progress()
        winner = engine.validate_winner(winner)
        self.state = RoomState.ENDED
        self.winner = winner
        logger.info(f"[game-end] room={self.id} winner={winner}")
        payload = self.to_dict()
        payload['words'] = {'civilian': self.word_pair.civilian, 'spy': self.word_pair.spy}
        return self._outcome(winner).broadcast(events.GAME_ENDED, payload)

    # -- identity & presence ----------------------------------------------

    def refresh_identity(self, identity: PlayerIdentity, field: str) -> Outcome:
        """Swap in the latest identity for a seated player and announce ``field``."""
        player = self.member(identity.id)
        if player is None:
            return self._outcome()
        player.identity = identity
        event = events.PLAYER_RENAMED if field == 'username' else events.PLAYER_AVATAR_CHANGED
        return self._outcome(player).broadcast(event, {'id': identity.id, field: getattr(identity, field)})

    def mark_connected(self, identity_id, connected: bool) -> Outcome:
        player = self.member(identity_id)
        if player is None or player.connected == connected:
            return self._outcome()
        player.connected = connected
        return self._outcome(player).broadcast(
            events.PLAYER_PRESENCE, {'id': identity_id, 'connected': connected}
        )

    # -- snapshots ---------------------------------------------------------

    def to_dict(self):
        reveal = self.state == RoomState.ENDED
        return {
            'id': self.id,
            'state': self.state.value,
            'hostId': self.host_id,
            'settings': self.settings.to_dict(),
            'players': [p.to_dict(reveal_role=reveal) for p in self.players],
            'winner': self.winner,
        }

    def view_for(self, identity_id):
        data = self.to_dict()
        if self.state == RoomState.IN_PROGRESS:
            own = self.projection_for(identity_id)
            data['word'] = own['word'] if own else None
        return data
