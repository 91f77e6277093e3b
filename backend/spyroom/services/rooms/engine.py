"""Rule logic for a round: setting validation, role assignment, outcomes.

Nothing in here touches a Room's membership or lifecycle. Functions take
plain values and return plain values so they can be tested without a room
or an app.
"""
import random
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from spyroom.errors import InvalidSetting, NotEnoughPlayers
from .words import WordPair, choose_word_pair

MAX_WORD_LENGTH = 64
MAX_WINNER_LENGTH = 32


class Role(str, Enum):
    CIVILIAN = 'civilian'
    BLANK = 'blank'
    SPY = 'spy'


def validate_count(value, name: str) -> int:
    # bool is an int subclass; True is not a count
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidSetting(f'{name} must be a whole number', setting=name, value=value)
    if value < 0:
        raise InvalidSetting(f'{name} cannot be negative', setting=name, value=value)
    return value


def validate_flag(value, name: str) -> bool:
    if not isinstance(value, bool):
        raise InvalidSetting(f'{name} must be true or false', setting=name, value=value)
    return value


def validate_start(blank_count: int, spy_count: int, member_count: int) -> None:
    """At least one civilian seat must remain after blanks and spies."""
    if blank_count + spy_count >= member_count:
        raise NotEnoughPlayers(
            blankCount=blank_count,
            spyCount=spy_count,
            memberCount=member_count,
        )


def resolve_word_pair(civilian=None, spy=None, rng: Optional[random.Random] = None) -> WordPair:
    """Validate a host-supplied pair, or draw one from the bank when none is given."""
    if civilian is None and spy is None:
        return choose_word_pair(rng)
    words = []
    for label, word in (('correct', civilian), ('wrong', spy)):
        if not isinstance(word, str) or not word.strip():
            raise InvalidSetting(f'The {label} word is required', setting=label)
        word = word.strip()
        if len(word) > MAX_WORD_LENGTH:
            raise InvalidSetting(f'The {label} word is too long', setting=label)
        words.append(word)
    if words[0].casefold() == words[1].casefold():
        raise InvalidSetting('The two words must differ', setting='words')
    return WordPair(*words)


def build_roles(blank_count: int, spy_count: int, member_count: int,
                is_random: bool, rng: Optional[random.Random] = None) -> List[Role]:
    """Return one role per seat, in seat order.

    Spies come first, then blanks, then civilians. When ``is_random`` is set
    the sequence is shuffled uniformly before it is paired with the seats.
    """
    validate_start(blank_count, spy_count, member_count)
    roles = [Role.SPY] * spy_count + [Role.BLANK] * blank_count
    roles += [Role.CIVILIAN] * (member_count - len(roles))
    if is_random:
        (rng or random.Random()).shuffle(roles)
    return roles


def word_for(role: Role, word_pair: WordPair) -> str:
    if role == Role.SPY:
        return word_pair.spy
    return word_pair.civilian


class AssignmentResult:
    """Roles handed out at game start.

    Only a per-player projection is exposed. Callers deliver each projection
    to its own player; there is deliberately no accessor for the whole map.
    """

    def __init__(self, roles_by_player: Dict[str, Role], word_pair: WordPair):
        self._roles = dict(roles_by_player)
        self._word_pair = word_pair

    @property
    def player_ids(self) -> List[str]:
        return list(self._roles)

    def for_player(self, player_id: str) -> dict:
        role = self._roles[player_id]
        return {'playerId': player_id, 'word': word_for(role, self._word_pair)}

    def count(self, role: Role) -> int:
        return sum(1 for r in self._roles.values() if r == role)

    def __len__(self):
        return len(self._roles)


def suggest_winner(players: Iterable) -> Optional[str]:
    """Advisory verdict from the current report flags.

    ``civilian`` once every spy is reported, ``spy`` once unreported spies
    are at least as many as the unreported rest, otherwise None.
    """
    assigned = [p for p in players if p.role is not None]
    spy_total = sum(1 for p in assigned if p.role == Role.SPY)
    spies_left = sum(1 for p in assigned if p.role == Role.SPY and not p.reported)
    others_left = sum(1 for p in assigned if p.role != Role.SPY and not p.reported)
    if spy_total == 0:
        return None
    if spies_left == 0:
        return Role.CIVILIAN.value
    if spies_left >= others_left:
        return Role.SPY.value
    return None


def validate_winner(label) -> Optional[str]:
    """None or a blank label ends the round with no declared winner."""
    if label is None or (isinstance(label, str) and not label.strip()):
        return None
    if not isinstance(label, str):
        raise InvalidSetting('Winner must be a label', setting='winner')
    label = label.strip()
    if len(label) > MAX_WINNER_LENGTH:
        raise InvalidSetting('Winner label is too long', setting='winner')
    return label


def role_counts(roles: Sequence[Role]) -> Dict[str, int]:
    counts = {r.value: 0 for r in Role}
    for r in roles:
        counts[r.value] += 1
    return counts
