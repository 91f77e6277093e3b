"""Typed failures raised by the room engine.

Every failure carries a stable ``code`` and a ``category`` so the socket
layer can surface it to the acting connection only. Nothing in here is ever
broadcast to a room.
"""

NOT_FOUND = 'not_found'
AUTHORIZATION = 'authorization'
STATE_CONFLICT = 'state_conflict'
VALIDATION = 'validation'
INTERNAL = 'internal'


class GameError(Exception):
    code = 'game_error'
    category = INTERNAL
    default_message = 'Something went wrong'

    def __init__(self, message=None, **details):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self):
        payload = {
            'code': self.code,
            'category': self.category,
            'message': self.message,
        }
        if self.details:
            payload['details'] = self.details
        return payload


# Not-found

class RoomNotFound(GameError):
    code = 'room_not_found'
    category = NOT_FOUND
    default_message = 'Room not found'


class TargetNotMember(GameError):
    code = 'target_not_member'
    category = NOT_FOUND
    default_message = 'That player is not in this room'


class NotInRoom(GameError):
    code = 'not_in_room'
    category = NOT_FOUND
    default_message = 'You are not in a room'


# Authorization

class NotHost(GameError):
    code = 'not_host'
    category = AUTHORIZATION
    default_message = 'Only the host can do that'


class NotAuthenticated(GameError):
    code = 'not_authenticated'
    category = AUTHORIZATION
    default_message = 'Log in first'


class CannotKickSelf(GameError):
    code = 'cannot_kick_self'
    category = AUTHORIZATION
    default_message = 'The host cannot kick themselves'


# State conflicts

class GameAlreadyStarted(GameError):
    code = 'game_already_started'
    category = STATE_CONFLICT
    default_message = 'The game has already started'


class GameNotInProgress(GameError):
    code = 'game_not_in_progress'
    category = STATE_CONFLICT
    default_message = 'The game is not in progress'


class AlreadyMember(GameError):
    code = 'already_member'
    category = STATE_CONFLICT
    default_message = 'You are already in this room'


class IdentityAlreadyInRoom(GameError):
    code = 'identity_already_in_room'
    category = STATE_CONFLICT
    default_message = 'You are already seated in another room'


# Validation

class InvalidSetting(GameError):
    code = 'invalid_setting'
    category = VALIDATION
    default_message = 'Invalid setting'


class NotEnoughPlayers(GameError):
    code = 'not_enough_players'
    category = VALIDATION
    default_message = 'Not enough players for the configured blanks and spies'


class InvalidProfile(GameError):
    code = 'invalid_profile'
    category = VALIDATION
    default_message = 'Invalid profile value'


class InternalError(GameError):
    code = 'internal_error'
    category = INTERNAL
    default_message = 'Internal server error'
