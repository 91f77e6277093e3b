from functools import wraps

from flask import current_app, request
from flask_login import current_user
from flask_socketio import emit, join_room, leave_room

from spyroom import db, socketio
from spyroom.context import bound_room_id, get_fanout, get_registry, get_sessions
from spyroom.errors import GameError, InternalError, NotAuthenticated, NotInRoom, RoomNotFound
from spyroom.fanout import room_channel, user_channel
from spyroom.services.rooms import Outcome, WordPair, events
from spyroom.session_store import seat_creator, seat_joiner


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _namespace() -> str:
    return current_app.config.get('SOCKETIO_NAMESPACE', '/')


def _user():
    if not current_user.is_authenticated:
        raise NotAuthenticated()
    return current_user._get_current_object()


def _identity():
    return _user().to_identity()


def socket_action(handler):
    """Report failures to the acting socket only; never let one escape."""
    @wraps(handler)
    def wrapper(*args, **kwargs):
        try:
            return handler(*args, **kwargs)
        except GameError as exc:
            current_app.logger.info(f"[rejected] action={handler.__name__} sid={_get_sid()} code={exc.code}")
            emit(events.ERROR, exc.to_dict())
        except Exception:
            current_app.logger.exception(f"[action-error] action={handler.__name__} sid={_get_sid()}")
            db.session.rollback()
            emit(events.ERROR, InternalError().to_dict())
    return wrapper


# ---- Channel binding helpers ----

def _bind(identity_id, room_id) -> None:
    get_sessions().bind_room(identity_id, room_id)
    for sid in get_sessions().connections_of(identity_id):
        join_room(room_channel(room_id), sid=sid, namespace=_namespace())


def _unbind(identity_id, room_id) -> None:
    if get_sessions().unbind_room(identity_id, room_id):
        for sid in get_sessions().connections_of(identity_id):
            leave_room(room_channel(room_id), sid=sid, namespace=_namespace())


def _room_action(apply):
    """Run ``apply(room, identity)`` under the room lock and publish its outcome."""
    identity = _identity()
    room_id = bound_room_id(identity.id)
    with get_registry().acquire(room_id) as room:
        if room.member(identity.id) is None:
            _unbind(identity.id, room.id)
            raise NotInRoom(roomId=room.id)
        outcome = apply(room, identity)
        get_fanout().deliver(outcome)
        return outcome


# ---- Connection lifecycle ----

@socket_action
def handle_connect(auth=None):
    if not current_user.is_authenticated:
        return False
    identity = _identity()
    sessions = get_sessions()
    sessions.connect(_get_sid(), identity.id)
    join_room(user_channel(identity.id))

    room_id = sessions.current_room_id(identity.id)
    if room_id:
        try:
            with get_registry().acquire(room_id) as room:
                if room.member(identity.id) is None:
                    _unbind(identity.id, room.id)
                    room_id = None
                else:
                    join_room(room_channel(room.id))
                    get_fanout().deliver(room.mark_connected(identity.id, True))
        except RoomNotFound:
            sessions.unbind_room(identity.id, room_id)
            room_id = None
    current_app.logger.info(f"[connect] sid={_get_sid()} identity={identity.id} room={room_id}")
    emit('connected', {'user': _user().to_dict(), 'roomId': room_id})


def handle_disconnect(reason=None):
    sessions = get_sessions()
    identity_id, remaining = sessions.disconnect(_get_sid())
    if identity_id is None or remaining:
        return
    room_id = sessions.current_room_id(identity_id)
    if not room_id:
        return
    try:
        with get_registry().acquire(room_id) as room:
            get_fanout().deliver(room.mark_connected(identity_id, False))
    except RoomNotFound:
        sessions.unbind_room(identity_id, room_id)


# ---- Room lifecycle ----

@socket_action
def handle_create():
    identity = _identity()

    def _seated(room):
        _bind(identity.id, room.id)
        emit(events.ROOM_CREATED, room.view_for(identity.id))

    seat_creator(get_registry(), get_sessions(), identity, _seated)


@socket_action
def handle_join(data=None):
    room_id = data.get('roomId') if isinstance(data, dict) else None
    if not room_id:
        raise RoomNotFound('roomId is required')
    identity = _identity()

    def _joined(room, outcome):
        # existing members hear about the join before the joiner subscribes
        get_fanout().deliver(outcome)
        _bind(identity.id, room.id)

    seat_joiner(get_registry(), get_sessions(), identity, room_id, _joined)


@socket_action
def handle_quit():
    identity = _identity()
    room_id = get_sessions().current_room_id(identity.id)
    if not room_id:
        return
    try:
        with get_registry().acquire(room_id) as room:
            outcome = room.leave(identity)
            _unbind(identity.id, room.id)
            get_fanout().deliver(outcome)
    except RoomNotFound:
        _unbind(identity.id, room_id)


@socket_action
def handle_kick(player_id=None):
    identity = _identity()
    room_id = bound_room_id(identity.id)
    with get_registry().acquire(room_id) as room:
        outcome = room.kick(identity, player_id)
        # the target is still subscribed and sees its own kick
        get_fanout().deliver(outcome)
        _unbind(player_id, room.id)


@socket_action
def handle_be_kicked():
    identity = _identity()
    room_id = get_sessions().current_room_id(identity.id)
    if not room_id:
        return
    if get_registry().seated_room(identity.id, room_id) is not None:
        # still seated; only a real kick releases the binding
        return
    _unbind(identity.id, room_id)


@socket_action
def handle_host(host=None):
    _room_action(lambda room, me: room.update_host(me, host))


# ---- Settings ----

@socket_action
def handle_setting_blank(number=None):
    _room_action(lambda room, me: room.update_blank_count(me, number))


@socket_action
def handle_setting_spy(number=None):
    _room_action(lambda room, me: room.update_spy_count(me, number))


@socket_action
def handle_setting_is_random(is_random=None):
    _room_action(lambda room, me: room.update_is_random(me, is_random))


# ---- Round ----

@socket_action
def handle_start(data=None):
    data = data if isinstance(data, dict) else {}
    correct, wrong = data.get('correct'), data.get('wrong')
    pair = None if correct is None and wrong is None else WordPair(correct, wrong)
    _room_action(lambda room, me: room.start_game(me, pair))


@socket_action
def handle_report(player_id=None):
    _room_action(lambda room, me: room.report(me, player_id))


@socket_action
def handle_end(winner=None):
    _room_action(lambda room, me: room.end_game(winner))


@socket_action
def handle_message(data=None):
    _room_action(lambda room, me: Outcome(room.id).broadcast(events.MESSAGE, data))


# ---- Profile ----

def _refresh_seat(user, field):
    room_id = get_sessions().current_room_id(user.id)
    if not room_id:
        return
    try:
        with get_registry().acquire(room_id) as room:
            get_fanout().deliver(room.refresh_identity(user.to_identity(), field))
    except RoomNotFound:
        get_sessions().unbind_room(user.id, room_id)


@socket_action
def handle_username(username=None):
    user = _user()
    name = user.rename(username, max_length=current_app.config.get('MAX_USERNAME_LENGTH', 32))
    db.session.commit()
    _refresh_seat(user, 'username')
    emit('/user/username', name)


@socket_action
def handle_avatar(avatar=None):
    user = _user()
    ref = user.change_avatar(avatar)
    db.session.commit()
    _refresh_seat(user, 'avatar')
    emit('/user/avatar', ref)


_HANDLERS = (
    ('connect', handle_connect),
    ('disconnect', handle_disconnect),
    ('/game/create', handle_create),
    ('/game/join', handle_join),
    ('/game/quit', handle_quit),
    ('/game/kick', handle_kick),
    ('/game/beKicked', handle_be_kicked),
    ('/game/host', handle_host),
    ('/game/setting/blank', handle_setting_blank),
    ('/game/setting/spy', handle_setting_spy),
    ('/game/setting/isRandom', handle_setting_is_random),
    ('/game/start', handle_start),
    ('/game/report', handle_report),
    ('/game/end', handle_end),
    ('/message', handle_message),
    ('/user/username', handle_username),
    ('/user/avatar', handle_avatar),
)


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register the game protocol on ``namespace``."""
    for event, handler in _HANDLERS:
        socketio.on_event(event, handler, namespace=namespace)
