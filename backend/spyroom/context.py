"""Accessors for the per-app collaborators created in ``create_app``."""
from flask import current_app

from spyroom.errors import NotInRoom


def get_registry():
    return current_app.extensions['room_registry']


def get_sessions():
    return current_app.extensions['session_store']


def get_fanout():
    return current_app.extensions['fanout']


def bound_room_id(identity_id):
    """Room code the identity is bound to; stale bindings are dropped."""
    sessions = get_sessions()
    room_id = sessions.current_room_id(identity_id)
    if room_id is None:
        raise NotInRoom()
    if room_id not in get_registry():
        sessions.unbind_room(identity_id, room_id)
        current_app.logger.info(f"[session-stale] identity={identity_id} room={room_id} unbound")
        raise NotInRoom()
    return room_id
