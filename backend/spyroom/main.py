from flask import Blueprint, jsonify, current_app
from flask_login import login_user, logout_user, login_required, current_user
from spyroom import db
from spyroom.context import bound_room_id, get_registry, get_sessions
from spyroom.errors import GameError, NOT_FOUND
from spyroom.models import User, generate_avatar, generate_guest_name

main = Blueprint('main', __name__)


def _error_response(exc: GameError):
    status = 404 if exc.category == NOT_FOUND else 400
    return jsonify(exc.to_dict()), status


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Spy Party game server!'})


@main.route('/login', methods=['POST'])
def login():
    """
    Returns the caller's identity, creating a guest on first visit.
    """
    if current_user.is_authenticated:
        user = current_user
    else:
        user = User(
            username=generate_guest_name(),
            avatar=generate_avatar(current_app.config.get('AVATAR_COUNT', 12)),
        )
        db.session.add(user)
        db.session.commit()
        login_user(user, remember=True)
        current_app.logger.info(f"[login] new guest identity={user.id}")
    return jsonify({
        'user': user.to_dict(),
        'roomId': get_sessions().current_room_id(user.id),
    })


@main.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'message': 'Logged out successfully.'})


@main.route('/room', methods=['GET'])
@login_required
def get_room():
    """
    Returns the room the caller is bound to, as seen by the caller.
    """
    try:
        room_id = bound_room_id(current_user.id)
        with get_registry().acquire(room_id) as room:
            return jsonify(room.view_for(current_user.id)), 200
    except GameError as exc:
        return _error_response(exc)
