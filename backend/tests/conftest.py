import os
import sys
import pytest

# Ensure the backend root (containing the `spyroom` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from spyroom import create_app, db, socketio
from spyroom.services.rooms import PlayerIdentity


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = ['http://localhost:5173']
    SOCKETIO_NAMESPACE = '/'
    LOG_LEVEL = 'DEBUG'
    ROOM_CODE_LENGTH = 4
    DEFAULT_BLANK_COUNT = 0
    DEFAULT_SPY_COUNT = 1
    DEFAULT_IS_RANDOM = False
    MAX_USERNAME_LENGTH = 32
    AVATAR_COUNT = 12


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    # Only hold a context around setup/teardown: a context left pushed is
    # reused by every request and socket event, and Flask-Login caches the
    # logged-in user on it.
    with application.app_context():
        # Ensure models are imported so tables are created
        import spyroom.models  # noqa: F401
        db.create_all()
    yield application
    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def registry(flask_app):
    return flask_app.extensions['room_registry']


@pytest.fixture()
def connect_player(flask_app):
    """Log a guest in over HTTP and open a Socket.IO connection with its cookie."""
    opened = []

    def _connect():
        http = flask_app.test_client()
        user = http.post('/login').get_json()['user']
        sio = socketio.test_client(flask_app, flask_test_client=http, namespace='/')
        sio.get_received('/')  # flush the connected ack
        opened.append(sio)
        return user, sio, http

    yield _connect
    for sio in opened:
        try:
            if sio.is_connected('/'):
                sio.disconnect(namespace='/')
        except Exception:
            pass


def make_identities(*names):
    return [PlayerIdentity(f"id-{name.lower()}", name, f"avatar-{i}") for i, name in enumerate(names, 1)]


@pytest.fixture()
def identities():
    return make_identities('Alice', 'Bob', 'Cara', 'Dan', 'Eve')
