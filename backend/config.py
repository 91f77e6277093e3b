import os
from datetime import timedelta


def _flag(name, default):
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///spyroom.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Guest identities live in a remember cookie (five years)
    REMEMBER_COOKIE_DURATION = timedelta(days=365 * 5)
    CORS_ORIGINS = [o for o in os.environ.get(
        'CORS_ORIGINS',
        'http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,http://127.0.0.1:3000',
    ).split(',') if o]
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Rooms
    ROOM_CODE_LENGTH = int(os.environ.get('ROOM_CODE_LENGTH', '4'))
    DEFAULT_BLANK_COUNT = int(os.environ.get('DEFAULT_BLANK_COUNT', '0'))
    DEFAULT_SPY_COUNT = int(os.environ.get('DEFAULT_SPY_COUNT', '1'))
    DEFAULT_IS_RANDOM = _flag('DEFAULT_IS_RANDOM', 'true')
    # Profiles
    MAX_USERNAME_LENGTH = int(os.environ.get('MAX_USERNAME_LENGTH', '32'))
    AVATAR_COUNT = int(os.environ.get('AVATAR_COUNT', '12'))
