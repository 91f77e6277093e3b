from spyroom import db
from spyroom.errors import InvalidProfile
from spyroom.services.rooms import PlayerIdentity
from flask_login import UserMixin
import random
import uuid

MAX_AVATAR_LENGTH = 256


def generate_user_id():
    return uuid.uuid4().hex


def generate_guest_name():
    """Generate a friendly default name for a new guest."""
    return f"Player-{random.randint(1000, 9999)}"


def generate_avatar(avatar_count=12):
    return f"avatar-{random.randint(1, max(1, avatar_count))}"


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.String(32), primary_key=True, default=generate_user_id)
    username = db.Column(db.String(64), nullable=False)
    avatar = db.Column(db.String(MAX_AVATAR_LENGTH), nullable=True)
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    def rename(self, username, max_length=32):
        if not isinstance(username, str) or not username.strip():
            raise InvalidProfile('Username cannot be empty', field='username')
        username = username.strip()
        if len(username) > max_length:
            raise InvalidProfile(f'Username must be at most {max_length} characters', field='username')
        self.username = username
        return username

    def change_avatar(self, avatar):
        if not isinstance(avatar, str) or not avatar.strip():
            raise InvalidProfile('Avatar cannot be empty', field='avatar')
        avatar = avatar.strip()
        if len(avatar) > MAX_AVATAR_LENGTH:
            raise InvalidProfile('Avatar reference is too long', field='avatar')
        self.avatar = avatar
        return avatar

    def to_identity(self):
        return PlayerIdentity(self.id, self.username, self.avatar)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'avatar': self.avatar,
        }
