from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    db.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Long-lived game state is owned by the app, not by module globals
    from spyroom.services.rooms import RoomRegistry
    from spyroom.session_store import SessionStore
    from spyroom.fanout import Fanout

    flask_app.extensions['room_registry'] = RoomRegistry(
        code_length=flask_app.config.get('ROOM_CODE_LENGTH', 4),
        default_settings={
            'blank_count': flask_app.config.get('DEFAULT_BLANK_COUNT', 0),
            'spy_count': flask_app.config.get('DEFAULT_SPY_COUNT', 1),
            'is_random': flask_app.config.get('DEFAULT_IS_RANDOM', True),
        },
    )
    flask_app.extensions['session_store'] = SessionStore()
    flask_app.extensions['fanout'] = Fanout(socketio, namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/'))

    from spyroom.main import main
    flask_app.register_blueprint(main)

    from spyroom.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/'))

    # Flask-Login user loader
    from spyroom.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, user_id)

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the identity tables."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
