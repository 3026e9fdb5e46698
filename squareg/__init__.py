from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = list(flask_app.config.get('CORS_ORIGINS') or [])
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One registry and gateway per app; handlers and blueprints reach them
    # through flask_app.extensions
    from squareg.services.games.registry import Registry
    from squareg.services.games.scheduler import start_transition_driver
    from squareg.socketio_events import SessionGateway, register_socketio_handlers

    registry = Registry.from_config(flask_app.config)
    gateway = SessionGateway(
        registry,
        socketio,
        flask_app.config,
        flask_app.logger,
        namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/'),
    )
    flask_app.extensions['squareg'] = gateway

    from squareg.main import main
    flask_app.register_blueprint(main)

    from squareg.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    register_socketio_handlers(gateway)
    start_transition_driver(flask_app, gateway)

    return flask_app
