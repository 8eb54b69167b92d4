# monster_arena/app.py
import logging

from flask import Flask
from flask_socketio import SocketIO

from . import init_arena


def create_app(config=None, manager=None):
    app = Flask(__name__)
    app.config.from_prefixed_env()
    if config:
        app.config.update(config)

    socketio = SocketIO(app, cors_allowed_origins=app.config.get("ARENA_CORS_ORIGINS", "*"))
    init_arena(app, socketio, manager)
    return app, socketio


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app, socketio = create_app()
    socketio.run(app, host=app.config.get("ARENA_HOST", "127.0.0.1"), port=int(app.config.get("ARENA_PORT", 5000)))


if __name__ == "__main__":
    main()
