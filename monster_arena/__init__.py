# monster_arena/__init__.py
import logging

from .routes import arena_bp
from .sessions import BattleSessionManager
from .sockets import register_arena_socket_handlers

logger = logging.getLogger(__name__)


def arena_settings(app) -> dict:
    """``ARENA_*`` config keys, lower-cased, e.g. ARENA_SESSION_TTL_SECONDS."""
    return {
        key[len("ARENA_"):].lower(): value
        for key, value in app.config.items()
        if key.startswith("ARENA_")
    }


def init_arena(app, socketio, manager=None):
    manager = manager or BattleSessionManager(balance=arena_settings(app))
    app.extensions["monster_arena"] = manager
    app.register_blueprint(arena_bp)
    register_arena_socket_handlers(socketio, manager)

    if app.config.get("ARENA_START_SWEEPER", True):
        socketio.start_background_task(run_sweeper, socketio, manager)
    return manager


def run_sweeper(socketio, manager):
    interval = float(manager.balance["sweep_interval_seconds"])
    while True:
        socketio.sleep(interval)
        try:
            manager.sweep_expired()
        except Exception:
            # keep sweeping; one bad session must not stop eviction
            logger.exception("expired battle sweep failed")
