from __future__ import annotations

import os
import sys

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Config
from .game.engine import RoundEngine
from .game.reference import ReferenceDataset
from .game.registry import RoomRegistry
from .game.timers import Scheduler, SocketIOScheduler
from .routes.health import bp as health_bp
from .routes.players import bp as players_bp
from .routes.rooms import bp as rooms_bp
from .realtime.handlers import register_socketio_handlers


def _pick_async_mode(configured: str) -> str:
    env_async_mode = (configured or os.environ.get("SOCKETIO_ASYNC_MODE", "")).strip()
    if env_async_mode:
        return env_async_mode
    # Default choice:
    # - Windows: threading (eventlet has known compatibility issues on newer Python)
    # - Python >= 3.13: threading (safer default)
    # - Otherwise: eventlet
    if sys.platform.startswith("win") or sys.version_info >= (3, 13):
        return "threading"
    return "eventlet"


def create_app(
    config_class=Config,
    scheduler: Scheduler | None = None,
    reference: ReferenceDataset | None = None,
) -> tuple[Flask, SocketIO]:
    app = Flask(__name__)
    app.config.from_object(config_class)

    if app.config.get("TRUST_PROXY_HEADERS", False):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    cors_origins = app.config.get("CORS_ORIGINS", "*")
    CORS(app, resources={r"/api/*": {"origins": cors_origins}})

    socketio = SocketIO(
        app,
        cors_allowed_origins=cors_origins,
        async_mode=_pick_async_mode(app.config.get("SOCKETIO_ASYNC_MODE", "")),
    )

    if reference is None and app.config.get("PLAYERS_DB_PATH"):
        reference = ReferenceDataset(
            app.config["PLAYERS_DB_PATH"],
            threshold=app.config.get("MATCH_THRESHOLD", 0.7),
            min_length=app.config.get("MIN_MATCH_LENGTH", 2),
        )
    if scheduler is None:
        scheduler = SocketIOScheduler(socketio)

    def _emit(event: str, payload: dict, to: str) -> None:
        socketio.emit(event, payload, to=to)

    engine = RoundEngine(
        _emit,
        scheduler,
        reference,
        round_duration_sec=app.config.get("ROUND_DURATION_SEC", 30),
        inter_round_delay_sec=app.config.get("INTER_ROUND_DELAY_SEC", 3),
        min_players=app.config.get("MIN_PLAYERS", 1),
        trust_client_hint=app.config.get("TRUST_CLIENT_HINT", False),
    )
    registry = RoomRegistry(
        engine,
        _emit,
        idle_timeout_sec=app.config.get("ROOM_IDLE_TIMEOUT_SEC", 1800),
        default_mode=app.config.get("DEFAULT_GAME_MODE", "modern"),
    )
    app.extensions["alphaball"] = {
        "socketio": socketio,
        "scheduler": scheduler,
        "reference": reference,
        "engine": engine,
        "registry": registry,
    }

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(rooms_bp, url_prefix="/api")
    app.register_blueprint(players_bp, url_prefix="/api")

    register_socketio_handlers(socketio, registry)

    sweep_interval = int(app.config.get("ROOM_SWEEP_INTERVAL_SEC", 600))
    if sweep_interval > 0:
        registry.start_sweeper(scheduler, sweep_interval)

    return app, socketio
