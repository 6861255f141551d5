import os
from pathlib import Path


_DATA_DIR = Path(__file__).resolve().parents[1] / "data"


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")

    # CORS
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Reverse proxy / IP headers
    TRUST_PROXY_HEADERS = os.environ.get("TRUST_PROXY_HEADERS", "1") == "1"

    # Realtime
    SOCKETIO_ASYNC_MODE = os.environ.get("SOCKETIO_ASYNC_MODE", "").strip()

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    # Game
    ROUND_DURATION_SEC = int(os.environ.get("ROUND_DURATION_SEC", "30"))
    INTER_ROUND_DELAY_SEC = int(os.environ.get("INTER_ROUND_DELAY_SEC", "3"))
    MIN_PLAYERS = int(os.environ.get("MIN_PLAYERS", "1"))
    # Client-side isValid is a hint; when enabled it is ANDed with the server verdict.
    TRUST_CLIENT_HINT = os.environ.get("TRUST_CLIENT_HINT", "0") == "1"

    # Room lifecycle
    ROOM_IDLE_TIMEOUT_SEC = int(os.environ.get("ROOM_IDLE_TIMEOUT_SEC", "1800"))
    ROOM_SWEEP_INTERVAL_SEC = int(os.environ.get("ROOM_SWEEP_INTERVAL_SEC", "600"))

    # Reference dataset / fuzzy matching
    PLAYERS_DB_PATH = os.environ.get("PLAYERS_DB_PATH", str(_DATA_DIR / "players.json"))
    DEFAULT_GAME_MODE = os.environ.get("DEFAULT_GAME_MODE", "modern")
    MATCH_THRESHOLD = float(os.environ.get("MATCH_THRESHOLD", "0.7"))
    MIN_MATCH_LENGTH = int(os.environ.get("MIN_MATCH_LENGTH", "2"))
