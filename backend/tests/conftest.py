import heapq
import itertools
import json
import os
import sys

import pytest

# Ensure the backend root (containing the `alphaball` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from alphaball.config import Config
from alphaball.game.engine import RoundEngine
from alphaball.game.reference import ReferenceDataset
from alphaball.game.registry import RoomRegistry
from alphaball.game.timers import ScheduledTask
from alphaball.server import create_app


PLAYERS_DB = {
    'Arsenal': {
        'legacy': ['Thierry Henry', 'Dennis Bergkamp', 'Tony Adams'],
        'modern': ['Bukayo Saka', 'Ben White', 'Declan Rice'],
    },
    'Barcelona': {
        'legacy': ['Andres Iniesta', 'Carles Puyol'],
        'modern': ['Pedri', 'Gavi', 'Lamine Yamal'],
    },
    'Bayern': {
        'legacy': ['Arjen Robben', 'Oliver Kahn'],
        'modern': ['Alphonso Davies', 'Harry Kane', 'Jamal Musiala'],
    },
    'Newcastle': {
        'legacy': ['Alan Shearer', 'Thierry Henry'],
        'modern': ['Alexander Isak', 'Bruno Guimaraes', 'Anthony Gordon'],
    },
    'Manchester United': {
        'legacy': ['Wayne Rooney', 'Ryan Giggs'],
        'modern': ['Bruno Fernandes', 'Kobbie Mainoo'],
    },
}


class FakeScheduler:
    """Manual clock: callbacks only run inside advance()."""

    def __init__(self):
        self.now = 0.0
        self._queue = []
        self._seq = itertools.count()

    def call_later(self, delay, callback, *args):
        task = ScheduledTask(name=getattr(callback, '__name__', ''))
        heapq.heappush(self._queue, (self.now + delay, next(self._seq), task, callback, args))
        return task

    def advance(self, seconds):
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            due, _, task, callback, args = heapq.heappop(self._queue)
            self.now = due
            if not task.cancelled:
                callback(*args)
        self.now = target

    def pending(self):
        return [entry[3].__name__ for entry in self._queue if not entry[2].cancelled]


class EmitRecorder:
    def __init__(self):
        self.emitted = []

    def __call__(self, event, payload, to=None):
        self.emitted.append((event, payload, to))

    def of(self, event):
        return [payload for name, payload, _ in self.emitted if name == event]

    def clear(self):
        self.emitted = []


@pytest.fixture()
def players_db_path(tmp_path):
    path = tmp_path / 'players.json'
    path.write_text(json.dumps(PLAYERS_DB), encoding='utf-8')
    return path


@pytest.fixture()
def reference(players_db_path):
    return ReferenceDataset(players_db_path)


@pytest.fixture()
def scheduler():
    return FakeScheduler()


@pytest.fixture()
def recorder():
    return EmitRecorder()


@pytest.fixture()
def engine(recorder, scheduler, reference):
    return RoundEngine(recorder, scheduler, reference, round_duration_sec=30, inter_round_delay_sec=3)


@pytest.fixture()
def registry(engine, recorder):
    return RoomRegistry(engine, recorder, idle_timeout_sec=1800, default_mode='legacy')


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    TRUST_PROXY_HEADERS = False
    SOCKETIO_ASYNC_MODE = 'threading'
    DEFAULT_GAME_MODE = 'legacy'
    ROUND_DURATION_SEC = 30
    INTER_ROUND_DELAY_SEC = 3
    MIN_PLAYERS = 1
    TRUST_CLIENT_HINT = False


@pytest.fixture()
def app_bundle(reference):
    fake = FakeScheduler()
    flask_app, socketio = create_app(TestConfig, scheduler=fake, reference=reference)
    return flask_app, socketio, fake


@pytest.fixture()
def flask_app(app_bundle):
    return app_bundle[0]


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(app_bundle):
    flask_app, socketio, _ = app_bundle
    clients = []

    def _make():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(test_client)
        return test_client

    yield _make

    for test_client in clients:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except Exception:
            pass
