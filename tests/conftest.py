import os
import sys
import pytest

# Ensure the project root (containing the `squareg` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from squareg import create_app, socketio
from squareg.services.games.board import generate_ordered


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = ['http://localhost:3000']
    MAX_ROUNDS = 7
    MAX_PLAYERS = 4
    AUTO_START_PLAYERS = 2
    AUTO_START_DELAY_SEC = 2
    COUNTDOWN_SEC = 3
    NEXT_ROUND_DELAY_SEC = 3
    ROOM_IDLE_TIMEOUT_SEC = 600
    ROOM_SWEEP_INTERVAL_SEC = 0


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds
        return self.now


def color_matched_target(size, rotate=None):
    """An ordered board, optionally rotated, to use as a known target."""
    board = generate_ordered(size)
    if rotate:
        board.apply(*rotate)
    return board


def named(packets, name):
    """Payloads of every received packet with the given event name."""
    return [pkt['args'][0] for pkt in packets if pkt['name'] == name]


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    yield application
    application.extensions['squareg'].stop()


@pytest.fixture()
def gateway(flask_app, clock):
    gw = flask_app.extensions['squareg']
    gw.clock = clock
    return gw


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_sio_client(flask_app):
    created = []

    def _make():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
        )
        # Flush the connect greeting
        test_client.get_received()
        created.append(test_client)
        return test_client

    yield _make
    for test_client in created:
        if test_client.is_connected():
            test_client.disconnect()
