from flask import Flask

from squareg.services.games.scheduler import start_transition_driver


class StubSocketIO:
    """Runs the driver inline and stops the gateway after a few ticks."""

    def __init__(self, gateway, ticks):
        self.gateway = gateway
        self.ticks = ticks
        self.sleeps = []

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        if len(self.sleeps) >= self.ticks:
            self.gateway.stopped = True

    def start_background_task(self, target, *args):
        target(*args)
        return 'task'


class StubGateway:
    def __init__(self, fail_first=False):
        self.stopped = False
        self.ticks = 0
        self.fail_first = fail_first

    def tick(self):
        self.ticks += 1
        if self.fail_first and self.ticks == 1:
            raise RuntimeError('boom')

    def stats(self):
        return {'rooms': 0, 'players': 0}


def make_app(**config):
    app = Flask(__name__)
    app.config.update(config)
    return app


def test_driver_disabled_in_testing(flask_app):
    gateway = flask_app.extensions['squareg']
    assert start_transition_driver(flask_app, gateway) is None


def test_driver_ticks_until_stopped():
    gateway = StubGateway()
    gateway.socketio = StubSocketIO(gateway, ticks=3)
    app = make_app(TICK_INTERVAL_SEC=0.5)
    assert start_transition_driver(app, gateway) == 'task'
    assert gateway.ticks == 3
    assert gateway.socketio.sleeps[0] == 0.5


def test_driver_survives_failing_tick():
    gateway = StubGateway(fail_first=True)
    gateway.socketio = StubSocketIO(gateway, ticks=2)
    app = make_app(TESTING=True, ENABLE_SCHEDULER_IN_TESTS=True)
    start_transition_driver(app, gateway)
    assert gateway.ticks == 2
