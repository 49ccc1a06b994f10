# tests/integrators/conftest.py
import pytest


class ListSink:
    """Diagnostics sink that keeps (level, message) pairs."""

    def __init__(self):
        self.messages = []

    def debug(self, msg):
        self.messages.append(("debug", msg))

    def info(self, msg):
        self.messages.append(("info", msg))

    def warning(self, msg):
        self.messages.append(("warning", msg))

    def text(self, level=None):
        return [m for lvl, m in self.messages if level is None or lvl == level]


class ListHistory:
    def __init__(self):
        self.records = []

    def record(self, time, stepsize, extra=None):
        self.records.append((time, stepsize, extra))


@pytest.fixture
def sink():
    return ListSink()


@pytest.fixture
def history_sink():
    return ListHistory()
