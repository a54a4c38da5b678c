"""Test configuration and fixtures."""
import queue
import threading

import pytest

from chatrelay.relay import Relay
from chatrelay.session import Session


class FakeChannel:
    """In-memory stand-in for ``LineChannel``.

    Lines queued with ``feed()`` are returned by ``read_line()``; ``None`` (or
    an exception instance) can be fed to end the stream or simulate an I/O error.
    """

    def __init__(self, *lines, peer="127.0.0.1:50000"):
        self.peer = peer
        self.sent = []
        self.close_calls = 0
        self._incoming = queue.Queue()
        self._lock = threading.Lock()
        for line in lines:
            self.feed(line)

    def feed(self, line):
        self._incoming.put(line)

    def read_line(self):
        item = self._incoming.get(timeout=5)
        if isinstance(item, BaseException):
            raise item
        return item

    def write_line(self, text):
        with self._lock:
            self.sent.append(text)

    def close(self):
        self.close_calls += 1


@pytest.fixture
def relay():
    """Fresh relay for every test."""
    return Relay()


@pytest.fixture
def make_session(relay):
    """Factory for sessions attached to the test relay, optionally pre-claimed."""
    def _make(name=None):
        session = Session(FakeChannel(), relay)
        if name is not None:
            session.channel.feed(name)
            assert session.claim_name() == name
            session.channel.sent.clear()
        return session
    return _make
