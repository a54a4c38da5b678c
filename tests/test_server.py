"""End-to-end tests over real sockets, plus the CLI and client helpers."""
import logging
import socket
import struct
import threading
import time

import pytest
from colorama import Fore

from chatrelay.client import style_line
from chatrelay.config import parse_args
from chatrelay.protocol import DEFAULT_PORT, USERNAME_PROMPT, USERNAME_TAKEN
from chatrelay.server import RelayServer


class LineClient:
    """Minimal blocking test client."""

    def __init__(self, port, rcvbuf=None):
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        if rcvbuf:
            self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_RCVBUF, rcvbuf)
        self.sock.settimeout(5)
        self.sock.connect(("127.0.0.1", port))
        self.reader = self.sock.makefile("r", encoding="utf-8", newline="\n")

    def send(self, text):
        self.sock.sendall((text + "\n").encode("utf-8"))

    def recv(self):
        return self.reader.readline().rstrip("\n")

    def login(self, name):
        assert self.recv() == USERNAME_PROMPT
        self.send(name)
        assert self.recv() == f"{name} has joined the chat."

    def close(self):
        self.reader.close()
        self.sock.close()

    def reset(self):
        """Drop the connection with an RST, as a crashed client would."""
        self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_LINGER, struct.pack("ii", 1, 0))
        self.close()


@pytest.fixture
def server():
    """Relay server on an ephemeral localhost port, running in a thread."""
    srv = RelayServer("127.0.0.1", 0)
    thread = threading.Thread(target=srv.start, daemon=True)
    thread.start()
    yield srv
    srv.stop()
    thread.join(timeout=5)


def wait_until(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


def test_end_to_end_chat(server):
    """Test the alice/bob scenario through the real TCP server."""
    alice = LineClient(server.port)
    bob = LineClient(server.port)
    try:
        alice.login("alice")
        bob.login("bob")
        assert alice.recv() == "bob has joined the chat."

        alice.send("hello")
        assert alice.recv() == "alice: hello"
        assert bob.recv() == "alice: hello"

        bob.send("/block alice")
        # a private note to self proves the block was processed first
        bob.send("/private bob sync")
        assert bob.recv() == "Private message from bob: sync"

        alice.send("again")
        assert alice.recv() == "alice: again"
        alice.send("/private bob secret")
        assert bob.recv() == "Private message from alice: secret"

        bob.send("/online")
        assert bob.recv() == "Users Online: "
        assert bob.recv() == "alice, bob"
    finally:
        alice.close()
        bob.close()


def test_name_taken_then_freed(server):
    """Test collision re-prompt over the wire and reuse after disconnect."""
    first = LineClient(server.port)
    second = LineClient(server.port)
    try:
        first.login("alice")

        assert second.recv() == USERNAME_PROMPT
        second.send("alice")
        assert second.recv() == USERNAME_TAKEN

        first.close()
        assert wait_until(lambda: "alice" not in server.relay.list_online())

        second.send("alice")
        assert second.recv() == "alice has joined the chat."
    finally:
        second.close()


def test_non_reading_client_does_not_freeze_relay(server):
    """Test that a client that stops reading cannot stall everyone else."""
    stuck = LineClient(server.port, rcvbuf=4096)
    talker = LineClient(server.port)
    late = None
    try:
        stuck.login("stuck")
        talker.login("talker")
        # from here on neither client reads; their buffers fill up
        chunk = "z" * 1024
        talker.sock.sendall("".join(f"{chunk}\n" for _ in range(3000)).encode("utf-8"))

        late = LineClient(server.port)
        late.login("late")
        assert wait_until(lambda: server.relay.list_online() == ["stuck", "talker", "late"])
    finally:
        for c in (stuck, talker, late):
            if c is not None:
                c.close()


def test_abrupt_disconnect_mid_broadcast(server):
    """Test that a client dropping with a reset does not stop delivery to the rest."""
    alice = LineClient(server.port)
    bob = LineClient(server.port)
    carol = LineClient(server.port)
    try:
        alice.login("alice")
        bob.login("bob")
        carol.login("carol")
        assert alice.recv() == "bob has joined the chat."
        assert alice.recv() == "carol has joined the chat."
        assert bob.recv() == "carol has joined the chat."

        carol.reset()
        for n in range(20):
            alice.send(f"after the drop {n}")

        for n in range(20):
            assert alice.recv() == f"alice: after the drop {n}"
            assert bob.recv() == f"alice: after the drop {n}"
        assert wait_until(lambda: server.relay.list_online() == ["alice", "bob"])
    finally:
        alice.close()
        bob.close()


def test_stop_ends_accept_loop():
    """Test that stop() from another thread makes start() return."""
    srv = RelayServer("127.0.0.1", 0)
    thread = threading.Thread(target=srv.start, daemon=True)
    thread.start()
    srv.stop()
    thread.join(timeout=5)
    assert not thread.is_alive()


def test_parse_args_defaults():
    """Test the server CLI defaults."""
    config = parse_args([])
    assert config.port == DEFAULT_PORT
    assert config.host == "0.0.0.0"
    assert config.log_file == "chat_relay.log"
    assert config.log_level == logging.INFO


def test_parse_args_overrides():
    """Test the server CLI flags."""
    config = parse_args(["--host", "127.0.0.1", "--port", "9100", "--log-file", "", "--log-level", "debug"])
    assert config.host == "127.0.0.1"
    assert config.port == 9100
    assert config.log_file is None
    assert config.log_level == logging.DEBUG


@pytest.mark.parametrize("line,colour", [
    (USERNAME_PROMPT, Fore.CYAN),
    ("Private message from alice: hi", Fore.MAGENTA),
    ("bob has joined the chat.", Fore.YELLOW),
    ("Users Online: ", Fore.YELLOW),
    ("alice: hello", Fore.GREEN),
])
def test_style_line(line, colour):
    """Test that the client colours each kind of relay line."""
    assert style_line(line).startswith(colour)


def test_style_line_plain():
    """Test that unrecognised lines pass through untouched."""
    assert style_line("alice, bob") == "alice, bob"
