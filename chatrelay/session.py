#!/usr/bin/env python3
"""Per-connection state and the client-facing command interpreter."""

from __future__ import annotations

import threading                      # Block-list lock
import uuid                           # Opaque per-connection id
from typing import TYPE_CHECKING, Optional, Protocol, Set

from .protocol import USERNAME_PROMPT, USERNAME_TAKEN, CommandKind, parse_command
from .util import LOG

if TYPE_CHECKING:                       # avoid an import cycle at runtime
    from .relay import Relay


class Channel(Protocol):
    """What a Session needs from its transport (see ``LineChannel``)."""

    peer: str

    def read_line(self) -> Optional[str]: ...
    def write_line(self, text: str) -> None: ...
    def close(self) -> None: ...


class Session:
    """One connected client: its outbound path, name and block list."""

    def __init__(self, channel: Channel, relay: "Relay") -> None:
        self.channel = channel                 # line transport to our client
        self.relay = relay                     # shared registry + fan-out
        self._id = uuid.uuid4().hex            # identity(), never reused
        self._name: Optional[str] = None       # set once, after a successful claim
        self._blocked: Set[str] = set()        # senders whose chat we drop
        # is_blocking() is called from other sessions' threads during fan-out
        self._blocked_lock = threading.Lock()

    # ---------------------------------------------------------------- identity
    def identity(self) -> str:
        return self._id

    @property
    def name(self) -> Optional[str]:
        """Claimed display name, ``None`` until a claim succeeds."""
        return self._name

    def __repr__(self) -> str:
        return f"<Session {self._name or '(unnamed)'} {self.channel.peer}>"

    # ---------------------------------------------------------------- delivery
    def send(self, text: str) -> None:
        # queued by the channel; never blocks the relay lock on a slow client
        self.channel.write_line(text)

    # ---------------------------------------------------------------- block list
    def block(self, name: str) -> None:
        with self._blocked_lock:
            self._blocked.add(name)

    def unblock(self, name: str) -> None:
        with self._blocked_lock:
            self._blocked.discard(name)

    def is_blocking(self, name: str) -> bool:
        with self._blocked_lock:
            return name in self._blocked

    # ================================================================== main ===
    def run(self) -> None:
        """Serve this connection until the client goes away.

        Whatever ends the loop (EOF, I/O error, a bug in a handler) the name
        is released and the channel closed, each exactly once.
        """
        try:
            if self.claim_name() is None:
                LOG.info("%s disconnected before choosing a name", self.channel.peer)
                return
            while True:
                line = self.channel.read_line()
                if line is None:
                    break
                self.dispatch(line)
        except (OSError, UnicodeDecodeError) as exc:
            LOG.warning("Connection error with %s: %s", self.channel.peer, exc)
        finally:
            if self._name is not None:
                self.relay.release(self._name, self)
                LOG.info("%s left the chat", self._name)
            self.channel.close()

    def claim_name(self) -> Optional[str]:
        """Prompt until the relay accepts a name; ``None`` if the stream ends first."""
        self.send(USERNAME_PROMPT)
        while True:
            proposed = self.channel.read_line()
            if proposed is None:
                return None
            if self.relay.claim(proposed, self):
                self._name = proposed
                LOG.info("%s joined the chat from %s", proposed, self.channel.peer)
                return proposed
            self.send(USERNAME_TAKEN)

    # ---------------------------------------------------------------- commands
    def dispatch(self, line: str) -> None:
        """Handle one input line from the client."""
        if not line.strip():
            return
        cmd = parse_command(line)
        match cmd.kind:
            case CommandKind.BLOCK:
                if cmd.argument:
                    self.block(cmd.argument)
            case CommandKind.UNBLOCK:
                if cmd.argument:
                    self.unblock(cmd.argument)
            case CommandKind.ONLINE:
                self.relay.broadcast_online()
            case CommandKind.PRIVATE:
                if cmd.argument:
                    self.relay.send_private(self._name, cmd.argument, cmd.message)
            case _:
                self.relay.broadcast_from(self._name, cmd.line)
