#!/usr/bin/env python3
"""Line-oriented text channel over a connected TCP socket."""

from __future__ import annotations

import queue                          # Outbound FIFO between fan-out & writer thread
import socket                         # TCP socket operations
import threading                      # Writer thread + close flag
from typing import Optional

from .protocol import ENCODING
from .util import LOG

OUTBOX_SIZE: int = 1024               # Lines buffered per client before dropping
CLOSE_GRACE: float = 1.0              # Seconds close() waits for the outbox to drain

_STOP = None                          # Sentinel telling the writer thread to exit


class LineChannel:
    """Reads and writes ``\\n``-terminated UTF-8 lines on one socket.

    Reads happen on the owning session's thread only. Writes from any thread
    are queued and sent by a per-channel writer thread, so ``write_line``
    never waits on the network: a client that stops reading only fills (and
    then overflows) its own outbox.
    """

    def __init__(self, sock: socket.socket) -> None:
        self.sock = sock
        try:
            self.peer = "%s:%d" % sock.getpeername()[:2]
        except OSError:
            self.peer = "?"
        self._reader = sock.makefile("r", encoding=ENCODING, newline="\n")

        # ------ outbound path ------
        self._outbox: "queue.Queue[Optional[bytes]]" = queue.Queue(maxsize=OUTBOX_SIZE)
        self._closed = threading.Event()      # set once by close()
        self._broken = threading.Event()      # set when a send fails
        self._writer = threading.Thread(target=self._write_loop, daemon=True)
        self._writer.start()

    def read_line(self) -> Optional[str]:
        """Next line without its terminator, or ``None`` at end of stream.

        Raises ``OSError`` / ``UnicodeDecodeError`` on a broken connection.
        """
        line = self._reader.readline()
        if not line:
            return None
        return line.rstrip("\r\n")

    def write_line(self, text: str) -> None:
        """Fire-and-forget write; lines for a dead or saturated peer are dropped."""
        if self._closed.is_set() or self._broken.is_set():
            return
        try:
            self._outbox.put_nowait((text + "\n").encode(ENCODING))
        except queue.Full:
            LOG.debug("Outbox full for %s, dropped: %r", self.peer, text)

    def close(self) -> None:
        """Flush what is queued (briefly), then shut the socket down; idempotent."""
        if self._closed.is_set():
            return
        self._closed.set()
        try:
            self._outbox.put(_STOP, timeout=CLOSE_GRACE)
        except queue.Full:
            pass                              # writer is stuck; shutdown() frees it
        self._writer.join(timeout=CLOSE_GRACE)
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass                              # peer already gone
        self._reader.close()
        self.sock.close()

    # ---------------------------------------------------------------- internals
    def _write_loop(self) -> None:
        """Writer thread: drain the outbox in order until closed or broken."""
        while True:
            data = self._outbox.get()
            if data is _STOP:
                return
            if self._broken.is_set():
                continue                      # keep draining so close() can finish
            try:
                self.sock.sendall(data)
            except OSError as exc:
                self._broken.set()
                LOG.debug("Dropped delivery to %s: %s", self.peer, exc)
                if self._closed.is_set():
                    return                    # close() gave up waiting and shut us down
