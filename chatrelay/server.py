#!/usr/bin/env python3
"""TCP front end for the relay: one thread per connected client.

* Accept loop on the main thread
* Each connection gets a ``Session`` running on its own daemon thread
* No persistence: everything lives in RAM until the process exits.
"""

from __future__ import annotations

import socket
import threading
from typing import Optional, Sequence

from .config import ServerConfig, parse_args
from .protocol import DEFAULT_HOST, DEFAULT_PORT
from .relay import Relay
from .session import Session
from .transport import LineChannel
from .util import LOG, configure_logging, get_local_ip


class RelayServer:
    """Accepts connections and hands each one to a ``Session``."""

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT,
                 relay: Optional[Relay] = None) -> None:
        self.relay = relay if relay is not None else Relay()

        # ------ bind socket ------
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.sock.bind((host, port))
        self.sock.listen()
        self.sock.settimeout(0.5)               # lets the loop notice stop()
        # port 0 means "pick one"; report what the OS chose
        self.host, self.port = self.sock.getsockname()[:2]

        # Flag to shut the accept loop down from another thread.
        self.running = threading.Event()
        self.running.set()

    # ================================================================= main ===
    def start(self) -> None:
        """Blocking accept loop; returns after ``stop()`` or Ctrl-C."""
        shown = get_local_ip() if self.host == "0.0.0.0" else self.host
        LOG.info("Relay listening on %s:%d", shown, self.port)
        try:
            while self.running.is_set():
                try:
                    conn, addr = self.sock.accept()
                except socket.timeout:
                    continue                    # re-check the running flag
                except OSError:                 # listener closed by stop()
                    break
                conn.settimeout(None)           # session reads block indefinitely
                LOG.info("Connection from %s:%d", *addr[:2])
                threading.Thread(target=self._serve, args=(conn,), daemon=True).start()
        except KeyboardInterrupt:
            LOG.info("Shutdown requested")
        finally:
            self.stop()
            LOG.info("Relay stopped")

    def stop(self) -> None:
        self.running.clear()
        try:
            self.sock.close()
        except OSError:
            pass

    # ---------------------------------------------------------------- internals
    def _serve(self, conn: socket.socket) -> None:
        """Thread body: run one session to completion."""
        channel = LineChannel(conn)
        Session(channel, self.relay).run()

# ======================================================================
#  Command-line entry point
# ======================================================================

def main(argv: Optional[Sequence[str]] = None) -> None:
    config: ServerConfig = parse_args(argv)
    configure_logging(config.log_level, config.log_file)
    RelayServer(config.host, config.port).start()


if __name__ == "__main__":
    main()
