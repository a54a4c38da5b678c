#!/usr/bin/env python3
"""Command-line TCP chat *client* for the relay:

* Background thread prints every line the relay sends
* Foreground loop forwards stdin lines verbatim
* ANSI-coloured output via *colorama*.

Usage (after installing package locally):

    chatrelay-client 203.0.113.22 --port 9000
"""

from __future__ import annotations

import argparse
import socket
import sys
import threading

from .protocol import DEFAULT_PORT, QUIT, USERNAME_PROMPT, USERNAME_TAKEN
from .transport import LineChannel
from .util import LOG, configure_logging

# 3rd-party: coloured terminal output (pip install colorama)
from colorama import Fore, Style, init
init(autoreset=True)                               # Reset colour after each print

_PROMPTS = (USERNAME_PROMPT, USERNAME_TAKEN)


def style_line(line: str) -> str:
    """Colour one relay line according to what kind of message it is."""
    if line in _PROMPTS:
        return f"{Fore.CYAN}{line}{Style.RESET_ALL}"
    if line.startswith("Private message from "):
        return f"{Fore.MAGENTA}{line}{Style.RESET_ALL}"
    if line.endswith(" has joined the chat.") or line.startswith("Users Online:"):
        return f"{Fore.YELLOW}{line}{Style.RESET_ALL}"
    sender, sep, text = line.partition(": ")
    if sep and sender and " " not in sender:       # "<name>: <text>"
        return f"{Fore.GREEN}{sender}:{Style.RESET_ALL} {text}"
    return line


class RelayChatClient:
    """Connects to a relay and pipes stdin/stdout through it."""

    def __init__(self, server_ip: str, server_port: int = DEFAULT_PORT) -> None:
        self.server = (server_ip, server_port)
        self.channel = LineChannel(socket.create_connection(self.server))
        self.running = threading.Event()
        self.running.set()

    # ================================================================== main ===
    def start(self) -> None:
        """Blocking run-loop: read stdin while a background thread prints replies."""
        LOG.info("Connected to %s:%d", *self.server)
        threading.Thread(target=self._recv_loop, daemon=True).start()
        try:
            for line in sys.stdin:
                if not self.running.is_set():
                    break
                msg = line.rstrip("\n")
                if msg.strip() == QUIT:
                    break
                self.channel.write_line(msg)
        except KeyboardInterrupt:
            pass
        finally:
            self.running.clear()
            self.channel.close()
            LOG.info("Disconnected")

    # ---------------------------------------------------------------- receive loop
    def _recv_loop(self) -> None:
        try:
            while self.running.is_set():
                line = self.channel.read_line()
                if line is None:
                    print(f"{Fore.RED}[relay closed the connection]{Style.RESET_ALL}")
                    break
                print(style_line(line))
        except (OSError, UnicodeDecodeError, ValueError):
            pass                                   # socket closed under us by start()
        finally:
            self.running.clear()

# ======================================================================
#  Command-line entry point
# ======================================================================

def main() -> None:
    parser = argparse.ArgumentParser("chatrelay-client")
    parser.add_argument("server_ip", help="IP address of the relay")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="TCP port of the relay")
    args = parser.parse_args()
    configure_logging(log_file=None)
    RelayChatClient(args.server_ip, args.port).start()


if __name__ == "__main__":
    main()
