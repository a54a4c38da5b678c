#!/usr/bin/env python3
"""Logging setup for the relay and a helper that finds our outward-facing IP."""

from __future__ import annotations
import logging                           # Python stdlib logging framework
import socket                            # Needed for IP detection
import sys                               # For stderr/stdout handles
from logging.handlers import RotatingFileHandler

__all__ = ["LOG", "configure_logging", "get_local_ip"]

# Package-wide logger.  Modules import it directly:
#     from chatrelay.util import LOG
LOG = logging.getLogger("chatrelay")

_FORMAT = logging.Formatter("[%(asctime)s] %(levelname)-8s %(message)s", "%H:%M:%S")


def configure_logging(level: int = logging.INFO, log_file: str | None = "chat_relay.log") -> logging.Logger:
    """Attach console + rotating file output to the "chatrelay" logger.

    Safe to call more than once: handlers are only registered on the first call.
    Pass ``log_file=None`` (or an empty string) to log to stdout only.
    """
    LOG.setLevel(level)
    if LOG.handlers:
        return LOG

    # ----- Console handler (stdout) -----
    sh = logging.StreamHandler(sys.stdout)
    sh.setFormatter(_FORMAT)
    LOG.addHandler(sh)

    # ----- Rotating file handler -----
    # 1 MiB per file, 3 backups.
    if log_file:
        fh = RotatingFileHandler(
            log_file,
            maxBytes=1_048_576,
            backupCount=3,
            encoding="utf-8",
        )
        fh.setFormatter(_FORMAT)
        LOG.addHandler(fh)

    return LOG


def get_local_ip() -> str:
    """Address other hosts would use to reach us, for the startup banner.

    Loopback is returned when no route out exists.
    """
    udp = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        # no packet leaves the host: connecting a datagram socket only
        # asks the routing table which local address it would use
        udp.connect(("192.0.2.1", 9))
        return udp.getsockname()[0]
    except OSError:
        return "127.0.0.1"
    finally:
        udp.close()
