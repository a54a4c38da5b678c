#!/usr/bin/env python3
"""Server settings and the command-line parser that fills them in."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from .protocol import DEFAULT_HOST, DEFAULT_PORT

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass(slots=True)
class ServerConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_file: Optional[str] = "chat_relay.log"     # None ➜ console only
    log_level: int = logging.INFO


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser("chatrelay-server", description="Line-based TCP chat relay")
    parser.add_argument("--host", default=DEFAULT_HOST, help="Interface to bind (default: all)")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="TCP port to listen on")
    parser.add_argument("--log-file", default="chat_relay.log",
                        help="Rotating log file; pass an empty string to disable")
    parser.add_argument("--log-level", default="INFO", choices=LOG_LEVELS, type=str.upper)
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> ServerConfig:
    args = build_parser().parse_args(argv)
    return ServerConfig(
        host=args.host,
        port=args.port,
        log_file=args.log_file or None,
        log_level=getattr(logging, args.log_level),
    )
