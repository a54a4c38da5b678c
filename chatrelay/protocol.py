#!/usr/bin/env python3
"""Shared constants and text helpers used by the relay, the server and the client.

The wire format is plain UTF-8 text, one message per ``\\n``-terminated line.
Every line the relay writes is built by the helpers below so the server and
the terminal client never disagree on wording.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

# --- Network configuration -------------------------------------------------
DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 9000
ENCODING: str = "utf-8"

# --- Bootstrap prompts -------------------------------------------------------
USERNAME_PROMPT = "Enter your username: "
USERNAME_TAKEN = "Username is already taken. Enter a different username: "

# --- Client commands ---------------------------------------------------------
BLOCK = "/block"
UNBLOCK = "/unblock"
ONLINE = "/online"
PRIVATE = "/private"
QUIT = "/quit"          # handled by the terminal client only


class CommandKind(Enum):
    """Discriminator for a parsed input line."""

    BLOCK = BLOCK
    UNBLOCK = UNBLOCK
    ONLINE = ONLINE
    PRIVATE = PRIVATE
    CHAT = "chat"       # anything else: broadcast the whole line


@dataclass(frozen=True, slots=True)
class Command:
    """One input line split into ``command``, ``argument`` and ``message``.

    ``line`` keeps the raw input so a CHAT command can be broadcast verbatim.
    """

    kind: CommandKind
    argument: str
    message: str
    line: str


_KNOWN = {kind.value: kind for kind in CommandKind if kind is not CommandKind.CHAT}


def parse_command(line: str) -> Command:
    """Split ``line`` into command / argument / message.

    The first whitespace-delimited token is the command, the next one is the
    argument, and whatever follows (inner whitespace included) is the message.
    """
    parts = line.split(maxsplit=2)
    command = parts[0] if parts else ""
    argument = parts[1] if len(parts) > 1 else ""
    message = parts[2] if len(parts) > 2 else ""
    kind = _KNOWN.get(command, CommandKind.CHAT)
    return Command(kind, argument, message, line)


# --- Outbound text -----------------------------------------------------------

def join_message(name: str) -> str:
    return f"{name} has joined the chat."


def chat_message(sender: str, text: str) -> str:
    return f"{sender}: {text}"


def private_message(sender: str, text: str) -> str:
    return f"Private message from {sender}: {text}"


def roster_message(names: Iterable[str]) -> str:
    """Roster sent in reply to ``/online``: a header line, then the names."""
    return "Users Online: \n" + ", ".join(names)
