#!/usr/bin/env python3
"""The relay: name registry, membership and every kind of message fan-out.

All public methods take ``self._lock`` for their whole duration, so no caller
ever sees the registry and the membership list out of step with each other,
and every fan-out goes to one consistent snapshot of recipients.
"""

from __future__ import annotations

import threading                                  # One lock guards all relay state
from typing import TYPE_CHECKING, Dict, List, Optional

from .protocol import chat_message, join_message, private_message, roster_message
from .util import LOG

if TYPE_CHECKING:
    from .session import Session


class Relay:
    """Shared registry of named sessions; the single point of synchronization."""

    def __init__(self) -> None:
        # ------ shared state, only touched with _lock held ------
        self._lock = threading.Lock()                   # serializes every public method
        self._registry: Dict[str, "Session"] = {}     # name ➜ session
        self._members: List["Session"] = []            # named sessions, join order

    # ---------------------------------------------------------------- membership
    def claim(self, name: str, session: "Session") -> bool:
        """Register ``session`` under ``name`` if nobody holds it.

        On success the join announcement goes out to every active session,
        the new one included, before the lock is released.
        """
        with self._lock:
            if name in self._registry:
                return False
            self._registry[name] = session
            self._members.append(session)
            self._deliver_all(join_message(name))
        return True

    def release(self, name: str, session: Optional["Session"] = None) -> None:
        """Free ``name``. Unknown names are ignored, so repeated calls are safe.

        When ``session`` is given, the name is only freed if it still belongs
        to that session.
        """
        with self._lock:
            holder = self._registry.get(name)
            if holder is None or (session is not None and holder is not session):
                return
            del self._registry[name]
            self._members = [s for s in self._members if s is not holder]

    def list_online(self) -> List[str]:
        with self._lock:
            return list(self._registry)

    def __len__(self) -> int:
        with self._lock:
            return len(self._members)

    # ---------------------------------------------------------------- fan-out
    def broadcast(self, text: str) -> None:
        with self._lock:
            self._deliver_all(text)

    def broadcast_online(self) -> None:
        """Send the roster of claimed names to everyone."""
        with self._lock:
            self._deliver_all(roster_message(self._registry))

    def broadcast_from(self, sender: str, text: str) -> None:
        """Chat message from ``sender`` to everyone not blocking them."""
        line = chat_message(sender, text)
        with self._lock:
            for member in self._members:
                if member.is_blocking(sender):
                    continue
                self._deliver(member, line)

    def send_private(self, sender: str, receiver: str, text: str) -> None:
        """Direct message; silently dropped when ``receiver`` is not online.

        Block lists are not consulted for private messages.
        """
        with self._lock:
            target = self._registry.get(receiver)
            if target is None:
                LOG.debug("Private message from %s to unknown user %s dropped", sender, receiver)
                return
            self._deliver(target, private_message(sender, text))

    # ---------------------------------------------------------------- internals
    # Callers must hold self._lock.  send() only queues the line on the
    # recipient's channel, so holding the lock here never waits on a socket.
    def _deliver_all(self, text: str) -> None:
        for member in self._members:
            self._deliver(member, text)

    @staticmethod
    def _deliver(member: "Session", text: str) -> None:
        try:
            member.send(text)
        except Exception:
            # one broken recipient must not cut the fan-out short
            LOG.exception("Delivery to %r failed", member)
