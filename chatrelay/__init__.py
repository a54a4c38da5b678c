"""chatrelay – a line-based TCP chat relay.

Importing this package exposes :class:`chatrelay.Relay`,
:class:`chatrelay.Session`, :class:`chatrelay.RelayServer` and
:class:`chatrelay.RelayChatClient`, so the relay can be embedded in another
application or launched with the ``chatrelay-server`` console script.
"""

from .client import RelayChatClient  # noqa: F401  (re-export)
from .relay import Relay             # noqa: F401
from .server import RelayServer      # noqa: F401
from .session import Session         # noqa: F401

__all__: list[str] = [
    "Relay",            # Name registry + fan-out
    "Session",          # Per-connection state and command handling
    "RelayServer",      # TCP accept loop, thread per connection
    "RelayChatClient",  # Terminal client
]
