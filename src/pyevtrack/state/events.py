"""Channel identifiers and lifecycle signals.

Both producers (push and poll) talk to the reconciler exclusively through
these values.  Only the reconciler turns them into a channel status.
"""

from __future__ import annotations

from enum import StrEnum


class ChannelSource(StrEnum):
    PUSH = "push"
    POLL = "poll"
    # Coordinates embedded in the credential response; primes the display.
    SEED = "seed"


class ChannelSignal(StrEnum):
    """Lifecycle signal a channel reports about itself."""

    CONNECTING = "connecting"
    HEALTHY = "healthy"
    RECONNECTING = "reconnecting"
    FAILED = "failed"
    DISCONNECTED = "disconnected"


FAILING_SIGNALS: frozenset[ChannelSignal] = frozenset({ChannelSignal.RECONNECTING, ChannelSignal.FAILED})
