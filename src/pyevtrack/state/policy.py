"""Deterministic update and status policy.

This module intentionally contains *no* payload parsing.  The ingestion
boundary hands over validated samples and channel signals; the rules here
decide which sample is displayed and which status the session shows.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from pyevtrack.models.location import LocationSample
from pyevtrack.models.state import ChannelStatus
from pyevtrack.state.events import FAILING_SIGNALS, ChannelSignal, ChannelSource


class ChannelHealth(BaseModel):
    """Mutable per-channel bookkeeping owned by the reconciler."""

    model_config = ConfigDict(extra="forbid")

    signal: ChannelSignal | None = None
    failing_since: float | None = None
    consecutive_failures: int = 0
    delivered: bool = False

    @property
    def is_failing(self) -> bool:
        return self.signal in FAILING_SIGNALS

    def failing_for(self, now: float) -> float:
        if not self.is_failing or self.failing_since is None:
            return 0.0
        return max(0.0, now - self.failing_since)

    def record(self, signal: ChannelSignal, now: float) -> None:
        if signal in FAILING_SIGNALS:
            if not self.is_failing:
                self.failing_since = now
            self.consecutive_failures += 1
        else:
            self.failing_since = None
            self.consecutive_failures = 0
        self.signal = signal


def should_accept_candidate(
    current: LocationSample | None,
    candidate: LocationSample,
    *,
    current_source: ChannelSource | None = None,
    source: ChannelSource | None = None,
) -> bool:
    """Last-writer-wins with deduplication.

    Any candidate replaces the current position unless it is the same fix
    (latitude, longitude and timestamp all equal).  A seeded position is
    only a placeholder: the first push or poll fix always replaces it, even
    when a parked vehicle reports the same coordinates.
    """
    if current_source == ChannelSource.SEED and source not in (None, ChannelSource.SEED):
        return True
    return not candidate.same_fix(current)


def derive_channel_status(
    *,
    push: ChannelHealth,
    poll: ChannelHealth,
    poll_interval: float,
    now: float,
    push_enabled: bool = True,
) -> ChannelStatus:
    """Derive the session status from both channels.

    Policy, first match wins:
    - Error: push and poll have both been failing for at least one polling
      interval (with push disabled, poll alone decides).
    - Degraded: push has been failing for at least one polling interval
      while the latest poll succeeded.
    - Live: either channel has delivered an accepted sample.
    - Otherwise the push lifecycle (Reconnecting/Connecting) or Idle.
    """
    poll_down = poll.is_failing and poll.failing_for(now) >= poll_interval
    if not push_enabled:
        if poll_down:
            return ChannelStatus.ERROR
        if poll.delivered:
            return ChannelStatus.LIVE
        if poll.signal is not None:
            return ChannelStatus.CONNECTING
        return ChannelStatus.IDLE

    push_down = push.is_failing and push.failing_for(now) >= poll_interval
    if push_down and poll_down:
        return ChannelStatus.ERROR
    if push_down and poll.signal == ChannelSignal.HEALTHY:
        return ChannelStatus.DEGRADED
    if push.delivered or poll.delivered:
        return ChannelStatus.LIVE
    if push.is_failing:
        return ChannelStatus.RECONNECTING
    if push.signal in (ChannelSignal.CONNECTING, ChannelSignal.HEALTHY) or poll.signal is not None:
        return ChannelStatus.CONNECTING
    return ChannelStatus.IDLE
