"""Location reconciler.

This is the only component allowed to mutate a tracking session's state.
Push and poll producers submit candidates and lifecycle signals through
:meth:`LocationReconciler.on_candidate` and
:meth:`LocationReconciler.on_channel_status`; everything runs on the event
loop, so no locking is involved.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from pyevtrack.models.location import LocationSample
from pyevtrack.models.state import ChannelStatus, TrackedVehicleState
from pyevtrack.state.events import ChannelSignal, ChannelSource
from pyevtrack.state.policy import ChannelHealth, derive_channel_status, should_accept_candidate

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class LocationReconciler:
    """Owns the single best-known position of one tracked vehicle.

    Parameters
    ----------
    vehicle_id : str
        Correlation key of the session.
    poll_interval : float
        Polling cadence in seconds; a channel failing for at least this
        long counts as down.
    push_enabled : bool
        Whether a push channel takes part in the session.
    clock : callable
        Monotonic clock used for failure durations.
    on_change : callable, optional
        Invoked with the new :class:`TrackedVehicleState` after every
        accepted sample or status change.
    """

    def __init__(
        self,
        vehicle_id: str,
        *,
        poll_interval: float,
        push_enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
        on_change: Callable[[TrackedVehicleState], Any] | None = None,
    ) -> None:
        self._vehicle_id = vehicle_id
        self._poll_interval = poll_interval
        self._push_enabled = push_enabled
        self._clock = clock
        self._on_change = on_change
        self._closed = False

        self._position: LocationSample | None = None
        self._position_source: ChannelSource | None = None
        self._updated_at: datetime | None = None
        self._accepted = 0
        self._status = ChannelStatus.IDLE
        self._channels: dict[ChannelSource, ChannelHealth] = {
            ChannelSource.PUSH: ChannelHealth(),
            ChannelSource.POLL: ChannelHealth(),
        }

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """End the session; every later input is ignored."""
        self._closed = True

    def on_candidate(self, sample: LocationSample, source: ChannelSource) -> bool:
        """Offer a candidate sample.  Returns whether it was accepted."""
        if self._closed:
            _logger.debug("Dropping %s sample for closed session %s", source, self._vehicle_id)
            return False
        if not isinstance(sample, LocationSample):
            return False
        if not should_accept_candidate(
            self._position,
            sample,
            current_source=self._position_source,
            source=source,
        ):
            return False

        self._position = sample
        self._position_source = source
        self._updated_at = _utcnow()
        self._accepted += 1
        health = self._channels.get(source)
        if health is not None:
            health.delivered = True
        self._refresh_status()
        _logger.debug(
            "Vehicle %s position %.6f,%.6f from %s",
            self._vehicle_id,
            sample.latitude,
            sample.longitude,
            source,
        )
        self._notify()
        return True

    def on_channel_status(self, source: ChannelSource, signal: ChannelSignal) -> None:
        """Record a channel lifecycle signal."""
        if self._closed:
            return
        health = self._channels.get(source)
        if health is None:
            return
        health.record(signal, self._clock())
        if self._refresh_status():
            self._notify()

    def get_state(self) -> TrackedVehicleState:
        """Snapshot for the presentation surface.

        The status is re-derived on read because Degraded/Error depend on
        how long a channel has been failing.
        """
        if not self._closed:
            self._refresh_status()
        return self._snapshot()

    def _refresh_status(self) -> bool:
        status = derive_channel_status(
            push=self._channels[ChannelSource.PUSH],
            poll=self._channels[ChannelSource.POLL],
            poll_interval=self._poll_interval,
            now=self._clock(),
            push_enabled=self._push_enabled,
        )
        if status == self._status:
            return False
        _logger.info("Vehicle %s tracking status %s -> %s", self._vehicle_id, self._status, status)
        self._status = status
        return True

    def _snapshot(self) -> TrackedVehicleState:
        return TrackedVehicleState(
            vehicle_id=self._vehicle_id,
            current_position=self._position,
            channel_status=self._status,
            position_source=self._position_source,
            updated_at=self._updated_at,
            accepted_samples=self._accepted,
        )

    def _notify(self) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change(self._snapshot())
        except Exception:
            _logger.warning("Tracking state listener failed", exc_info=True)
