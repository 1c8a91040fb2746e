"""High-level async client for vehicle position tracking."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import aiohttp

from pyevtrack._api.credential import CredentialGrant, fetch_tracking_credential
from pyevtrack._api.telemetry import fetch_latest_position
from pyevtrack._transport import HttpTransport, Transport
from pyevtrack.config import TrackingConfig
from pyevtrack.exceptions import TrackingError
from pyevtrack.models.credential import TrackingCredential
from pyevtrack.models.location import Invalid, LocationSample
from pyevtrack.models.state import TrackedVehicleState
from pyevtrack.session import AuthSession
from pyevtrack.tracking import TrackingSession

_logger = logging.getLogger(__name__)


class TrackingClient:
    """Async client for the vehicle tracking subsystem.

    Usage::

        auth = AuthSession.from_cookie_header(request_cookie_header)
        async with TrackingClient(TrackingConfig.from_env(), auth) as client:
            session = await client.track(vehicle_id, on_update=render)
            ...
            await session.close()
    """

    def __init__(
        self,
        config: TrackingConfig,
        auth: AuthSession | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._auth = auth
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = None
        self._tracking_sessions: set[TrackingSession] = set()

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> TrackingClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = HttpTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        for tracking in list(self._tracking_sessions):
            await tracking.close()
        self._tracking_sessions.clear()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    @property
    def auth(self) -> AuthSession | None:
        return self._auth

    def set_auth(self, auth: AuthSession | None) -> None:
        """Attach (or drop) the console session used for credential requests."""
        self._auth = auth

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise TrackingError("Client not initialized. Use 'async with TrackingClient(...) as client:'")
        return self._transport

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def obtain_credential(self, vehicle_id: str) -> CredentialGrant:
        """Exchange the console session for a tracking credential.

        Not retried; see :func:`pyevtrack._api.credential.fetch_tracking_credential`.
        """
        return await fetch_tracking_credential(
            self._config,
            self._auth,
            self._require_transport(),
            vehicle_id,
        )

    async def fetch_position(self, credential: TrackingCredential) -> LocationSample | Invalid:
        """One-off latest-position lookup outside of a tracking session."""
        return await fetch_latest_position(self._config, credential, self._require_transport())

    async def track(
        self,
        vehicle_id: str,
        *,
        on_update: Callable[[TrackedVehicleState], Any] | None = None,
    ) -> TrackingSession:
        """Start a tracking session for *vehicle_id*.

        Raises
        ------
        TrackingUnauthorizedError, TrackingNotFoundError, TrackingUpstreamError
            When the credential cannot be obtained.
        """
        transport = self._require_transport()
        grant = await self.obtain_credential(vehicle_id)
        tracking = TrackingSession(
            config=self._config,
            transport=transport,
            grant=grant,
            on_update=on_update,
        )
        await tracking.start()
        self._tracking_sessions.add(tracking)
        return tracking

    async def stop_tracking(self, tracking: TrackingSession) -> None:
        self._tracking_sessions.discard(tracking)
        await tracking.close()
