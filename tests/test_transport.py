from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import aiohttp
import pytest

from pyevtrack._transport import HttpTransport
from pyevtrack.client import TrackingClient
from pyevtrack.config import TrackingConfig
from pyevtrack.exceptions import TrackingTransportError, TrackingUpstreamError
from pyevtrack.session import AuthSession

ENDPOINT = "/gw/devices/42/telemetry/position"


@dataclass
class FakeResponse:
    status: int = 200
    body: str = ""
    text_error: Exception | None = None

    async def text(self) -> str:
        if self.text_error is not None:
            raise self.text_error
        return self.body

    async def __aenter__(self) -> FakeResponse:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None


@dataclass
class FakeHttpSession:
    """Stands in for ``aiohttp.ClientSession.get``."""

    response: FakeResponse = field(default_factory=FakeResponse)
    error: Exception | None = None
    requests: list[dict[str, Any]] = field(default_factory=list)

    def get(self, url: str, *, headers: dict[str, str], timeout: aiohttp.ClientTimeout) -> FakeResponse:
        self.requests.append({"url": url, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def _transport(session: FakeHttpSession) -> HttpTransport:
    return HttpTransport(TrackingConfig(), session)  # type: ignore[arg-type]


async def _get(session: FakeHttpSession) -> Any:
    return await _transport(session).get_json(
        "https://provider.example.com" + ENDPOINT,
        headers={"Authorization": "FlespiToken abc"},
        timeout=5.0,
        endpoint=ENDPOINT,
    )


@pytest.mark.asyncio
async def test_get_json_returns_parsed_body_and_sends_headers() -> None:
    session = FakeHttpSession(response=FakeResponse(body='{"result": []}'))

    assert await _get(session) == {"result": []}

    request = session.requests[0]
    assert request["headers"]["Authorization"] == "FlespiToken abc"
    assert request["headers"]["accept"] == "application/json"
    assert request["headers"]["user-agent"].startswith("pyevtrack/")
    assert request["timeout"].total == 5.0


@pytest.mark.asyncio
async def test_empty_body_is_empty_object() -> None:
    assert await _get(FakeHttpSession(response=FakeResponse(body="  "))) == {}


@pytest.mark.asyncio
async def test_non_2xx_carries_status_code() -> None:
    session = FakeHttpSession(response=FakeResponse(status=500, body="internal error"))

    with pytest.raises(TrackingTransportError) as excinfo:
        await _get(session)

    assert excinfo.value.status_code == 500
    assert excinfo.value.endpoint == ENDPOINT


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        TimeoutError(),
        aiohttp.ClientConnectionError("connection reset"),
    ],
)
async def test_network_failures_have_no_status_code(error: Exception) -> None:
    with pytest.raises(TrackingTransportError) as excinfo:
        await _get(FakeHttpSession(error=error))

    assert excinfo.value.status_code is None
    assert excinfo.value.__cause__ is error


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "text_error",
    [
        UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte"),
        LookupError("unknown encoding: x-bogus"),
    ],
)
async def test_undecodable_body_is_transport_error(text_error: Exception) -> None:
    session = FakeHttpSession(response=FakeResponse(text_error=text_error))

    with pytest.raises(TrackingTransportError, match="Undecodable"):
        await _get(session)


@pytest.mark.asyncio
async def test_non_json_body_is_transport_error() -> None:
    session = FakeHttpSession(response=FakeResponse(body="<html>maintenance</html>"))

    with pytest.raises(TrackingTransportError, match="Invalid JSON"):
        await _get(session)


@pytest.mark.asyncio
@pytest.mark.e2e
@pytest.mark.parametrize(
    "session",
    [
        FakeHttpSession(error=TimeoutError()),
        FakeHttpSession(response=FakeResponse(text_error=UnicodeDecodeError("utf-8", b"\xff", 0, 1, "bad"))),
    ],
)
async def test_e2e_credential_failure_surfaces_as_upstream_error(session: FakeHttpSession) -> None:
    config = TrackingConfig(api_base_url="https://console.example.com/api", credential_timeout=2.0)
    auth = AuthSession(bearer_token="console-token")

    async with TrackingClient(config, auth, session=session) as client:  # type: ignore[arg-type]
        with pytest.raises(TrackingUpstreamError):
            await client.track("veh-1")

    assert session.requests[0]["url"] == "https://console.example.com/api/Vehicle/tracking/veh-1"
    assert session.requests[0]["timeout"].total == 2.0
