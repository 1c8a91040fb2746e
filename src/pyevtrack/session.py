"""Console session state consumed by the credential broker."""

from __future__ import annotations

import time
from http.cookies import CookieError, SimpleCookie

from pydantic import BaseModel, ConfigDict, Field

from pyevtrack._constants import AUTH_COOKIE_NAME
from pyevtrack.exceptions import TrackingUnauthorizedError


class AuthSession(BaseModel):
    """An already-authenticated console session.

    pyevtrack never logs in.  The console hands over the bearer token it
    keeps in its auth cookie and every credential request is authorized
    with it.

    Parameters
    ----------
    bearer_token : str
        Console API bearer token.
    created_at : float
        Monotonic timestamp (``time.monotonic()``) when the session
        object was created.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
    )

    bearer_token: str = Field(min_length=1)
    created_at: float = Field(default_factory=time.monotonic)

    @classmethod
    def from_cookie_header(cls, header: str, *, cookie_name: str = AUTH_COOKIE_NAME) -> AuthSession:
        """Build a session from a raw ``Cookie`` request header.

        Raises
        ------
        TrackingUnauthorizedError
            If the header carries no usable auth cookie.
        """
        cookie: SimpleCookie = SimpleCookie()
        try:
            cookie.load(header or "")
        except CookieError as exc:
            raise TrackingUnauthorizedError("Malformed cookie header") from exc

        morsel = cookie.get(cookie_name)
        if morsel is None or not morsel.value.strip():
            raise TrackingUnauthorizedError(f"No '{cookie_name}' cookie in request")
        return cls(bearer_token=morsel.value)

    @property
    def authorization_header(self) -> str:
        """Value for the ``Authorization`` header."""
        return f"Bearer {self.bearer_token}"

    @property
    def age(self) -> float:
        """Seconds since the session object was created."""
        return time.monotonic() - self.created_at
