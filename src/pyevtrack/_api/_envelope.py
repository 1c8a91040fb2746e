"""Console backend JSON envelope.

Every console endpoint answers ``{"success": bool, "message": str, "data": ...}``.
Some deployments drop the wrapper entirely, so parsing is lenient.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict


class ApiEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    success: bool | None = None
    message: str | None = None
    data: Any = None

    @classmethod
    def from_body(cls, body: Any) -> ApiEnvelope:
        if not isinstance(body, Mapping):
            return cls()
        message = body.get("message")
        success = body.get("success")
        return cls(
            success=success if isinstance(success, bool) else None,
            message=message if isinstance(message, str) else None,
            data=body.get("data"),
        )

    @property
    def data_object(self) -> Mapping[str, Any] | None:
        return self.data if isinstance(self.data, Mapping) else None
