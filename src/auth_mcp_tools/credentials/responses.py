"""Wire models for the auth server protocol and tool results.

Parses the JSON bodies returned by the auth server's get-token and
refresh-token endpoints, and defines the structured result returned to
tool callers.

Auth server body:
    {"status": "pending" | "success" | "error", "message"?: str,
     "access_token"?: str, "refresh_token"?: str, ...}
"""

from __future__ import annotations

__all__ = [
    "TokenResult",
    "TokenStatus",
    "TokenStatusResponse",
    "parse_status_response",
]

import json
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, PrivateAttr, ValidationError, field_validator

from auth_mcp_tools.constants import STATUS_FIELD


class TokenStatus(str, Enum):
    """Status values reported by the auth server."""

    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


class TokenStatusResponse(BaseModel):
    """Body of a get-token or refresh-token response.

    Unknown fields are accepted; they are persisted verbatim on success.

    Attributes:
        status: Reported status (see TokenStatus). Kept as a plain string so
            unexpected values can be logged instead of rejected.
        message: Human-readable detail, usually present on errors. Non-string
            values (e.g. an error object) are serialized to text.
        access_token: Bearer token, present on success.
    """

    model_config = ConfigDict(extra="allow")

    status: str
    message: str | None = None
    access_token: str | None = None

    _payload: dict[str, Any] = PrivateAttr(default_factory=dict)

    @field_validator("message", mode="before")
    @classmethod
    def stringify_message(cls, v: Any) -> Any:
        """Keep a non-string message instead of rejecting the whole body."""
        if v is None or isinstance(v, str):
            return v
        return json.dumps(v, default=str)

    @property
    def is_pending(self) -> bool:
        return self.status == TokenStatus.PENDING.value

    @property
    def is_success(self) -> bool:
        return self.status == TokenStatus.SUCCESS.value

    @property
    def is_error(self) -> bool:
        return self.status == TokenStatus.ERROR.value

    def token_fields(self) -> dict[str, Any]:
        """All returned fields except the status field, as received."""
        return {name: value for name, value in self._payload.items() if name != STATUS_FIELD}


def parse_status_response(data: Any) -> TokenStatusResponse:
    """Parse an auth server JSON body.

    Args:
        data: Decoded JSON body.

    Returns:
        TokenStatusResponse with the raw payload retained for merging.

    Raises:
        ValueError: If the body is not an object or has no usable status.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object from auth server, got {type(data).__name__}")
    try:
        response = TokenStatusResponse.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Malformed auth server response: {e.error_count()} invalid field(s)") from e
    response._payload = dict(data)
    return response


class TokenResult(BaseModel):
    """Structured outcome of a token resolution.

    This is the caller-visible contract: resolution never raises past the
    tool boundary, every outcome is a TokenResult.

    Attributes:
        status: "success" or "error".
        message: Human-readable description of the outcome.
        token: Access token on success.
        warning: Non-fatal issue (e.g. browser could not be opened).
    """

    status: Literal["success", "error"]
    message: str
    token: str | None = None
    warning: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @classmethod
    def success(cls, token: str, message: str, warning: str | None = None) -> "TokenResult":
        return cls(status="success", message=message, token=token, warning=warning)

    @classmethod
    def error(cls, message: str, warning: str | None = None) -> "TokenResult":
        return cls(status="error", message=message, warning=warning)

    def to_payload(self) -> str:
        """JSON text for the tool response (None fields omitted)."""
        return self.model_dump_json(exclude_none=True)
