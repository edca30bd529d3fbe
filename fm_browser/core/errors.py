from typing import Any, Optional


class FileMakerError(RuntimeError):
    """Base error for failures talking to the FileMaker Data API."""

    kind = "error"

    def __init__(self, message: str, *, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class AuthFailure(FileMakerError):
    """The session endpoint rejected the configured credentials."""

    kind = "auth"


class TransportError(FileMakerError):
    """Network, TLS or unexpected HTTP status failure."""

    kind = "transport"


class MalformedResponse(FileMakerError):
    """The response body is missing the expected envelope."""

    kind = "malformed"


class RecordNotFound(FileMakerError):
    kind = "not_found"


def first_message_code(payload: Any) -> Optional[str]:
    """Return ``messages[0].code`` from a Data API error body, if any."""
    if not isinstance(payload, dict):
        return None
    messages = payload.get("messages")
    if not isinstance(messages, list) or not messages:
        return None
    first = messages[0]
    if not isinstance(first, dict):
        return None
    code = first.get("code")
    return str(code) if code is not None else None
