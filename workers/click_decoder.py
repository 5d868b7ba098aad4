"""Raw queue payload -> ClickEvent."""

from __future__ import annotations

from pydantic import ValidationError

from errors import DecodeError
from schemas.models.click_event import ClickEvent


def decode_click_event(payload: bytes) -> ClickEvent:
    """Parse one queue message body.

    Invalid UTF-8 sequences are replaced rather than rejected; the JSON and
    field validation that follows decides whether the message is usable.

    Raises:
        DecodeError: payload is not a JSON object with a string ``l`` field
            (and, when present, a string or null ``i`` field). The error
            carries the payload size, never its content, so a client IP in a
            broken message does not reach the logs.
    """
    text = payload.decode("utf-8", errors="replace")
    try:
        return ClickEvent.model_validate_json(text)
    except ValidationError as e:
        raise DecodeError(
            "corrupted click event payload",
            details={
                "payload_bytes": len(payload),
                "errors": [err["msg"] for err in e.errors()],
            },
        ) from e
