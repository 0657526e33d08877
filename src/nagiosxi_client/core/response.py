"""
Interpretation of Nagios XI responses.

Nagios XI reports application errors inside otherwise successful (200 OK)
responses, so the HTTP status is never used to decide the outcome. The body
envelope is:

    {"success": "...", "error": "..."}

A non-empty `error` is the only failure signal.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict

from .errors import ApiError, ResponseFormatError


@dataclass(frozen=True)
class ResponseEnvelope:
    success: str = ""
    error: str = ""

    @property
    def ok(self) -> bool:
        return not self.error

    @classmethod
    def from_json(cls, obj: Dict[str, Any]) -> "ResponseEnvelope":
        return cls(success=_as_text(obj.get("success")), error=_as_text(obj.get("error")))


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    # null, false, 0 and empty containers carry no message
    if not value:
        return ""
    # Some endpoints answer {"error": ["..."]} or {"error": {...}}
    return json.dumps(value, ensure_ascii=False)


def decode_json(body: bytes) -> Any:
    try:
        return json.loads(body.decode("utf-8") if isinstance(body, (bytes, bytearray)) else body)
    except (UnicodeDecodeError, ValueError) as exc:
        raise ResponseFormatError(f"response is not valid JSON: {exc}") from None


def parse_api_response(body: bytes, *, allow_collection: bool = False) -> bytes:
    """
    Check the envelope of a response body and return the body unchanged.

    Raises:
        ResponseFormatError: body is not JSON, or not an object (arrays are
            accepted when `allow_collection` is set, e.g. for list reads).
        ApiError: the envelope carries a non-empty error; `err.body` holds
            the raw body.
    """
    data = decode_json(body)

    if isinstance(data, list):
        if allow_collection:
            return body
        raise ResponseFormatError("expected a JSON object, got an array")
    if not isinstance(data, dict):
        raise ResponseFormatError(f"expected a JSON object, got {type(data).__name__}")

    envelope = ResponseEnvelope.from_json(data)
    if not envelope.ok:
        raise ApiError(envelope.error, body=body)
    return body
