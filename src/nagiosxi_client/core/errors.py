"""
Exceptions raised by the Nagios XI client.

Every failure surfaces to the caller as a subclass of NagiosError:
  - TransportError: network, connection or timeout failure (no response)
  - ResponseFormatError: body is not JSON or not the expected shape
  - ApiError: the server reported an error inside the response envelope
  - ApplyConfigError: the mutation succeeded but applying the configuration failed
  - NotFoundError: a read returned an empty collection
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class NagiosError(Exception):
    """Base class for all client errors."""


@dataclass
class TransportError(NagiosError):
    """No usable HTTP response (connection refused, DNS, timeout...)."""
    method: str
    url: str
    message: str = ""

    def __str__(self) -> str:
        base = f"TransportError({self.method} {self.url})"
        if self.message:
            base += f": {self.message}"
        return base


class ResponseFormatError(NagiosError):
    """The response body could not be interpreted."""


class ApiError(NagiosError):
    """Error message reported by Nagios in the `error` field of the envelope.

    The raw body is kept so callers can inspect it for diagnostics.
    """

    def __init__(self, message: str, body: bytes = b"") -> None:
        super().__init__(message)
        self.message = message
        self.body = body


class ApplyConfigError(NagiosError):
    """Apply configuration failed after a successful create/update/delete.

    The object change is NOT rolled back: it exists on the server but is not
    active until the configuration is applied again.
    """

    def __init__(self, operation: str, body: bytes = b"", reason: str = "") -> None:
        msg = f"{operation} succeeded but apply configuration failed"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
        self.operation = operation
        self.body = body


class NotFoundError(NagiosError):
    """A lookup by name returned no object."""

    def __init__(self, object_type: str, name: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"{object_type} '{name}' not found")
        self.object_type = object_type
        self.name = name


class HostNotFoundError(NotFoundError):
    def __init__(self, name: str) -> None:
        super().__init__("host", name)
