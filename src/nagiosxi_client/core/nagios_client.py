"""
NagiosClient: form-encoded HTTP client for the Nagios XI REST API (v1).

This module provides:
  * The URL builder for `{base}/api/v1/{category}/{object_type}/[{id}[/{id2}]]`
  * The transport (`send`) with fixed headers and a 5 second overall timeout
  * Generic object verbs (`create_object`, `list_objects`, `update_object`,
    `delete_object`) that follow every mutation with an apply-configuration call
  * `apply_config` and `system_info`

Design goals:
  * Outcome is read from the response envelope, never from the HTTP status
  * No retries: every failure surfaces immediately as a NagiosError subclass
  * The API token travels as the `apikey` query parameter and is masked in
    logs and error messages

Example:
    client = NagiosClient("https://nagios.local/nagiosxi", token)
    hosts = client.list_objects(HOST, FormParams([("host_name", "web01")]))
"""
from __future__ import annotations

import logging
import re
import time
import warnings
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union
from urllib.parse import quote, urlencode

import requests
import urllib3

from .errors import ApplyConfigError, NagiosError, ResponseFormatError, TransportError
from .params import FormParams
from .response import decode_json, parse_api_response

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SEC = 5.0
API_PREFIX = "api/v1/"
SERVICE_OBJECT_TYPE = "service"

_APIKEY_RE = re.compile(r"(apikey=)[^&\s'\"]+", re.IGNORECASE)
_LOG_PREVIEW = 600
_READ_CHUNK = 1024


@dataclass(frozen=True)
class Resource:
    """API category + object type, e.g. Resource("config", "host")."""
    category: str
    object_type: str

    def __str__(self) -> str:
        return f"{self.category}/{self.object_type}"


APPLY_CONFIG = Resource("system", "applyconfig")
SYSTEM_INFO = Resource("system", "info")


def mask_apikey(text: str) -> str:
    """Hide the value of any `apikey=` parameter in a URL or message."""
    return _APIKEY_RE.sub(r"\1***REDACTED***", text)


def _preview(body: bytes, limit: int = _LOG_PREVIEW) -> str:
    return body[:limit].decode("utf-8", errors="replace")


class NagiosClient:
    """HTTP client for the Nagios XI API.

    Args:
        url: Base URL of Nagios XI (e.g. ``https://nagios.local/nagiosxi``).
        token: API key of a Nagios XI user.
        verify_tls: If False, certificate verification is disabled.
        timeout_sec: Overall timeout of one request, body included.
        logger: Optional logger or LoggerAdapter.
    """

    def __init__(
        self,
        url: str,
        token: str,
        *,
        verify_tls: bool = True,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
    ) -> None:
        if not url:
            raise ValueError("url is required")
        self._url = url
        self._token = token
        self.verify_tls = verify_tls
        self.timeout = float(timeout_sec)
        self.log = logger or log

        self.session = requests.Session()
        self.session.headers.update({
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json, */*",
        })

        if not verify_tls:
            warnings.filterwarnings("ignore", category=urllib3.exceptions.InsecureRequestWarning)

    @property
    def url(self) -> str:
        return self._url

    @property
    def token(self) -> str:
        return self._token

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "NagiosClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ---------------- URL builder ----------------

    def build_url(
        self,
        resource: Resource,
        method: str,
        *identifiers: str,
        query: Optional[FormParams] = None,
    ) -> str:
        """Build the full, percent-encoded URL of an API call.

        Identifiers are only used by PUT and DELETE. A service is addressed by
        host name and service description, so it needs two identifiers.
        """
        method = method.upper()
        base = self._url.rstrip("/") + "/" + API_PREFIX

        path = f"{_segment(resource.category)}/{_segment(resource.object_type)}/"
        if method in ("PUT", "DELETE") and identifiers:
            path += _segment(identifiers[0])
            if resource.object_type == SERVICE_OBJECT_TYPE:
                if len(identifiers) < 2:
                    raise ValueError("a service is addressed by host name and service description")
                path += "/" + _segment(identifiers[1])

        pairs = [("apikey", self._token), ("pretty", "1")]
        if query is not None:
            pairs.extend(query.items())
        return base + path + "?" + urlencode(pairs, quote_via=quote)

    # ---------------- transport ----------------

    def send(self, method: str, url: str, params: Optional[FormParams] = None) -> bytes:
        """Issue one request and return the raw body, whatever the status code.

        PUT never carries a body: its parameters are part of the URL.

        Raises:
            TransportError: connection-level failure or timeout.
        """
        method = method.upper()
        data: Optional[str] = None
        if method != "PUT":
            data = (params or FormParams()).encode()

        safe_url = mask_apikey(url)
        timed_out = f"timed out after {self.timeout:g}s"
        start = time.monotonic()
        deadline = start + self.timeout
        try:
            resp = self.session.request(
                method=method,
                url=url,
                data=data,
                timeout=self.timeout,
                verify=self.verify_tls,
                stream=True,
            )
        except requests.Timeout:
            raise TransportError(method, safe_url, timed_out) from None
        except requests.RequestException as exc:
            raise TransportError(method, safe_url, mask_apikey(str(exc))) from None

        # the timeout covers the whole exchange, not each socket read
        chunks: List[bytes] = []
        try:
            for chunk in resp.iter_content(chunk_size=_READ_CHUNK):
                chunks.append(chunk)
                if time.monotonic() > deadline:
                    raise TransportError(method, safe_url, timed_out)
        except requests.RequestException as exc:
            raise TransportError(method, safe_url, mask_apikey(str(exc))) from None
        finally:
            resp.close()
        if time.monotonic() > deadline:
            raise TransportError(method, safe_url, timed_out)

        body = b"".join(chunks)
        elapsed = (time.monotonic() - start) * 1000
        self.log.debug("%s %s -> %s in %.1fms", method, safe_url, resp.status_code, elapsed)
        self.log.debug("response=%s", _preview(body))
        return body

    def _request(
        self,
        method: str,
        resource: Resource,
        *identifiers: str,
        params: Optional[FormParams] = None,
        query: Optional[FormParams] = None,
        allow_collection: bool = False,
    ) -> bytes:
        url = self.build_url(resource, method, *identifiers, query=query)
        body = self.send(method, url, params)
        return parse_api_response(body, allow_collection=allow_collection)

    # ---------------- generic object verbs ----------------

    def apply_config(self) -> bytes:
        """Commit pending configuration changes and restart the Nagios core."""
        self.log.debug("applying configuration")
        return self._request("POST", APPLY_CONFIG, params=FormParams())

    def _apply_after(self, operation: str, resource: Resource, body: bytes) -> None:
        try:
            self.apply_config()
        except NagiosError as exc:
            raise ApplyConfigError(f"{operation} {resource.object_type}", body=body, reason=str(exc)) from exc

    def create_object(self, resource: Resource, params: FormParams) -> bytes:
        """POST a new object, then apply configuration."""
        self.log.debug("CREATE %s fields=%s", resource, [k for k, _ in params])
        body = self._request("POST", resource, params=params)
        self._apply_after("create", resource, body)
        return body

    def list_objects(self, resource: Resource, query: Optional[FormParams] = None) -> List[Any]:
        """GET objects, filtered by the given query parameters.

        Nagios answers with a JSON array, even for an exact-name filter.
        """
        self.log.debug("LIST %s filter=%s", resource, query.items() if query else [])
        body = self._request("GET", resource, params=FormParams(), query=query, allow_collection=True)
        data = decode_json(body)
        if not isinstance(data, list):
            raise ResponseFormatError(f"expected a JSON array for {resource}, got {type(data).__name__}")
        return data

    def update_object(self, resource: Resource, identifiers: Sequence[str], params: FormParams) -> bytes:
        """PUT new field values onto the object addressed by `identifiers`, then apply."""
        self.log.debug("UPDATE %s id=%s fields=%s", resource, list(identifiers), [k for k, _ in params])
        body = self._request("PUT", resource, *identifiers, query=params)
        self._apply_after("update", resource, body)
        return body

    def delete_object(self, resource: Resource, identifiers: Sequence[str], params: FormParams) -> bytes:
        """DELETE the object addressed by `identifiers`, then apply."""
        self.log.debug("DELETE %s id=%s", resource, list(identifiers))
        body = self._request("DELETE", resource, *identifiers, params=params)
        self._apply_after("delete", resource, body)
        return body

    def system_info(self) -> Dict[str, Any]:
        """Return product/version information; handy as a connectivity check."""
        body = self._request("GET", SYSTEM_INFO, params=FormParams())
        return decode_json(body)


def _segment(value: str) -> str:
    return quote(str(value), safe="")
