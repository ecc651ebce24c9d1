"""
HTTP client for the discovery registry

This module provides:
- RegistryClient: thin urllib-based client for the register, update and
  deregister endpoints of the registry's discovery API

Every public method returns a CallResult instead of raising, so callers
branch on ``result.ok``.
"""

import http.client
import json
import logging
import socket
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Iterable, Optional

from ..errors import (
    BeaconError,
    DeregistrationError,
    PingError,
    ProtocolError,
    PublishError,
    RegistrationError,
    TransportError,
)
from .models import CallResult, DiscoveryNode, PluginInfo, RegistrationInfo


logger = logging.getLogger(__name__)

DISCOVERY_PATH = "/api/v2.2/discovery"


class RegistryClient:
    """Client for a single registry, authenticating every call."""

    def __init__(self, base_url: str, authorization: str, timeout: float = 10.0):
        self._base = base_url.rstrip("/")
        self._authorization = authorization
        self._timeout = timeout
        self._opener = urllib.request.build_opener(urllib.request.ProxyHandler({}))

    @property
    def base_url(self) -> str:
        return self._base

    def _request(self, method: str, path: str, body: Any = None) -> Any:
        """Send one request and return the decoded JSON body (or None).

        Raises TransportError or ProtocolError.
        """
        url = f"{self._base}{path}"
        data = json.dumps(body).encode() if body is not None else None
        req = urllib.request.Request(url, data=data, method=method)
        req.add_header("Authorization", self._authorization)
        req.add_header("Accept", "application/json")
        if data is not None:
            req.add_header("Content-Type", "application/json")

        logger.debug("%s %s", method, url)
        try:
            with self._opener.open(req, timeout=self._timeout) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as e:
            raise ProtocolError(f"{method} {url} returned HTTP {e.code}", status=e.code) from e
        except http.client.HTTPException as e:
            raise ProtocolError(f"{method} {url} returned a malformed response: {e!r}") from e
        except (urllib.error.URLError, socket.timeout, OSError) as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        if not raw:
            return None
        try:
            return json.loads(raw.decode())
        except (UnicodeDecodeError, ValueError) as e:
            raise ProtocolError(f"{method} {url} returned malformed JSON") from e

    def register(self, info: RegistrationInfo) -> CallResult[PluginInfo]:
        try:
            data = self._request("POST", DISCOVERY_PATH, info.to_dict())
            return CallResult.success(PluginInfo.from_response(data))
        except BeaconError as e:
            return CallResult.failure(RegistrationError(e))

    def update(self, plugin_id: str, nodes: Iterable[DiscoveryNode]) -> CallResult[None]:
        path = f"{DISCOVERY_PATH}/{urllib.parse.quote(plugin_id, safe='')}"
        try:
            self._request("POST", path, [n.to_dict() for n in nodes])
            return CallResult.success()
        except BeaconError as e:
            return CallResult.failure(PublishError(e))

    def deregister(self, plugin_id: str) -> CallResult[None]:
        path = f"{DISCOVERY_PATH}/{urllib.parse.quote(plugin_id, safe='')}"
        try:
            self._request("DELETE", path)
            return CallResult.success()
        except BeaconError as e:
            return CallResult.failure(DeregistrationError(e))

    def ping(self) -> CallResult[Optional[dict]]:
        """Check that the registry answers on its health route."""
        try:
            return CallResult.success(self._request("GET", "/health"))
        except BeaconError as e:
            return CallResult.failure(PingError(e))
