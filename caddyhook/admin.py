"""Thin client for the Caddy admin API.

Only name-resolution and connection failures are turned into a value
(``AdminResponse.unreachable``); callers decide whether to retry. Every other
transport or decoding problem raises TransportError.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

import dns.exception
import dns.resolver
import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError

from .settings import Settings

# Caddy has shipped both '"error":"unknown object ID' and '"error": "unknown object ID'.
UNKNOWN_OBJECT_ID = re.compile(r'"error":\s*"unknown object id', re.IGNORECASE)

JSON_HEADERS = {"Content-Type": "application/json"}


class TransportError(Exception):
    pass


@dataclass(frozen=True)
class AdminResponse:
    status_code: int | None
    text: str = ""
    data: Any = None

    @property
    def unreachable(self) -> bool:
        return self.status_code is None

    @property
    def ok(self) -> bool:
        return self.status_code is not None and 200 <= self.status_code < 300

    @property
    def unknown_object_id(self) -> bool:
        return bool(UNKNOWN_OBJECT_ID.search(self.text))


class HostMatcher(BaseModel):
    model_config = ConfigDict(extra="ignore")

    host: list[str] | None = None


class RemoteRoute(BaseModel):
    """The parts of a Caddy route needed to find it again."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str | None = Field(None, alias="@id")
    match: list[HostMatcher] | None = None

    @property
    def match_hosts(self) -> list[str]:
        return [h for m in self.match or [] for h in m.host or []]


class RemoteServer(BaseModel):
    model_config = ConfigDict(extra="ignore")

    routes: list[RemoteRoute] = Field(default_factory=list)


def lookup_host(host: str, dns_server: str, timeout_s: float) -> str | None:
    """Resolve ``host`` to an IPv4 address by asking ``dns_server`` directly.

    Returns None when the name cannot be resolved; that counts as unreachable.
    """
    resolver = dns.resolver.Resolver(configure=False)
    resolver.nameservers = [dns_server]
    resolver.lifetime = timeout_s
    try:
        answer = resolver.resolve(host, "A")
    except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer, dns.resolver.NoNameservers, dns.exception.Timeout):
        return None
    return answer[0].to_text()


def route_path(server: str, index: int | None = None) -> str:
    base = f"/config/apps/http/servers/{server}/routes"
    return base if index is None else f"{base}/{index}"


class AdminClient:
    """Read, create and delete Caddy config objects over HTTP."""

    def __init__(self, settings: Settings, http_client: httpx.Client | None = None):
        self.settings = settings
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(
            base_url=settings.admin_url,
            timeout=settings.timeout_s,
            follow_redirects=False,
        )

    def __enter__(self) -> AdminClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def get_by_id(self, object_id: str) -> AdminResponse:
        return self._request("GET", f"/id/{object_id}")

    def get_routes(self, server: str) -> tuple[AdminResponse, list[RemoteRoute]]:
        """Fetch the server object and decode its route list.

        Returns (response, routes); routes is empty when unreachable.
        """
        resp = self._request("GET", f"/config/apps/http/servers/{server}/")
        if not resp.ok or resp.data is None:
            return resp, []
        try:
            remote = RemoteServer.model_validate(resp.data)
        except PydanticValidationError as e:
            raise TransportError(f"Unexpected route list from server '{server}': {e}") from e
        return resp, remote.routes

    def put(self, path: str, document: dict[str, Any]) -> AdminResponse:
        return self._request("PUT", path, json.dumps(document))

    def delete(self, path: str) -> AdminResponse:
        return self._request("DELETE", path)

    def _request(self, method: str, path: str, body: str | None = None) -> AdminResponse:
        url = self._url(path)
        if url is None:
            return AdminResponse(status_code=None)
        try:
            resp = self._http.request(method, url, content=body, headers=JSON_HEADERS)
        except (httpx.ConnectError, httpx.ConnectTimeout):
            return AdminResponse(status_code=None)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {path} failed: {type(e).__name__}: {e}") from e
        return _normalize(method, path, resp)

    def _url(self, path: str) -> str | None:
        """Relative path for the client's base URL, or an absolute URL via the configured DNS server."""
        if not self.settings.dns_server:
            return path
        address = lookup_host(self.settings.admin_host, self.settings.dns_server, self.settings.timeout_s)
        if address is None:
            return None
        return f"http://{address}:{int(self.settings.admin_port)}{path}"


def _normalize(method: str, path: str, resp: httpx.Response) -> AdminResponse:
    raw = resp.text.strip()
    if not raw:
        return AdminResponse(status_code=resp.status_code)
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise TransportError(f"{method} {path} returned invalid JSON (HTTP {resp.status_code}): {raw[:200]!r}") from e
    return AdminResponse(status_code=resp.status_code, text=json.dumps(data, indent=2), data=data)
