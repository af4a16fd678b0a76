"""Caddy JSON route documents.

Placeholders such as ``{http.request.remote.host}`` are left as text; Caddy
resolves them per request.
"""
from __future__ import annotations

from typing import Any

from .routes import RedirectSpec, RouteSpec

PRIVATE_RANGES = [
    "192.168.0.0/16",
    "172.16.0.0/12",
    "10.0.0.0/8",
    "127.0.0.1/8",
    "fd00::/8",
    "::1",
]

HSTS = "max-age=31536000;"

FORWARD_HEADERS = {
    "X-Forwarded-Proto": ["{http.request.scheme}"],
    "X-Real-Ip": ["{http.request.remote.host}"],
    "X-Forwarded-For": ["{http.request.remote.host}"],
    "Forwarded": ["for={http.request.remote.host};host={http.request.host};proto={http.request.scheme}"],
}


def _host_route(identity: str, handle: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "@id": identity,
        "match": [{"host": [identity]}],
        "handle": handle,
        "terminal": True,
    }


def private_guard() -> dict[str, Any]:
    """Abort requests whose remote address is outside the private ranges."""
    return {
        "match": [{"not": [{"remote_ip": {"ranges": list(PRIVATE_RANGES)}}]}],
        "handle": [{"handler": "static_response", "abort": True}],
    }


def render_route(spec: RouteSpec) -> dict[str, Any]:
    proxy = {
        "handle": [
            {
                "handler": "reverse_proxy",
                "headers": {
                    "request": {"set": {k: list(v) for k, v in FORWARD_HEADERS.items()}},
                    "response": {"set": {"Strict-Transport-Security": [HSTS]}},
                },
                "upstreams": [{"dial": spec.upstream}],
            }
        ]
    }
    subroutes = [private_guard(), proxy] if spec.private else [proxy]
    return _host_route(spec.public_host, [{"handler": "subroute", "routes": subroutes}])


def render_redirect(spec: RedirectSpec) -> dict[str, Any]:
    return _host_route(
        spec.origin_host,
        [
            {
                "handler": "static_response",
                "status_code": 302,
                "headers": {"Location": [f"{spec.redirect_target}{{http.request.uri}}"]},
            }
        ],
    )


def render(spec: RouteSpec | RedirectSpec) -> dict[str, Any]:
    if isinstance(spec, RedirectSpec):
        return render_redirect(spec)
    return render_route(spec)
