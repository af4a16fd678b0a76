from __future__ import annotations

import re
from dataclasses import dataclass

ROUTE_FORMAT = "PUBLIC_NAME:INTERN_NAME:INTERN_PORT"
PORT_RE = re.compile(r"^[0-9]{1,5}$")


class ValidationError(ValueError):
    pass


@dataclass(frozen=True)
class RouteSpec:
    public_host: str
    internal_host: str
    internal_port: str
    private: bool = False

    @property
    def identity(self) -> str:
        return self.public_host

    @property
    def upstream(self) -> str:
        return f"{self.internal_host}:{self.internal_port}"


@dataclass(frozen=True)
class RedirectSpec:
    origin_host: str
    redirect_target: str

    @property
    def identity(self) -> str:
        return self.origin_host


def parse_route(raw: str | None, private: bool = False, default_internal: str | None = None) -> RouteSpec | None:
    """Build a RouteSpec from ``PUBLIC_NAME:INTERN_NAME:INTERN_PORT``.

    Returns None for empty input: a container without a route annotation
    is not an error. An empty INTERN_NAME falls back to ``default_internal``
    (the container hostname when running as a hook).
    """
    raw = (raw or "").strip()
    if not raw:
        return None

    fields = raw.split(":")
    if len(fields) == 2:
        raise ValidationError(f"Missing port in '{raw}'. Please provide 3 values separated by ':' - {ROUTE_FORMAT}")
    if len(fields) != 3:
        raise ValidationError(
            f"Got {len(fields)} values in '{raw}'. Please provide 3 values separated by ':' - {ROUTE_FORMAT}"
            " - INTERN_NAME is not mandatory"
        )

    public, internal, port = (f.strip() for f in fields)
    if not public:
        raise ValidationError(f"PUBLIC_NAME must not be empty - {ROUTE_FORMAT}")
    if not internal:
        if not default_internal:
            raise ValidationError(f"INTERN_NAME is empty and no container hostname is known - {ROUTE_FORMAT}")
        internal = default_internal
    if not PORT_RE.match(port) or not 0 < int(port) <= 65535:
        raise ValidationError(f"INTERN_PORT must be a number between 1 and 65535, got '{port}' - {ROUTE_FORMAT}")

    return RouteSpec(public_host=public, internal_host=internal, internal_port=port, private=bool(private))


def parse_redirect(origin: str | None, target: str | None) -> RedirectSpec:
    origin = (origin or "").strip()
    target = (target or "").strip()
    if not origin:
        raise ValidationError("Redirect origin host must not be empty.")
    if not target:
        raise ValidationError("Redirect target must not be empty, e.g. https://example.com")
    return RedirectSpec(origin_host=origin, redirect_target=target)
