from __future__ import annotations

import argparse
import dataclasses
import signal
import sys
from typing import TextIO

import httpx

from caddyhook import logs
from caddyhook.admin import AdminClient, TransportError
from caddyhook.hook import read_bundle_hostname, read_state
from caddyhook.logs import log_event
from caddyhook.reconciler import NoMatchingRoute, Reconciler
from caddyhook.routes import ROUTE_FORMAT, RedirectSpec, RouteSpec, ValidationError, parse_redirect, parse_route
from caddyhook.settings import Settings, settings


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Create or delete Caddy routes through the admin API")
    p.add_argument("--host", dest="admin_host", help=f"Caddy admin host (default: {settings.admin_host})")
    p.add_argument("--port", dest="admin_port", type=int, help=f"Caddy admin port (default: {settings.admin_port})")
    p.add_argument("--server", help=f"Caddy server name (default: {settings.server})")
    p.add_argument("--timeout", dest="timeout_s", type=int, help="Request timeout in seconds")
    p.add_argument("--dns-server", help="Resolve the admin host through this DNS server, e.g. 10.89.0.1")
    p.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    sub = p.add_subparsers(dest="cmd", required=True)

    s_add = sub.add_parser("add", help="Create a reverse-proxy route")
    s_add.add_argument("route", nargs="?", help=f"{ROUTE_FORMAT}; read from the hook state on stdin when omitted")
    s_add.add_argument("--private", action="store_true", default=None, help="Only allow private/loopback clients")
    s_add.add_argument("--retry", dest="retry_minutes", type=int, help="Re-check every N minutes (0 = once)")

    s_del = sub.add_parser("delete", help="Delete a route by its public host")
    s_del.add_argument("host", nargs="?", help="Public host; read from the hook state on stdin when omitted")

    s_red = sub.add_parser("redirect", help="Create a 302 redirect route")
    s_red.add_argument("origin", help="Host to redirect from")
    s_red.add_argument("target", help="URL prefix to redirect to, e.g. https://example.com")
    s_red.add_argument("--retry", dest="retry_minutes", type=int, help="Re-check every N minutes (0 = once)")

    return p


def _settings_from_args(args: argparse.Namespace) -> Settings:
    fields = {f.name for f in dataclasses.fields(Settings)}
    overrides = {k: v for k, v in vars(args).items() if k in fields and v is not None}
    return dataclasses.replace(settings, **overrides)


def _route_from_hook(cfg: Settings, stdin: TextIO) -> RouteSpec | None:
    state = read_state(stdin)
    raw = state.annotation(cfg.annotation)
    if not raw.strip():
        return None
    return parse_route(raw, private=cfg.private, default_internal=read_bundle_hostname(state.bundle))


def _host_from_hook(cfg: Settings, stdin: TextIO) -> str:
    raw = read_state(stdin).annotation(cfg.annotation)
    return raw.split(":", 1)[0].strip()


def _create(reconciler: Reconciler, spec: RouteSpec | RedirectSpec, cfg: Settings) -> int:
    if cfg.retry_interval_s <= 0:
        reconciler.create(spec)
        return 0

    def _stop(signum, frame) -> None:
        log_event("INFO", f"Received signal {signum}, stopping")
        reconciler.stop()

    previous = {sig: signal.signal(sig, _stop) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        reconciler.run_forever(spec, cfg.retry_interval_s)
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
    return 0


def main(argv: list[str] | None = None, stdin: TextIO | None = None, http_client: httpx.Client | None = None) -> int:
    args = _build_parser().parse_args(argv)
    cfg = _settings_from_args(args)
    logs.configure(cfg.log_level)
    stdin = stdin or sys.stdin

    try:
        if args.cmd == "add":
            if args.route is not None:
                spec = parse_route(args.route, private=cfg.private)
            else:
                spec = _route_from_hook(cfg, stdin)
            if spec is None:
                log_event("INFO", "No route requested, nothing to do")
                return 0
        elif args.cmd == "redirect":
            spec = parse_redirect(args.origin, args.target)
        else:
            host = args.host.strip() if args.host is not None else _host_from_hook(cfg, stdin)
            if not host:
                log_event("INFO", "No route requested, nothing to do")
                return 0

        with AdminClient(cfg, http_client=http_client) as client:
            reconciler = Reconciler(client, cfg)
            if args.cmd == "delete":
                reconciler.delete(host)
                return 0
            return _create(reconciler, spec, cfg)
    except (ValidationError, NoMatchingRoute, TransportError) as e:
        log_event("ERROR", str(e))
        return 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
