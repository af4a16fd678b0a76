from __future__ import annotations

import time
from enum import Enum

from .admin import AdminClient, AdminResponse, RemoteRoute, TransportError, route_path
from .logs import log_event
from .routes import RedirectSpec, RouteSpec
from .settings import Settings
from .templates import render


# Longest uninterrupted sleep in the retry loop; bounds how long stop() takes.
STOP_POLL_S = 1.0


class NoMatchingRoute(Exception):
    pass


class Outcome(str, Enum):
    CREATED = "created"
    EXISTS = "exists"
    DELETED = "deleted"
    UNREACHABLE = "unreachable"


class Reconciler:
    """Converges one route on the Caddy admin API with the desired state.

    The remote config is the source of truth and may be changed by others,
    so every decision is made on a fresh read.
    """

    def __init__(self, client: AdminClient, settings: Settings):
        self.client = client
        self.settings = settings
        self._stop = False

    def stop(self) -> None:
        """Ask run_forever() to return. Only sets a flag, so it is safe in a signal handler."""
        self._stop = True

    @property
    def stopped(self) -> bool:
        return self._stop

    def create(self, spec: RouteSpec | RedirectSpec) -> Outcome:
        """Add the route at the head of the server's route list unless its @id exists."""
        server = self.settings.server
        found = self.client.get_by_id(spec.identity)
        if found.unreachable:
            return self._unreachable(spec.identity)

        if found.unknown_object_id:
            resp = self.client.put(f"{route_path(server, 0)}/", render(spec))
            if resp.unreachable:
                return self._unreachable(spec.identity)
            if not resp.ok:
                raise _failed("create", spec.identity, resp)
            log_event("INFO", "Route created", route=spec.identity, server=server)
            return Outcome.CREATED

        if not found.ok:
            raise _failed("look up", spec.identity, found)
        log_event("INFO", "Route already exists", route=spec.identity, server=server)
        return Outcome.EXISTS

    def delete(self, identity: str) -> Outcome:
        """Delete by @id, falling back to a host match for routes created without one."""
        server = self.settings.server
        resp = self.client.delete(f"/id/{identity}")
        if resp.unreachable:
            return self._unreachable(identity)
        if resp.ok:
            log_event("INFO", "Route deleted", route=identity, server=server)
            return Outcome.DELETED
        if not resp.unknown_object_id:
            raise _failed("delete", identity, resp)

        listing, routes = self.client.get_routes(server)
        if listing.unreachable:
            return self._unreachable(identity)
        if not listing.ok:
            raise _failed("list routes for", identity, listing)

        index = find_route_index(routes, identity)
        if index is None:
            raise NoMatchingRoute(f"No route for host '{identity}' found on server '{server}'.")

        resp = self.client.delete(route_path(server, index))
        if resp.unreachable:
            return self._unreachable(identity)
        if not resp.ok:
            raise _failed("delete", identity, resp)
        log_event("INFO", "Route deleted by position", route=identity, server=server, index=index)
        return Outcome.DELETED

    def run_forever(self, spec: RouteSpec | RedirectSpec, interval_s: float) -> None:
        """Call create() every interval_s seconds until stop() is called.

        Each pass re-reads the remote, so a Caddy restart that drops the
        route is repaired on the next pass.
        """
        log_event("INFO", "Retry loop started", route=spec.identity, interval_s=interval_s)
        while not self._stop:
            try:
                self.create(spec)
            except TransportError as e:
                log_event("ERROR", f"Reconcile pass failed: {e}", route=spec.identity)
            self._sleep(interval_s)
        log_event("INFO", "Retry loop stopped", route=spec.identity)

    def _sleep(self, interval_s: float) -> None:
        deadline = time.monotonic() + max(0.0, interval_s)
        while not self._stop:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return
            time.sleep(min(remaining, STOP_POLL_S))

    def _unreachable(self, identity: str) -> Outcome:
        log_event("WARN", "Caddy admin API unreachable", route=identity, admin=self.settings.admin_url)
        return Outcome.UNREACHABLE


def find_route_index(routes: list[RemoteRoute], identity: str) -> int | None:
    """Return the position of the first route matching ``identity`` by host.

    The last route is the server's catch-all and is never a candidate.
    """
    for index, route in enumerate(routes[:-1]):
        if identity in route.match_hosts:
            return index
    return None


def _failed(action: str, identity: str, resp: AdminResponse) -> TransportError:
    return TransportError(f"Could not {action} route '{identity}': HTTP {resp.status_code}: {resp.text}")
