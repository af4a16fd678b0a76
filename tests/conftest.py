import json
import os
import sys

import httpx
import pytest

# Ensure project root is importable (so `import cli` works without installing)
_project_root = os.path.dirname(os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from caddyhook.admin import AdminClient
from caddyhook.reconciler import Reconciler
from caddyhook.settings import Settings

SERVER_PREFIX = "/config/apps/http/servers/srv0/"

CATCH_ALL = {
    "match": [{"host": ["*"]}],
    "handle": [{"handler": "static_response", "body": "no route", "status_code": 404}],
}


def host_route(host, with_id=True):
    route = {
        "match": [{"host": [host]}],
        "handle": [{"handler": "reverse_proxy", "upstreams": [{"dial": f"{host}:80"}]}],
    }
    if with_id:
        route["@id"] = host
    return route


class FakeCaddy:
    """In-memory stand-in for the parts of the Caddy admin API we call."""

    def __init__(self, routes=None):
        self.routes = list(routes) if routes is not None else [dict(CATCH_ALL)]
        self.calls = []

    def _unknown(self, object_id):
        return httpx.Response(404, json={"error": f"unknown object ID '{object_id}'"})

    def _find_id(self, object_id):
        for i, r in enumerate(self.routes):
            if r.get("@id") == object_id:
                return i
        return None

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append((request.method, path))

        if path.startswith("/id/"):
            object_id = path[len("/id/"):]
            i = self._find_id(object_id)
            if i is None:
                return self._unknown(object_id)
            if request.method == "GET":
                return httpx.Response(200, json=self.routes[i])
            if request.method == "DELETE":
                del self.routes[i]
                return httpx.Response(200)

        if path == SERVER_PREFIX and request.method == "GET":
            return httpx.Response(200, json={"listen": [":443"], "routes": self.routes})

        if path.startswith(SERVER_PREFIX + "routes/"):
            index = int(path[len(SERVER_PREFIX + "routes/"):].strip("/"))
            if request.method == "PUT":
                self.routes.insert(index, json.loads(request.content))
                return httpx.Response(200)
            if request.method == "DELETE":
                if index >= len(self.routes):
                    return httpx.Response(400, json={"error": "index out of range"})
                del self.routes[index]
                return httpx.Response(200)

        return httpx.Response(400, json={"error": f"unsupported {request.method} {path}"})

    def count(self, method):
        return sum(1 for m, _ in self.calls if m == method)


@pytest.fixture
def test_settings():
    return Settings(admin_host="caddy", admin_port=2019, server="srv0", retry_minutes=0, private=False, dns_server=None)


@pytest.fixture
def fake_caddy():
    return FakeCaddy()


@pytest.fixture
def http_client(fake_caddy, test_settings):
    with httpx.Client(transport=httpx.MockTransport(fake_caddy.handle), base_url=test_settings.admin_url) as c:
        yield c


@pytest.fixture
def reconciler(http_client, test_settings):
    return Reconciler(AdminClient(test_settings, http_client=http_client), test_settings)
