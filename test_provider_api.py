import json

import pytest
import requests

from dostup.vpn.exceptions import TransportFailure
from dostup.vpn.models import ProviderKind
from dostup.vpn.provider_api import ProviderAPIClient


def make_response(status, payload=None, raw=None):
    response = requests.Response()
    response.status_code = status
    if raw is not None:
        response._content = raw
    else:
        response._content = json.dumps(payload).encode() if payload is not None else b""
    return response


class FakeSession:
    def __init__(self, responses=None):
        # (method, url) -> Response or exception
        self.responses = responses or {}
        self.requests = []

    def request(self, method, url, timeout=None):
        self.requests.append((method, url, timeout))
        result = self.responses.get((method, url))
        if result is None:
            raise requests.ConnectionError(f"no route to {url}")
        if isinstance(result, Exception):
            raise result
        return result


BASE = "http://127.0.0.1:9090"


def test_list_providers():
    session = FakeSession({
        ("GET", f"{BASE}/providers/proxies"): make_response(200, {"providers": {"b": {}, "a": {"type": "Proxy"}}}),
    })

    names, ok = ProviderAPIClient(session=session).list_providers(ProviderKind.PROXY)

    assert ok is True
    assert names == ["a", "b"]
    assert session.requests[0][2] == 10


def test_list_providers_transport_failure():
    names, ok = ProviderAPIClient(session=FakeSession()).list_providers(ProviderKind.RULE)

    assert (names, ok) == ([], False)


def test_list_providers_invalid_json():
    session = FakeSession({("GET", f"{BASE}/providers/rules"): make_response(200, raw=b"<html>")})

    assert ProviderAPIClient(session=session).list_providers(ProviderKind.RULE) == ([], False)


def test_list_providers_unexpected_shape():
    session = FakeSession({("GET", f"{BASE}/providers/rules"): make_response(200, {"providers": ["a"]})})

    assert ProviderAPIClient(session=session).list_providers(ProviderKind.RULE) == ([], False)


@pytest.mark.parametrize("status,expected", [(200, True), (204, True), (202, True), (205, False), (404, False), (500, False)])
def test_refresh_provider_status_range(status, expected):
    url = f"{BASE}/providers/rules/geo%20site%2Fru"
    session = FakeSession({("PUT", url): make_response(status)})

    assert ProviderAPIClient(session=session).refresh_provider(ProviderKind.RULE, "geo site/ru") is expected
    assert session.requests == [("PUT", url, 15)]


def test_refresh_provider_transport_failure():
    session = FakeSession({("PUT", f"{BASE}/providers/proxies/p"): requests.Timeout("slow")})

    assert ProviderAPIClient(session=session).refresh_provider(ProviderKind.PROXY, "p") is False


def test_run_healthcheck_ignores_body():
    url = f"{BASE}/providers/proxies/main/healthcheck"
    session = FakeSession({("GET", url): make_response(204)})

    ProviderAPIClient(session=session).run_healthcheck("main")

    assert session.requests == [("GET", url, 30)]


def test_run_healthcheck_transport_failure_raises():
    with pytest.raises(TransportFailure):
        ProviderAPIClient(session=FakeSession()).run_healthcheck("main")


def test_get_provider_detail():
    payload = {"proxies": [
        {"name": "n1", "history": [{"delay": 90}, {"delay": 110}]},
        {"name": "n2", "history": []},
        {"name": "n3"},
        {"name": "n4", "history": [{"time": "2024-01-01"}]},
    ]}
    session = FakeSession({("GET", f"{BASE}/providers/proxies/main"): make_response(200, payload)})

    histories = ProviderAPIClient(session=session).get_provider_detail("main")

    assert histories == [[90, 110], [], [], [None]]


def test_get_provider_detail_http_error():
    session = FakeSession({("GET", f"{BASE}/providers/proxies/main"): make_response(404, {"message": "not found"})})

    with pytest.raises(TransportFailure):
        ProviderAPIClient(session=session).get_provider_detail("main")


def test_custom_base_url_and_timeouts():
    session = FakeSession({("PUT", "http://localhost:9999/providers/proxies/p"): make_response(204)})
    client = ProviderAPIClient("http://localhost:9999/", session=session, refresh_timeout=3)

    assert client.refresh_provider(ProviderKind.PROXY, "p") is True
    assert session.requests[0][2] == 3
