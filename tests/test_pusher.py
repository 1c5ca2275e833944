import asyncio
import hashlib
import hmac
import json

import httpx
import pytest

from app import config
from app.services import pusher_service
from app.services.pusher_service import build_query_string, sign_request, trigger_event, with_private


@pytest.fixture
def pusher_config(monkeypatch):
    monkeypatch.setattr(config, "PUSHER_APP_ID", "12345")
    monkeypatch.setattr(config, "PUSHER_KEY", "app-key")
    monkeypatch.setattr(config, "PUSHER_SECRET", "app-secret")
    monkeypatch.setattr(config, "PUSHER_CLUSTER", "ap1")


def test_query_string_is_sorted_and_encoded():
    assert build_query_string({"b": "2", "a": "x y"}) == "a=x%20y&b=2"


def test_sign_request_matches_pusher_scheme(pusher_config):
    body = '{"name":"booking.created"}'

    query_string, signature = sign_request("POST", "/apps/12345/events", body, timestamp=1700000000)

    body_md5 = hashlib.md5(body.encode()).hexdigest()
    assert query_string == (
        f"auth_key=app-key&auth_timestamp=1700000000&auth_version=1.0&body_md5={body_md5}"
    )
    expected = hmac.new(
        b"app-secret", f"POST\n/apps/12345/events\n{query_string}".encode(), hashlib.sha256
    ).hexdigest()
    assert signature == expected


def test_with_private_pairs_each_channel():
    assert with_private("public-realtime", "branch-7") == [
        "public-realtime",
        "private-public-realtime",
        "branch-7",
        "private-branch-7",
    ]


def test_trigger_event_without_credentials():
    result = asyncio.run(trigger_event("public-realtime", "booking.created", {"id": 1}))
    assert result == {"success": False, "error": "Pusher not configured"}


def mock_pusher(monkeypatch, handler):
    real_client = httpx.AsyncClient

    def client_factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(pusher_service.httpx, "AsyncClient", client_factory)


def test_trigger_event_posts_signed_body(pusher_config, monkeypatch):
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={})

    mock_pusher(monkeypatch, handler)

    result = asyncio.run(trigger_event(["a", "b"], "pos.transaction.created", {"total": 150}))

    assert result["success"] is True
    request = requests[0]
    assert request.url.host == "api-ap1.pusher.com"
    assert request.url.path == "/apps/12345/events"
    assert "auth_signature" in request.url.params
    body = json.loads(request.content)
    assert body["channels"] == ["a", "b"]
    assert json.loads(body["data"]) == {"total": 150}


def test_trigger_event_reports_http_errors(pusher_config, monkeypatch):
    mock_pusher(monkeypatch, lambda request: httpx.Response(401, text="bad signature"))

    result = asyncio.run(trigger_event("a", "booking.updated", "{}"))

    assert result["success"] is False
    assert "401" in result["error"]
