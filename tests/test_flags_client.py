import json

import httpx
import pytest

from flag_notifier.auth import Identity
from flag_notifier.clients import FlagsClient
from flag_notifier.errors import NetworkError, ProtocolError
from flag_notifier.models import FlagStatus


def client_for(handler) -> FlagsClient:
    return FlagsClient(base_url="http://testserver/", transport=httpx.MockTransport(handler))


async def test_fetch_returns_records(make_payload, envelope):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        return httpx.Response(200, json=envelope([make_payload("f1", status="resolved")]))

    identity = Identity(
        user_id="student-42",
        user_email="s42@example.edu",
        user_roles=["student"],
        session_cookies={"connect.sid": "abc"},
        correlation_id="corr-1",
    )
    flags = await client_for(handler).fetch_current_flags(identity)

    assert [f.flag_id for f in flags] == ["f1"]
    assert flags[0].status == FlagStatus.RESOLVED
    assert seen["url"] == "http://testserver/api/flags/my"
    assert seen["headers"]["X-User-ID"] == "student-42"
    assert seen["headers"]["X-User-Email"] == "s42@example.edu"
    assert json.loads(seen["headers"]["X-User-Roles"]) == ["student"]
    assert seen["headers"]["X-Correlation-ID"] == "corr-1"
    assert "connect.sid=abc" in seen["headers"]["Cookie"]


async def test_fetch_without_identity_sends_no_user_headers(envelope):
    def handler(request: httpx.Request) -> httpx.Response:
        assert "X-User-ID" not in request.headers
        return httpx.Response(200, json=envelope([]))

    assert await client_for(handler).fetch_current_flags(None) == []


async def test_missing_flags_list_is_empty():
    def handler(request):
        return httpx.Response(200, json={"success": True, "data": {}})

    assert await client_for(handler).fetch_current_flags() == []


async def test_http_error_status_raises_network_error():
    def handler(request):
        return httpx.Response(503, json={"success": False})

    with pytest.raises(NetworkError) as exc_info:
        await client_for(handler).fetch_current_flags()
    assert exc_info.value.status_code == 503


async def test_transport_failure_raises_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(NetworkError):
        await client_for(handler).fetch_current_flags()


async def test_unsuccessful_envelope_raises_protocol_error():
    def handler(request):
        return httpx.Response(200, json={"success": False, "message": "Not authenticated"})

    with pytest.raises(ProtocolError, match="Not authenticated"):
        await client_for(handler).fetch_current_flags()


@pytest.mark.parametrize(
    "body",
    [
        b"<html>login</html>",
        json.dumps({"data": {"flags": []}}).encode(),
        json.dumps({"success": True}).encode(),
        json.dumps({"success": True, "data": {"flags": [{"flagId": "f1"}]}}).encode(),
    ],
)
async def test_malformed_body_raises_protocol_error(body):
    def handler(request):
        return httpx.Response(200, content=body)

    with pytest.raises(ProtocolError):
        await client_for(handler).fetch_current_flags()
