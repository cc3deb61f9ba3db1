from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from beluga_bot.commands.services import CommandServices
from beluga_bot.core.rate_limit import RateLimiter
from beluga_bot.surfaces.web.app import create_app
from beluga_bot.surfaces.web.middleware import SECURITY_HEADERS

NOW = 1_700_000_000.0


@pytest.fixture
def services(bot_config, fake_discord, google_api) -> CommandServices:
    return CommandServices(
        config=bot_config,
        discord=fake_discord,
        http_client_factory=google_api.client,
    )


def _client(services: CommandServices, **kwargs) -> TestClient:
    kwargs.setdefault("random_source", lambda: 1.0)
    return TestClient(create_app(services=services, clock=lambda: NOW, **kwargs))


def _signed(signing_key, body: bytes, *, timestamp: float = NOW) -> dict[str, str]:
    stamp = str(int(timestamp))
    signature = signing_key.sign(stamp.encode() + body).signature.hex()
    return {
        "X-Signature-Ed25519": signature,
        "X-Signature-Timestamp": stamp,
        "Content-Type": "application/json",
    }


def _post(client: TestClient, signing_key, payload, **kwargs):
    body = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
    return client.post("/", content=body, headers=_signed(signing_key, body, **kwargs))


def test_health_reports_configured_secrets(services) -> None:
    with _client(services) as client:
        response = client.get("/")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "healthy"
    assert payload["checks"]["secrets"] == {"configured": True, "missing": []}
    for name, value in SECURITY_HEADERS.items():
        assert response.headers[name] == value


def test_health_unhealthy_without_token(services, bot_config) -> None:
    services.config = replace(bot_config, discord_token=None)
    with _client(services) as client:
        response = client.get("/")
    assert response.status_code == 503
    assert response.json()["checks"]["secrets"]["missing"] == ["DISCORD_TOKEN"]


def test_cors_preflight(services) -> None:
    with _client(services) as client:
        response = client.options("/")
    assert response.status_code == 200
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    assert "X-Signature-Ed25519" in response.headers["Access-Control-Allow-Headers"]


@pytest.mark.parametrize(("method", "path"), [("PUT", "/"), ("DELETE", "/"), ("GET", "/other")])
def test_other_routes_are_not_allowed(services, method: str, path: str) -> None:
    with _client(services) as client:
        response = client.request(method, path)
    assert response.status_code == 405
    assert response.text == "Method not allowed"
    assert response.headers["X-Frame-Options"] == "DENY"


def test_ping_is_answered_with_pong(services, signing_key) -> None:
    with _client(services) as client:
        response = _post(client, signing_key, {"id": "1", "type": 1})
    assert response.status_code == 200
    assert response.json() == {"type": 1}


def test_bad_signature_is_unauthorized(services, signing_key) -> None:
    body = json.dumps({"id": "1", "type": 1}).encode()
    headers = _signed(signing_key, body)
    headers["X-Signature-Ed25519"] = "00" * 64
    with _client(services) as client:
        response = client.post("/", content=body, headers=headers)
    assert response.status_code == 401
    assert response.text == "Unauthorized"


def test_missing_headers_and_stale_timestamps(services, signing_key) -> None:
    with _client(services) as client:
        bare = client.post("/", content=b"{}", headers={"Content-Type": "application/json"})
        stale = _post(client, signing_key, {"id": "1", "type": 1}, timestamp=NOW - 301)
    assert bare.status_code == 401
    assert stale.status_code == 401


def test_wrong_content_type(services, signing_key) -> None:
    body = b'{"type": 1}'
    headers = _signed(signing_key, body)
    headers["Content-Type"] = "text/plain"
    with _client(services) as client:
        response = client.post("/", content=body, headers=headers)
    assert response.status_code == 401


def test_rate_limit_applies_per_client(services, signing_key) -> None:
    with _client(services, rate_limiter=RateLimiter(max_requests=1)) as client:
        first = _post(client, signing_key, {"id": "1", "type": 1})
        second = _post(client, signing_key, {"id": "2", "type": 1})
    assert first.status_code == 200
    assert second.status_code == 401


def test_rate_limiter_is_pruned_occasionally(services, signing_key) -> None:
    class CountingLimiter(RateLimiter):
        pruned = 0

        def prune(self, now=None) -> int:
            CountingLimiter.pruned += 1
            return super().prune(now)

    with _client(services, rate_limiter=CountingLimiter(), random_source=lambda: 0.0) as client:
        _post(client, signing_key, {"id": "1", "type": 1})
    assert CountingLimiter.pruned == 1


def test_invalid_json_gets_ephemeral_error(services, signing_key) -> None:
    with _client(services) as client:
        response = _post(client, signing_key, b"{not json")
    assert response.status_code == 200
    assert response.json() == {
        "type": 4,
        "data": {"content": "❌ Invalid request format", "flags": 64},
    }


def test_unsupported_interaction_type(services, signing_key) -> None:
    with _client(services) as client:
        response = _post(client, signing_key, {"id": "1", "type": 3})
    assert response.status_code == 400
    assert response.text == "Bad request"


def test_unexpected_failure_is_internal_error(services, signing_key) -> None:
    class BrokenLimiter(RateLimiter):
        def hit(self, key: str) -> bool:
            raise RuntimeError("limiter down")

    with _client(services, rate_limiter=BrokenLimiter()) as client:
        response = _post(client, signing_key, {"id": "1", "type": 1})
    assert response.status_code == 500
    assert response.text == "Internal server error"


def test_admin_sync_defers_then_patches(
    services, signing_key, make_interaction, fake_discord, google_api
) -> None:
    fake_discord.members = [
        {
            "user": {"id": "111111111111111111", "username": "newcomer"},
            "joined_at": "2024-06-01T12:00:00+00:00",
        }
    ]
    with _client(services) as client:
        response = _post(client, signing_key, make_interaction())

    assert response.status_code == 200
    assert response.json() == {"type": 5, "data": {"flags": 64}}
    # TestClient runs background tasks before returning.
    assert [edit["payload"]["content"] for edit in fake_discord.edits] == [
        "✅ Successfully synced 1 new members to sheets"
    ]
    assert [row[0] for row in google_api.appended] == ["111111111111111111"]


def test_admin_sync_rejected_without_background_work(
    services, signing_key, make_interaction, fake_discord
) -> None:
    with _client(services) as client:
        response = _post(client, signing_key, make_interaction(user_id="222222222222222222"))

    assert response.json() == {
        "type": 4,
        "data": {"content": "❌ Insufficient permissions for this admin command", "flags": 64},
    }
    assert fake_discord.edits == []


def test_unknown_command(services, signing_key, make_interaction) -> None:
    with _client(services) as client:
        response = _post(client, signing_key, make_interaction(name="dance"))
    assert response.json()["data"]["content"] == "❌ Unknown command. Please try again."


def test_injected_rate_limiter_is_used(services) -> None:
    limiter = RateLimiter(max_requests=1)
    assert len(limiter) == 0
    app = create_app(services=services, rate_limiter=limiter)
    assert app.state.rate_limiter is limiter


def test_deeply_nested_json_is_invalid_format(services, signing_key) -> None:
    body = b"[" * 100_000 + b"]" * 100_000
    with _client(services) as client:
        response = _post(client, signing_key, body)
    assert response.status_code == 200
    assert response.json()["data"]["content"] == "❌ Invalid request format"


@pytest.mark.anyio
async def test_stalled_body_times_out(services, caplog: pytest.LogCaptureFixture) -> None:
    app = create_app(
        services=services,
        clock=lambda: NOW,
        random_source=lambda: 1.0,
        request_timeout_seconds=0.05,
    )
    chunks = [{"type": "http.request", "body": b'{"type": ', "more_body": True}]
    sent: list[dict] = []

    async def receive() -> dict:
        if chunks:
            return chunks.pop(0)
        await asyncio.sleep(3600)
        return {"type": "http.disconnect"}

    async def send(message: dict) -> None:
        sent.append(message)

    scope = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "POST",
        "scheme": "http",
        "path": "/",
        "raw_path": b"/",
        "root_path": "",
        "query_string": b"",
        "headers": [(b"content-type", b"application/json")],
        "client": ("127.0.0.1", 50000),
        "server": ("testserver", 80),
    }
    with caplog.at_level(logging.INFO, logger="beluga_bot.audit"):
        await asyncio.wait_for(app(scope, receive, send), timeout=5)

    start = next(message for message in sent if message["type"] == "http.response.start")
    assert start["status"] == 401
    rejected = [
        json.loads(record.getMessage())
        for record in caplog.records
        if record.name == "beluga_bot.audit"
        and json.loads(record.getMessage())["event"] == "audit.request_rejected"
    ]
    assert [event["error"] for event in rejected] == ["Request timeout"]
