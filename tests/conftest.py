"""Test harness configuration.

This repo uses a `src/` layout; make sure tests import the in-repo code even
when an older `beluga_bot` is installed.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import httpx
import pytest

DEFAULT_NON_INTEGRATION_TIMEOUT_SECONDS = 60

ADMIN_CHANNEL_ID = "1388177835331424386"
PRIVILEGED_USER_ID = "354474826192388127"
GUILD_ID = "1100000000000000001"
REGISTER_CHANNEL_ID = "1200000000000000002"
RESPONSE_CHANNEL_ID = "1300000000000000003"
APPLICATION_ID = "1400000000000000004"


def pytest_configure() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    src_path = str(repo_root / "src")
    if sys.path[:1] != [src_path] and src_path not in sys.path:
        sys.path.insert(0, src_path)


def pytest_collection_modifyitems(
    session: pytest.Session, config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Apply a default per-test timeout to non-integration tests (pytest-timeout)."""
    _ = session, config
    for item in items:
        if item.get_closest_marker("integration") is not None:
            continue
        item.add_marker(pytest.mark.timeout(DEFAULT_NON_INTEGRATION_TIMEOUT_SECONDS))


class RecordingExecutionContext:
    """Collects background awaitables instead of running them."""

    def __init__(self) -> None:
        self.pending: list[Awaitable[Any]] = []

    @property
    def calls(self) -> int:
        return len(self.pending)

    def wait_until(self, awaitable: Awaitable[Any]) -> None:
        self.pending.append(awaitable)

    async def drain(self) -> None:
        while self.pending:
            await self.pending.pop(0)

    def discard(self) -> None:
        for awaitable in self.pending:
            close = getattr(awaitable, "close", None)
            if close is not None:
                close()
        self.pending.clear()


class FakeDiscordClient:
    """Stands in for DiscordRestClient at the command layer."""

    def __init__(self) -> None:
        self.edits: list[dict[str, Any]] = []
        self.messages: list[dict[str, Any]] = []
        self.members: list[dict[str, Any]] = []
        self.edit_error: Optional[Exception] = None
        self.members_error: Optional[Exception] = None
        self.message_error: Optional[Exception] = None

    async def edit_original_interaction_response(
        self, *, application_id: str, interaction_token: str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        self.edits.append(
            {
                "application_id": application_id,
                "interaction_token": interaction_token,
                "payload": payload,
            }
        )
        if self.edit_error is not None:
            raise self.edit_error
        return {}

    async def create_channel_message(
        self, *, channel_id: str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        self.messages.append({"channel_id": channel_id, "payload": payload})
        if self.message_error is not None:
            raise self.message_error
        return {"id": "msg-1"}

    async def list_all_guild_members(self, guild_id: str) -> list[dict[str, Any]]:
        if self.members_error is not None:
            raise self.members_error
        return list(self.members)

    async def close(self) -> None:
        return None


class FakeGoogleApi:
    """MockTransport handler for the OAuth token and Sheets values endpoints."""

    def __init__(self) -> None:
        self.existing_rows: list[list[str]] = [["discord_id"]]
        self.appended: list[list[str]] = []
        self.requests: list[httpx.Request] = []
        self.token_status = 200
        self.append_status = 200

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "accounts.google.com":
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"error": "invalid_grant"})
            return httpx.Response(200, json={"access_token": "ya29.test", "expires_in": 3600})
        if request.method == "GET":
            return httpx.Response(200, json={"values": self.existing_rows})
        if self.append_status != 200:
            return httpx.Response(self.append_status, json={"error": {"code": self.append_status}})
        rows = json.loads(request.content)["values"]
        self.appended.extend(rows)
        return httpx.Response(200, json={"updates": {"updatedRows": len(rows)}})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def execution_context() -> RecordingExecutionContext:
    context = RecordingExecutionContext()
    yield context
    context.discard()


@pytest.fixture
def fake_discord() -> FakeDiscordClient:
    return FakeDiscordClient()


@pytest.fixture
def google_api() -> FakeGoogleApi:
    return FakeGoogleApi()


@pytest.fixture(scope="session")
def signing_key():
    from nacl.signing import SigningKey

    return SigningKey.generate()


@pytest.fixture(scope="session")
def public_key_hex(signing_key) -> str:
    return signing_key.verify_key.encode().hex()


@pytest.fixture(scope="session")
def rsa_private_key_pem() -> str:
    from cryptography.hazmat.primitives import serialization
    from cryptography.hazmat.primitives.asymmetric import rsa

    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture
def bot_config(public_key_hex: str, rsa_private_key_pem: str):
    from beluga_bot.core.config import BotConfig

    return BotConfig(
        discord_token="bot-token",
        discord_public_key=public_key_hex,
        discord_application_id=APPLICATION_ID,
        google_sheet_id="sheet-123",
        google_sheets_type="service_account",
        google_sheets_project_id="beluga-project",
        google_sheets_private_key_id="key-1",
        google_sheets_private_key=rsa_private_key_pem,
        google_sheets_client_email="sync@beluga-project.iam.gserviceaccount.com",
        google_sheets_client_id="client-1",
        environment="development",
        register_command_request_channel_id=REGISTER_CHANNEL_ID,
        register_command_response_channel_id=RESPONSE_CHANNEL_ID,
        test_channel_id=ADMIN_CHANNEL_ID,
        privileged_user_id=PRIVILEGED_USER_ID,
    )


@pytest.fixture
def make_interaction() -> Callable[..., dict[str, Any]]:
    def _make(
        *,
        name: str = "admin_sync_users_to_sheets",
        options: Optional[list[dict[str, Any]]] = None,
        user_id: Optional[str] = PRIVILEGED_USER_ID,
        via_member: bool = False,
        roles: Optional[list[str]] = None,
        channel_id: Optional[str] = ADMIN_CHANNEL_ID,
        guild_id: Optional[str] = GUILD_ID,
        interaction_type: int = 2,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": "interaction-1",
            "application_id": APPLICATION_ID,
            "type": interaction_type,
            "token": "continuation-token",
            "version": 1,
            "data": {"id": "cmd-1", "name": name, "options": options or []},
        }
        if channel_id is not None:
            payload["channel_id"] = channel_id
        if guild_id is not None:
            payload["guild_id"] = guild_id
        if via_member or roles is not None:
            member: dict[str, Any] = {"roles": roles or []}
            if user_id is not None:
                member["user"] = {"id": user_id, "username": "beluga"}
            payload["member"] = member
        elif user_id is not None:
            payload["user"] = {"id": user_id, "username": "beluga"}
        return payload

    return _make
