from __future__ import annotations

from typing import Any

from .constants import (
    MESSAGE_FLAG_EPHEMERAL,
    RESPONSE_TYPE_CHANNEL_MESSAGE,
    RESPONSE_TYPE_DEFERRED_CHANNEL_MESSAGE,
    RESPONSE_TYPE_PONG,
)

ERROR_PREFIX = "❌ "


def pong_response() -> dict[str, Any]:
    return {"type": RESPONSE_TYPE_PONG}


def ephemeral_response(content: str) -> dict[str, Any]:
    return {
        "type": RESPONSE_TYPE_CHANNEL_MESSAGE,
        "data": {"content": content, "flags": MESSAGE_FLAG_EPHEMERAL},
    }


def error_response(message: str) -> dict[str, Any]:
    return ephemeral_response(f"{ERROR_PREFIX}{message}")


def deferred_response(*, ephemeral: bool = True) -> dict[str, Any]:
    payload: dict[str, Any] = {"type": RESPONSE_TYPE_DEFERRED_CHANNEL_MESSAGE}
    if ephemeral:
        payload["data"] = {"flags": MESSAGE_FLAG_EPHEMERAL}
    return payload
