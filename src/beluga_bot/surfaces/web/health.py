from __future__ import annotations

from typing import Any

from ...core.config import BotConfig
from ...core.request_context import utc_now_iso


def build_health_payload(config: BotConfig) -> tuple[int, dict[str, Any]]:
    missing = config.missing_secrets()
    healthy = not missing
    payload = {
        "status": "healthy" if healthy else "unhealthy",
        "message": (
            "Beluga Discord Bot is running!" if healthy else "Beluga Discord Bot has issues"
        ),
        "timestamp": utc_now_iso(),
        "checks": {
            "secrets": {"configured": healthy, "missing": missing},
            "environment": config.environment,
        },
    }
    return (200 if healthy else 503), payload
