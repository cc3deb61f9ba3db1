from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

import httpx

from ..core.audit import AuditLogger
from ..core.config import BotConfig
from ..integrations.discord.rest import DiscordRestClient

GOOGLE_HTTP_TIMEOUT_SECONDS = 30.0


def default_http_client_factory() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=GOOGLE_HTTP_TIMEOUT_SECONDS)


@dataclass
class CommandServices:
    """Long-lived collaborators shared by every command handler."""

    config: BotConfig
    discord: DiscordRestClient
    audit: AuditLogger = field(default_factory=AuditLogger)
    http_client_factory: Callable[[], httpx.AsyncClient] = default_http_client_factory
