from __future__ import annotations

from typing import Optional

from ...core.errors import BelugaError


class DiscordError(BelugaError):
    """Base Discord integration error."""


class DiscordAPIError(DiscordError):
    """Discord API request error."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        detail: Optional[str] = None,
        user_message: Optional[str] = None,
    ) -> None:
        super().__init__(message, user_message=user_message)
        self.status_code = status_code
        self.detail = detail
