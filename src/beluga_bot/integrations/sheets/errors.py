from __future__ import annotations

from typing import Optional

from ...core.errors import BelugaError


class SheetsError(BelugaError):
    """Base Google Sheets integration error."""


class GoogleOAuthError(SheetsError):
    """Service-account token exchange failed."""


class SheetsAPIError(SheetsError):
    """Sheets values request failed."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
