from __future__ import annotations

from typing import Optional


class BelugaError(Exception):
    """Base error for the service."""

    def __init__(self, message: str, *, user_message: Optional[str] = None) -> None:
        super().__init__(message)
        self.user_message = user_message


class SyncError(BelugaError):
    """A step of the member sync failed."""
