"""Google Sheets access with service-account credentials."""

from .client import SheetsClient
from .errors import GoogleOAuthError, SheetsAPIError, SheetsError
from .oauth import GoogleOAuthClient

__all__ = [
    "GoogleOAuthClient",
    "GoogleOAuthError",
    "SheetsAPIError",
    "SheetsClient",
    "SheetsError",
]
