"""Map sync failures onto a fixed set of user-facing messages.

Only the patterns below are inspected; the raw error text never reaches the
user.
"""

from __future__ import annotations

MISSING_PERMISSION_MESSAGE = 'Bot needs "View Server Members" permission'
CONFIGURATION_MESSAGE = "Google Sheets configuration error"
DISCORD_UNAVAILABLE_MESSAGE = "Discord service temporarily unavailable"
MEMBER_ACCESS_MESSAGE = "Could not access Discord server members"
SHEET_UPDATE_MESSAGE = "Could not update Google Sheets"
GENERIC_ERROR_MESSAGE = "Unexpected error - check server logs"

USER_FACING_MESSAGES = (
    MISSING_PERMISSION_MESSAGE,
    CONFIGURATION_MESSAGE,
    DISCORD_UNAVAILABLE_MESSAGE,
    MEMBER_ACCESS_MESSAGE,
    SHEET_UPDATE_MESSAGE,
    GENERIC_ERROR_MESSAGE,
)

# Checked in order; the first matching pattern wins.
_PATTERNS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("lacks permission",), MISSING_PERMISSION_MESSAGE),
    (("authentication", "oauth"), CONFIGURATION_MESSAGE),
    (("discord api error",), DISCORD_UNAVAILABLE_MESSAGE),
    (("failed to fetch members",), MEMBER_ACCESS_MESSAGE),
    (("failed to append members",), SHEET_UPDATE_MESSAGE),
)


def classify_sync_error(error: object) -> str:
    if not isinstance(error, BaseException):
        return GENERIC_ERROR_MESSAGE
    message = str(error).strip().lower()
    if not message:
        return GENERIC_ERROR_MESSAGE
    for needles, user_message in _PATTERNS:
        if any(needle in message for needle in needles):
            return user_message
    return GENERIC_ERROR_MESSAGE
