from __future__ import annotations

from typing import Any

from .constants import APPLICATION_COMMAND_TYPE_CHAT_INPUT, OPTION_TYPE_STRING

REGISTER_COMMAND_NAME = "register"
ADMIN_SYNC_COMMAND_NAME = "admin_sync_users_to_sheets"

_TRACKER_ORDINALS = ("First", "Second", "Third", "Fourth")


def _tracker_option(index: int) -> dict[str, Any]:
    ordinal = _TRACKER_ORDINALS[index]
    required = index == 0
    description = f"{ordinal} Rocket League tracker URL"
    if not required:
        description += " (optional)"
    return {
        "type": OPTION_TYPE_STRING,
        "name": f"tracker{index + 1}",
        "description": description,
        "required": required,
    }


def build_application_commands() -> list[dict[str, Any]]:
    return [
        {
            "type": APPLICATION_COMMAND_TYPE_CHAT_INPUT,
            "name": REGISTER_COMMAND_NAME,
            "description": "Register your Rocket League tracker URLs",
            "options": [_tracker_option(i) for i in range(len(_TRACKER_ORDINALS))],
        },
        {
            "type": APPLICATION_COMMAND_TYPE_CHAT_INPUT,
            "name": ADMIN_SYNC_COMMAND_NAME,
            "description": "Sync all server members to the Google Sheet (admin only)",
            # Administrator permission bit; hides the command from other members.
            "default_member_permissions": "8",
        },
    ]
