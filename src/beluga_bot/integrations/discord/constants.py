from __future__ import annotations

DISCORD_API_BASE_URL = "https://discord.com/api/v10"

SIGNATURE_HEADER = "X-Signature-Ed25519"
TIMESTAMP_HEADER = "X-Signature-Timestamp"

INTERACTION_TYPE_PING = 1
INTERACTION_TYPE_APPLICATION_COMMAND = 2
INTERACTION_TYPE_MESSAGE_COMPONENT = 3
INTERACTION_TYPE_AUTOCOMPLETE = 4
INTERACTION_TYPE_MODAL_SUBMIT = 5

RESPONSE_TYPE_PONG = 1
RESPONSE_TYPE_CHANNEL_MESSAGE = 4
RESPONSE_TYPE_DEFERRED_CHANNEL_MESSAGE = 5

MESSAGE_FLAG_EPHEMERAL = 1 << 6

APPLICATION_COMMAND_TYPE_CHAT_INPUT = 1
OPTION_TYPE_STRING = 3

DISCORD_MAX_MESSAGE_LENGTH = 2000
GUILD_MEMBERS_PAGE_LIMIT = 1000

# Literal role marker treated as administrator membership.
ADMIN_ROLE_MARKER = "8"
