"""Discord interactions: signatures, payload parsing, REST access."""

from .command_registry import sync_commands
from .commands import build_application_commands
from .errors import DiscordAPIError, DiscordError
from .interactions import Interaction, parse_interaction
from .rest import DiscordRestClient
from .signature import verify_signature

__all__ = [
    "DiscordAPIError",
    "DiscordError",
    "DiscordRestClient",
    "Interaction",
    "build_application_commands",
    "parse_interaction",
    "sync_commands",
    "verify_signature",
]
