from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.config import BotConfig
from ..core.result import Err, Ok, ValidationResult
from ..integrations.discord.constants import ADMIN_ROLE_MARKER
from ..integrations.discord.interactions import Interaction

USER_TYPE_ADMIN_ROLE = "admin_role"
USER_TYPE_PRIVILEGED = "privileged_user"

UNKNOWN_USER_MESSAGE = "Unable to identify user. Please try again."
ACCESS_DENIED_MESSAGE = "Access denied. Admin role or special permissions required."
ADMIN_CHANNEL_NOT_CONFIGURED_MESSAGE = "Admin command channel not configured."
UNKNOWN_CHANNEL_MESSAGE = "Unable to determine channel. Please try again."
ADMIN_CHANNEL_ONLY_MESSAGE = (
    "This admin command can only be used in the designated test channel."
)


@dataclass(frozen=True)
class PermissionDecision:
    authorized: bool
    user_type: Optional[str] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class ChannelDecision:
    allowed: bool
    reason: Optional[str] = None


def validate_admin_permissions(
    interaction: Interaction, config: BotConfig
) -> PermissionDecision:
    """Role membership is reported ahead of the privileged id when both match."""
    user_id = interaction.user_id
    if not user_id:
        return PermissionDecision(authorized=False, reason=UNKNOWN_USER_MESSAGE)
    if ADMIN_ROLE_MARKER in interaction.member_roles:
        return PermissionDecision(authorized=True, user_type=USER_TYPE_ADMIN_ROLE)
    if config.privileged_user_id and user_id == config.privileged_user_id:
        return PermissionDecision(authorized=True, user_type=USER_TYPE_PRIVILEGED)
    return PermissionDecision(authorized=False, reason=ACCESS_DENIED_MESSAGE)


def validate_admin_channel_restriction(
    interaction: Interaction, config: BotConfig
) -> ChannelDecision:
    if not config.test_channel_id:
        return ChannelDecision(allowed=False, reason=ADMIN_CHANNEL_NOT_CONFIGURED_MESSAGE)
    if not interaction.channel_id:
        return ChannelDecision(allowed=False, reason=UNKNOWN_CHANNEL_MESSAGE)
    if interaction.channel_id != config.test_channel_id:
        return ChannelDecision(allowed=False, reason=ADMIN_CHANNEL_ONLY_MESSAGE)
    return ChannelDecision(allowed=True)


def validate_admin_access(
    interaction: Interaction, config: BotConfig
) -> ValidationResult[PermissionDecision]:
    channel = validate_admin_channel_restriction(interaction, config)
    permission = validate_admin_permissions(interaction, config)
    if not channel.allowed:
        return Err(channel.reason or ADMIN_CHANNEL_ONLY_MESSAGE)
    if not permission.authorized:
        return Err(permission.reason or ACCESS_DENIED_MESSAGE)
    return Ok(permission)
