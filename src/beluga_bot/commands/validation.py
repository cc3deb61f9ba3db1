"""Validation steps run before a command does any work.

Each step returns a ``ValidationResult``; the admin chain stops at the first
failure and later steps receive what earlier ones validated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.config import ENV_REGISTER_REQUEST_CHANNEL, ENV_TEST_CHANNEL, BotConfig
from ..core.result import Err, Ok, ValidationResult
from ..integrations.discord.interactions import Interaction
from .deferred import ExecutionContext

CONTEXT_MISSING = "Execution context not available"
CONTEXT_MALFORMED = "Execution context missing required methods"
INVALID_INTERACTION = "Invalid interaction format"
INVALID_COMMAND_DATA = "Invalid command data"
USER_UNAVAILABLE = "User information not available"
MISSING_ENVIRONMENT = "Missing required environment configuration"
GUILD_ONLY = "This command can only be used in a Discord server"
ADMIN_CHANNEL_ONLY = "This command can only be used in the designated admin channel"
INSUFFICIENT_PERMISSIONS = "Insufficient permissions for this admin command"

CHANNEL_NOT_CONFIGURED = "Channel restriction not configured."
CHANNEL_UNKNOWN = "Unable to determine channel. Please try again."


@dataclass(frozen=True)
class AdminCommandRequest:
    interaction: Interaction
    execution_context: ExecutionContext
    user_id: str
    guild_id: str
    spreadsheet_id: str


def validate_execution_context(context: object) -> ValidationResult[ExecutionContext]:
    if context is None:
        return Err(CONTEXT_MISSING)
    if not callable(getattr(context, "wait_until", None)):
        return Err(CONTEXT_MALFORMED)
    return Ok(context)  # type: ignore[arg-type]


def validate_interaction_structure(interaction: object) -> ValidationResult[Interaction]:
    if not isinstance(interaction, Interaction):
        return Err(INVALID_INTERACTION)
    if not isinstance(interaction.id, str) or not interaction.id:
        return Err(INVALID_INTERACTION)
    if not isinstance(interaction.application_id, str):
        return Err(INVALID_INTERACTION)
    return Ok(interaction)


def validate_command_data(interaction: Interaction) -> ValidationResult[Interaction]:
    if interaction.data is None:
        return Err(INVALID_COMMAND_DATA)
    if interaction.is_command and not interaction.data.name:
        return Err(INVALID_COMMAND_DATA)
    return Ok(interaction)


def extract_user_id(interaction: Interaction) -> ValidationResult[str]:
    user_id = interaction.user_id
    if not user_id:
        return Err(USER_UNAVAILABLE)
    return Ok(user_id)


def validate_environment_config(config: BotConfig) -> ValidationResult[str]:
    if not config.google_sheet_id:
        return Err(MISSING_ENVIRONMENT)
    return Ok(config.google_sheet_id)


def validate_admin_channel_permissions(
    interaction: Interaction, user_id: str, config: BotConfig
) -> ValidationResult[str]:
    """Guild, then admin channel, then privileged user; returns the guild id."""
    if not interaction.guild_id:
        return Err(GUILD_ONLY)
    if not interaction.channel_id or interaction.channel_id != config.test_channel_id:
        return Err(ADMIN_CHANNEL_ONLY)
    if not config.privileged_user_id or user_id != config.privileged_user_id:
        return Err(INSUFFICIENT_PERMISSIONS)
    return Ok(interaction.guild_id)


def validate_admin_command(
    interaction: object,
    execution_context: object,
    config: BotConfig,
) -> ValidationResult[AdminCommandRequest]:
    context_result = validate_execution_context(execution_context)
    if isinstance(context_result, Err):
        return context_result
    structure = validate_interaction_structure(interaction).bind(validate_command_data)
    if isinstance(structure, Err):
        return structure
    valid_interaction = structure.data
    user_result = extract_user_id(valid_interaction)
    if isinstance(user_result, Err):
        return user_result
    sheet_result = validate_environment_config(config)
    if isinstance(sheet_result, Err):
        return sheet_result
    guild_result = validate_admin_channel_permissions(
        valid_interaction, user_result.data, config
    )
    if isinstance(guild_result, Err):
        return guild_result
    return Ok(
        AdminCommandRequest(
            interaction=valid_interaction,
            execution_context=context_result.data,
            user_id=user_result.data,
            guild_id=guild_result.data,
            spreadsheet_id=sheet_result.data,
        )
    )


@dataclass(frozen=True)
class ChannelRequirement:
    channel_id: str
    label: str


def resolve_register_channel(config: BotConfig) -> ValidationResult[ChannelRequirement]:
    if config.is_development:
        env_name, channel_id, label = ENV_TEST_CHANNEL, config.test_channel_id, "test"
    else:
        env_name = ENV_REGISTER_REQUEST_CHANNEL
        channel_id = config.register_command_request_channel_id
        label = "designated register"
    if not channel_id:
        return Err(f"{CHANNEL_NOT_CONFIGURED} Missing {env_name} environment variable.")
    return Ok(ChannelRequirement(channel_id=channel_id, label=label))


def _match_channel(
    channel_id: Optional[str], requirement: ChannelRequirement
) -> ValidationResult[str]:
    if not channel_id:
        return Err(CHANNEL_UNKNOWN)
    if channel_id != requirement.channel_id:
        return Err(f"This command can only be used in the {requirement.label} channel.")
    return Ok(channel_id)


def validate_register_channel(
    interaction: Interaction, config: BotConfig
) -> ValidationResult[str]:
    return resolve_register_channel(config).bind(
        lambda requirement: _match_channel(interaction.channel_id, requirement)
    )
