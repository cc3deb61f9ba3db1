from __future__ import annotations

import logging
from typing import Any, Sequence

from ..core.logging_utils import log_event
from ..core.result import Err
from ..integrations.discord.errors import DiscordAPIError
from ..integrations.discord.interactions import Interaction
from ..integrations.discord.responses import ephemeral_response, error_response
from .services import CommandServices
from .trackers import TrackerValidation, extract_tracker_urls, validate_trackers
from .validation import validate_execution_context, validate_register_channel

logger = logging.getLogger(__name__)

REGISTRATION_RECEIVED = "✅ Registration received!"
REGISTRATION_FOOTER = "*React under this post to take this one.*"


def format_registration_message(
    user_id: str,
    trackers: Sequence[TrackerValidation],
    errors: Sequence[str],
) -> str:
    lines = [
        f"<@{user_id}> has registered the following trackers:",
        "",
        "**User ID:**",
        "```",
        user_id,
        "```",
    ]
    lines.extend(f"• {tracker.url}" for tracker in trackers)
    if errors:
        lines.extend(["", "⚠️ Some URLs were invalid:", *errors])
    lines.append(REGISTRATION_FOOTER)
    return "\n".join(lines)


async def route_registration(
    services: CommandServices, *, user_id: str, content: str
) -> bool:
    channel_id = services.config.register_command_response_channel_id
    if not channel_id:
        log_event(
            logger,
            logging.WARNING,
            "register.route.unconfigured",
            user_id=user_id,
        )
        return False
    try:
        await services.discord.create_channel_message(
            channel_id=channel_id,
            payload={"content": content, "allowed_mentions": {"users": [user_id]}},
        )
    except DiscordAPIError as exc:
        log_event(
            logger,
            logging.ERROR,
            "register.route.failed",
            channel_id=channel_id,
            user_id=user_id,
            exc=exc,
        )
        return False
    log_event(
        logger,
        logging.INFO,
        "register.route.sent",
        channel_id=channel_id,
        user_id=user_id,
    )
    return True


def handle_register(
    interaction: Interaction,
    execution_context: object,
    services: CommandServices,
) -> dict[str, Any]:
    channel = validate_register_channel(interaction, services.config)
    if isinstance(channel, Err):
        return ephemeral_response(channel.error)

    user_id = interaction.user_id
    if not user_id:
        return error_response("Could not identify user. Please try again.")

    urls = extract_tracker_urls(interaction.data)
    if not urls:
        return error_response("Please provide at least one tracker URL.")

    trackers, errors = validate_trackers(urls)
    if not trackers:
        return ephemeral_response("Invalid tracker URLs:\n" + "\n".join(errors))

    context = validate_execution_context(execution_context)
    if isinstance(context, Err):
        return error_response(context.error)

    content = format_registration_message(user_id, trackers, errors)
    context.data.wait_until(route_registration(services, user_id=user_id, content=content))
    return ephemeral_response(REGISTRATION_RECEIVED)
