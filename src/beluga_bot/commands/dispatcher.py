from __future__ import annotations

import logging
import time
from typing import Any, Callable, Mapping, Optional

from ..core.logging_utils import log_event
from ..core.request_context import SecurityContext
from ..integrations.discord.commands import ADMIN_SYNC_COMMAND_NAME, REGISTER_COMMAND_NAME
from ..integrations.discord.interactions import Interaction
from ..integrations.discord.responses import error_response
from .admin_sync import handle_admin_sync
from .register import handle_register
from .services import CommandServices

logger = logging.getLogger(__name__)

CommandHandler = Callable[[Interaction, object, CommandServices], dict[str, Any]]

UNKNOWN_COMMAND_MESSAGE = "Unknown command. Please try again."
COMMAND_FAILED_MESSAGE = "An error occurred while processing your command."


def default_handlers() -> dict[str, CommandHandler]:
    return {
        REGISTER_COMMAND_NAME: handle_register,
        ADMIN_SYNC_COMMAND_NAME: handle_admin_sync,
    }


class CommandDispatcher:
    """Routes command interactions by name. Authorization is the handlers' job."""

    def __init__(
        self,
        services: CommandServices,
        handlers: Optional[Mapping[str, CommandHandler]] = None,
    ) -> None:
        self._services = services
        self._handlers = dict(default_handlers() if handlers is None else handlers)

    @property
    def command_names(self) -> tuple[str, ...]:
        return tuple(sorted(self._handlers))

    def dispatch(
        self,
        interaction: Interaction,
        execution_context: object,
        *,
        security_context: Optional[SecurityContext] = None,
    ) -> dict[str, Any]:
        name = interaction.command_name
        handler = self._handlers.get(name) if name else None
        if handler is None:
            log_event(
                logger,
                logging.WARNING,
                "discord.command.unknown",
                command=name,
                interaction_id=interaction.id,
            )
            return error_response(UNKNOWN_COMMAND_MESSAGE)

        started = time.perf_counter()
        try:
            response = handler(interaction, execution_context, self._services)
        except Exception as exc:
            log_event(
                logger,
                logging.ERROR,
                "discord.command.failed",
                command=name,
                interaction_id=interaction.id,
                exc=exc,
            )
            self._services.audit.command_failed(
                security_context,
                command_name=name,
                user_id=interaction.user_id,
                error=str(exc),
            )
            return error_response(COMMAND_FAILED_MESSAGE)

        self._services.audit.command_executed(
            security_context,
            command_name=name,
            user_id=interaction.user_id,
            guild_id=interaction.guild_id,
            channel_id=interaction.channel_id,
            response_time_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return response
