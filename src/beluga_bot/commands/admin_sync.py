from __future__ import annotations

import logging
from typing import Any

from ..core.config import load_service_account_credentials
from ..core.result import Err
from ..integrations.discord.interactions import Interaction
from .deferred import DeferredInteraction
from .error_messages import classify_sync_error
from .member_sync import perform_member_sync, render_sync_outcome
from .services import CommandServices
from .validation import AdminCommandRequest, validate_admin_command

logger = logging.getLogger(__name__)


def _sync_failed(exc: BaseException) -> str:
    return f"❌ Sync failed: {classify_sync_error(exc)}"


def handle_admin_sync(
    interaction: Interaction,
    execution_context: object,
    services: CommandServices,
) -> dict[str, Any]:
    """Validate, acknowledge with a deferred response, then sync in the background."""
    config = services.config
    deferred = DeferredInteraction(
        application_id=interaction.application_id or config.discord_application_id,
        interaction_token=interaction.token,
        editor=services.discord,
        logger=logger,
    )

    validation = validate_admin_command(interaction, execution_context, config)
    if isinstance(validation, Err):
        return deferred.reject(validation.error)
    credentials = load_service_account_credentials(config)
    if isinstance(credentials, Err):
        return deferred.reject(credentials.error)

    request: AdminCommandRequest = validation.data

    async def run_sync() -> str:
        async with services.http_client_factory() as http_client:
            outcome = await perform_member_sync(
                guild_id=request.guild_id,
                spreadsheet_id=request.spreadsheet_id,
                credentials=credentials.data,
                discord=services.discord,
                http_client=http_client,
            )
        return render_sync_outcome(outcome)

    return deferred.defer(request.execution_context, run_sync, on_error=_sync_failed)
