from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from ...core.logging_utils import log_event
from .rest import DiscordRestClient


def target_guilds(guild_ids: Iterable[str]) -> tuple[Optional[str], ...]:
    """Deduplicated, sorted guild ids; ``(None,)`` stands for the global list."""
    cleaned = sorted(
        {guild_id.strip() for guild_id in guild_ids if guild_id and guild_id.strip()}
    )
    return tuple(cleaned) or (None,)


async def sync_commands(
    rest: DiscordRestClient,
    *,
    application_id: str,
    commands: list[dict[str, Any]],
    guild_ids: Iterable[str] = (),
    logger: logging.Logger,
) -> int:
    """Replace the command list in every target scope.

    Returns the total number of commands Discord echoed back.
    """
    wanted = [command["name"] for command in commands]
    total = 0
    for guild_id in target_guilds(guild_ids):
        registered = await rest.bulk_overwrite_application_commands(
            application_id=application_id,
            commands=commands,
            guild_id=guild_id,
        )
        names = {item.get("name") for item in registered}
        missing = [name for name in wanted if name not in names]
        total += len(registered)
        scope = "global" if guild_id is None else "guild"
        log_event(
            logger,
            logging.INFO,
            "discord.commands.sync.overwrite",
            scope=scope,
            guild_id=guild_id,
            application_id=application_id,
            registered=sorted(name for name in names if name),
        )
        if missing:
            log_event(
                logger,
                logging.WARNING,
                "discord.commands.sync.incomplete",
                scope=scope,
                guild_id=guild_id,
                missing=missing,
            )
    return total
