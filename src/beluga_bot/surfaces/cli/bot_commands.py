from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import typer
import uvicorn

from ...core.config import BotConfig, load_dotenv_for_root
from ...core.logging_utils import setup_logging
from ...core.result import Err
from ...integrations.discord.command_registry import sync_commands
from ...integrations.discord.commands import build_application_commands
from ...integrations.discord.rest import DiscordRestClient
from ..web.app import create_app


def _load_config(env_dir: Optional[Path]) -> BotConfig:
    load_dotenv_for_root(env_dir or Path.cwd())
    return BotConfig.from_env()


async def _register_application_commands(
    config: BotConfig,
    *,
    guild_ids: tuple[str, ...],
    logger: logging.Logger,
    rest_client_factory: Callable[..., Any] = DiscordRestClient,
    sync_func: Callable[..., Awaitable[int]] = sync_commands,
) -> int:
    commands = build_application_commands()
    async with rest_client_factory(bot_token=config.discord_token) as rest:
        return await sync_func(
            rest,
            application_id=config.discord_application_id,
            commands=commands,
            guild_ids=guild_ids,
            logger=logger,
        )


def register_bot_commands(
    app: typer.Typer,
    *,
    raise_exit: Callable,
    rest_client_factory: Callable[..., Any] = DiscordRestClient,
) -> None:
    @app.command("serve")
    def serve(
        host: str = typer.Option("127.0.0.1", "--host", help="Host to bind"),
        port: int = typer.Option(8787, "--port", help="Port to bind"),
        env_dir: Optional[Path] = typer.Option(
            None, "--env-dir", help="Directory containing a .env file"
        ),
        log_level: str = typer.Option("info", "--log-level", help="Log level"),
    ) -> None:
        """Serve the interactions endpoint."""
        config = _load_config(env_dir)
        settings = config.require_server_settings()
        if isinstance(settings, Err):
            raise_exit(settings.error)
        setup_logging(log_level)
        typer.echo(f"Serving Discord interactions on http://{host}:{port}/")
        uvicorn.run(
            create_app(config),
            host=host,
            port=port,
            log_level=log_level.lower(),
        )

    @app.command("register-commands")
    def register_commands(
        guild_id: list[str] = typer.Option(
            [], "--guild-id", help="Register in this guild instead of globally"
        ),
        env_dir: Optional[Path] = typer.Option(
            None, "--env-dir", help="Directory containing a .env file"
        ),
    ) -> None:
        """Overwrite the bot's slash commands on Discord."""
        config = _load_config(env_dir)
        if not config.discord_token or not config.discord_application_id:
            raise_exit("DISCORD_TOKEN and DISCORD_APPLICATION_ID must be set")
        logger = setup_logging()
        try:
            updated = asyncio.run(
                _register_application_commands(
                    config,
                    guild_ids=tuple(guild_id),
                    logger=logger,
                    rest_client_factory=rest_client_factory,
                )
            )
        except Exception as exc:
            raise_exit(f"Command registration failed: {exc}", cause=exc)
        scope = ", ".join(guild_id) if guild_id else "global"
        typer.echo(f"Registered {updated} commands ({scope}).")

    @app.command("health")
    def health(
        env_dir: Optional[Path] = typer.Option(
            None, "--env-dir", help="Directory containing a .env file"
        ),
    ) -> None:
        """Report missing configuration."""
        config = _load_config(env_dir)
        missing = config.missing_secrets()
        if missing:
            raise_exit(f"Missing: {', '.join(missing)}")
        typer.echo(f"Configuration OK (environment={config.environment}).")
