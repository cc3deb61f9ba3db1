from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Union

from dotenv import load_dotenv

from .result import Err, Ok, ValidationResult

logger = logging.getLogger(__name__)

DEFAULT_ENVIRONMENT = "development"
ENVIRONMENTS = ("development", "production", "test")

ENV_DISCORD_TOKEN = "DISCORD_TOKEN"
ENV_DISCORD_PUBLIC_KEY = "DISCORD_PUBLIC_KEY"
ENV_DISCORD_APPLICATION_ID = "DISCORD_APPLICATION_ID"
ENV_GOOGLE_SHEET_ID = "GOOGLE_SHEET_ID"
ENV_ENVIRONMENT = "ENVIRONMENT"
ENV_REGISTER_REQUEST_CHANNEL = "REGISTER_COMMAND_REQUEST_CHANNEL_ID"
ENV_REGISTER_RESPONSE_CHANNEL = "REGISTER_COMMAND_RESPONSE_CHANNEL_ID"
ENV_TEST_CHANNEL = "TEST_CHANNEL_ID"
ENV_PRIVILEGED_USER = "PRIVILEGED_USER_ID"

# Service-account fields, in the order they are checked.
CREDENTIAL_ENV_FIELDS = (
    ("type", "GOOGLE_SHEETS_TYPE"),
    ("project_id", "GOOGLE_SHEETS_PROJECT_ID"),
    ("private_key_id", "GOOGLE_SHEETS_PRIVATE_KEY_ID"),
    ("private_key", "GOOGLE_SHEETS_PRIVATE_KEY"),
    ("client_email", "GOOGLE_SHEETS_CLIENT_EMAIL"),
    ("client_id", "GOOGLE_SHEETS_CLIENT_ID"),
)

SERVER_SECRET_FIELDS = (
    ("discord_token", ENV_DISCORD_TOKEN),
    ("discord_public_key", ENV_DISCORD_PUBLIC_KEY),
    ("discord_application_id", ENV_DISCORD_APPLICATION_ID),
)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    token = str(value).strip()
    return token or None


@dataclass(frozen=True)
class ServiceAccountCredentials:
    type: str
    project_id: str
    private_key_id: str
    private_key: str
    client_email: str
    client_id: str


@dataclass(frozen=True)
class BotConfig:
    discord_token: Optional[str] = None
    discord_public_key: Optional[str] = None
    discord_application_id: Optional[str] = None
    google_sheet_id: Optional[str] = None
    google_sheets_type: Optional[str] = None
    google_sheets_project_id: Optional[str] = None
    google_sheets_private_key_id: Optional[str] = None
    google_sheets_private_key: Optional[str] = None
    google_sheets_client_email: Optional[str] = None
    google_sheets_client_id: Optional[str] = None
    environment: str = DEFAULT_ENVIRONMENT
    register_command_request_channel_id: Optional[str] = None
    register_command_response_channel_id: Optional[str] = None
    test_channel_id: Optional[str] = None
    privileged_user_id: Optional[str] = None

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "BotConfig":
        source: Mapping[str, str] = os.environ if env is None else env

        def read(name: str) -> Optional[str]:
            return _clean(source.get(name))

        private_key = read("GOOGLE_SHEETS_PRIVATE_KEY")
        if private_key is not None:
            # Keys stored in single-line env files carry escaped newlines.
            private_key = private_key.replace("\\n", "\n")
        environment = (read(ENV_ENVIRONMENT) or DEFAULT_ENVIRONMENT).lower()
        if environment not in ENVIRONMENTS:
            logger.warning("Unknown ENVIRONMENT %r; treating as production", environment)
        return cls(
            discord_token=read(ENV_DISCORD_TOKEN),
            discord_public_key=read(ENV_DISCORD_PUBLIC_KEY),
            discord_application_id=read(ENV_DISCORD_APPLICATION_ID),
            google_sheet_id=read(ENV_GOOGLE_SHEET_ID),
            google_sheets_type=read("GOOGLE_SHEETS_TYPE"),
            google_sheets_project_id=read("GOOGLE_SHEETS_PROJECT_ID"),
            google_sheets_private_key_id=read("GOOGLE_SHEETS_PRIVATE_KEY_ID"),
            google_sheets_private_key=private_key,
            google_sheets_client_email=read("GOOGLE_SHEETS_CLIENT_EMAIL"),
            google_sheets_client_id=read("GOOGLE_SHEETS_CLIENT_ID"),
            environment=environment,
            register_command_request_channel_id=read(ENV_REGISTER_REQUEST_CHANNEL),
            register_command_response_channel_id=read(ENV_REGISTER_RESPONSE_CHANNEL),
            test_channel_id=read(ENV_TEST_CHANNEL),
            privileged_user_id=read(ENV_PRIVILEGED_USER),
        )

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    def missing_secrets(self) -> list[str]:
        return [env_name for attr, env_name in SERVER_SECRET_FIELDS if not getattr(self, attr)]

    def require_server_settings(self) -> ValidationResult["BotConfig"]:
        missing = self.missing_secrets()
        if missing:
            return Err(f"Missing required environment variables: {', '.join(missing)}")
        return Ok(self)


def load_service_account_credentials(
    config: BotConfig,
) -> ValidationResult[ServiceAccountCredentials]:
    values: dict[str, str] = {}
    for field_name, env_name in CREDENTIAL_ENV_FIELDS:
        value = getattr(config, f"google_sheets_{field_name}")
        if not value:
            return Err(f"Missing required credential field: {env_name}")
        values[field_name] = value
    return Ok(ServiceAccountCredentials(**values))


def load_dotenv_for_root(root: Union[str, Path]) -> bool:
    """Load ``root/.env`` without overriding variables already exported."""
    candidate = Path(root).expanduser() / ".env"
    try:
        if not candidate.is_file():
            return False
        return bool(load_dotenv(dotenv_path=candidate, override=False))
    except OSError as exc:
        logger.debug("Failed to load .env file: %s", exc)
        return False
