from __future__ import annotations

from dataclasses import replace

from beluga_bot.commands.validation import validate_register_channel
from beluga_bot.core.result import Err, Ok
from beluga_bot.integrations.discord.interactions import parse_interaction

ADMIN_CHANNEL_ID = "1388177835331424386"
REGISTER_CHANNEL_ID = "1200000000000000002"


def _interaction(channel_id):
    payload = {"id": "1", "application_id": "a", "type": 2, "data": {"name": "register"}}
    if channel_id is not None:
        payload["channel_id"] = channel_id
    return parse_interaction(payload)


def test_development_uses_test_channel(bot_config) -> None:
    assert validate_register_channel(_interaction(ADMIN_CHANNEL_ID), bot_config) == Ok(
        ADMIN_CHANNEL_ID
    )
    assert validate_register_channel(_interaction(REGISTER_CHANNEL_ID), bot_config) == Err(
        "This command can only be used in the test channel."
    )


def test_production_uses_register_channel(bot_config) -> None:
    config = replace(bot_config, environment="production")
    assert validate_register_channel(_interaction(REGISTER_CHANNEL_ID), config) == Ok(
        REGISTER_CHANNEL_ID
    )
    assert validate_register_channel(_interaction(ADMIN_CHANNEL_ID), config) == Err(
        "This command can only be used in the designated register channel."
    )


def test_unconfigured_channel_names_variable(bot_config) -> None:
    dev = replace(bot_config, test_channel_id=None)
    result = validate_register_channel(_interaction(ADMIN_CHANNEL_ID), dev)
    assert isinstance(result, Err)
    assert result.error.startswith("Channel restriction not configured.")
    assert "TEST_CHANNEL_ID" in result.error

    prod = replace(
        bot_config, environment="production", register_command_request_channel_id=None
    )
    result = validate_register_channel(_interaction(REGISTER_CHANNEL_ID), prod)
    assert isinstance(result, Err)
    assert "REGISTER_COMMAND_REQUEST_CHANNEL_ID" in result.error


def test_missing_channel(bot_config) -> None:
    assert validate_register_channel(_interaction(None), bot_config) == Err(
        "Unable to determine channel. Please try again."
    )
