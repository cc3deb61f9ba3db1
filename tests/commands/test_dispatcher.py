from __future__ import annotations

import json
import logging

import pytest

from beluga_bot.commands.dispatcher import CommandDispatcher
from beluga_bot.commands.services import CommandServices
from beluga_bot.core.audit import AuditLogger
from beluga_bot.core.request_context import build_security_context
from beluga_bot.integrations.discord.interactions import parse_interaction


@pytest.fixture
def services(bot_config, fake_discord) -> CommandServices:
    return CommandServices(
        config=bot_config,
        discord=fake_discord,
        audit=AuditLogger(logging.getLogger("test.audit")),
    )


def _audit_events(caplog: pytest.LogCaptureFixture) -> list[dict]:
    return [
        json.loads(record.getMessage())
        for record in caplog.records
        if record.name == "test.audit"
    ]


def test_default_handlers_cover_both_commands(services) -> None:
    assert CommandDispatcher(services).command_names == (
        "admin_sync_users_to_sheets",
        "register",
    )


def test_unknown_command(make_interaction, execution_context, services) -> None:
    response = CommandDispatcher(services).dispatch(
        parse_interaction(make_interaction(name="dance")), execution_context
    )
    assert response["data"]["content"] == "❌ Unknown command. Please try again."


def test_routes_by_name_and_audits(
    make_interaction, execution_context, services, caplog: pytest.LogCaptureFixture
) -> None:
    seen = []

    def handler(interaction, context, handler_services):
        seen.append((interaction.command_name, context, handler_services))
        return {"type": 4, "data": {"content": "ok", "flags": 64}}

    dispatcher = CommandDispatcher(services, {"ping_me": handler})
    context = build_security_context({}, peer_host="127.0.0.1")
    with caplog.at_level(logging.INFO, logger="test.audit"):
        response = dispatcher.dispatch(
            parse_interaction(make_interaction(name="ping_me")),
            execution_context,
            security_context=context,
        )

    assert response["data"]["content"] == "ok"
    assert seen == [("ping_me", execution_context, services)]
    events = _audit_events(caplog)
    assert [event["event"] for event in events] == ["audit.command_executed"]


def test_handler_crash_becomes_generic_error(
    make_interaction, execution_context, services, caplog: pytest.LogCaptureFixture
) -> None:
    def handler(interaction, context, handler_services):
        raise KeyError("secret detail")

    dispatcher = CommandDispatcher(services, {"boom": handler})
    with caplog.at_level(logging.INFO):
        response = dispatcher.dispatch(
            parse_interaction(make_interaction(name="boom")), execution_context
        )

    assert response["data"]["content"] == "❌ An error occurred while processing your command."
    assert "secret detail" not in response["data"]["content"]
    assert [event["event"] for event in _audit_events(caplog)] == ["audit.command_failed"]
