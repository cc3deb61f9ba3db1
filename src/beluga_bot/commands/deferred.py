"""Deferred interaction responses.

An interaction that cannot be answered inside Discord's response window is
acknowledged with a deferred response, and the real work is handed to the
host's background capability. The work always finishes with exactly one
edit of the original message, on success and on failure alike.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Protocol, runtime_checkable

from ..core.logging_utils import log_event
from ..integrations.discord.constants import DISCORD_MAX_MESSAGE_LENGTH
from ..integrations.discord.responses import deferred_response, error_response

logger = logging.getLogger(__name__)


@runtime_checkable
class ExecutionContext(Protocol):
    """Host capability that runs an awaitable after the response is flushed."""

    def wait_until(self, awaitable: Awaitable[Any]) -> None: ...


class OriginalMessageEditor(Protocol):
    async def edit_original_interaction_response(
        self,
        *,
        application_id: str,
        interaction_token: str,
        payload: dict[str, Any],
    ) -> Any: ...


class DeferredPhase(str, Enum):
    RECEIVED = "received"
    DEFERRED = "deferred"
    COMPLETED = "completed"
    ERRORED_BEFORE_DEFER = "errored_before_defer"


def _clip(content: str) -> str:
    if len(content) <= DISCORD_MAX_MESSAGE_LENGTH:
        return content
    return content[: DISCORD_MAX_MESSAGE_LENGTH - 3] + "..."


class DeferredInteraction:
    def __init__(
        self,
        *,
        application_id: Optional[str],
        interaction_token: str,
        editor: OriginalMessageEditor,
        logger: logging.Logger = logger,
    ) -> None:
        self._application_id = application_id or ""
        self._interaction_token = interaction_token
        self._editor = editor
        self._logger = logger
        self._phase = DeferredPhase.RECEIVED

    @property
    def phase(self) -> DeferredPhase:
        return self._phase

    def _require_received(self) -> None:
        if self._phase is not DeferredPhase.RECEIVED:
            raise RuntimeError(f"interaction already answered ({self._phase.value})")

    def reject(self, message: str) -> dict[str, Any]:
        """Answer immediately with an ephemeral error; no background work runs."""
        self._require_received()
        self._phase = DeferredPhase.ERRORED_BEFORE_DEFER
        return error_response(message)

    def defer(
        self,
        execution_context: ExecutionContext,
        work: Callable[[], Awaitable[str]],
        *,
        on_error: Callable[[BaseException], str],
        ephemeral: bool = True,
    ) -> dict[str, Any]:
        self._require_received()
        completion = self._complete(work, on_error)
        try:
            execution_context.wait_until(completion)
        except Exception:
            completion.close()
            raise
        self._phase = DeferredPhase.DEFERRED
        return deferred_response(ephemeral=ephemeral)

    async def _complete(
        self,
        work: Callable[[], Awaitable[str]],
        on_error: Callable[[BaseException], str],
    ) -> None:
        try:
            content = await work()
        except Exception as exc:
            log_event(
                self._logger,
                logging.ERROR,
                "discord.deferred.work_failed",
                application_id=self._application_id,
                exc=exc,
            )
            content = on_error(exc)
        try:
            await self._editor.edit_original_interaction_response(
                application_id=self._application_id,
                interaction_token=self._interaction_token,
                payload={"content": _clip(content)},
            )
        except Exception as exc:
            # Delivery is best-effort; the user simply sees no update.
            log_event(
                self._logger,
                logging.ERROR,
                "discord.deferred.patch_back_failed",
                application_id=self._application_id,
                exc=exc,
            )
        else:
            log_event(
                self._logger,
                logging.INFO,
                "discord.deferred.patch_back_sent",
                application_id=self._application_id,
            )
        finally:
            self._phase = DeferredPhase.COMPLETED
