from __future__ import annotations

from typing import Any, Awaitable, Optional

from starlette.background import BackgroundTasks


async def _run(awaitable: Awaitable[Any]) -> None:
    await awaitable


class BackgroundExecutionContext:
    """Runs awaitables as Starlette background tasks.

    Starlette starts background tasks only after the response body has been
    sent, so the interaction reply always reaches Discord first.
    """

    def __init__(self, tasks: Optional[BackgroundTasks] = None) -> None:
        self.tasks = tasks if tasks is not None else BackgroundTasks()
        self.scheduled = 0

    def wait_until(self, awaitable: Awaitable[Any]) -> None:
        self.tasks.add_task(_run, awaitable)
        self.scheduled += 1
