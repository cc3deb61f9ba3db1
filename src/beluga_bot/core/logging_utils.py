from __future__ import annotations

import json
import logging
import sys
from typing import Any, Optional

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
_MAX_FIELD_CHARS = 2000


def _coerce(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        if len(value) > _MAX_FIELD_CHARS:
            return value[:_MAX_FIELD_CHARS] + "..."
        return value
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_coerce(item) for item in value]
    if isinstance(value, dict):
        return {str(key): _coerce(item) for key, item in value.items()}
    return str(value)


def format_event(event: str, fields: dict[str, Any]) -> str:
    payload: dict[str, Any] = {"event": event}
    for key, value in fields.items():
        payload[key] = _coerce(value)
    return json.dumps(payload, ensure_ascii=False, sort_keys=False)


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    *,
    exc: Optional[BaseException] = None,
    **fields: Any,
) -> None:
    """Emit one structured log line.

    ``exc`` adds ``error_type``/``error`` fields and attaches the traceback
    through ``exc_info`` so it stays out of the JSON payload.
    """
    if not logger.isEnabledFor(level):
        return
    if exc is not None:
        fields.setdefault("error_type", type(exc).__name__)
        fields.setdefault("error", str(exc))
    logger.log(
        level,
        format_event(event, fields),
        exc_info=(type(exc), exc, exc.__traceback__) if exc is not None else None,
    )


def setup_logging(level: str | int = logging.INFO) -> logging.Logger:
    root = logging.getLogger()
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        level = resolved if isinstance(resolved, int) else logging.INFO
    root.setLevel(level)
    if not any(getattr(h, "_beluga_handler", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        handler._beluga_handler = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    return logging.getLogger("beluga_bot")
