from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Optional

from .logging_utils import log_event
from .request_context import SecurityContext

_SECURITY_MARKERS = ("rate limit", "signature", "timestamp")


class AuditEventType(str, Enum):
    REQUEST_RECEIVED = "request_received"
    REQUEST_VERIFIED = "request_verified"
    REQUEST_REJECTED = "request_rejected"
    COMMAND_EXECUTED = "command_executed"
    COMMAND_FAILED = "command_failed"
    SECURITY_VIOLATION = "security_violation"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    HEALTH_CHECK = "health_check"
    ERROR_OCCURRED = "error_occurred"


_WARNING_EVENTS = {
    AuditEventType.REQUEST_REJECTED,
    AuditEventType.COMMAND_FAILED,
    AuditEventType.RATE_LIMIT_EXCEEDED,
}
_ERROR_EVENTS = {AuditEventType.SECURITY_VIOLATION, AuditEventType.ERROR_OCCURRED}


def _level_for(event_type: AuditEventType) -> int:
    if event_type in _ERROR_EVENTS:
        return logging.ERROR
    if event_type in _WARNING_EVENTS:
        return logging.WARNING
    return logging.INFO


def is_security_violation(reason: str) -> bool:
    lowered = reason.lower()
    return any(marker in lowered for marker in _SECURITY_MARKERS)


class AuditLogger:
    """Writes audit trail entries as structured ``audit.*`` events."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger("beluga_bot.audit")

    def record(
        self,
        event_type: AuditEventType,
        context: Optional[SecurityContext],
        *,
        success: Optional[bool] = None,
        user_id: Optional[str] = None,
        guild_id: Optional[str] = None,
        channel_id: Optional[str] = None,
        command_name: Optional[str] = None,
        error: Optional[str] = None,
        response_time_ms: Optional[float] = None,
        **metadata: Any,
    ) -> None:
        fields: dict[str, Any] = {}
        if context is not None:
            fields["request_id"] = context.request_id
            fields["client_ip"] = context.client_ip
            fields["user_agent"] = context.user_agent
        optional = {
            "success": success,
            "user_id": user_id,
            "guild_id": guild_id,
            "channel_id": channel_id,
            "command_name": command_name,
            "error": error,
            "response_time_ms": response_time_ms,
        }
        fields.update({key: value for key, value in optional.items() if value is not None})
        if metadata:
            fields["metadata"] = metadata
        log_event(self._logger, _level_for(event_type), f"audit.{event_type.value}", **fields)

    def request_received(self, context: SecurityContext, **metadata: Any) -> None:
        self.record(AuditEventType.REQUEST_RECEIVED, context, **metadata)

    def request_verified(self, context: SecurityContext) -> None:
        self.record(AuditEventType.REQUEST_VERIFIED, context, success=True)

    def request_rejected(self, context: SecurityContext, reason: str) -> None:
        self.record(AuditEventType.REQUEST_REJECTED, context, success=False, error=reason)
        if is_security_violation(reason):
            self.record(
                AuditEventType.SECURITY_VIOLATION,
                context,
                success=False,
                error=reason,
            )

    def rate_limit_exceeded(self, context: SecurityContext) -> None:
        self.record(AuditEventType.RATE_LIMIT_EXCEEDED, context, success=False)

    def command_executed(
        self,
        context: Optional[SecurityContext],
        *,
        command_name: str,
        user_id: Optional[str],
        guild_id: Optional[str],
        channel_id: Optional[str],
        response_time_ms: float,
    ) -> None:
        self.record(
            AuditEventType.COMMAND_EXECUTED,
            context,
            success=True,
            command_name=command_name,
            user_id=user_id,
            guild_id=guild_id,
            channel_id=channel_id,
            response_time_ms=response_time_ms,
        )

    def command_failed(
        self,
        context: Optional[SecurityContext],
        *,
        command_name: str,
        user_id: Optional[str],
        error: str,
    ) -> None:
        self.record(
            AuditEventType.COMMAND_FAILED,
            context,
            success=False,
            command_name=command_name,
            user_id=user_id,
            error=error,
        )

    def health_check(self, context: Optional[SecurityContext], *, healthy: bool) -> None:
        self.record(AuditEventType.HEALTH_CHECK, context, success=healthy)

    def error_occurred(self, context: Optional[SecurityContext], error: str) -> None:
        self.record(AuditEventType.ERROR_OCCURRED, context, success=False, error=error)
