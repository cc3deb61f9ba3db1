"""Application command handlers and the checks that guard them."""

from .dispatcher import CommandDispatcher, default_handlers
from .error_messages import classify_sync_error
from .permissions import (
    ChannelDecision,
    PermissionDecision,
    validate_admin_access,
    validate_admin_channel_restriction,
    validate_admin_permissions,
)
from .services import CommandServices

__all__ = [
    "ChannelDecision",
    "CommandDispatcher",
    "CommandServices",
    "PermissionDecision",
    "classify_sync_error",
    "default_handlers",
    "validate_admin_access",
    "validate_admin_channel_restriction",
    "validate_admin_permissions",
]
