from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping, Optional

UNKNOWN_CLIENT = "unknown"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class SecurityContext:
    """Per-request identity used to correlate audit lines."""

    client_ip: str
    user_agent: str
    timestamp: str
    request_id: str


def resolve_client_ip(headers: Mapping[str, str], peer_host: Optional[str] = None) -> str:
    connecting_ip = (headers.get("cf-connecting-ip") or "").strip()
    if connecting_ip:
        return connecting_ip
    forwarded = (headers.get("x-forwarded-for") or "").split(",")[0].strip()
    if forwarded:
        return forwarded
    return peer_host or UNKNOWN_CLIENT


def build_security_context(
    headers: Mapping[str, str],
    *,
    peer_host: Optional[str] = None,
    request_id: Optional[str] = None,
) -> SecurityContext:
    """``headers`` must be case-insensitive (Starlette ``Headers``) or lower-cased."""
    return SecurityContext(
        client_ip=resolve_client_ip(headers, peer_host),
        user_agent=headers.get("user-agent") or UNKNOWN_CLIENT,
        timestamp=utc_now_iso(),
        request_id=request_id or str(uuid.uuid4()),
    )
