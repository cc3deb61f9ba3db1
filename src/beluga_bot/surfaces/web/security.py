"""Checks applied to every inbound interaction request before parsing."""

from __future__ import annotations

from typing import Mapping, Optional

from ...core.rate_limit import RateLimiter
from ...core.request_context import SecurityContext
from ...core.result import Err, Ok, ValidationResult
from ...integrations.discord.constants import SIGNATURE_HEADER, TIMESTAMP_HEADER
from ...integrations.discord.signature import verify_signature

MAX_PAYLOAD_BYTES = 1024 * 1024
MAX_TIMESTAMP_SKEW_SECONDS = 300
REQUEST_TIMEOUT_SECONDS = 10.0

RATE_LIMIT_EXCEEDED = "Rate limit exceeded"
MISSING_SIGNATURE = f"Missing {SIGNATURE_HEADER} header"
MISSING_TIMESTAMP = f"Missing {TIMESTAMP_HEADER} header"
INVALID_CONTENT_TYPE = "Invalid content type"
INVALID_TIMESTAMP = "Invalid request timestamp"
STALE_TIMESTAMP = "Request timestamp too old or too far in future"
PAYLOAD_TOO_LARGE = "Payload too large"
INVALID_SIGNATURE = "Invalid Discord signature"
REQUEST_TIMEOUT = "Request timeout"


def verify_interaction_request(
    body: bytes,
    headers: Mapping[str, str],
    *,
    public_key: Optional[str],
    context: SecurityContext,
    rate_limiter: RateLimiter,
    now: float,
) -> ValidationResult[bytes]:
    """Run the ordered request checks; ``headers`` must be case-insensitive."""
    if not rate_limiter.hit(context.client_ip):
        return Err(RATE_LIMIT_EXCEEDED)
    signature = headers.get(SIGNATURE_HEADER)
    if not signature:
        return Err(MISSING_SIGNATURE)
    timestamp = headers.get(TIMESTAMP_HEADER)
    if not timestamp:
        return Err(MISSING_TIMESTAMP)
    if "application/json" not in (headers.get("content-type") or "").lower():
        return Err(INVALID_CONTENT_TYPE)
    try:
        sent_at = int(timestamp)
    except ValueError:
        return Err(INVALID_TIMESTAMP)
    if abs(now - sent_at) > MAX_TIMESTAMP_SKEW_SECONDS:
        return Err(STALE_TIMESTAMP)
    if len(body) > MAX_PAYLOAD_BYTES:
        return Err(PAYLOAD_TOO_LARGE)
    if not verify_signature(body, signature, timestamp, public_key or ""):
        return Err(INVALID_SIGNATURE)
    return Ok(body)
