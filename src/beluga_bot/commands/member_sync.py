from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

import httpx

from ..core.config import ServiceAccountCredentials
from ..core.errors import SyncError
from ..core.logging_utils import log_event
from ..core.request_context import utc_now_iso
from ..integrations.discord.errors import DiscordAPIError
from ..integrations.discord.rest import DiscordRestClient
from ..integrations.sheets.client import SheetsClient
from ..integrations.sheets.errors import SheetsAPIError
from ..integrations.sheets.oauth import GoogleOAuthClient
from .error_messages import classify_sync_error

logger = logging.getLogger(__name__)

EXISTING_IDS_RANGE = "A:A"
MEMBER_ROWS_RANGE = "A:G"
MISSING_MEMBER_ACCESS = "Bot lacks permission to access server members"

_DISCORD_ID = re.compile(r"\d{17,19}")


def is_valid_discord_id(value: object) -> bool:
    return isinstance(value, str) and _DISCORD_ID.fullmatch(value) is not None


@dataclass(frozen=True)
class MemberRecord:
    discord_id: str
    display_name: str
    username: str
    joined_at: str
    last_updated: str
    is_banned: bool = False
    is_active: bool = True

    def to_row(self) -> list[str]:
        return [
            self.discord_id,
            self.display_name,
            self.username,
            self.joined_at,
            "true" if self.is_banned else "false",
            "true" if self.is_active else "false",
            self.last_updated,
        ]


def _member_record(member: Mapping[str, Any], timestamp: str) -> Optional[MemberRecord]:
    user = member.get("user")
    if not isinstance(user, Mapping) or user.get("bot"):
        return None
    user_id = user.get("id")
    username = user.get("username")
    joined_at = member.get("joined_at")
    if not is_valid_discord_id(user_id) or not isinstance(username, str) or not username:
        return None
    if not isinstance(joined_at, str):
        return None
    display_name = member.get("nick") or user.get("global_name") or username
    return MemberRecord(
        discord_id=user_id,
        display_name=str(display_name),
        username=username,
        joined_at=joined_at,
        last_updated=timestamp,
    )


def transform_members(
    members: Iterable[Mapping[str, Any]],
    *,
    now: Callable[[], str] = utc_now_iso,
) -> list[MemberRecord]:
    """Keep human members with well-formed ids; display name prefers nick."""
    timestamp = now()
    records: list[MemberRecord] = []
    for member in members:
        record = _member_record(member, timestamp)
        if record is not None:
            records.append(record)
    return records


def existing_ids_from_values(values: Sequence[Sequence[Any]]) -> set[str]:
    # Row 0 is the header.
    return {
        row[0] for row in values[1:] if row and is_valid_discord_id(row[0])
    }


def filter_new_members(
    records: Iterable[MemberRecord], existing_ids: set[str]
) -> list[MemberRecord]:
    return [record for record in records if record.discord_id not in existing_ids]


@dataclass(frozen=True)
class SyncOutcome:
    added: int = 0
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, added: int) -> "SyncOutcome":
        return cls(added=added)

    @classmethod
    def failure(cls, error: BaseException) -> "SyncOutcome":
        return cls(error=error)


def render_sync_outcome(outcome: SyncOutcome) -> str:
    if outcome.succeeded:
        return f"✅ Successfully synced {outcome.added} new members to sheets"
    return f"❌ Sync failed: {classify_sync_error(outcome.error)}"


async def fetch_members(discord: DiscordRestClient, guild_id: str) -> list[dict[str, Any]]:
    try:
        return await discord.list_all_guild_members(guild_id)
    except DiscordAPIError as exc:
        if exc.status_code == 403:
            raise SyncError(MISSING_MEMBER_ACCESS) from exc
        if exc.status_code is None or exc.status_code >= 500:
            # Outages and network faults keep the upstream wording.
            raise SyncError(f"Failed to fetch members: {exc}") from exc
        detail = exc.detail or "request rejected"
        raise SyncError(
            f"Failed to fetch members: {detail} ({exc.status_code})"
        ) from exc


async def append_members(sheets: SheetsClient, records: Sequence[MemberRecord]) -> int:
    try:
        return await sheets.append_values(
            MEMBER_ROWS_RANGE, [record.to_row() for record in records]
        )
    except SheetsAPIError as exc:
        raise SyncError(f"Failed to append members: {exc}") from exc


async def perform_member_sync(
    *,
    guild_id: str,
    spreadsheet_id: str,
    credentials: ServiceAccountCredentials,
    discord: DiscordRestClient,
    http_client: httpx.AsyncClient,
) -> SyncOutcome:
    """Append guild members missing from the sheet.

    Every failure is captured in the returned outcome so the caller can
    report it; nothing raises past this point.
    """
    try:
        token = await GoogleOAuthClient(credentials, http_client=http_client).get_access_token()
        sheets = SheetsClient(
            spreadsheet_id=spreadsheet_id,
            access_token=token,
            http_client=http_client,
        )
        existing_ids = existing_ids_from_values(await sheets.get_values(EXISTING_IDS_RANGE))
        members = await fetch_members(discord, guild_id)
        new_records = filter_new_members(transform_members(members), existing_ids)
        if new_records:
            await append_members(sheets, new_records)
    except Exception as exc:
        log_event(
            logger,
            logging.ERROR,
            "sheets.member_sync.failed",
            guild_id=guild_id,
            exc=exc,
        )
        return SyncOutcome.failure(exc)
    log_event(
        logger,
        logging.INFO,
        "sheets.member_sync.completed",
        guild_id=guild_id,
        fetched=len(members),
        added=len(new_records),
    )
    return SyncOutcome.success(len(new_records))
