from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional
from urllib.parse import unquote, urlsplit

from ..integrations.discord.interactions import CommandData

TRACKER_HOST = "rocketleague.tracker.network"
TRACKER_URL_FORMAT = (
    "https://rocketleague.tracker.network/rocket-league/profile/<platform>/<platform_id>/overview"
)
SUPPORTED_PLATFORMS = ("steam", "epic", "psn", "xbl", "switch")
MAX_PLATFORM_ID_LENGTH = 100

_STEAM_ID = re.compile(r"7656119\d{10}")
_PSN_ID = re.compile(r"[a-zA-Z][a-zA-Z0-9_-]{2,15}")
_XBOX_GAMERTAG = re.compile(r"[a-zA-Z][a-zA-Z0-9 ]{2,11}")
_EPIC_NAME = re.compile(r"[a-zA-Z0-9._-]{3,}")

_PLATFORM_RULES: dict[str, tuple[re.Pattern[str], str]] = {
    "steam": (
        _STEAM_ID,
        "Invalid Steam ID64 format. Must be 17 digits starting with 7656119",
    ),
    "psn": (
        _PSN_ID,
        "Invalid PSN ID format. Must be 3-16 characters, start with letter, "
        "contain only letters/numbers/hyphens/underscores",
    ),
    "xbl": (
        _XBOX_GAMERTAG,
        "Invalid Xbox gamertag format. Must be 3-12 characters, start with letter, "
        "contain only letters/numbers/spaces",
    ),
    "epic": (
        _EPIC_NAME,
        "Invalid Epic Games display name format. Must be 3+ characters, "
        "contain only letters/numbers/periods/hyphens/underscores",
    ),
    "switch": (
        _EPIC_NAME,
        "Invalid Nintendo Switch ID format. Must be 3+ characters, "
        "contain only letters/numbers/periods/hyphens/underscores",
    ),
}


@dataclass(frozen=True)
class TrackerValidation:
    url: str
    platform: Optional[str] = None
    platform_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.error is None


def validate_tracker_url(url: str) -> TrackerValidation:
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
    except ValueError:
        return TrackerValidation(url=url, error="Invalid URL format")
    if parts.scheme not in ("http", "https") or not hostname:
        return TrackerValidation(url=url, error="Invalid URL format")
    if hostname != TRACKER_HOST:
        return TrackerValidation(url=url, error=f"URL must be from {TRACKER_HOST}")

    segments = [segment for segment in parts.path.split("/") if segment]
    if (
        len(segments) != 5
        or segments[0] != "rocket-league"
        or segments[1] != "profile"
        or segments[4] != "overview"
    ):
        return TrackerValidation(
            url=url, error=f"URL must follow the format: {TRACKER_URL_FORMAT}"
        )

    platform = segments[2].lower()
    if platform not in SUPPORTED_PLATFORMS:
        return TrackerValidation(
            url=url,
            error=(
                f"Unsupported platform: {segments[2]}. "
                f"Supported platforms: {', '.join(SUPPORTED_PLATFORMS)}"
            ),
        )

    platform_id = unquote(segments[3])
    if len(platform_id) > MAX_PLATFORM_ID_LENGTH:
        return TrackerValidation(
            url=url,
            error=f"Platform ID too long (maximum {MAX_PLATFORM_ID_LENGTH} characters)",
        )
    pattern, message = _PLATFORM_RULES[platform]
    if not pattern.fullmatch(platform_id):
        return TrackerValidation(url=url, error=message)
    return TrackerValidation(url=url, platform=platform, platform_id=platform_id)


def extract_tracker_urls(data: Optional[CommandData]) -> list[str]:
    if data is None:
        return []
    urls: list[str] = []
    for option in data.options:
        if not option.name.startswith("tracker"):
            continue
        if isinstance(option.value, str) and option.value.strip():
            urls.append(option.value.strip())
    return urls


def validate_trackers(
    urls: Iterable[str],
) -> tuple[list[TrackerValidation], list[str]]:
    """Split URLs into valid trackers and ``❌ url: reason`` lines."""
    valid: list[TrackerValidation] = []
    errors: list[str] = []
    for url in urls:
        result = validate_tracker_url(url)
        if result.is_valid:
            valid.append(result)
        else:
            errors.append(f"❌ {url}: {result.error}")
    return valid, errors
