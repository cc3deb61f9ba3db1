from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from .constants import DISCORD_API_BASE_URL, GUILD_MEMBERS_PAGE_LIMIT
from .errors import DiscordAPIError

logger = logging.getLogger(__name__)

# Pagination stops here even if Discord keeps returning full pages.
MAX_MEMBER_PAGES = 250


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"]
    preview = (response.text or "").strip().replace("\n", " ")[:200]
    return preview or response.reason_phrase or "Unknown error"


class DiscordRestClient:
    """Thin Discord REST client. Failures are raised once, never retried."""

    def __init__(
        self,
        *,
        bot_token: str,
        timeout_seconds: float = 10.0,
        base_url: str = DISCORD_API_BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url, timeout=timeout_seconds, transport=transport
        )
        self._authorization_header = f"Bot {bot_token}"

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "DiscordRestClient":
        return self

    async def __aexit__(self, *_exc_info: object) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        payload: dict[str, Any] | list[dict[str, Any]] | None = None,
        params: Optional[dict[str, Any]] = None,
        expect_json: bool = True,
    ) -> Any:
        try:
            response = await self._client.request(
                method,
                path,
                json=payload,
                params=params,
                headers={"Authorization": self._authorization_header},
            )
        except httpx.HTTPError as exc:
            raise DiscordAPIError(
                f"Discord API error (network): {method} {path} failed: {exc}"
            ) from exc

        if not response.is_success:
            status_code = response.status_code
            logger.warning(
                "Discord API %s %s returned %s", method, path, status_code
            )
            detail = _error_detail(response)
            raise DiscordAPIError(
                f"Discord API error ({status_code}): {detail}",
                status_code=status_code,
                detail=detail,
            )

        if not expect_json or response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise DiscordAPIError(
                f"Discord API error ({response.status_code}): non-JSON response for {method} {path}",
                status_code=response.status_code,
            ) from exc

    async def bulk_overwrite_application_commands(
        self,
        *,
        application_id: str,
        commands: list[dict[str, Any]],
        guild_id: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        path = (
            f"/applications/{application_id}/commands"
            if guild_id is None
            else f"/applications/{application_id}/guilds/{guild_id}/commands"
        )
        payload = await self._request("PUT", path, payload=commands)
        if not isinstance(payload, list):
            return []
        return [item for item in payload if isinstance(item, dict)]

    async def create_channel_message(
        self, *, channel_id: str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        response = await self._request(
            "POST", f"/channels/{channel_id}/messages", payload=payload
        )
        return response if isinstance(response, dict) else {}

    async def edit_original_interaction_response(
        self,
        *,
        application_id: str,
        interaction_token: str,
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        response = await self._request(
            "PATCH",
            f"/webhooks/{application_id}/{interaction_token}/messages/@original",
            payload=payload,
        )
        return response if isinstance(response, dict) else {}

    async def list_guild_members(
        self,
        guild_id: str,
        *,
        limit: int = GUILD_MEMBERS_PAGE_LIMIT,
        after: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"limit": limit}
        if after:
            params["after"] = after
        payload = await self._request(
            "GET", f"/guilds/{guild_id}/members", params=params
        )
        if not isinstance(payload, list):
            raise DiscordAPIError(
                "Discord API error (200): expected a list of guild members",
                status_code=200,
                detail="expected a list of guild members",
            )
        return [item for item in payload if isinstance(item, dict)]

    async def list_all_guild_members(
        self, guild_id: str, *, page_limit: int = GUILD_MEMBERS_PAGE_LIMIT
    ) -> list[dict[str, Any]]:
        """Walk the member list with ``after`` cursors until a short page."""
        members: list[dict[str, Any]] = []
        after: Optional[str] = None
        for _page in range(MAX_MEMBER_PAGES):
            page = await self.list_guild_members(guild_id, limit=page_limit, after=after)
            if not page:
                break
            members.extend(page)
            last_user = page[-1].get("user")
            last_id = last_user.get("id") if isinstance(last_user, dict) else None
            if len(page) < page_limit or not last_id:
                break
            after = str(last_id)
        return members
