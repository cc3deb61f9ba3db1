from __future__ import annotations

from typing import Any, Sequence
from urllib.parse import quote

import httpx

from .errors import SheetsAPIError

SHEETS_API_BASE_URL = "https://sheets.googleapis.com/v4/spreadsheets"
VALUE_INPUT_USER_ENTERED = "USER_ENTERED"


class SheetsClient:
    """Values API for a single spreadsheet, authorized with a bearer token."""

    def __init__(
        self,
        *,
        spreadsheet_id: str,
        access_token: str,
        http_client: httpx.AsyncClient,
        base_url: str = SHEETS_API_BASE_URL,
    ) -> None:
        self._spreadsheet_id = spreadsheet_id
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._headers = {"Authorization": f"Bearer {access_token}"}

    def _values_url(self, value_range: str) -> str:
        return (
            f"{self._base_url}/{quote(self._spreadsheet_id, safe='')}"
            f"/values/{quote(value_range, safe='!:')}"
        )

    async def _send(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._http.request(method, url, headers=self._headers, **kwargs)
        except httpx.HTTPError as exc:
            raise SheetsAPIError(f"Sheets API request failed: {exc}") from exc
        if not response.is_success:
            raise SheetsAPIError(
                f"Sheets API error ({response.status_code}): {response.reason_phrase}",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise SheetsAPIError("Sheets API returned a non-JSON response") from exc
        return payload if isinstance(payload, dict) else {}

    async def get_values(self, value_range: str) -> list[list[Any]]:
        payload = await self._send("GET", self._values_url(value_range))
        values = payload.get("values")
        if not isinstance(values, list):
            return []
        return [row if isinstance(row, list) else [] for row in values]

    async def append_values(
        self,
        value_range: str,
        rows: Sequence[Sequence[str]],
        *,
        value_input_option: str = VALUE_INPUT_USER_ENTERED,
    ) -> int:
        """Append rows and return how many Google reports as updated."""
        payload = await self._send(
            "POST",
            f"{self._values_url(value_range)}:append",
            params={"valueInputOption": value_input_option},
            json={"values": [list(row) for row in rows]},
        )
        updates = payload.get("updates")
        if isinstance(updates, dict) and isinstance(updates.get("updatedRows"), int):
            return updates["updatedRows"]
        return len(rows)
