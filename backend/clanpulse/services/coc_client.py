from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from clanpulse.core.config import Settings, get_settings


logger = logging.getLogger("clanpulse.coc")


class CocApiNotConfigured(RuntimeError):
    pass


def encode_tag(tag: str) -> str:
    tag = tag.strip().upper()
    if not tag.startswith("#"):
        tag = f"#{tag}"
    return quote(tag, safe="")


class CocApiClient:
    """Thin read-only client for the Clash of Clans REST API."""

    def __init__(self, settings: Settings | None = None, transport: httpx.BaseTransport | None = None):
        settings = settings or get_settings()
        token = settings.coc_api_token.strip()
        if not token:
            raise CocApiNotConfigured("COC_API_TOKEN is not set.")
        self.war_log_limit = settings.war_log_limit
        self._client = httpx.Client(
            base_url=settings.coc_api_base_url.rstrip("/"),
            timeout=settings.coc_api_timeout_seconds,
            headers={"Authorization": f"Bearer {token}", "Accept": "application/json"},
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> CocApiClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        response = self._client.get(path, params=params)
        if response.status_code >= 400:
            logger.warning("Game API %s failed with status %s", path, response.status_code)
            raise httpx.HTTPStatusError(
                message=f"Game API request failed with status {response.status_code}",
                request=response.request,
                response=response,
            )
        try:
            return response.json()
        except ValueError as exc:
            logger.warning("Game API %s returned a non-JSON body", path)
            raise httpx.DecodingError(
                f"Game API response for {path} is not valid JSON",
                request=response.request,
            ) from exc

    def get_clan(self, clan_tag: str) -> dict[str, Any]:
        return self._get(f"/clans/{encode_tag(clan_tag)}")

    def get_war_log(self, clan_tag: str, limit: int | None = None) -> dict[str, Any]:
        try:
            return self._get(
                f"/clans/{encode_tag(clan_tag)}/warlog",
                params={"limit": limit or self.war_log_limit},
            )
        except httpx.HTTPStatusError as exc:
            # Private war logs answer 403.
            if exc.response.status_code == 403:
                return {"items": []}
            raise

    def get_current_war(self, clan_tag: str) -> dict[str, Any] | None:
        try:
            return self._get(f"/clans/{encode_tag(clan_tag)}/currentwar")
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code in (403, 404):
                return None
            raise

    def get_raid_seasons(self, clan_tag: str, limit: int | None = None) -> dict[str, Any]:
        return self._get(
            f"/clans/{encode_tag(clan_tag)}/capitalraidseasons",
            params={"limit": limit or self.war_log_limit},
        )
