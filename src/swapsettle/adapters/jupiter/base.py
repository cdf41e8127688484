from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

import httpx
from loguru import logger

from ...config.settings import JupiterSettings
from ...errors import UpstreamError


class JupiterHttp:
    """Shared httpx plumbing: lazy client, api key header, 429/5xx backoff."""

    def __init__(self, settings: JupiterSettings, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.settings.http_timeout)
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.settings.api_key:
            headers["x-api-key"] = self.settings.api_key
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        tag: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        url = f"{self.settings.base_url}{path}"
        client = await self._get_client()
        attempts = self.settings.max_retries

        for attempt in range(attempts):
            last_try = attempt == attempts - 1
            delay = self.settings.retry_delay_base * (2 ** attempt)
            try:
                resp = await client.request(method, url, params=params, json=json_body, headers=self._headers())
            except httpx.TimeoutException as e:
                logger.warning(f"{tag} | timeout | attempt={attempt + 1}")
                if last_try:
                    raise UpstreamError(f"{tag.lower()} timed out after {attempts} attempts") from e
                await asyncio.sleep(delay)
                continue
            except httpx.HTTPError as e:
                logger.warning(f"{tag} | transport error | attempt={attempt + 1} | {type(e).__name__}: {e}")
                if last_try:
                    raise UpstreamError(f"{tag.lower()} request failed: {e}") from e
                await asyncio.sleep(delay)
                continue

            if resp.status_code == 429 or resp.status_code >= 500:
                reason = "rate_limited" if resp.status_code == 429 else "server_error"
                logger.warning(f"{tag} | {reason} | status={resp.status_code} | attempt={attempt + 1}")
                if last_try:
                    raise UpstreamError(f"{tag.lower()} failed with status {resp.status_code}")
                await asyncio.sleep(delay)
                continue

            if resp.status_code != 200:
                raise UpstreamError(f"{tag.lower()} failed with status {resp.status_code}: {resp.text[:300]}")
            return resp

        raise UpstreamError(f"{tag.lower()} failed after {attempts} attempts")
