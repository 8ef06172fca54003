"""Apify dataset source implementation."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from scrapelens.core.errors import ProviderError
from scrapelens.core.logging import get_logger
from .base import BaseSource

log = get_logger("ingestion.apify")

APIFY_API_URL = "https://api.apify.com/v2"


class ApifyDatasetSource(BaseSource):
    """Reads items from one Apify dataset."""

    name = "apify"

    def __init__(
        self,
        token: str,
        dataset_id: str,
        base_url: str = APIFY_API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.dataset_id = dataset_id
        self.base_url = base_url.rstrip("/")
        self.transport = transport

    async def fetch(self, limit: int) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/datasets/{self.dataset_id}/items"
        params = {"token": self.token, "clean": "true", "limit": str(limit)}

        try:
            async with httpx.AsyncClient(timeout=15.0, transport=self.transport) as client:
                resp = await client.get(url, params=params)
        except httpx.HTTPError as exc:
            raise ProviderError(f"Apify request failed: {exc}") from exc

        if resp.is_error:
            raise ProviderError(f"Apify error {resp.status_code}: {resp.text}", resp.status_code, resp.text)

        try:
            data = resp.json()
        except ValueError as exc:
            raise ProviderError(f"Apify returned invalid JSON: {exc}", resp.status_code, resp.text) from exc
        if not isinstance(data, list):
            raise ProviderError("Apify returned a non-list payload", resp.status_code, resp.text[:600])

        items = [item for item in data if isinstance(item, dict)]
        log.info(f"Fetched {len(items)} items from Apify dataset {self.dataset_id}")
        return items
