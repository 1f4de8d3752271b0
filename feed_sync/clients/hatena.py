"""
Hatena Bookmark API client.

Two public endpoints are used:
- the counts endpoint, which accepts many ``url`` query parameters and
  answers with a JSON object mapping each URL to its bookmark count
- the jsonlite entry endpoint, which returns the bookmarks (with comments)
  of a single URL, or ``null`` when the URL has never been bookmarked
"""

from __future__ import annotations

from typing import Any

import httpx

from ..config import BookmarkConfig
from ..errors import RemoteApiError
from .base import BookmarkApi


class HatenaBookmarkClient(BookmarkApi):
    def __init__(self, cfg: BookmarkConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.cfg = cfg
        self.transport = transport

    async def get_bookmark_counts(self, urls: list[str]) -> dict[str, int]:
        """Fetch bookmark counts in batches of ``cfg.batch_size`` URLs."""
        counts: dict[str, int] = {}
        unique = list(dict.fromkeys(url for url in urls if url))
        for start in range(0, len(unique), self.cfg.batch_size):
            batch = unique[start:start + self.cfg.batch_size]
            data = await self._get_json(self.cfg.counts_url, [("url", url) for url in batch])
            for url, count in (data or {}).items():
                counts[url] = int(count)
        return counts

    async def get_bookmark_entry(self, url: str) -> dict[str, Any] | None:
        return await self._get_json(self.cfg.entry_url, [("url", url)])

    async def _get_json(self, endpoint: str, params: list[tuple[str, str]]) -> Any:
        async with httpx.AsyncClient(timeout=self.cfg.timeout_seconds, transport=self.transport) as client:
            resp = await client.get(endpoint, params=params)
            try:
                resp.raise_for_status()
            except httpx.HTTPStatusError as exc:
                raise RemoteApiError(
                    f"Bookmark API request failed with HTTP {resp.status_code}",
                    status_code=resp.status_code,
                    url=endpoint,
                ) from exc
            if not resp.content:
                return None
            return resp.json()
