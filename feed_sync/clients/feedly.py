from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from ..config import FeedlyConfig
from ..errors import RemoteApiError
from .base import FeedlyApi


class FeedlyClient(FeedlyApi):
    def __init__(self, cfg: FeedlyConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.cfg = cfg
        self.transport = transport

    async def get_stream_contents(
        self,
        access_token: str,
        stream_id: str,
        *,
        continuation: str | None = None,
        ranked: str = "newest",
        unread_only: bool = False,
        count: int | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "streamId": stream_id,
            "ranked": ranked,
            "unreadOnly": "true" if unread_only else "false",
        }
        if count:
            params["count"] = count
        if continuation:
            params["continuation"] = continuation
        data = await self._request("GET", "/v3/streams/contents", access_token, params=params)
        return data or {"items": []}

    async def get_feed(self, access_token: str, feed_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/v3/feeds/{_quote(feed_id)}", access_token)

    async def set_tag(self, access_token: str, entry_ids: list[str], tag_ids: list[str]) -> None:
        await self._request(
            "PUT",
            f"/v3/tags/{_join(tag_ids)}",
            access_token,
            json={"entryIds": entry_ids},
        )

    async def unset_tag(self, access_token: str, entry_ids: list[str], tag_ids: list[str]) -> None:
        await self._request("DELETE", f"/v3/tags/{_join(tag_ids)}/{_join(entry_ids)}", access_token)

    async def get_subscriptions(self, access_token: str) -> list[dict[str, Any]]:
        return await self._request("GET", "/v3/subscriptions", access_token) or []

    async def get_categories(self, access_token: str) -> list[dict[str, Any]]:
        return await self._request("GET", "/v3/categories", access_token) or []

    async def get_unread_counts(self, access_token: str) -> dict[str, int]:
        data = await self._request("GET", "/v3/markers/counts", access_token) or {}
        return {item["id"]: int(item.get("count", 0)) for item in data.get("unreadcounts", [])}

    async def subscribe_feed(
        self, access_token: str, feed_id: str, categories: list[dict[str, str]]
    ) -> None:
        payload = {"id": feed_id, "categories": categories}
        await self._request("POST", "/v3/subscriptions", access_token, json=payload)

    async def unsubscribe_feed(self, access_token: str, feed_id: str) -> None:
        await self._request("DELETE", f"/v3/subscriptions/{_quote(feed_id)}", access_token)

    async def mark_as_read(self, access_token: str, entry_ids: list[str]) -> None:
        await self._post_marker(access_token, "entries", "entryIds", entry_ids)

    async def mark_feeds_as_read(self, access_token: str, feed_ids: list[str]) -> None:
        await self._post_marker(access_token, "feeds", "feedIds", feed_ids)

    async def mark_categories_as_read(self, access_token: str, category_ids: list[str]) -> None:
        await self._post_marker(access_token, "categories", "categoryIds", category_ids)

    async def _post_marker(self, access_token: str, kind: str, key: str, ids: list[str]) -> None:
        payload = {"action": "markAsRead", "type": kind, key: ids}
        await self._request("POST", "/v3/markers", access_token, json=payload)

    async def _request(
        self,
        method: str,
        path: str,
        access_token: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        url = f"{self.cfg.base_url.rstrip('/')}{path}"
        headers = {"Authorization": f"OAuth {access_token}"}
        async with httpx.AsyncClient(
            timeout=self.cfg.timeout_seconds,
            trust_env=self.cfg.trust_env,
            transport=self.transport,
        ) as client:
            resp = await client.request(method, url, params=params, json=json, headers=headers)
            try:
                resp.raise_for_status()
            except httpx.HTTPStatusError as exc:
                raise RemoteApiError(
                    f"Feedly {method} {path} failed with HTTP {resp.status_code}",
                    status_code=resp.status_code,
                    url=url,
                ) from exc
            if not resp.content:
                return None
            return resp.json()


def _quote(value: str) -> str:
    return quote(value, safe="")


def _join(values: list[str]) -> str:
    return ",".join(_quote(value) for value in values)
