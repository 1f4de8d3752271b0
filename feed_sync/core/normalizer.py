"""Normalization of raw Feedly payloads into feed-sync types.

Feedly returns loosely shaped JSON where most fields are optional. The
functions here apply the defaulting rules in one place so that the rest of
the engine can rely on the canonical types from ``core.types``.
"""

from __future__ import annotations

import re
from typing import Any

from bs4 import BeautifulSoup

from .types import (
    Category,
    Comment,
    Entry,
    Feed,
    Origin,
    Subscription,
    Visual,
)

SAVED_TAG_SUFFIX = "tag/global.saved"
BOOKMARK_ENTRY_URL = "http://b.hatena.ne.jp/entry/"

_ABSOLUTE_URL_RE = re.compile(r"^https?://")


def strip_tags(html: str) -> str:
    """Return the text of an HTML fragment with all markup removed."""
    if not html:
        return ""
    return BeautifulSoup(html, "html.parser").get_text()


def normalize_entry(raw: dict[str, Any]) -> Entry:
    """Convert a raw Feedly entry into an Entry.

    Args:
        raw: One item of a Feedly stream contents response

    Returns:
        Entry with optional fields defaulted, bookmark count 0 and
        no full contents or comments loaded
    """
    url = _first_alternate_href(raw)
    summary_html = _content_of(raw.get("summary"))
    content_html = _content_of(raw.get("content"))

    return Entry(
        entry_id=raw["id"],
        title=raw.get("title") or "",
        author=raw.get("author") or "",
        url=url,
        summary=strip_tags(summary_html or content_html),
        content=content_html or summary_html,
        published_at=int(raw.get("published") or 0),
        bookmark_url=BOOKMARK_ENTRY_URL + url,
        bookmark_count=0,
        is_pinned=is_saved(raw),
        is_marked_as_read=not raw.get("unread", False),
        origin=_origin_of(raw.get("origin")),
        visual=_visual_of(raw.get("visual")),
    )


def is_saved(raw: dict[str, Any]) -> bool:
    """True when the raw entry carries the reserved saved tag."""
    tags = raw.get("tags") or []
    return any(str(tag.get("id", "")).endswith(SAVED_TAG_SUFFIX) for tag in tags)


def normalize_feed(raw: dict[str, Any]) -> Feed:
    feed_id = raw.get("id") or raw.get("feedId") or ""
    return Feed(
        feed_id=feed_id,
        stream_id=feed_id,
        title=raw.get("title") or "",
        description=raw.get("description") or "",
        url=raw.get("website") or "",
        icon_url=raw.get("iconUrl") or "",
        subscribers=int(raw.get("subscribers") or 0),
    )


def normalize_category(raw: dict[str, Any]) -> Category:
    return Category(
        category_id=raw["id"],
        stream_id=raw["id"],
        label=raw.get("label") or "",
    )


def normalize_subscription(raw: dict[str, Any], unread_count: int = 0) -> Subscription:
    return Subscription(
        subscription_id=raw["id"],
        stream_id=raw["id"],
        feed_id=raw["id"],
        title=raw.get("title") or "",
        url=raw.get("website") or "",
        icon_url=raw.get("iconUrl") or "",
        unread_count=unread_count,
        labels=[c.get("label", "") for c in raw.get("categories") or []],
    )


def normalize_comments(payload: dict[str, Any] | None) -> list[Comment]:
    """Map a bookmark entry payload to comments, dropping empty ones."""
    bookmarks = (payload or {}).get("bookmarks") or []
    return [
        Comment(
            user=bookmark.get("user", ""),
            comment=bookmark["comment"],
            timestamp=bookmark.get("timestamp", ""),
        )
        for bookmark in bookmarks
        if bookmark.get("comment")
    ]


def _first_alternate_href(raw: dict[str, Any]) -> str:
    alternate = raw.get("alternate") or []
    if alternate and alternate[0].get("href"):
        return alternate[0]["href"]
    return ""


def _content_of(block: dict[str, Any] | None) -> str:
    if not block:
        return ""
    return block.get("content") or ""


def _origin_of(raw: dict[str, Any] | None) -> Origin | None:
    if not raw:
        return None
    return Origin(
        stream_id=raw.get("streamId", ""),
        title=raw.get("title", ""),
        url=raw.get("htmlUrl", ""),
    )


def _visual_of(raw: dict[str, Any] | None) -> Visual | None:
    if not raw or not _ABSOLUTE_URL_RE.match(raw.get("url") or ""):
        return None
    return Visual(url=raw["url"], width=raw.get("width"), height=raw.get("height"))
