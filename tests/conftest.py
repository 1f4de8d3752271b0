"""Shared fakes and fixtures for feed-sync tests."""

from __future__ import annotations

from typing import Any

import pytest

from feed_sync.clients.base import BookmarkApi, FeedlyApi, TokenProvider
from feed_sync.config import SettingsConfig
from feed_sync.core.signals import Signal, SignalBus
from feed_sync.core.types import ExtractionRule, PageResponse, Token
from feed_sync.extract.rules import StaticRuleSource
from feed_sync.sync.confirm import ReadConfirmer
from feed_sync.sync.orchestrator import SyncOrchestrator

USER_ID = "u-1"
FEED_ID = "feed/http://example.com/rss"


def raw_entry(
    entry_id: str,
    url: str | None = None,
    unread: bool = True,
    saved: bool = False,
    origin: str | None = FEED_ID,
    **extra: Any,
) -> dict[str, Any]:
    """Build a Feedly entry payload."""
    raw: dict[str, Any] = {
        "id": entry_id,
        "title": f"Title {entry_id}",
        "author": "Alice",
        "published": 1700000000000,
        "unread": unread,
        "summary": {"content": f"<p>Summary of <b>{entry_id}</b></p>"},
        "content": {"content": f"<div>Body of {entry_id}</div>"},
    }
    if url is not None:
        raw["alternate"] = [{"href": url, "type": "text/html"}]
    if saved:
        raw["tags"] = [{"id": f"user/{USER_ID}/tag/global.saved", "label": "Saved"}]
    if origin is not None:
        raw["origin"] = {"streamId": origin, "title": "Example", "htmlUrl": "http://example.com/"}
    raw.update(extra)
    return raw


class SignalRecorder:
    """Handler that keeps every signal it receives, in order."""

    def __init__(self):
        self.signals: list[Signal] = []

    def __call__(self, signal: Signal) -> None:
        self.signals.append(signal)

    @property
    def types(self) -> list[str]:
        return [signal.type for signal in self.signals]

    def of_type(self, signal_type: str) -> list[Signal]:
        return [signal for signal in self.signals if signal.type == signal_type]


class FakeTokenProvider(TokenProvider):
    def __init__(self, user_id: str = USER_ID):
        self.user_id = user_id
        self.calls = 0

    async def get_token(self) -> Token:
        self.calls += 1
        return Token(access_token="token-1", user_id=self.user_id)


class FakeFeedly(FeedlyApi):
    """In-memory Feedly; ``fail`` maps a method name to the exception it raises."""

    def __init__(self):
        self.pages: dict[tuple[str, str | None], dict[str, Any]] = {}
        self.feeds: dict[str, dict[str, Any]] = {}
        self.subscriptions: list[dict[str, Any]] = []
        self.categories: list[dict[str, Any]] = []
        self.unread_counts: dict[str, int] = {}
        self.fail: dict[str, Exception] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def add_page(self, stream_id: str, items, continuation=None, after=None) -> None:
        self.pages[(stream_id, after)] = {"items": list(items), "continuation": continuation}

    def calls_to(self, name: str) -> list[dict[str, Any]]:
        return [kwargs for method, kwargs in self.calls if method == name]

    def _record(self, name: str, **kwargs: Any) -> None:
        self.calls.append((name, kwargs))
        if name in self.fail:
            raise self.fail[name]

    async def get_stream_contents(
        self,
        access_token,
        stream_id,
        *,
        continuation=None,
        ranked="newest",
        unread_only=False,
        count=None,
    ):
        self._record(
            "get_stream_contents",
            stream_id=stream_id,
            continuation=continuation,
            ranked=ranked,
            unread_only=unread_only,
            count=count,
        )
        return self.pages[(stream_id, continuation)]

    async def get_feed(self, access_token, feed_id):
        self._record("get_feed", feed_id=feed_id)
        return self.feeds.get(feed_id, {"id": feed_id, "title": "Example Feed"})

    async def set_tag(self, access_token, entry_ids, tag_ids):
        self._record("set_tag", entry_ids=entry_ids, tag_ids=tag_ids)

    async def unset_tag(self, access_token, entry_ids, tag_ids):
        self._record("unset_tag", entry_ids=entry_ids, tag_ids=tag_ids)

    async def get_subscriptions(self, access_token):
        self._record("get_subscriptions")
        return self.subscriptions

    async def get_categories(self, access_token):
        self._record("get_categories")
        return self.categories

    async def get_unread_counts(self, access_token):
        self._record("get_unread_counts")
        return self.unread_counts

    async def subscribe_feed(self, access_token, feed_id, categories):
        self._record("subscribe_feed", feed_id=feed_id, categories=categories)
        self.subscriptions = [s for s in self.subscriptions if s["id"] != feed_id]
        self.subscriptions.append({"id": feed_id, "categories": list(categories)})

    async def unsubscribe_feed(self, access_token, feed_id):
        self._record("unsubscribe_feed", feed_id=feed_id)
        self.subscriptions = [s for s in self.subscriptions if s["id"] != feed_id]

    async def mark_as_read(self, access_token, entry_ids):
        self._record("mark_as_read", entry_ids=entry_ids)

    async def mark_feeds_as_read(self, access_token, feed_ids):
        self._record("mark_feeds_as_read", feed_ids=feed_ids)

    async def mark_categories_as_read(self, access_token, category_ids):
        self._record("mark_categories_as_read", category_ids=category_ids)


class FakeBookmarks(BookmarkApi):
    def __init__(self):
        self.counts: dict[str, int] = {}
        self.entries: dict[str, dict[str, Any] | None] = {}
        self.fail: dict[str, Exception] = {}
        self.count_requests: list[list[str]] = []

    async def get_bookmark_counts(self, urls):
        self.count_requests.append(list(urls))
        if "get_bookmark_counts" in self.fail:
            raise self.fail["get_bookmark_counts"]
        return {url: self.counts[url] for url in urls if url in self.counts}

    async def get_bookmark_entry(self, url):
        if "get_bookmark_entry" in self.fail:
            raise self.fail["get_bookmark_entry"]
        return self.entries.get(url)


class FakePageFetcher:
    def __init__(self):
        self.pages: dict[str, PageResponse] = {}
        self.fail: Exception | None = None
        self.requested: list[str] = []

    def add(self, url: str, html: str, status_code: int = 200, final_url: str | None = None,
            content_type: str = "text/html; charset=utf-8") -> None:
        self.pages[url] = PageResponse(
            url=final_url or url,
            status_code=status_code,
            headers={"content-type": content_type},
            body=html.encode("utf-8"),
        )

    async def fetch(self, url: str) -> PageResponse:
        self.requested.append(url)
        if self.fail is not None:
            raise self.fail
        return self.pages[url]


class ImmediateConfirmer(ReadConfirmer):
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.confirmed: list[list[str]] = []

    async def confirm(self, entry_ids):
        if self.error is not None:
            raise self.error
        self.confirmed.append(list(entry_ids))


class Clock:
    """Manually advanced clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float = 1.0) -> float:
        self.now += seconds
        return self.now


@pytest.fixture
def feedly():
    return FakeFeedly()


@pytest.fixture
def bookmarks():
    return FakeBookmarks()


@pytest.fixture
def pages():
    return FakePageFetcher()


@pytest.fixture
def recorder():
    return SignalRecorder()


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def confirmer():
    return ImmediateConfirmer()


@pytest.fixture
def settings():
    return SettingsConfig(num_entries=20, entries_order="newest", only_unread=False)


@pytest.fixture
def rules():
    return [
        ExtractionRule(
            url_pattern=r"^https?://blog\.example\.com/",
            content_selector="div.post-body",
            next_link_selector="a.next",
            name="example-blog",
        )
    ]


@pytest.fixture
def orchestrator(feedly, bookmarks, pages, recorder, clock, confirmer, settings, rules):
    bus = SignalBus()
    bus.subscribe(recorder)
    return SyncOrchestrator(
        token_provider=FakeTokenProvider(),
        feedly=feedly,
        bookmarks=bookmarks,
        rule_source=StaticRuleSource(rules),
        page_fetcher=pages,
        settings_provider=lambda: settings,
        read_confirmer=confirmer,
        bus=bus,
        clock=clock,
    )
