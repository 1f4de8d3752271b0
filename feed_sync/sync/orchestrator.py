"""
Stream synchronization.

The SyncOrchestrator is the only writer of the stream cache. It:
1. Fetches streams by kind (feed, category, all, pins) and caches them
2. Extends cached streams page by page through continuation tokens
3. Augments entries with bookmark counts in background tasks
4. Applies read and pin changes, rolling pins back when the remote call fails
5. Fetches full article content (rule-based extraction) and comments
6. Maintains the subscription set, which decides when cached streams go stale

Each operation emits a fetching signal followed by exactly one of its
fetched or failed signals. Remote failures are re-raised after the failed
signal so that callers can retry.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import time
from typing import Any, Awaitable, Callable, Iterable

from ..clients.base import BookmarkApi, FeedlyApi, TokenProvider
from ..config import ExtractConfig, SettingsConfig
from ..core import signals
from ..core.cache import StreamCache
from ..core.normalizer import (
    normalize_category,
    normalize_comments,
    normalize_entry,
    normalize_feed,
    normalize_subscription,
)
from ..core.signals import SignalBus
from ..core.stream_id import (
    AllStreamId,
    CategoryStreamId,
    FeedStreamId,
    PinsStreamId,
    StreamRef,
    category_stream_id,
    parse_stream_id,
    saved_tag_id,
    to_remote_stream_id,
)
from ..core.types import (
    Comment,
    Entry,
    FetchOptions,
    FullContent,
    PinState,
    Stream,
    StreamState,
    Subscription,
    Subscriptions,
    Token,
)
from ..extract.extractor import extract_content, get_fallback_extractor, parse_document
from ..extract.rules import RuleSource, matching_rules
from ..fetch.fetcher import PageFetcher, decode_response_text
from ..utils.logging import log_event
from .confirm import DelayedReadConfirmer, ReadConfirmer

SettingsProvider = Callable[[], SettingsConfig]


class SyncOrchestrator:
    """Coordinates remote fetches, the stream cache and signal emission.

    All collaborators are passed in explicitly; nothing is read from
    global state.

    Attributes:
        cache: The stream cache this orchestrator writes to
        bus: Signal bus every operation reports to
        subscriptions: Latest subscription set, used for titles and staleness
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        feedly: FeedlyApi,
        bookmarks: BookmarkApi,
        rule_source: RuleSource,
        page_fetcher: PageFetcher,
        settings_provider: SettingsProvider,
        read_confirmer: ReadConfirmer | None = None,
        bus: SignalBus | None = None,
        cache: StreamCache | None = None,
        extract_cfg: ExtractConfig | None = None,
        logger: logging.Logger | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.token_provider = token_provider
        self.feedly = feedly
        self.bookmarks = bookmarks
        self.rule_source = rule_source
        self.page_fetcher = page_fetcher
        self.settings_provider = settings_provider
        self.read_confirmer = read_confirmer or DelayedReadConfirmer()
        self.bus = bus or SignalBus()
        self.cache = cache or StreamCache()
        self.extract_cfg = extract_cfg or ExtractConfig()
        self.logger = logger or logging.getLogger("feed_sync.sync")
        self.clock = clock
        self.subscriptions = Subscriptions()
        self._states: dict[str, StreamState] = {}
        self._background: set[asyncio.Task] = set()
        self._background_errors: list[BaseException] = []

    # ------------------------------------------------------------------
    # Streams
    # ------------------------------------------------------------------

    def default_options(self) -> FetchOptions:
        """Build fetch options from the current settings snapshot."""
        settings = self.settings_provider()
        return FetchOptions(
            num_entries=settings.num_entries,
            order=settings.entries_order,
            only_unread=settings.only_unread,
            view=settings.stream_view,
        )

    def stream_state(self, stream_id: str) -> StreamState:
        return self._states.get(stream_id, StreamState.IDLE)

    async def load_stream(self, stream_id: str, options: FetchOptions | None = None) -> Stream:
        """Return the cached stream when it is still valid, otherwise fetch it."""
        options = options or self.default_options()
        cached = self.cache.get(stream_id, options)
        if not StreamCache.is_stale(cached, self.subscriptions.last_updated_at):
            log_event(self.logger, "Stream cache hit", event="stream_cache_hit", stream_id=stream_id)
            return copy.deepcopy(cached)
        return await self.fetch_stream(stream_id, options)

    async def fetch_stream(self, stream_id: str, options: FetchOptions | None = None) -> Stream:
        """Fetch the first page of a stream and replace its cached copy.

        Bookmark counts for the fetched entries are requested in the
        background; their failure does not fail this call.

        Raises:
            InvalidStreamIdError: If the stream id has an unknown shape
        """
        options = options or self.default_options()
        ref = parse_stream_id(stream_id)

        self._states[stream_id] = StreamState.FETCHING
        self.bus.emit(signals.STREAM_FETCHING, stream_id=stream_id)
        log_event(self.logger, "Stream fetch start", event="stream_fetch_start", stream_id=stream_id)

        try:
            token = await self.token_provider.get_token()
            stream = await self._fetch_by_kind(ref, token, options)
        except Exception as exc:
            self._states[stream_id] = StreamState.FETCH_FAILED
            self.bus.emit(signals.STREAM_FETCHING_FAILED, stream_id=stream_id)
            log_event(
                self.logger,
                "Stream fetch failed",
                level=logging.WARNING,
                event="stream_fetch_failed",
                stream_id=stream_id,
                error=f"{type(exc).__name__}: {exc}",
            )
            raise

        self.cache.put(stream)
        self._states[stream_id] = StreamState.FETCHED
        snapshot = copy.deepcopy(stream)
        self.bus.emit(signals.STREAM_FETCHED, stream=snapshot)
        log_event(
            self.logger,
            "Stream fetched",
            event="stream_fetched",
            stream_id=stream_id,
            entries=len(stream.entries),
            has_more=stream.continuation is not None,
        )

        self._spawn(self.fetch_bookmark_counts(stream.entries))
        return snapshot

    async def _fetch_by_kind(self, ref: StreamRef, token: Token, options: FetchOptions) -> Stream:
        if isinstance(ref, FeedStreamId):
            return await self._fetch_feed_stream(ref, token, options)
        if isinstance(ref, CategoryStreamId):
            return await self._fetch_category_stream(ref, token, options)
        if isinstance(ref, AllStreamId):
            return await self._fetch_remote_stream(ref, token, options, title="All")
        if isinstance(ref, PinsStreamId):
            return await self._fetch_remote_stream(ref, token, options, title="Pins")
        raise TypeError(f"Unhandled stream kind: {type(ref).__name__}")

    async def _fetch_feed_stream(self, ref: FeedStreamId, token: Token, options: FetchOptions) -> Stream:
        contents, raw_feed = await asyncio.gather(
            self._get_contents(token, ref.value, options),
            self.feedly.get_feed(token.access_token, ref.value),
        )
        feed = normalize_feed(raw_feed)
        return self._build_stream(
            ref.value,
            feed.title,
            contents,
            options,
            feed=feed,
            subscription=self.subscriptions.items.get(ref.value),
        )

    async def _fetch_category_stream(
        self, ref: CategoryStreamId, token: Token, options: FetchOptions
    ) -> Stream:
        contents = await self._get_contents(token, ref.value, options)
        category = self.subscriptions.categories.get(ref.value)
        title = category.label if category else ""
        return self._build_stream(ref.value, title, contents, options, category=category)

    async def _fetch_remote_stream(
        self, ref: AllStreamId | PinsStreamId, token: Token, options: FetchOptions, title: str
    ) -> Stream:
        # Per-user ids are derived from the current token on every fetch
        remote_id = to_remote_stream_id(ref, token.user_id)
        contents = await self._get_contents(token, remote_id, options)
        return self._build_stream(ref.value, title, contents, options)

    async def _get_contents(
        self,
        token: Token,
        remote_id: str,
        options: FetchOptions,
        continuation: str | None = None,
    ) -> dict[str, Any]:
        return await self.feedly.get_stream_contents(
            token.access_token,
            remote_id,
            continuation=continuation,
            ranked=options.order,
            unread_only=options.only_unread,
            count=options.num_entries,
        )

    def _build_stream(
        self,
        stream_id: str,
        title: str,
        contents: dict[str, Any],
        options: FetchOptions,
        **descriptors: Any,
    ) -> Stream:
        return Stream(
            stream_id=stream_id,
            title=title,
            entries=[normalize_entry(item) for item in contents.get("items") or []],
            continuation=contents.get("continuation") or None,
            options=options,
            fetched_at=self.clock(),
            **descriptors,
        )

    async def fetch_more_entries(
        self,
        stream_id: str,
        continuation: str,
        options: FetchOptions,
    ) -> list[Entry]:
        """Fetch the next page of an already fetched stream.

        The page is appended only while the cached stream still ends at
        ``continuation``. A page superseded by a refresh or by another
        load-more of the same token is returned and signalled but not
        cached. Bookmark counts are requested for whatever entries were
        obtained, even if a later step failed.

        Returns:
            The entries of the new page

        Raises:
            ValueError: If ``continuation`` is empty or no stream is cached
                for these options
        """
        if not continuation:
            raise ValueError("fetch_more_entries requires a continuation token")
        if self.cache.get(stream_id, options) is None:
            raise ValueError(f"Stream {stream_id!r} has not been fetched with these options")
        ref = parse_stream_id(stream_id)

        self._states[stream_id] = StreamState.FETCHING_MORE
        self.bus.emit(signals.MORE_ENTRIES_FETCHING, stream_id=stream_id)

        entries: list[Entry] = []
        try:
            token = await self.token_provider.get_token()
            remote_id = to_remote_stream_id(ref, token.user_id)
            contents = await self._get_contents(token, remote_id, options, continuation)
            entries = [normalize_entry(item) for item in contents.get("items") or []]
            next_continuation = contents.get("continuation") or None

            cached = self.cache.get(stream_id, options)
            if cached is not None and cached.continuation == continuation:
                self.cache.put(StreamCache.append_page(cached, entries, next_continuation))
            else:
                log_event(
                    self.logger,
                    "Superseded page not cached",
                    event="more_entries_superseded",
                    stream_id=stream_id,
                    continuation=continuation,
                )

            self._states[stream_id] = StreamState.FETCHED_MORE
            self.bus.emit(
                signals.MORE_ENTRIES_FETCHED,
                stream_id=stream_id,
                entries=copy.deepcopy(entries),
                continuation=next_continuation,
            )
        except Exception:
            self._states[stream_id] = StreamState.FETCH_MORE_FAILED
            self.bus.emit(signals.MORE_ENTRIES_FETCHING_FAILED, stream_id=stream_id)
            raise
        finally:
            if entries:
                self._spawn(self.fetch_bookmark_counts(entries))

        return copy.deepcopy(entries)

    # ------------------------------------------------------------------
    # Augmentation
    # ------------------------------------------------------------------

    async def fetch_bookmark_counts(self, entries: Iterable[Entry]) -> dict[str, int]:
        """Fetch bookmark counts for entries with a URL and merge them into the cache.

        Awaiting this directly propagates remote errors; when it runs as a
        background task the error is logged instead.
        """
        urls = [entry.url for entry in entries if entry.url]
        if not urls:
            return {}

        self.bus.emit(signals.BOOKMARK_COUNTS_FETCHING, urls=urls)
        try:
            counts = await self.bookmarks.get_bookmark_counts(urls)
        except Exception:
            self.bus.emit(signals.BOOKMARK_COUNTS_FETCHING_FAILED, urls=urls)
            raise

        self.cache.apply_bookmark_counts(counts)
        self.bus.emit(signals.BOOKMARK_COUNTS_FETCHED, bookmark_counts=dict(counts))
        return counts

    def _spawn(self, coro: Awaitable[Any]) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._background.add(task)
        task.add_done_callback(self._on_background_done)
        return task

    def _on_background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._background_errors.append(exc)
            log_event(
                self.logger,
                "Background augmentation failed",
                level=logging.WARNING,
                event="augmentation_failed",
                error=f"{type(exc).__name__}: {exc}",
            )

    @property
    def pending_tasks(self) -> int:
        return len(self._background)

    async def wait_for_background(self) -> None:
        """Wait for all background augmentation tasks.

        Errors collected since the previous call are cleared once raised.

        Raises:
            Exception: The first error raised by a background task
        """
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
            # Let done callbacks record the results
            await asyncio.sleep(0)
        if self._background_errors:
            errors, self._background_errors = self._background_errors, []
            raise errors[0]

    # ------------------------------------------------------------------
    # Read state
    # ------------------------------------------------------------------

    async def mark_as_read(self, entry_ids: Iterable[str]) -> None:
        """Mark entries as read once the read confirmer settles them.

        Does nothing, and emits nothing, for an empty id list.
        """
        ids = list(dict.fromkeys(entry_ids))
        if not ids:
            return

        self.bus.emit(signals.ENTRIES_MARKING_AS_READ, entry_ids=ids)
        self.cache.update_entries(ids, _set_marking_as_read(True))

        try:
            await self.read_confirmer.confirm(ids)
        except Exception:
            self.cache.update_entries(ids, _set_marking_as_read(False))
            self.bus.emit(signals.ENTRIES_MARKING_AS_READ_FAILED, entry_ids=ids)
            raise

        read_counts = self._read_counts(ids)
        self.cache.update_entries(ids, _mark_read)
        self._decrement_unread_counts(read_counts)

        self.bus.emit(signals.ENTRIES_MARKED_AS_READ, entry_ids=ids, read_counts=read_counts)
        message = (
            f"{len(ids)} entry is marked as read."
            if len(ids) == 1
            else f"{len(ids)} entries are marked as read."
        )
        self.bus.emit(signals.NOTIFICATION_SENT, message=message, kind="positive")

    def _read_counts(self, entry_ids: list[str]) -> dict[str, int]:
        """Count entries that become read, per origin stream."""
        counts: dict[str, int] = {}
        for entry_id in entry_ids:
            entry = self.cache.find_entry(entry_id)
            if entry is None or entry.is_marked_as_read or entry.origin is None:
                continue
            counts[entry.origin.stream_id] = counts.get(entry.origin.stream_id, 0) + 1
        return counts

    def _decrement_unread_counts(self, read_counts: dict[str, int]) -> None:
        for stream_id, count in read_counts.items():
            subscription = self.subscriptions.items.get(stream_id)
            if subscription is not None:
                subscription.unread_count = max(subscription.unread_count - count, 0)

    async def mark_feed_as_read(self, feed_id: str) -> None:
        """Mark every entry of a feed as read on Feedly and locally."""
        self.bus.emit(signals.FEED_MARKING_AS_READ, feed_id=feed_id)
        try:
            token = await self.token_provider.get_token()
            await self.feedly.mark_feeds_as_read(token.access_token, [feed_id])
        except Exception:
            self.bus.emit(signals.FEED_MARKING_AS_READ_FAILED, feed_id=feed_id)
            raise

        subscription = self.subscriptions.items.get(feed_id)
        if subscription is not None:
            subscription.unread_count = 0
        self._mark_cached_read({feed_id})
        self.bus.emit(signals.FEED_MARKED_AS_READ, feed_id=feed_id)

    async def mark_category_as_read(self, category_id: str) -> None:
        """Mark every entry of a category as read on Feedly and locally."""
        self.bus.emit(signals.CATEGORY_MARKING_AS_READ, category_id=category_id)
        try:
            token = await self.token_provider.get_token()
            await self.feedly.mark_categories_as_read(token.access_token, [category_id])
        except Exception:
            self.bus.emit(signals.CATEGORY_MARKING_AS_READ_FAILED, category_id=category_id)
            raise

        category = self.subscriptions.categories.get(category_id)
        label = category.label if category else None
        stream_ids = {category_id}
        for subscription in self.subscriptions.items.values():
            if label is not None and label in subscription.labels:
                subscription.unread_count = 0
                stream_ids.add(subscription.stream_id)
        self._mark_cached_read(stream_ids)
        self.bus.emit(signals.CATEGORY_MARKED_AS_READ, category_id=category_id, label=label)

    def _mark_cached_read(self, stream_ids: set[str]) -> None:
        """Mark cached entries read when they belong to, or came from, any of the streams."""
        ids = [
            entry.entry_id
            for stream, entry in self.cache.iter_entries()
            if stream.stream_id in stream_ids
            or (entry.origin is not None and entry.origin.stream_id in stream_ids)
        ]
        self.cache.update_entries(ids, _mark_read)

    # ------------------------------------------------------------------
    # Pins
    # ------------------------------------------------------------------

    async def pin_entry(self, entry_id: str) -> None:
        await self._set_pinned(entry_id, True)

    async def unpin_entry(self, entry_id: str) -> None:
        await self._set_pinned(entry_id, False)

    async def _set_pinned(self, entry_id: str, pinned: bool) -> None:
        """Apply a pin change optimistically and roll it back if the remote call fails.

        Concurrent requests for the same entry are not deduplicated.
        """
        entry = self.cache.find_entry(entry_id)
        previous = entry.is_pinned if entry is not None else not pinned
        pending = PinState.PINNING if pinned else PinState.UNPINNING

        self.cache.update_entries([entry_id], _set_pin(pinned, pending))
        self.bus.emit(signals.ENTRY_PINNING, entry_id=entry_id, is_pinned=pinned)

        try:
            token = await self.token_provider.get_token()
            tag_ids = [saved_tag_id(token.user_id)]
            if pinned:
                await self.feedly.set_tag(token.access_token, [entry_id], tag_ids)
            else:
                await self.feedly.unset_tag(token.access_token, [entry_id], tag_ids)
        except Exception:
            self.cache.update_entries([entry_id], _set_pin(previous, PinState.FAILED))
            self.bus.emit(signals.ENTRY_PINNING_FAILED, entry_id=entry_id)
            raise

        self.cache.update_entries([entry_id], _set_pin(pinned, PinState.IDLE))
        self.bus.emit(signals.ENTRY_PINNED, entry_id=entry_id, is_pinned=pinned)

    # ------------------------------------------------------------------
    # Full content and comments
    # ------------------------------------------------------------------

    async def fetch_full_content(self, entry_id: str, url: str) -> FullContent | None:
        """Fetch a page and extract its full content with the matching rule.

        Returns:
            The extracted page, also appended to the entry's full contents,
            or None when the page could not be fetched successfully or no
            rule produced content

        Raises:
            httpx.HTTPError: If the page could not be fetched at all
        """
        self.cache.update_entries([entry_id], _set_full_contents_loading)
        self.bus.emit(signals.FULL_CONTENT_FETCHING, entry_id=entry_id, url=url)

        try:
            full_content = None
            response = await self.page_fetcher.fetch(url)
            if response.ok:
                text = decode_response_text(response)
                rules = await self.rule_source.get_rules()
                full_content = self._extract_full_content(text, response.url, rules)
        except Exception:
            self.cache.update_entries([entry_id], _finish_full_contents(None))
            self.bus.emit(signals.FULL_CONTENT_FETCHING_FAILED, entry_id=entry_id, url=url)
            raise

        self.cache.update_entries([entry_id], _finish_full_contents(full_content))
        if full_content is None:
            log_event(self.logger, "No extraction rule matched", event="extract_miss", url=url)
            self.bus.emit(signals.FULL_CONTENT_FETCHING_FAILED, entry_id=entry_id, url=url)
            return None

        self.bus.emit(
            signals.FULL_CONTENT_FETCHED,
            entry_id=entry_id,
            full_content=copy.copy(full_content),
        )
        return full_content

    async def fetch_next_full_content(self, entry_id: str) -> FullContent | None:
        """Fetch the page following the entry's most recent full-content page.

        Raises:
            ValueError: If the entry has no next page
        """
        entry = self.cache.find_entry(entry_id)
        next_page_url = entry.full_contents.next_page_url if entry is not None else None
        if not next_page_url:
            raise ValueError(f"Entry {entry_id!r} has no next page")
        return await self.fetch_full_content(entry_id, next_page_url)

    def _extract_full_content(self, text: str, url: str, rules) -> FullContent | None:
        soup = parse_document(text)
        for rule in matching_rules(rules, url):
            result = extract_content(soup, url, rule.content_selector, rule.next_link_selector)
            if result is not None:
                log_event(
                    self.logger,
                    "Extracted full content",
                    event="extract_hit",
                    url=url,
                    rule=rule.name or rule.url_pattern,
                    has_next=result.next_page_url is not None,
                )
                return result
        for name in self.extract_cfg.fallback:
            extractor = get_fallback_extractor(name)
            if extractor is None:
                continue
            result = extractor(text, url)
            if result is not None:
                return result
        return None

    async def fetch_comments(self, entry_id: str, url: str) -> list[Comment]:
        """Fetch bookmark comments for an entry, replacing any loaded ones."""
        self.cache.update_entries([entry_id], _set_comments_loading(True))
        self.bus.emit(signals.COMMENTS_FETCHING, entry_id=entry_id)

        try:
            payload = await self.bookmarks.get_bookmark_entry(url)
        except Exception:
            self.cache.update_entries([entry_id], _set_comments_loading(False))
            self.bus.emit(signals.COMMENTS_FETCHING_FAILED, entry_id=entry_id)
            raise

        comments = normalize_comments(payload)
        self.cache.update_entries([entry_id], _store_comments(comments))
        self.bus.emit(signals.COMMENTS_FETCHED, entry_id=entry_id, comments=copy.deepcopy(comments))
        return comments

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    async def fetch_subscriptions(self) -> Subscriptions:
        """Refresh the subscription set.

        A newer ``last_updated_at`` makes every stream cached before it stale.
        """
        self.bus.emit(signals.SUBSCRIPTIONS_FETCHING)
        try:
            token = await self.token_provider.get_token()
            raw_subscriptions, raw_categories, unread_counts = await asyncio.gather(
                self.feedly.get_subscriptions(token.access_token),
                self.feedly.get_categories(token.access_token),
                self.feedly.get_unread_counts(token.access_token),
            )
        except Exception:
            self.bus.emit(signals.SUBSCRIPTIONS_FETCHING_FAILED)
            raise

        subscriptions = [
            normalize_subscription(raw, unread_counts.get(raw["id"], 0))
            for raw in raw_subscriptions
        ]
        categories = [normalize_category(raw) for raw in raw_categories]
        self.subscriptions = Subscriptions(
            items={s.stream_id: s for s in subscriptions},
            categories={c.stream_id: c for c in categories},
            last_updated_at=self.clock(),
        )
        self.bus.emit(signals.SUBSCRIPTIONS_FETCHED, subscriptions=copy.deepcopy(self.subscriptions))
        return self.subscriptions

    async def subscribe_feed(self, feed_id: str, labels: Iterable[str] = ()) -> Subscription:
        """Subscribe to a feed under the given category labels.

        Subscribing to a feed already in the set replaces its labels.
        Cached streams fetched before this call become stale.
        """
        self.bus.emit(signals.FEED_SUBSCRIBING, feed_id=feed_id)
        try:
            token = await self.token_provider.get_token()
            categories = [
                {"id": category_stream_id(token.user_id, label), "label": label}
                for label in dict.fromkeys(labels)
            ]
            await self.feedly.subscribe_feed(token.access_token, feed_id, categories)
            raw_feed = await self.feedly.get_feed(token.access_token, feed_id)
        except Exception as exc:
            self.bus.emit(signals.FEED_SUBSCRIBING_FAILED, feed_id=feed_id)
            log_event(
                self.logger,
                "Subscribe failed",
                level=logging.WARNING,
                event="subscribe_failed",
                feed_id=feed_id,
                error=f"{type(exc).__name__}: {exc}",
            )
            raise

        previous = self.subscriptions.items.get(feed_id)
        subscription = normalize_subscription(
            {**(raw_feed or {}), "id": feed_id, "categories": categories},
            previous.unread_count if previous else 0,
        )
        self.subscriptions.items[feed_id] = subscription
        for raw_category in categories:
            self.subscriptions.categories.setdefault(raw_category["id"], normalize_category(raw_category))
        self.subscriptions.last_updated_at = self.clock()
        self.bus.emit(signals.FEED_SUBSCRIBED, subscription=copy.deepcopy(subscription))
        log_event(self.logger, "Subscribed", event="subscribed", feed_id=feed_id, labels=subscription.labels)
        return copy.deepcopy(subscription)

    async def unsubscribe_feed(self, feed_id: str) -> None:
        """Remove a feed from the subscription set.

        Cached streams fetched before this call become stale.
        """
        self.bus.emit(signals.FEED_UNSUBSCRIBING, feed_id=feed_id)
        try:
            token = await self.token_provider.get_token()
            await self.feedly.unsubscribe_feed(token.access_token, feed_id)
        except Exception as exc:
            self.bus.emit(signals.FEED_UNSUBSCRIBING_FAILED, feed_id=feed_id)
            log_event(
                self.logger,
                "Unsubscribe failed",
                level=logging.WARNING,
                event="unsubscribe_failed",
                feed_id=feed_id,
                error=f"{type(exc).__name__}: {exc}",
            )
            raise

        self.subscriptions.items.pop(feed_id, None)
        self.subscriptions.last_updated_at = self.clock()
        self.bus.emit(signals.FEED_UNSUBSCRIBED, feed_id=feed_id)
        log_event(self.logger, "Unsubscribed", event="unsubscribed", feed_id=feed_id)


def _set_marking_as_read(value: bool) -> Callable[[Entry], None]:
    def apply(entry: Entry) -> None:
        entry.is_marking_as_read = value

    return apply


def _mark_read(entry: Entry) -> None:
    entry.is_marked_as_read = True
    entry.is_marking_as_read = False


def _set_pin(pinned: bool, state: PinState) -> Callable[[Entry], None]:
    def apply(entry: Entry) -> None:
        entry.is_pinned = pinned
        entry.pin_state = state

    return apply


def _set_full_contents_loading(entry: Entry) -> None:
    entry.full_contents.is_loading = True


def _finish_full_contents(full_content: FullContent | None) -> Callable[[Entry], None]:
    def apply(entry: Entry) -> None:
        if full_content is not None:
            entry.full_contents.items.append(copy.copy(full_content))
        entry.full_contents.is_loading = False
        entry.full_contents.is_loaded = True

    return apply


def _set_comments_loading(value: bool) -> Callable[[Entry], None]:
    def apply(entry: Entry) -> None:
        entry.comments.is_loading = value

    return apply


def _store_comments(comments: list[Comment]) -> Callable[[Entry], None]:
    def apply(entry: Entry) -> None:
        entry.comments.items = list(comments)
        entry.comments.is_loading = False
        entry.comments.is_loaded = True

    return apply
