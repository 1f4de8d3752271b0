"""Tests for the sync orchestrator."""

import asyncio

import httpx
import pytest

from feed_sync.core import signals
from feed_sync.core.types import (
    Category,
    FetchOptions,
    PinState,
    StreamState,
    Subscription,
    Subscriptions,
)
from feed_sync.errors import InvalidStreamIdError, RemoteApiError

from conftest import FEED_ID, ImmediateConfirmer, raw_entry

BLOG_URL = "https://blog.example.com/posts/1"

BLOG_PAGE_1 = """
<html><body>
  <div class="post-body"><p>Part one</p></div>
  <a class="next" href="/posts/1?page=2">next</a>
</body></html>
"""

BLOG_PAGE_2 = """
<html><body><div class="post-body"><p>Part two</p></div></body></html>
"""


def _seed_feed(feedly, continuation="c1"):
    feedly.add_page(
        FEED_ID,
        [
            raw_entry("e1", url=BLOG_URL),
            raw_entry("e2", url="https://example.com/2"),
        ],
        continuation=continuation,
    )


def _run(coro):
    return asyncio.run(coro)


async def _fetch(orchestrator, stream_id=FEED_ID, options=None):
    """Fetch a stream and let its bookmark-count task settle."""
    stream = await orchestrator.fetch_stream(stream_id, options)
    await orchestrator.wait_for_background()
    return stream


# ----------------------------------------------------------------------
# Streams
# ----------------------------------------------------------------------


def test_fetch_feed_stream(orchestrator, feedly, bookmarks, recorder):
    _seed_feed(feedly)
    bookmarks.counts = {BLOG_URL: 7}

    async def run():
        stream = await orchestrator.fetch_stream(FEED_ID)
        await orchestrator.wait_for_background()
        return stream

    stream = _run(run())

    assert stream.title == "Example Feed"
    assert stream.feed.feed_id == FEED_ID
    assert [e.entry_id for e in stream.entries] == ["e1", "e2"]
    assert stream.continuation == "c1"
    assert stream.fetched_at == 1000.0
    assert feedly.calls_to("get_stream_contents") == [
        {
            "stream_id": FEED_ID,
            "continuation": None,
            "ranked": "newest",
            "unread_only": False,
            "count": 20,
        }
    ]
    assert recorder.types == [
        signals.STREAM_FETCHING,
        signals.STREAM_FETCHED,
        signals.BOOKMARK_COUNTS_FETCHING,
        signals.BOOKMARK_COUNTS_FETCHED,
    ]
    assert recorder.of_type(signals.BOOKMARK_COUNTS_FETCHED)[0]["bookmark_counts"] == {BLOG_URL: 7}
    assert orchestrator.cache.find_entry("e1").bookmark_count == 7
    assert orchestrator.stream_state(FEED_ID) is StreamState.FETCHED


def test_returned_stream_is_detached_from_cache(orchestrator, feedly):
    _seed_feed(feedly)

    stream = _run(orchestrator.fetch_stream(FEED_ID))
    stream.entries[0].title = "edited"

    assert orchestrator.cache.find_entry("e1").title == "Title e1"


@pytest.mark.parametrize(
    "stream_id, remote_id, title",
    [
        ("all", "user/u-1/category/global.all", "All"),
        ("pins", "user/u-1/tag/global.saved", "Pins"),
    ],
)
def test_pseudo_streams_use_per_user_ids(orchestrator, feedly, stream_id, remote_id, title):
    feedly.add_page(remote_id, [raw_entry("e1")])

    stream = _run(orchestrator.fetch_stream(stream_id))

    assert stream.stream_id == stream_id
    assert stream.title == title
    assert stream.continuation is None
    assert feedly.calls_to("get_stream_contents")[0]["stream_id"] == remote_id
    assert orchestrator.cache.peek(stream_id) is not None


def test_category_stream_takes_label_from_subscriptions(orchestrator, feedly):
    category_id = "user/u-1/category/tech"
    feedly.categories = [{"id": category_id, "label": "tech"}]
    feedly.add_page(category_id, [raw_entry("e1")])

    async def run():
        await orchestrator.fetch_subscriptions()
        return await orchestrator.fetch_stream(category_id)

    stream = _run(run())

    assert stream.title == "tech"
    assert stream.category.label == "tech"
    assert not feedly.calls_to("get_feed")


def test_invalid_stream_id_emits_nothing(orchestrator, recorder):
    with pytest.raises(InvalidStreamIdError):
        _run(orchestrator.fetch_stream("bogus"))

    assert recorder.signals == []


def test_failed_fetch_keeps_previous_stream(orchestrator, feedly, recorder):
    _seed_feed(feedly)
    _run(orchestrator.fetch_stream(FEED_ID))
    feedly.fail["get_stream_contents"] = RemoteApiError("boom", status_code=503)

    with pytest.raises(RemoteApiError):
        _run(orchestrator.fetch_stream(FEED_ID))

    assert [e.entry_id for e in orchestrator.cache.peek(FEED_ID).entries] == ["e1", "e2"]
    assert recorder.types[-2:] == [signals.STREAM_FETCHING, signals.STREAM_FETCHING_FAILED]
    assert orchestrator.stream_state(FEED_ID) is StreamState.FETCH_FAILED


def test_entries_without_url_skip_bookmark_request(orchestrator, feedly, bookmarks, recorder):
    feedly.add_page(FEED_ID, [raw_entry("e1")])

    async def run():
        await _fetch(orchestrator)

    _run(run())

    assert bookmarks.count_requests == []
    assert signals.BOOKMARK_COUNTS_FETCHING not in recorder.types


def test_bookmark_failure_does_not_fail_stream_fetch(orchestrator, feedly, bookmarks, recorder):
    _seed_feed(feedly)
    bookmarks.fail["get_bookmark_counts"] = RemoteApiError("down", status_code=500)

    async def run():
        stream = await orchestrator.fetch_stream(FEED_ID)
        with pytest.raises(RemoteApiError):
            await orchestrator.wait_for_background()
        return stream

    stream = _run(run())

    assert len(stream.entries) == 2
    assert orchestrator.cache.find_entry("e1").bookmark_count == 0
    assert signals.STREAM_FETCHED in recorder.types
    assert recorder.types[-1] == signals.BOOKMARK_COUNTS_FETCHING_FAILED
    assert orchestrator.pending_tasks == 0


def test_load_stream_serves_cache_until_subscriptions_change(orchestrator, feedly, clock):
    _seed_feed(feedly)
    feedly.subscriptions = [{"id": FEED_ID, "title": "Example"}]
    feedly.unread_counts = {FEED_ID: 4}

    async def run():
        await orchestrator.load_stream(FEED_ID)
        await orchestrator.load_stream(FEED_ID)
        assert len(feedly.calls_to("get_stream_contents")) == 1

        clock.advance()
        await orchestrator.fetch_subscriptions()
        return await orchestrator.load_stream(FEED_ID)

    stream = _run(run())

    assert len(feedly.calls_to("get_stream_contents")) == 2
    assert stream.subscription.unread_count == 4


def test_load_stream_refetches_for_other_options(orchestrator, feedly):
    _seed_feed(feedly)

    async def run():
        await orchestrator.load_stream(FEED_ID)
        await orchestrator.load_stream(FEED_ID, FetchOptions(num_entries=5, only_unread=False))

    _run(run())

    counts = [call["count"] for call in feedly.calls_to("get_stream_contents")]
    assert counts == [20, 5]


# ----------------------------------------------------------------------
# Pagination
# ----------------------------------------------------------------------


def test_fetch_more_entries_appends_page(orchestrator, feedly, recorder):
    _seed_feed(feedly, continuation="c1")
    feedly.add_page(FEED_ID, [raw_entry("e3")], continuation=None, after="c1")

    async def run():
        stream = await _fetch(orchestrator)
        return await orchestrator.fetch_more_entries(FEED_ID, stream.continuation, stream.options)

    entries = _run(run())

    assert [e.entry_id for e in entries] == ["e3"]
    cached = orchestrator.cache.peek(FEED_ID)
    assert [e.entry_id for e in cached.entries] == ["e1", "e2", "e3"]
    assert cached.continuation is None
    fetched = recorder.of_type(signals.MORE_ENTRIES_FETCHED)
    assert len(fetched) == 1
    assert fetched[0]["continuation"] is None
    assert feedly.calls_to("get_stream_contents")[1]["continuation"] == "c1"
    assert orchestrator.stream_state(FEED_ID) is StreamState.FETCHED_MORE


def test_fetch_more_requires_continuation(orchestrator, feedly):
    _seed_feed(feedly, continuation=None)

    async def run():
        stream = await _fetch(orchestrator)
        with pytest.raises(ValueError):
            await orchestrator.fetch_more_entries(FEED_ID, stream.continuation, stream.options)

    _run(run())

    assert len(feedly.calls_to("get_stream_contents")) == 1


def test_fetch_more_requires_prior_fetch(orchestrator, recorder):
    with pytest.raises(ValueError):
        _run(orchestrator.fetch_more_entries(FEED_ID, "c1", FetchOptions()))

    assert recorder.signals == []


def test_fetch_more_failure_keeps_cached_pages(orchestrator, feedly, recorder):
    _seed_feed(feedly, continuation="c1")

    async def run():
        stream = await _fetch(orchestrator)
        feedly.fail["get_stream_contents"] = RemoteApiError("boom", status_code=500)
        await orchestrator.fetch_more_entries(FEED_ID, stream.continuation, stream.options)

    with pytest.raises(RemoteApiError):
        _run(run())

    cached = orchestrator.cache.peek(FEED_ID)
    assert len(cached.entries) == 2
    assert cached.continuation == "c1"
    assert recorder.types[-1] == signals.MORE_ENTRIES_FETCHING_FAILED
    assert orchestrator.stream_state(FEED_ID) is StreamState.FETCH_MORE_FAILED


def test_fetch_more_requires_matching_options(orchestrator, feedly):
    _seed_feed(feedly, continuation="c1")

    async def run():
        await _fetch(orchestrator)
        with pytest.raises(ValueError):
            await orchestrator.fetch_more_entries(FEED_ID, "c1", FetchOptions(num_entries=5))

    _run(run())

    assert len(feedly.calls_to("get_stream_contents")) == 1


def test_concurrent_fetch_more_appends_page_once(orchestrator, feedly, recorder):
    _seed_feed(feedly, continuation="c1")
    feedly.add_page(FEED_ID, [raw_entry("e3")], continuation="c2", after="c1")

    async def run():
        stream = await _fetch(orchestrator)
        results = await asyncio.gather(
            orchestrator.fetch_more_entries(FEED_ID, "c1", stream.options),
            orchestrator.fetch_more_entries(FEED_ID, "c1", stream.options),
        )
        await orchestrator.wait_for_background()
        return results

    first, second = _run(run())

    assert [e.entry_id for e in first] == ["e3"]
    assert [e.entry_id for e in second] == ["e3"]
    cached = orchestrator.cache.peek(FEED_ID)
    assert [e.entry_id for e in cached.entries] == ["e1", "e2", "e3"]
    assert cached.continuation == "c2"
    assert len(recorder.of_type(signals.MORE_ENTRIES_FETCHED)) == 2


def test_fetch_more_after_refresh_does_not_touch_new_stream(orchestrator, feedly, recorder):
    _seed_feed(feedly, continuation="c1")
    feedly.add_page(FEED_ID, [raw_entry("e3")], continuation=None, after="c1")
    original = feedly.get_stream_contents

    async def run():
        released = asyncio.Event()

        async def gated(access_token, stream_id, **kwargs):
            if kwargs.get("continuation") == "c1":
                await released.wait()
            return await original(access_token, stream_id, **kwargs)

        stream = await _fetch(orchestrator)
        feedly.get_stream_contents = gated
        more = asyncio.ensure_future(orchestrator.fetch_more_entries(FEED_ID, "c1", stream.options))
        await asyncio.sleep(0)

        feedly.add_page(FEED_ID, [raw_entry("e9")], continuation="c9")
        await orchestrator.fetch_stream(FEED_ID)
        released.set()
        entries = await more
        await orchestrator.wait_for_background()
        return entries

    entries = _run(run())

    assert [e.entry_id for e in entries] == ["e3"]
    cached = orchestrator.cache.peek(FEED_ID)
    assert [e.entry_id for e in cached.entries] == ["e9"]
    assert cached.continuation == "c9"
    assert recorder.of_type(signals.MORE_ENTRIES_FETCHED)[0]["continuation"] is None


def test_fetch_more_after_failed_refresh(orchestrator, feedly):
    _seed_feed(feedly, continuation="c1")
    feedly.add_page(FEED_ID, [raw_entry("e3")], continuation=None, after="c1")

    async def run():
        stream = await _fetch(orchestrator)
        feedly.fail["get_feed"] = RemoteApiError("unavailable", status_code=503)
        with pytest.raises(RemoteApiError):
            await orchestrator.fetch_stream(FEED_ID)
        assert orchestrator.stream_state(FEED_ID) is StreamState.FETCH_FAILED
        return await orchestrator.fetch_more_entries(FEED_ID, "c1", stream.options)

    entries = _run(run())

    assert [e.entry_id for e in entries] == ["e3"]
    cached = orchestrator.cache.peek(FEED_ID)
    assert [e.entry_id for e in cached.entries] == ["e1", "e2", "e3"]
    assert orchestrator.stream_state(FEED_ID) is StreamState.FETCHED_MORE


# ----------------------------------------------------------------------
# Read state
# ----------------------------------------------------------------------


def test_mark_as_read_empty_list_is_silent(orchestrator, recorder, confirmer):
    _run(orchestrator.mark_as_read([]))

    assert recorder.signals == []
    assert confirmer.confirmed == []


def test_mark_as_read(orchestrator, feedly, recorder, confirmer):
    _seed_feed(feedly)

    async def run():
        await _fetch(orchestrator)
        orchestrator.subscriptions = Subscriptions(
            items={FEED_ID: Subscription(FEED_ID, FEED_ID, FEED_ID, "Example", unread_count=5)}
        )
        recorder.signals.clear()
        await orchestrator.mark_as_read(["e1", "e2", "e1"])

    _run(run())

    assert confirmer.confirmed == [["e1", "e2"]]
    assert recorder.types == [
        signals.ENTRIES_MARKING_AS_READ,
        signals.ENTRIES_MARKED_AS_READ,
        signals.NOTIFICATION_SENT,
    ]
    marked = recorder.of_type(signals.ENTRIES_MARKED_AS_READ)[0]
    assert marked["entry_ids"] == ["e1", "e2"]
    assert marked["read_counts"] == {FEED_ID: 2}
    assert recorder.of_type(signals.NOTIFICATION_SENT)[0]["message"] == "2 entries are marked as read."
    entry = orchestrator.cache.find_entry("e1")
    assert entry.is_marked_as_read is True
    assert entry.is_marking_as_read is False
    assert orchestrator.subscriptions.items[FEED_ID].unread_count == 3


def test_mark_single_entry_notification(orchestrator, feedly, recorder):
    _seed_feed(feedly)

    async def run():
        await _fetch(orchestrator)
        await orchestrator.mark_as_read(["e1"])

    _run(run())

    assert recorder.of_type(signals.NOTIFICATION_SENT)[0]["message"] == "1 entry is marked as read."


def test_mark_as_read_failure_restores_entries(orchestrator, feedly, recorder):
    _seed_feed(feedly)
    orchestrator.read_confirmer = ImmediateConfirmer(error=RemoteApiError("nope", status_code=500))

    async def run():
        await _fetch(orchestrator)
        await orchestrator.mark_as_read(["e1"])

    with pytest.raises(RemoteApiError):
        _run(run())

    entry = orchestrator.cache.find_entry("e1")
    assert entry.is_marked_as_read is False
    assert entry.is_marking_as_read is False
    assert recorder.types[-1] == signals.ENTRIES_MARKING_AS_READ_FAILED
    assert signals.NOTIFICATION_SENT not in recorder.types


def test_mark_feed_as_read(orchestrator, feedly, recorder):
    _seed_feed(feedly)

    async def run():
        await _fetch(orchestrator)
        orchestrator.subscriptions = Subscriptions(
            items={FEED_ID: Subscription(FEED_ID, FEED_ID, FEED_ID, "Example", unread_count=5)}
        )
        await orchestrator.mark_feed_as_read(FEED_ID)

    _run(run())

    assert feedly.calls_to("mark_feeds_as_read") == [{"feed_ids": [FEED_ID]}]
    assert all(e.is_marked_as_read for _, e in orchestrator.cache.iter_entries())
    assert orchestrator.subscriptions.items[FEED_ID].unread_count == 0
    assert recorder.types[-1] == signals.FEED_MARKED_AS_READ


def test_mark_category_as_read(orchestrator, feedly, recorder):
    category_id = "user/u-1/category/tech"
    feedly.add_page("user/u-1/category/global.all", [raw_entry("e1"), raw_entry("e2", origin="feed/other")])

    async def run():
        await _fetch(orchestrator, "all")
        orchestrator.subscriptions = Subscriptions(
            items={
                FEED_ID: Subscription(FEED_ID, FEED_ID, FEED_ID, "Example", unread_count=5, labels=["tech"]),
                "feed/other": Subscription("feed/other", "feed/other", "feed/other", "Other", unread_count=2),
            },
            categories={category_id: Category(category_id, category_id, "tech")},
        )
        await orchestrator.mark_category_as_read(category_id)

    _run(run())

    assert orchestrator.cache.find_entry("e1").is_marked_as_read is True
    assert orchestrator.cache.find_entry("e2").is_marked_as_read is False
    assert orchestrator.subscriptions.items[FEED_ID].unread_count == 0
    assert orchestrator.subscriptions.items["feed/other"].unread_count == 2
    assert recorder.of_type(signals.CATEGORY_MARKED_AS_READ)[0]["label"] == "tech"


# ----------------------------------------------------------------------
# Pins
# ----------------------------------------------------------------------


def test_pin_entry(orchestrator, feedly, recorder):
    _seed_feed(feedly)
    pinning_seen = []
    orchestrator.bus.subscribe(
        lambda s: pinning_seen.append(orchestrator.cache.find_entry("e1").is_pinning)
        if s.type == signals.ENTRY_PINNING
        else None
    )

    async def run():
        await _fetch(orchestrator)
        await orchestrator.pin_entry("e1")

    _run(run())

    assert pinning_seen == [True]
    assert feedly.calls_to("set_tag") == [
        {"entry_ids": ["e1"], "tag_ids": ["user/u-1/tag/global.saved"]}
    ]
    entry = orchestrator.cache.find_entry("e1")
    assert entry.is_pinned is True
    assert entry.pin_state is PinState.IDLE
    assert recorder.of_type(signals.ENTRY_PINNED)[0]["is_pinned"] is True


def test_pin_failure_rolls_back(orchestrator, feedly, recorder):
    _seed_feed(feedly)
    feedly.fail["set_tag"] = RemoteApiError("forbidden", status_code=403)

    async def run():
        await _fetch(orchestrator)
        await orchestrator.pin_entry("e1")

    with pytest.raises(RemoteApiError):
        _run(run())

    entry = orchestrator.cache.find_entry("e1")
    assert entry.is_pinned is False
    assert entry.is_pinning is False
    assert entry.pin_state is PinState.FAILED
    assert len(recorder.of_type(signals.ENTRY_PINNING_FAILED)) == 1
    assert recorder.of_type(signals.ENTRY_PINNED) == []


def test_unpin_entry(orchestrator, feedly):
    feedly.add_page(FEED_ID, [raw_entry("e1", saved=True)])

    async def run():
        await _fetch(orchestrator)
        await orchestrator.unpin_entry("e1")

    _run(run())

    assert feedly.calls_to("unset_tag") == [
        {"entry_ids": ["e1"], "tag_ids": ["user/u-1/tag/global.saved"]}
    ]
    assert orchestrator.cache.find_entry("e1").is_pinned is False


# ----------------------------------------------------------------------
# Full content and comments
# ----------------------------------------------------------------------


def test_full_content_follows_next_pages(orchestrator, feedly, pages, recorder):
    _seed_feed(feedly)
    pages.add(BLOG_URL, BLOG_PAGE_1)
    pages.add(BLOG_URL + "?page=2", BLOG_PAGE_2)

    async def run():
        await _fetch(orchestrator)
        first = await orchestrator.fetch_full_content("e1", BLOG_URL)
        second = await orchestrator.fetch_next_full_content("e1")
        with pytest.raises(ValueError):
            await orchestrator.fetch_next_full_content("e1")
        return first, second

    first, second = _run(run())

    assert first.content == '<div class="post-body"><p>Part one</p></div>'
    assert first.next_page_url == BLOG_URL + "?page=2"
    assert second.content == '<div class="post-body"><p>Part two</p></div>'
    assert second.next_page_url is None
    full_contents = orchestrator.cache.find_entry("e1").full_contents
    assert [item.url for item in full_contents.items] == [BLOG_URL, BLOG_URL + "?page=2"]
    assert full_contents.is_loaded is True
    assert full_contents.is_loading is False
    assert len(recorder.of_type(signals.FULL_CONTENT_FETCHED)) == 2


def test_full_content_matches_rule_on_final_url(orchestrator, pages):
    pages.add("https://short.example/x", BLOG_PAGE_1, final_url=BLOG_URL)

    result = _run(orchestrator.fetch_full_content("e1", "https://short.example/x"))

    assert result is not None
    assert result.url == BLOG_URL


def test_full_content_without_matching_rule(orchestrator, feedly, pages, recorder):
    feedly.add_page(FEED_ID, [raw_entry("e1", url="https://unknown.example/a")])
    pages.add("https://unknown.example/a", BLOG_PAGE_1)

    async def run():
        await _fetch(orchestrator)
        return await orchestrator.fetch_full_content("e1", "https://unknown.example/a")

    assert _run(run()) is None

    full_contents = orchestrator.cache.find_entry("e1").full_contents
    assert full_contents.items == []
    assert full_contents.is_loaded is True
    assert recorder.types[-2:] == [signals.FULL_CONTENT_FETCHING, signals.FULL_CONTENT_FETCHING_FAILED]


def test_full_content_error_status_is_a_miss(orchestrator, pages, recorder):
    pages.add(BLOG_URL, BLOG_PAGE_1, status_code=404)

    assert _run(orchestrator.fetch_full_content("e1", BLOG_URL)) is None
    assert recorder.types[-1] == signals.FULL_CONTENT_FETCHING_FAILED


def test_full_content_transport_error_is_raised(orchestrator, pages, recorder):
    pages.fail = httpx.ConnectError("unreachable")

    with pytest.raises(httpx.ConnectError):
        _run(orchestrator.fetch_full_content("e1", BLOG_URL))

    assert recorder.types == [signals.FULL_CONTENT_FETCHING, signals.FULL_CONTENT_FETCHING_FAILED]


def test_fetch_comments(orchestrator, feedly, bookmarks, recorder):
    _seed_feed(feedly)
    bookmarks.entries[BLOG_URL] = {
        "bookmarks": [
            {"user": "a", "comment": "great", "timestamp": "2024/01/01 10:00"},
            {"user": "b", "comment": "", "timestamp": "2024/01/01 11:00"},
        ]
    }

    async def run():
        await _fetch(orchestrator)
        return await orchestrator.fetch_comments("e1", BLOG_URL)

    comments = _run(run())

    assert [c.comment for c in comments] == ["great"]
    stored = orchestrator.cache.find_entry("e1").comments
    assert stored.is_loaded is True
    assert [c.user for c in stored.items] == ["a"]
    assert recorder.types[-1] == signals.COMMENTS_FETCHED


def test_fetch_comments_failure(orchestrator, bookmarks, recorder):
    bookmarks.fail["get_bookmark_entry"] = RemoteApiError("down", status_code=502)

    with pytest.raises(RemoteApiError):
        _run(orchestrator.fetch_comments("e1", BLOG_URL))

    assert recorder.types == [signals.COMMENTS_FETCHING, signals.COMMENTS_FETCHING_FAILED]


def test_fetch_subscriptions(orchestrator, feedly, recorder):
    feedly.subscriptions = [
        {"id": FEED_ID, "title": "Example", "categories": [{"id": "user/u-1/category/tech", "label": "tech"}]}
    ]
    feedly.categories = [{"id": "user/u-1/category/tech", "label": "tech"}]
    feedly.unread_counts = {FEED_ID: 9}

    subscriptions = _run(orchestrator.fetch_subscriptions())

    assert subscriptions.items[FEED_ID].unread_count == 9
    assert subscriptions.items[FEED_ID].labels == ["tech"]
    assert subscriptions.categories["user/u-1/category/tech"].label == "tech"
    assert subscriptions.last_updated_at == 1000.0
    assert recorder.types == [signals.SUBSCRIPTIONS_FETCHING, signals.SUBSCRIPTIONS_FETCHED]


def test_subscribe_feed(orchestrator, feedly, recorder, clock):
    feedly.add_page("user/u-1/category/global.all", [raw_entry("e1")])
    feedly.feeds[FEED_ID] = {"id": FEED_ID, "title": "Example", "website": "http://example.com/"}

    async def run():
        await _fetch(orchestrator, "all")
        clock.advance()
        subscription = await orchestrator.subscribe_feed(FEED_ID, ["tech", "tech"])
        await orchestrator.load_stream("all")
        return subscription

    subscription = _run(run())

    assert feedly.calls_to("subscribe_feed") == [
        {"feed_id": FEED_ID, "categories": [{"id": "user/u-1/category/tech", "label": "tech"}]}
    ]
    assert subscription.title == "Example"
    assert subscription.labels == ["tech"]
    assert orchestrator.subscriptions.items[FEED_ID].url == "http://example.com/"
    assert orchestrator.subscriptions.categories["user/u-1/category/tech"].label == "tech"
    assert orchestrator.subscriptions.last_updated_at == 1001.0
    assert recorder.of_type(signals.FEED_SUBSCRIBED)[0]["subscription"].feed_id == FEED_ID
    # The cached "all" stream predates the change and is fetched again
    assert len(feedly.calls_to("get_stream_contents")) == 2


def test_subscribe_failure(orchestrator, feedly, recorder):
    feedly.fail["subscribe_feed"] = RemoteApiError("rejected", status_code=400)

    with pytest.raises(RemoteApiError):
        _run(orchestrator.subscribe_feed(FEED_ID))

    assert recorder.types == [signals.FEED_SUBSCRIBING, signals.FEED_SUBSCRIBING_FAILED]
    assert FEED_ID not in orchestrator.subscriptions.items
    assert orchestrator.subscriptions.last_updated_at == 0.0


def test_unsubscribe_feed(orchestrator, feedly, recorder, clock):
    feedly.subscriptions = [{"id": FEED_ID, "title": "Example"}]
    _seed_feed(feedly)

    async def run():
        await orchestrator.fetch_subscriptions()
        await _fetch(orchestrator)
        clock.advance()
        await orchestrator.unsubscribe_feed(FEED_ID)
        return await orchestrator.load_stream(FEED_ID)

    stream = _run(run())

    assert feedly.calls_to("unsubscribe_feed") == [{"feed_id": FEED_ID}]
    assert orchestrator.subscriptions.items == {}
    assert orchestrator.subscriptions.last_updated_at == 1001.0
    assert recorder.of_type(signals.FEED_UNSUBSCRIBED)[0]["feed_id"] == FEED_ID
    assert stream.subscription is None
    assert len(feedly.calls_to("get_stream_contents")) == 2


def test_unsubscribe_failure_keeps_subscription(orchestrator, feedly, recorder):
    feedly.subscriptions = [{"id": FEED_ID, "title": "Example"}]
    feedly.fail["unsubscribe_feed"] = RemoteApiError("down", status_code=503)

    async def run():
        await orchestrator.fetch_subscriptions()
        await orchestrator.unsubscribe_feed(FEED_ID)

    with pytest.raises(RemoteApiError):
        _run(run())

    assert FEED_ID in orchestrator.subscriptions.items
    assert recorder.types[-2:] == [signals.FEED_UNSUBSCRIBING, signals.FEED_UNSUBSCRIBING_FAILED]


def test_fetch_numeric_feed_id_with_explicit_options(orchestrator, feedly):
    feedly.add_page("feed/123", [raw_entry(f"e{i}") for i in range(20)], continuation="next")
    options = FetchOptions(num_entries=20, order="newest", only_unread=False)

    _run(orchestrator.fetch_stream("feed/123", options))

    cached = orchestrator.cache.get("feed/123", options)
    assert cached.stream_id == "feed/123"
    assert len(cached.entries) <= 20
    assert cached.continuation == "next"
