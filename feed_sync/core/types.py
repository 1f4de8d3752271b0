"""
Core data types for feed-sync.

This module defines the fundamental data structures used throughout the engine:
- FetchOptions: Parameters that make two fetches of a stream comparable
- Entry: A normalized feed entry with its mutable local state
- Stream: A paginated, ordered view of entries for one logical source
- Feed, Category, Subscription: Descriptors attached to streams
- FullContent, Comment: Secondary data fetched per entry
- ExtractionRule: A per-site recipe for pulling full article content
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

ORDER_NEWEST = "newest"
ORDER_OLDEST = "oldest"


@dataclass(frozen=True)
class FetchOptions:
    """Options a stream was fetched with.

    Compared structurally: a stream cached for one set of options is never
    served for another.

    Attributes:
        num_entries: Number of entries per page
        order: "newest" or "oldest"
        only_unread: Whether only unread entries were requested
        view: Default stream view name
    """
    num_entries: int = 20
    order: str = ORDER_NEWEST
    only_unread: bool = True
    view: str = "expanded"


@dataclass
class Token:
    """Bearer credential plus the id of the authenticated user."""
    access_token: str
    user_id: str


class PinState(str, Enum):
    IDLE = "idle"
    PINNING = "pinning"
    UNPINNING = "unpinning"
    FAILED = "failed"


class StreamState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    FETCHED = "fetched"
    FETCH_FAILED = "fetch_failed"
    FETCHING_MORE = "fetching_more"
    FETCHED_MORE = "fetched_more"
    FETCH_MORE_FAILED = "fetch_more_failed"


@dataclass
class Origin:
    stream_id: str
    title: str
    url: str


@dataclass
class Visual:
    url: str
    width: int | None = None
    height: int | None = None


@dataclass
class FullContent:
    """One extracted page of an entry's full article.

    Attributes:
        content: Serialized HTML of the extracted elements
        url: The page the content was extracted from
        next_page_url: Absolute URL of the following page, or None
    """
    content: str
    url: str
    next_page_url: str | None = None


@dataclass
class FullContents:
    is_loaded: bool = False
    is_loading: bool = False
    items: list[FullContent] = field(default_factory=list)

    @property
    def next_page_url(self) -> str | None:
        """Next page of the most recently fetched page, if any."""
        if not self.items:
            return None
        return self.items[-1].next_page_url


@dataclass
class Comment:
    user: str
    comment: str
    timestamp: str


@dataclass
class Comments:
    is_loaded: bool = False
    is_loading: bool = False
    items: list[Comment] = field(default_factory=list)


@dataclass
class Entry:
    """A normalized feed entry.

    Attributes:
        entry_id: Remote entry identifier
        title: Entry headline
        author: Author name, or "" when unknown
        url: Canonical article URL, or "" when the entry has no link
        summary: Tag-stripped summary text
        content: Raw HTML content
        published_at: Publication time in milliseconds since the epoch
        bookmark_url: Hatena Bookmark page for the article
        bookmark_count: Bookmark count, 0 until augmented
        is_pinned: Whether the entry carries the saved tag
        pin_state: Progress of the last pin/unpin request
        is_marked_as_read: Whether the entry is read
        is_marking_as_read: True while a read confirmation is pending
        origin: Source stream of the entry, if known
        visual: Lead image, only kept for absolute http(s) URLs
        full_contents: Extracted full article pages
        comments: Bookmark comments on the article
    """
    entry_id: str
    title: str
    author: str
    url: str
    summary: str
    content: str
    published_at: int
    bookmark_url: str
    bookmark_count: int = 0
    is_pinned: bool = False
    pin_state: PinState = PinState.IDLE
    is_marked_as_read: bool = False
    is_marking_as_read: bool = False
    origin: Origin | None = None
    visual: Visual | None = None
    full_contents: FullContents = field(default_factory=FullContents)
    comments: Comments = field(default_factory=Comments)

    @property
    def is_pinning(self) -> bool:
        return self.pin_state in (PinState.PINNING, PinState.UNPINNING)


@dataclass
class Feed:
    feed_id: str
    stream_id: str
    title: str
    description: str = ""
    url: str = ""
    icon_url: str = ""
    subscribers: int = 0


@dataclass
class Category:
    category_id: str
    stream_id: str
    label: str


@dataclass
class Subscription:
    subscription_id: str
    stream_id: str
    feed_id: str
    title: str
    url: str = ""
    icon_url: str = ""
    unread_count: int = 0
    labels: list[str] = field(default_factory=list)


@dataclass
class Subscriptions:
    """The subscription set, keyed by stream id.

    Attributes:
        items: Subscriptions keyed by their stream id
        categories: Categories keyed by their stream id
        last_updated_at: Epoch seconds of the last change, 0.0 when never fetched
    """
    items: dict[str, Subscription] = field(default_factory=dict)
    categories: dict[str, Category] = field(default_factory=dict)
    last_updated_at: float = 0.0


@dataclass
class Stream:
    """A fetched stream of entries.

    Attributes:
        stream_id: Local stream id ("feed/...", "user/...", "all" or "pins")
        title: Display title
        entries: Entries in server rank order
        continuation: Token for the next page, or None when exhausted
        options: The options the stream was fetched with
        fetched_at: Epoch seconds of the first page fetch
        feed: Feed descriptor for single-feed streams
        category: Category descriptor for category streams
        subscription: Subscription matching a single-feed stream
    """
    stream_id: str
    title: str
    entries: list[Entry]
    continuation: str | None
    options: FetchOptions
    fetched_at: float
    feed: Feed | None = None
    category: Category | None = None
    subscription: Subscription | None = None


@dataclass(frozen=True)
class ExtractionRule:
    """Declarative recipe for extracting full content from a site.

    Attributes:
        url_pattern: Regular expression matched against the page URL
        content_selector: CSS selector for the content elements
        next_link_selector: CSS selector for the next-page anchor, if any
        name: Optional label used in logs
    """
    url_pattern: str
    content_selector: str
    next_link_selector: str | None = None
    name: str | None = None


@dataclass
class PageResponse:
    """A fetched web page before decoding.

    Attributes:
        url: Final URL after redirects
        status_code: HTTP status code
        headers: Response headers (lower-cased keys)
        body: Raw response bytes
    """
    url: str
    status_code: int
    headers: dict[str, str]
    body: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300
