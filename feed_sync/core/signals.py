"""
Signal vocabulary and dispatcher.

Every operation of the sync orchestrator announces its progress as a
sequence of signals (fetching, then fetched or failed). Consumers such as
view models or persistence layers subscribe to the bus and update their own
derived state from the payloads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Callable

from ..utils.logging import log_event

STREAM_FETCHING = "STREAM_FETCHING"
STREAM_FETCHED = "STREAM_FETCHED"
STREAM_FETCHING_FAILED = "STREAM_FETCHING_FAILED"

MORE_ENTRIES_FETCHING = "MORE_ENTRIES_FETCHING"
MORE_ENTRIES_FETCHED = "MORE_ENTRIES_FETCHED"
MORE_ENTRIES_FETCHING_FAILED = "MORE_ENTRIES_FETCHING_FAILED"

BOOKMARK_COUNTS_FETCHING = "BOOKMARK_COUNTS_FETCHING"
BOOKMARK_COUNTS_FETCHED = "BOOKMARK_COUNTS_FETCHED"
BOOKMARK_COUNTS_FETCHING_FAILED = "BOOKMARK_COUNTS_FETCHING_FAILED"

ENTRIES_MARKING_AS_READ = "ENTRIES_MARKING_AS_READ"
ENTRIES_MARKED_AS_READ = "ENTRIES_MARKED_AS_READ"
ENTRIES_MARKING_AS_READ_FAILED = "ENTRIES_MARKING_AS_READ_FAILED"

FEED_MARKING_AS_READ = "FEED_MARKING_AS_READ"
FEED_MARKED_AS_READ = "FEED_MARKED_AS_READ"
FEED_MARKING_AS_READ_FAILED = "FEED_MARKING_AS_READ_FAILED"

CATEGORY_MARKING_AS_READ = "CATEGORY_MARKING_AS_READ"
CATEGORY_MARKED_AS_READ = "CATEGORY_MARKED_AS_READ"
CATEGORY_MARKING_AS_READ_FAILED = "CATEGORY_MARKING_AS_READ_FAILED"

ENTRY_PINNING = "ENTRY_PINNING"
ENTRY_PINNED = "ENTRY_PINNED"
ENTRY_PINNING_FAILED = "ENTRY_PINNING_FAILED"

FULL_CONTENT_FETCHING = "FULL_CONTENT_FETCHING"
FULL_CONTENT_FETCHED = "FULL_CONTENT_FETCHED"
FULL_CONTENT_FETCHING_FAILED = "FULL_CONTENT_FETCHING_FAILED"

COMMENTS_FETCHING = "COMMENTS_FETCHING"
COMMENTS_FETCHED = "COMMENTS_FETCHED"
COMMENTS_FETCHING_FAILED = "COMMENTS_FETCHING_FAILED"

SUBSCRIPTIONS_FETCHING = "SUBSCRIPTIONS_FETCHING"
SUBSCRIPTIONS_FETCHED = "SUBSCRIPTIONS_FETCHED"
SUBSCRIPTIONS_FETCHING_FAILED = "SUBSCRIPTIONS_FETCHING_FAILED"

FEED_SUBSCRIBING = "FEED_SUBSCRIBING"
FEED_SUBSCRIBED = "FEED_SUBSCRIBED"
FEED_SUBSCRIBING_FAILED = "FEED_SUBSCRIBING_FAILED"

FEED_UNSUBSCRIBING = "FEED_UNSUBSCRIBING"
FEED_UNSUBSCRIBED = "FEED_UNSUBSCRIBED"
FEED_UNSUBSCRIBING_FAILED = "FEED_UNSUBSCRIBING_FAILED"

NOTIFICATION_SENT = "NOTIFICATION_SENT"


@dataclass(frozen=True)
class Signal:
    """A single emitted signal.

    Attributes:
        type: One of the signal type constants in this module
        data: Payload, e.g. {"stream_id": ...} or {"stream": Stream}
    """
    type: str
    data: dict[str, Any] = field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]


Handler = Callable[[Signal], None]


class SignalBus:
    """Synchronous publish/subscribe dispatcher.

    Handlers run in subscription order inside ``emit``. A handler that
    raises is logged and skipped so that one faulty consumer cannot break
    the operation that emitted the signal.
    """

    def __init__(self, logger: logging.Logger | None = None):
        self._handlers: list[Handler] = []
        self._logger = logger or logging.getLogger("feed_sync.signals")

    def subscribe(self, handler: Handler) -> Callable[[], None]:
        """Register a handler and return a function that unregisters it."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def emit(self, signal_type: str, **data: Any) -> Signal:
        signal = Signal(type=signal_type, data=data)
        log_event(
            self._logger,
            "Signal",
            level=logging.DEBUG,
            event="signal",
            signal=signal_type,
            keys=sorted(data),
        )
        for handler in list(self._handlers):
            try:
                handler(signal)
            except Exception:  # noqa: BLE001
                self._logger.exception("Signal handler failed for %s", signal_type)
        return signal
