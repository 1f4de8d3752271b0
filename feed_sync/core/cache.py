"""
In-memory stream cache.

Streams are keyed by their local stream id. A cached stream is only served
for the exact FetchOptions it was fetched with, and is considered stale once
the subscription set changed after it was fetched.

Entries belong to the stream that holds them. The same entry may appear in
several streams (e.g. a feed and "all"), so entry updates are applied by
identifier to every cached copy.
"""

from __future__ import annotations

import copy
from dataclasses import replace
from typing import Callable, Iterable, Iterator

from .types import Entry, FetchOptions, Stream


class StreamCache:
    """Keyed store of Stream objects.

    Only the sync orchestrator writes to the cache. Every write is a single
    replace or in-place entry update, so no locking is needed under a single
    event loop.
    """

    def __init__(self):
        self._streams: dict[str, Stream] = {}

    def __len__(self) -> int:
        return len(self._streams)

    def __contains__(self, stream_id: object) -> bool:
        return stream_id in self._streams

    def get(self, stream_id: str, options: FetchOptions) -> Stream | None:
        """Return the cached stream if it was fetched with exactly these options."""
        stream = self._streams.get(stream_id)
        if stream is None or stream.options != options:
            return None
        return stream

    def peek(self, stream_id: str) -> Stream | None:
        """Return the cached stream regardless of its options."""
        return self._streams.get(stream_id)

    def snapshot(self, stream_id: str) -> Stream | None:
        """Return a deep copy of the cached stream for read-only consumers."""
        stream = self._streams.get(stream_id)
        return copy.deepcopy(stream) if stream is not None else None

    def put(self, stream: Stream) -> None:
        self._streams[stream.stream_id] = stream

    def evict(self, stream_id: str) -> None:
        self._streams.pop(stream_id, None)

    def clear(self) -> None:
        self._streams.clear()

    @staticmethod
    def is_stale(stream: Stream | None, subscriptions_changed_at: float) -> bool:
        """Check whether a stream must be refetched.

        Args:
            stream: The cached stream, or None when absent
            subscriptions_changed_at: Epoch seconds of the last subscription change

        Returns:
            True if the stream is absent or the subscription set changed
            after it was fetched
        """
        if stream is None:
            return True
        return subscriptions_changed_at > stream.fetched_at

    @staticmethod
    def append_page(
        stream: Stream,
        new_entries: Iterable[Entry],
        new_continuation: str | None,
    ) -> Stream:
        """Return a copy of ``stream`` extended by one page.

        The original stream is not modified; the new entries follow the
        existing ones in order and the continuation is replaced.
        """
        return replace(
            stream,
            entries=[*stream.entries, *new_entries],
            continuation=new_continuation,
        )

    def iter_entries(self) -> Iterator[tuple[Stream, Entry]]:
        for stream in self._streams.values():
            for entry in stream.entries:
                yield stream, entry

    def find_entry(self, entry_id: str) -> Entry | None:
        """Return the first cached copy of an entry."""
        for _, entry in self.iter_entries():
            if entry.entry_id == entry_id:
                return entry
        return None

    def update_entries(self, entry_ids: Iterable[str], fn: Callable[[Entry], None]) -> int:
        """Apply ``fn`` to every cached copy of the given entries.

        Returns:
            Number of entry copies updated
        """
        wanted = set(entry_ids)
        updated = 0
        for _, entry in self.iter_entries():
            if entry.entry_id in wanted:
                fn(entry)
                updated += 1
        return updated

    def apply_bookmark_counts(self, counts: dict[str, int]) -> int:
        """Merge bookmark counts (keyed by article URL) into cached entries."""
        updated = 0
        for _, entry in self.iter_entries():
            if entry.url and entry.url in counts:
                entry.bookmark_count = counts[entry.url]
                updated += 1
        return updated
