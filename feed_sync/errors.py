"""Exception types raised by feed-sync.

Network-level failures from httpx (``httpx.HTTPError`` subclasses) are not
wrapped and propagate as-is; the types here cover the failures feed-sync
itself detects.
"""

from __future__ import annotations


class FeedSyncError(Exception):
    """Base class for all feed-sync errors."""


class RemoteApiError(FeedSyncError):
    """A remote API answered with a non-success status code."""

    def __init__(self, message: str, status_code: int | None = None, url: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class AuthenticationError(FeedSyncError):
    """No usable access token is available."""


class InvalidStreamIdError(FeedSyncError, ValueError):
    """A stream id does not match any known stream kind."""


class RuleLoadError(FeedSyncError):
    """An extraction rule file could not be read or parsed."""
