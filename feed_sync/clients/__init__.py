"""
Remote service clients.

New backends should inherit from the abstract classes in ``base``
and implement every async method.
"""

from .base import BookmarkApi, FeedlyApi, StaticTokenProvider, TokenProvider
from .feedly import FeedlyClient
from .hatena import HatenaBookmarkClient

__all__ = [
    "BookmarkApi",
    "FeedlyApi",
    "StaticTokenProvider",
    "TokenProvider",
    "FeedlyClient",
    "HatenaBookmarkClient",
]
