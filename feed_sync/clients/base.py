"""
Abstract interfaces for the remote services.

The sync orchestrator only talks to these interfaces. Concrete httpx
implementations live next to this module; tests substitute in-memory fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from ..config import FeedlyConfig, get_access_token, get_user_id
from ..core.types import Token
from ..errors import AuthenticationError


class TokenProvider(ABC):
    """Async accessor for the current bearer credential."""

    @abstractmethod
    async def get_token(self) -> Token:
        """Return the access token and user id.

        Raises:
            AuthenticationError: If no credential is available
        """
        raise NotImplementedError


class StaticTokenProvider(TokenProvider):
    """Serves a credential taken from config or environment variables."""

    def __init__(self, cfg: FeedlyConfig):
        self.cfg = cfg

    async def get_token(self) -> Token:
        access_token = get_access_token(self.cfg)
        user_id = get_user_id(self.cfg)
        if not access_token or not user_id:
            raise AuthenticationError(
                f"Missing Feedly credential. Set {self.cfg.access_token_env} "
                f"and {self.cfg.user_id_env}."
            )
        return Token(access_token=access_token, user_id=user_id)


class FeedlyApi(ABC):
    """Feedly cloud API operations used by the orchestrator."""

    @abstractmethod
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
        """Return ``{"items": [...], "continuation": "..."}`` for a stream."""
        raise NotImplementedError

    @abstractmethod
    async def get_feed(self, access_token: str, feed_id: str) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    async def set_tag(self, access_token: str, entry_ids: list[str], tag_ids: list[str]) -> None:
        raise NotImplementedError

    @abstractmethod
    async def unset_tag(self, access_token: str, entry_ids: list[str], tag_ids: list[str]) -> None:
        raise NotImplementedError

    @abstractmethod
    async def get_subscriptions(self, access_token: str) -> list[dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    async def get_categories(self, access_token: str) -> list[dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    async def get_unread_counts(self, access_token: str) -> dict[str, int]:
        """Return unread counts keyed by stream id."""
        raise NotImplementedError

    @abstractmethod
    async def subscribe_feed(
        self, access_token: str, feed_id: str, categories: list[dict[str, str]]
    ) -> None:
        """Subscribe to a feed, filing it under ``[{"id", "label"}, ...]`` categories."""
        raise NotImplementedError

    @abstractmethod
    async def unsubscribe_feed(self, access_token: str, feed_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def mark_as_read(self, access_token: str, entry_ids: list[str]) -> None:
        raise NotImplementedError

    @abstractmethod
    async def mark_feeds_as_read(self, access_token: str, feed_ids: list[str]) -> None:
        raise NotImplementedError

    @abstractmethod
    async def mark_categories_as_read(self, access_token: str, category_ids: list[str]) -> None:
        raise NotImplementedError


class BookmarkApi(ABC):
    """Social bookmark service used for counts and comments."""

    @abstractmethod
    async def get_bookmark_counts(self, urls: list[str]) -> dict[str, int]:
        """Return bookmark counts keyed by URL."""
        raise NotImplementedError

    @abstractmethod
    async def get_bookmark_entry(self, url: str) -> dict[str, Any] | None:
        """Return ``{"bookmarks": [{"user", "comment", "timestamp"}, ...]}`` or None."""
        raise NotImplementedError
