"""
Read-state confirmation strategies.

Marking entries as read is reported to consumers in two steps: a pending
signal, then a confirmation once the read state is settled. The step in
between is a ``ReadConfirmer``:
- DelayedReadConfirmer: settles locally after a short fixed delay
- RemoteReadConfirmer: reports the entries to Feedly, retrying on failure
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import asyncio
import logging

import httpx

from ..clients.base import FeedlyApi, TokenProvider
from ..config import SyncConfig
from ..errors import RemoteApiError

logger = logging.getLogger(__name__)


class ReadConfirmer(ABC):
    @abstractmethod
    async def confirm(self, entry_ids: list[str]) -> None:
        """Settle the read state of ``entry_ids``; raise if it cannot be settled."""
        raise NotImplementedError


class DelayedReadConfirmer(ReadConfirmer):
    def __init__(self, delay_seconds: float = 0.2):
        self.delay_seconds = delay_seconds

    async def confirm(self, entry_ids: list[str]) -> None:
        await asyncio.sleep(self.delay_seconds)


class RemoteReadConfirmer(ReadConfirmer):
    """Marks entries as read on Feedly.

    Transport errors and 5xx answers are retried with a linear backoff;
    4xx answers are raised immediately.
    """

    def __init__(self, token_provider: TokenProvider, feedly: FeedlyApi, retries: int = 2):
        self.token_provider = token_provider
        self.feedly = feedly
        self.retries = retries

    async def confirm(self, entry_ids: list[str]) -> None:
        token = await self.token_provider.get_token()
        for attempt in range(self.retries + 1):
            try:
                await self.feedly.mark_as_read(token.access_token, entry_ids)
                return
            except (httpx.TransportError, RemoteApiError) as exc:
                if not _is_retryable(exc) or attempt >= self.retries:
                    raise
                logger.warning("Mark as read attempt %d failed: %s", attempt + 1, exc)
                await asyncio.sleep(0.5 * (attempt + 1))


def _is_retryable(exc: Exception) -> bool:
    if isinstance(exc, RemoteApiError):
        return exc.status_code is None or exc.status_code >= 500
    return True


def build_read_confirmer(
    cfg: SyncConfig,
    token_provider: TokenProvider,
    feedly: FeedlyApi,
) -> ReadConfirmer:
    """Build the confirmer named by ``cfg.read_confirmer``."""
    name = cfg.read_confirmer.lower().strip()
    if name == "delayed":
        return DelayedReadConfirmer(cfg.mark_as_read_delay_seconds)
    if name == "remote":
        return RemoteReadConfirmer(token_provider, feedly, retries=cfg.retries)
    raise ValueError(f"Unsupported read confirmer: {cfg.read_confirmer}. Supported: delayed, remote")
