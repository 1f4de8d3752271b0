"""Orchestrator wiring from runtime config."""

from __future__ import annotations

import logging

from ..clients.base import StaticTokenProvider, TokenProvider
from ..clients.feedly import FeedlyClient
from ..clients.hatena import HatenaBookmarkClient
from ..config import AppConfig
from ..core.signals import SignalBus
from ..extract.rules import FileRuleSource, RuleSource, StaticRuleSource
from ..fetch.fetcher import PageFetcher
from .confirm import build_read_confirmer
from .orchestrator import SyncOrchestrator


def build_orchestrator(
    cfg: AppConfig,
    token_provider: TokenProvider | None = None,
    bus: SignalBus | None = None,
    logger: logging.Logger | None = None,
) -> SyncOrchestrator:
    """Build an orchestrator backed by the httpx clients.

    Settings are read from ``cfg.settings`` on every call, so edits to the
    config object apply to the next fetch without rebuilding.
    """
    token_provider = token_provider or StaticTokenProvider(cfg.feedly)
    feedly = FeedlyClient(cfg.feedly)
    rule_source: RuleSource = (
        FileRuleSource(cfg.extract.rules_path) if cfg.extract.rules_path else StaticRuleSource()
    )
    return SyncOrchestrator(
        token_provider=token_provider,
        feedly=feedly,
        bookmarks=HatenaBookmarkClient(cfg.bookmark),
        rule_source=rule_source,
        page_fetcher=PageFetcher(cfg.fetch),
        settings_provider=lambda: cfg.settings,
        read_confirmer=build_read_confirmer(cfg.sync, token_provider, feedly),
        bus=bus,
        extract_cfg=cfg.extract,
        logger=logger,
    )
