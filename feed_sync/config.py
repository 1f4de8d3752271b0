"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- FeedlyConfig: Feedly cloud API endpoint and credentials
- BookmarkConfig: Hatena Bookmark API endpoints
- FetchConfig: HTTP fetching settings for article pages
- ExtractConfig: Full-content extraction settings
- SettingsConfig: Default stream fetch options
- SyncConfig: Mark-as-read confirmation settings
- LoggingConfig: Logging behavior
- AppConfig: Root configuration container
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from typing import Any

import yaml


@dataclass
class FeedlyConfig:
    """Configuration for the Feedly cloud API.

    Attributes:
        base_url: API root, e.g. "https://cloud.feedly.com" or a sandbox host
        access_token: Optional inline access token (overrides env var)
        user_id: Optional inline user id (overrides env var)
        access_token_env: Environment variable holding the access token
        user_id_env: Environment variable holding the user id
        timeout_seconds: HTTP request timeout
        trust_env: Whether to respect system proxy settings
    """

    base_url: str = "https://cloud.feedly.com"
    access_token: str | None = None
    user_id: str | None = None
    access_token_env: str = "FEEDLY_ACCESS_TOKEN"
    user_id_env: str = "FEEDLY_USER_ID"
    timeout_seconds: float = 20.0
    trust_env: bool = True


@dataclass
class BookmarkConfig:
    """Configuration for the Hatena Bookmark APIs.

    Attributes:
        counts_url: Endpoint returning bookmark counts for many URLs
        entry_url: Endpoint returning the bookmark entry (comments) for a URL
        batch_size: Maximum URLs per counts request
        timeout_seconds: HTTP request timeout
    """

    counts_url: str = "https://bookmark.hatenaapis.com/count/entries"
    entry_url: str = "https://b.hatena.ne.jp/entry/jsonlite/"
    batch_size: int = 50
    timeout_seconds: float = 20.0


@dataclass
class FetchConfig:
    """Configuration for fetching article pages.

    Attributes:
        timeout_seconds: HTTP request timeout
        retries: Number of retry attempts for failed requests
        trust_env: Whether to respect system proxy settings
        user_agent: HTTP User-Agent header string
    """

    timeout_seconds: float = 20.0
    retries: int = 2
    trust_env: bool = True
    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    )


@dataclass
class ExtractConfig:
    """Configuration for full-content extraction.

    Attributes:
        rules_path: YAML or JSON file holding the ordered extraction rules
        fallback: Extractors to try when no rule produced content ("readability")
    """

    rules_path: str | None = None
    fallback: list[str] = field(default_factory=list)


@dataclass
class SettingsConfig:
    """Default stream fetch options used when a caller passes none.

    Attributes:
        num_entries: Entries requested per page
        entries_order: "newest" or "oldest"
        only_unread: Whether to request unread entries only
        stream_view: Default stream view name
    """

    num_entries: int = 20
    entries_order: str = "newest"
    only_unread: bool = True
    stream_view: str = "expanded"


@dataclass
class SyncConfig:
    """Configuration for read-state confirmation.

    Attributes:
        read_confirmer: "delayed" (local confirmation after a delay) or "remote"
        mark_as_read_delay_seconds: Delay used by the delayed confirmer
        retries: Retry attempts for the remote confirmer
    """

    read_confirmer: str = "delayed"
    mark_as_read_delay_seconds: float = 0.2
    retries: int = 2


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Name of the log file
    """

    level: str = "INFO"
    console: bool = True
    file: bool = False
    format: str = "jsonl"
    filename: str = "feed_sync.jsonl"


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    feedly: FeedlyConfig = field(default_factory=FeedlyConfig)
    bookmark: BookmarkConfig = field(default_factory=BookmarkConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    extract: ExtractConfig = field(default_factory=ExtractConfig)
    settings: SettingsConfig = field(default_factory=SettingsConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return _merge_config(AppConfig(), raw)


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig."""
    data = _asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update({k: v for k, v in value.items() if k in data[key]})
        else:
            data[key] = value
    return _fromdict(data)


def _asdict(cfg: AppConfig) -> dict[str, Any]:
    """Convert AppConfig to nested dictionary."""
    return {
        "feedly": {
            "base_url": cfg.feedly.base_url,
            "access_token": cfg.feedly.access_token,
            "user_id": cfg.feedly.user_id,
            "access_token_env": cfg.feedly.access_token_env,
            "user_id_env": cfg.feedly.user_id_env,
            "timeout_seconds": cfg.feedly.timeout_seconds,
            "trust_env": cfg.feedly.trust_env,
        },
        "bookmark": {
            "counts_url": cfg.bookmark.counts_url,
            "entry_url": cfg.bookmark.entry_url,
            "batch_size": cfg.bookmark.batch_size,
            "timeout_seconds": cfg.bookmark.timeout_seconds,
        },
        "fetch": {
            "timeout_seconds": cfg.fetch.timeout_seconds,
            "retries": cfg.fetch.retries,
            "trust_env": cfg.fetch.trust_env,
            "user_agent": cfg.fetch.user_agent,
        },
        "extract": {
            "rules_path": cfg.extract.rules_path,
            "fallback": list(cfg.extract.fallback),
        },
        "settings": {
            "num_entries": cfg.settings.num_entries,
            "entries_order": cfg.settings.entries_order,
            "only_unread": cfg.settings.only_unread,
            "stream_view": cfg.settings.stream_view,
        },
        "sync": {
            "read_confirmer": cfg.sync.read_confirmer,
            "mark_as_read_delay_seconds": cfg.sync.mark_as_read_delay_seconds,
            "retries": cfg.sync.retries,
        },
        "logging": {
            "level": cfg.logging.level,
            "console": cfg.logging.console,
            "file": cfg.logging.file,
            "format": cfg.logging.format,
            "filename": cfg.logging.filename,
        },
    }


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    return AppConfig(
        feedly=FeedlyConfig(**data["feedly"]),
        bookmark=BookmarkConfig(**data["bookmark"]),
        fetch=FetchConfig(**data["fetch"]),
        extract=ExtractConfig(**data["extract"]),
        settings=SettingsConfig(**data["settings"]),
        sync=SyncConfig(**data["sync"]),
        logging=LoggingConfig(**data["logging"]),
    )


def get_access_token(cfg: FeedlyConfig) -> str | None:
    """Get the Feedly access token from inline config or environment variable."""
    if cfg.access_token:
        return cfg.access_token
    return os.getenv(cfg.access_token_env)


def get_user_id(cfg: FeedlyConfig) -> str | None:
    """Get the Feedly user id from inline config or environment variable."""
    if cfg.user_id:
        return cfg.user_id
    return os.getenv(cfg.user_id_env)
