"""
Feed Sync - cached, paginated Feedly streams with full-content extraction.

This package keeps a local, mutable view of remote feed streams: it caches
fetched pages per stream and fetch options, augments entries with bookmark
counts and comments, applies read/pin changes against the remote service,
and extracts full article content with per-site selector rules.

The CLI is available via the `feed-sync` command.

Example:
    $ feed-sync stream all --pages 2
"""

__all__ = [
    "__version__",
    "AppConfig",
    "load_config",
    "FetchOptions",
    "SignalBus",
    "StreamCache",
    "SyncOrchestrator",
    "build_orchestrator",
]
__version__ = "0.1.0"

from .config import AppConfig, load_config
from .core.cache import StreamCache
from .core.signals import SignalBus
from .core.types import FetchOptions
from .sync import SyncOrchestrator, build_orchestrator
