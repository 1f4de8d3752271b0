"""
Core domain models and cache.

This package contains data types, normalization and the stream cache,
independent of any remote service or transport.
"""

from .types import (
    Entry,
    ExtractionRule,
    FetchOptions,
    FullContent,
    PinState,
    Stream,
    StreamState,
    Token,
)
from .cache import StreamCache
from .normalizer import normalize_entry, strip_tags
from .signals import Signal, SignalBus
from .stream_id import parse_stream_id, to_remote_stream_id

__all__ = [
    "Entry",
    "ExtractionRule",
    "FetchOptions",
    "FullContent",
    "PinState",
    "Stream",
    "StreamState",
    "Token",
    "StreamCache",
    "normalize_entry",
    "strip_tags",
    "Signal",
    "SignalBus",
    "parse_stream_id",
    "to_remote_stream_id",
]
