"""
Stream synchronization.

This package coordinates the remote clients, the stream cache
and full-content extraction.
"""

from .confirm import (
    DelayedReadConfirmer,
    ReadConfirmer,
    RemoteReadConfirmer,
    build_read_confirmer,
)
from .factory import build_orchestrator
from .orchestrator import SyncOrchestrator

__all__ = [
    "DelayedReadConfirmer",
    "ReadConfirmer",
    "RemoteReadConfirmer",
    "build_read_confirmer",
    "build_orchestrator",
    "SyncOrchestrator",
]
