"""
Application state for dockhand.

- EngineContext: connection, resource collections and pulls of one engine
- Collection: last-known records of one resource kind
- Pull progress aggregation
"""

from dockhand.state.collection import Collection
from dockhand.state.context import EngineContext
from dockhand.state.pull_progress import (
    COMPLETION_MARKERS,
    LayerStatus,
    PullAggregate,
    PullProgressTracker,
    PullSnapshot,
    reduce_pull_event,
)

__all__ = [
    # Orchestration
    "EngineContext",
    "Collection",
    # Pull progress
    "PullAggregate",
    "PullSnapshot",
    "PullProgressTracker",
    "LayerStatus",
    "reduce_pull_event",
    "COMPLETION_MARKERS",
]
