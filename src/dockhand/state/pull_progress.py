"""
Image pull progress aggregation.

The engine reports a pull as a stream of per-layer records. This module
folds those records into a PullAggregate, an immutable value, with the pure
reducer ``reduce_pull_event``. Every event produces a new aggregate; nothing
is mutated in place, so snapshots handed to observers stay valid.

Overall progress is::

    (completed layers + sum of in-flight fractions) / layers seen

and is 0.0 until the first record carrying a layer id arrives.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from dockhand.models.enums import LayerState
from dockhand.models.progress import PullProgressEvent

# Status substrings that mark a layer as done.
COMPLETION_MARKERS = ("Download complete", "Pull complete", "Already exists")


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _is_completion(status: str) -> bool:
    return any(marker in status for marker in COMPLETION_MARKERS)


# =============================================================================
# Aggregate
# =============================================================================


@dataclass(frozen=True)
class PullAggregate:
    """
    Folded state of one image pull.

    Attributes:
        all_layers: Every layer id seen so far.
        completed_layers: Layer ids whose status reported completion.
        layer_progress: Fraction in [0, 1] for layers still in flight.
        layer_status: Latest status text per layer.
    """

    all_layers: frozenset[str] = frozenset()
    completed_layers: frozenset[str] = frozenset()
    layer_progress: Mapping[str, float] = field(
        default_factory=lambda: MappingProxyType({})
    )
    layer_status: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def overall_progress(self) -> float:
        if not self.all_layers:
            return 0.0
        done = len(self.completed_layers) + sum(self.layer_progress.values())
        return _clamp(done / len(self.all_layers))

    def snapshot(self) -> "PullSnapshot":
        layers = [
            LayerStatus(
                id=layer_id,
                status=self.layer_status.get(layer_id, ""),
                progress=(
                    1.0
                    if layer_id in self.completed_layers
                    else self.layer_progress.get(layer_id, 0.0)
                ),
                is_completed=layer_id in self.completed_layers,
            )
            for layer_id in self.all_layers
        ]
        layers.sort(key=lambda layer: (not layer.is_completed, -layer.progress, layer.id))
        return PullSnapshot(
            overall_progress=self.overall_progress,
            layers=tuple(layers),
            completed_count=len(self.completed_layers),
            total_count=len(self.all_layers),
        )


def reduce_pull_event(aggregate: PullAggregate, event: PullProgressEvent) -> PullAggregate:
    """
    Fold one pull record into an aggregate and return the new aggregate.

    Records without a layer id (``Digest: ...``, the final ``Status: ...``
    line) return the aggregate unchanged. ``Pulling from library/ubuntu``
    carries the tag as its id, so the tag is counted as a layer; no
    completion record ever names it, and it stays in flight at 0.
    """
    layer_id = event.id
    if not layer_id:
        return aggregate

    all_layers = aggregate.all_layers | {layer_id}
    completed = aggregate.completed_layers
    progress = dict(aggregate.layer_progress)
    status = dict(aggregate.layer_status)

    if _is_completion(event.status):
        completed = completed | {layer_id}
        progress.pop(layer_id, None)
    elif layer_id not in completed:
        fraction = event.fraction
        if fraction is not None:
            progress[layer_id] = _clamp(fraction)

    status[layer_id] = event.status

    return PullAggregate(
        all_layers=all_layers,
        completed_layers=completed,
        layer_progress=MappingProxyType(progress),
        layer_status=MappingProxyType(status),
    )


# =============================================================================
# Snapshot
# =============================================================================


@dataclass(frozen=True)
class LayerStatus:
    """Display row for one layer."""

    id: str
    status: str
    progress: float
    is_completed: bool

    @property
    def state(self) -> LayerState:
        if self.is_completed:
            if "Already exists" in self.status:
                return LayerState.EXISTING
            return LayerState.COMPLETE
        if "Downloading" in self.status:
            return LayerState.DOWNLOADING
        if "Extracting" in self.status:
            return LayerState.EXTRACTING
        return LayerState.WAITING

    @property
    def short_id(self) -> str:
        return self.id[:12]


@dataclass(frozen=True)
class PullSnapshot:
    """Point-in-time view of a pull, sorted completed-first."""

    overall_progress: float
    layers: tuple[LayerStatus, ...]
    completed_count: int
    total_count: int

    @property
    def is_finished(self) -> bool:
        return self.total_count > 0 and self.completed_count == self.total_count


# =============================================================================
# Tracker
# =============================================================================


class PullProgressTracker:
    """
    Holds the current aggregate of one pull.

    Usage:
        tracker = PullProgressTracker("ubuntu:24.04")
        async for event in client.pull_image("ubuntu:24.04"):
            tracker.apply(event)
            render(tracker.snapshot())
    """

    def __init__(self, image: str):
        self.image = image
        self.aggregate = PullAggregate()
        self.last_status = ""

    def apply(self, event: PullProgressEvent) -> PullAggregate:
        if event.status:
            self.last_status = event.status
        self.aggregate = reduce_pull_event(self.aggregate, event)
        return self.aggregate

    def snapshot(self) -> PullSnapshot:
        return self.aggregate.snapshot()
