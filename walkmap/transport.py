"""Transport feature catalog and viewport visibility filtering.

The catalog loads a feature feed once per session and serves nodes by plane. The
visibility helpers decide, without projecting anything to screen space, whether a
node should be drawn for the current viewport box.
"""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .errors import DataSourceUnavailable
from .features import NodeCollection
from .logging_utils import log_error, log_success
from .schemas import TransportNode
from .sources import FeatureSource
from .spatial.bounds import (
    Bounds,
    point_in_bounds,
    rect_intersects_bounds,
    segment_intersects_bounds,
)


class FeatureCatalog:
    """Session cache of one feature feed, grouped by plane.

    Mirrors TileCache's contract at feed granularity: one in-flight load at a time,
    and a failed load is recorded globally and re-raised until ``reset()``.
    """

    def __init__(self, source: FeatureSource) -> None:
        self.source = source
        self._collection: Optional[NodeCollection] = None
        self._pending: Optional["asyncio.Task[NodeCollection]"] = None
        self._failure: Optional[DataSourceUnavailable] = None

    @property
    def loaded(self) -> bool:
        return self._collection is not None

    async def ensure_nodes(self) -> Dict[int, List[TransportNode]]:
        """Return nodes by plane, loading the feed on first use.

        Raises:
            DataSourceUnavailable: If the feed failed to load, now or earlier
        """

        if self._collection is not None:
            return self._collection.nodes_by_plane
        if self._failure is not None:
            raise self._failure.replay() from self._failure

        if self._pending is None:
            self._pending = asyncio.ensure_future(self._load())
        collection = await asyncio.shield(self._pending)
        return collection.nodes_by_plane

    async def nodes_on_plane(self, plane: int) -> List[TransportNode]:
        nodes_by_plane = await self.ensure_nodes()
        return nodes_by_plane.get(plane, [])

    def detail(self, kind: str, node_id) -> Optional[dict]:
        """Per-kind detail record for a node id (after a successful load)."""
        if self._collection is None:
            return None
        return self._collection.details.get(kind, {}).get(node_id)

    def reset(self) -> None:
        """Drop the cached feed and any recorded failure."""
        self._collection = None
        self._failure = None

    async def _load(self) -> NodeCollection:
        try:
            collection = await self.source.load()
        except DataSourceUnavailable as exc:
            self._failure = exc
            log_error(f"[Features] Failed to load transport nodes: {exc}")
            raise
        finally:
            self._pending = None
        self._collection = collection
        summary = ", ".join(
            f"{kind}: {len(details)}" for kind, details in sorted(collection.details.items())
        )
        log_success(
            f"[Features] Loaded {collection.count()} nodes from {self.source.name}"
            + (f" ({summary})" if summary else "")
        )
        return collection


# ---------------------------------------------------------------------------
# Visibility
# ---------------------------------------------------------------------------


def is_node_visible(node: TransportNode, bounds: Bounds) -> bool:
    """Decide whether ``node`` touches the viewport ``bounds``.

    Shadow nodes are only drawn at their destination: visible when the destination
    point (on the node's plane) is inside the box or the destination rectangle
    overlaps it.

    Regular nodes are visible when any of these hold:
    - the source point is inside the box
    - the destination point is on the same plane and inside the box
    - the source-destination line crosses the box
    - the destination rectangle is on the same plane and overlaps the box
    """

    destination = node.destination_point()
    rect = node.dest_rect

    if node.shadow:
        if destination is not None and destination[2] == node.plane:
            if point_in_bounds(destination[0], destination[1], bounds):
                return True
        if rect is not None and rect.plane == node.plane:
            return rect_intersects_bounds(rect, bounds)
        return False

    source = node.source_point()
    if source is not None and point_in_bounds(source[0], source[1], bounds):
        return True
    if destination is not None and destination[2] == node.plane:
        if point_in_bounds(destination[0], destination[1], bounds):
            return True
        if source is not None and segment_intersects_bounds(
            source[0], source[1], destination[0], destination[1], bounds
        ):
            return True
    if rect is not None and rect.plane == node.plane:
        return rect_intersects_bounds(rect, bounds)
    return False


def anchor_point(node: TransportNode) -> Optional[Tuple[float, float]]:
    """Where a node's marker sits: its destination for shadows, its source otherwise."""
    point = node.destination_point() if node.shadow else node.source_point()
    if point is None:
        return None
    return point[0], point[1]


def visible_nodes(
    nodes: Iterable[TransportNode],
    bounds: Bounds,
    *,
    enabled: Optional[Callable[[TransportNode], bool]] = None,
) -> List[TransportNode]:
    """Filter ``nodes`` to those enabled and visible in ``bounds``."""
    result = []
    for node in nodes:
        if enabled is not None and not enabled(node):
            continue
        if is_node_visible(node, bounds):
            result.append(node)
    return result


@dataclass
class LocationGroup:
    """Nodes sharing one marker location."""

    x: float
    y: float
    role: str  # "source" or "destination"
    nodes: List[TransportNode] = field(default_factory=list)

    @property
    def key(self) -> Tuple[int, int]:
        return (math.floor(self.x), math.floor(self.y))

    @property
    def categories(self) -> List[str]:
        seen: Dict[str, None] = {}
        for node in self.nodes:
            seen.setdefault(node.category or node.kind, None)
        return list(seen)


def group_by_location(
    nodes: Iterable[TransportNode],
    bounds: Bounds,
    *,
    enabled: Optional[Callable[[TransportNode], bool]] = None,
) -> Tuple[List[LocationGroup], List[LocationGroup]]:
    """Group nodes whose marker lies inside ``bounds`` by floored location.

    Returns ``(source_groups, destination_groups)``: regular nodes grouped at their
    source, shadow nodes at their destination. Nodes without a usable anchor are
    skipped.
    """

    sources: Dict[Tuple[int, int], LocationGroup] = {}
    destinations: Dict[Tuple[int, int], LocationGroup] = {}
    for node in nodes:
        if enabled is not None and not enabled(node):
            continue
        anchor = anchor_point(node)
        if anchor is None or not point_in_bounds(anchor[0], anchor[1], bounds):
            continue
        target, role = (destinations, "destination") if node.shadow else (sources, "source")
        key = (math.floor(anchor[0]), math.floor(anchor[1]))
        group = target.get(key)
        if group is None:
            group = target[key] = LocationGroup(anchor[0], anchor[1], role)
        group.nodes.append(node)
    return list(sources.values()), list(destinations.values())


__all__ = [
    "FeatureCatalog",
    "is_node_visible",
    "anchor_point",
    "visible_nodes",
    "LocationGroup",
    "group_by_location",
]
