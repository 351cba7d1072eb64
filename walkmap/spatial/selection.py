"""Viewport tile selection under a tile budget.

Given a PlaneIndex and a viewport box, return the walkable tiles inside the box
ordered nearest-first from a reference point and truncated to the budget, along
with the true in-bounds total so the UI can show "displayed / total".
"""

from __future__ import annotations

from dataclasses import dataclass
from operator import itemgetter
from typing import List, Optional, Set, Tuple

from ..config import Config
from ..logging_utils import log_debug
from .bounds import Bounds
from .regions import DEFAULT_LAYOUT, PlaneIndex, RegionLayout, TileKey


@dataclass(frozen=True)
class TileSelection:
    """Result of one viewport scan."""

    tiles: Tuple[TileKey, ...]
    total: int
    limit: int

    @property
    def count(self) -> int:
        return len(self.tiles)

    @property
    def truncated(self) -> bool:
        return self.count < self.total

    def status_text(self) -> str:
        if self.truncated:
            return f"{self.count:,} / {self.total:,} tiles"
        return f"{self.count:,} tiles"


EMPTY_SELECTION = TileSelection(tiles=(), total=0, limit=0)


def region_ids_in_bounds(
    bounds: Bounds,
    *,
    center: Optional[Tuple[float, float]] = None,
    layout: RegionLayout = DEFAULT_LAYOUT,
) -> List[int]:
    """Return ids of every region overlapping ``bounds``.

    With ``center`` the ids are ordered by squared distance from the centre to each
    region's geometric centre (ascending); ties keep enumeration order (x-major).
    """

    if bounds.is_empty:
        return []

    start_x, start_y = layout.region_coords(bounds.min_x, bounds.min_y)
    end_x, end_y = layout.region_coords(bounds.max_x, bounds.max_y)

    if center is None:
        return [
            layout.pack(rx, ry)
            for rx in range(start_x, end_x + 1)
            for ry in range(start_y, end_y + 1)
        ]

    cx, cy = center
    ranked: List[Tuple[float, int]] = []
    for rx in range(start_x, end_x + 1):
        for ry in range(start_y, end_y + 1):
            rcx, rcy = layout.region_center(rx, ry)
            dx = rcx - cx
            dy = rcy - cy
            ranked.append((dx * dx + dy * dy, layout.pack(rx, ry)))
    ranked.sort(key=itemgetter(0))
    return [rid for _, rid in ranked]


def select_tiles(
    plane_index: PlaneIndex,
    bounds: Bounds,
    center: Optional[Tuple[float, float]] = None,
    limit: int = Config.DEFAULT_TILE_LIMIT,
) -> TileSelection:
    """Select walkable tiles inside ``bounds``, nearest to ``center`` first.

    Regions are visited nearest-first, every in-bounds tile is collected with its
    squared distance to ``center`` (default: the box centre), the collection is
    stably sorted by that distance and the first ``min(limit, total)`` tiles kept.
    Identical inputs always produce identical output.

    Raises:
        ValueError: If ``limit`` is negative.
    """

    if limit < 0:
        raise ValueError(f"Tile limit cannot be negative (got {limit})")

    if center is None:
        center = bounds.center
    cx, cy = center

    min_x, max_x, min_y, max_y = bounds.min_x, bounds.max_x, bounds.min_y, bounds.max_y
    collected: List[Tuple[float, int, int]] = []

    for rid in region_ids_in_bounds(bounds, center=center, layout=plane_index.layout):
        entry = plane_index.get(rid)
        if entry is None:
            continue
        for x, y in zip(entry.xs, entry.ys):
            if min_x <= x <= max_x and min_y <= y <= max_y:
                dx = x - cx
                dy = y - cy
                collected.append((dx * dx + dy * dy, x, y))

    collected.sort(key=itemgetter(0))
    kept = tuple((x, y) for _, x, y in collected[:limit])
    log_debug(
        f"[Selection] plane {plane_index.plane}: {len(kept)}/{len(collected)} tiles "
        f"in x[{min_x}, {max_x}] y[{min_y}, {max_y}]"
    )
    return TileSelection(tiles=kept, total=len(collected), limit=limit)


def build_tile_set(plane_index: PlaneIndex, bounds: Bounds) -> Set[TileKey]:
    """Collect the walkable ``(x, y)`` keys inside ``bounds`` into a set.

    Only regions overlapping the box are scanned, so the cost is bounded by the box
    area rather than the plane size. Used to build the restricted walkable set for a
    single path query.
    """

    tile_set: Set[TileKey] = set()
    min_x, max_x, min_y, max_y = bounds.min_x, bounds.max_x, bounds.min_y, bounds.max_y
    for rid in region_ids_in_bounds(bounds, layout=plane_index.layout):
        entry = plane_index.get(rid)
        if entry is None:
            continue
        for x, y in zip(entry.xs, entry.ys):
            if min_x <= x <= max_x and min_y <= y <= max_y:
                tile_set.add((x, y))
    log_debug(
        f"[Selection] tile set for plane {plane_index.plane}: {len(tile_set)} tiles "
        f"in x[{min_x}, {max_x}] y[{min_y}, {max_y}]"
    )
    return tile_set


__all__ = [
    "TileSelection",
    "EMPTY_SELECTION",
    "region_ids_in_bounds",
    "select_tiles",
    "build_tile_set",
]
