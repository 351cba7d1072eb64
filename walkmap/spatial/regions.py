"""Region partitioning and the per-plane walkable tile index.

The world is cut into fixed ``REGION_WIDTH x REGION_HEIGHT`` cells. Each cell has a
numeric region id (``region_x * stride + region_y``) and, per plane, a compact pair
of coordinate arrays listing its walkable tiles. Viewport scans and pathfinding
tile sets only ever touch the regions overlapping their query box.

Typical flow:
    builder = PlaneIndexBuilder(plane=0)
    for x, y, region_id in rows:
        builder.add_row(x, y, region_id)
    index = builder.build()
    entry = index.get(region_id)   # RegionEntry | None
"""

from __future__ import annotations

import math
from array import array
from collections import defaultdict
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, NamedTuple, Optional, Tuple

from ..config import Config


TileKey = Tuple[int, int]

# array typecodes: compact 16-bit storage when every coordinate fits, 64-bit otherwise
_SHORT_MIN, _SHORT_MAX = -32768, 32767


class Coordinate(NamedTuple):
    """A world tile: integer ``x``/``y`` on a vertical ``plane`` (floor level)."""

    x: int
    y: int
    plane: int = 0

    @property
    def key(self) -> TileKey:
        return (self.x, self.y)


@dataclass(frozen=True, slots=True)
class RegionLayout:
    """Region size and the stride used to pack region coordinates into an id."""

    width: int = Config.REGION_WIDTH
    height: int = Config.REGION_HEIGHT
    stride: int = Config.REGION_STRIDE

    def region_coords(self, x: float, y: float) -> Tuple[int, int]:
        # floor (not truncation) so negative coordinates land in negative regions
        return math.floor(x / self.width), math.floor(y / self.height)

    def region_id(self, x: float, y: float) -> int:
        region_x, region_y = self.region_coords(x, y)
        return self.pack(region_x, region_y)

    def pack(self, region_x: int, region_y: int) -> int:
        return region_x * self.stride + region_y

    def region_center(self, region_x: int, region_y: int) -> Tuple[float, float]:
        return (region_x + 0.5) * self.width, (region_y + 0.5) * self.height


DEFAULT_LAYOUT = RegionLayout()


def region_id(x: float, y: float, layout: RegionLayout = DEFAULT_LAYOUT) -> int:
    """Region id for a world coordinate under ``layout``."""
    return layout.region_id(x, y)


@dataclass(frozen=True, slots=True)
class WorldExtent:
    """Valid coordinate range; ``min`` inclusive, ``max`` exclusive."""

    min_x: int = Config.MIN_X
    max_x: int = Config.MAX_X
    min_y: int = Config.MIN_Y
    max_y: int = Config.MAX_Y

    def contains(self, x: int, y: int) -> bool:
        return self.min_x <= x < self.max_x and self.min_y <= y < self.max_y


@dataclass(frozen=True, slots=True)
class RegionEntry:
    """Walkable tiles of one region on one plane, as parallel x/y arrays."""

    region_id: int
    xs: array
    ys: array

    @classmethod
    def from_lists(cls, region_id: int, xs: List[int], ys: List[int]) -> "RegionEntry":
        if len(xs) != len(ys):
            raise ValueError(
                f"Region {region_id}: {len(xs)} x-coordinates but {len(ys)} y-coordinates"
            )
        typecode = "h"
        if xs and (
            min(min(xs), min(ys)) < _SHORT_MIN or max(max(xs), max(ys)) > _SHORT_MAX
        ):
            typecode = "q"
        return cls(region_id, array(typecode, xs), array(typecode, ys))

    def __len__(self) -> int:
        return len(self.xs)

    def __iter__(self) -> Iterator[TileKey]:
        return zip(self.xs, self.ys)


@dataclass(frozen=True)
class PlaneIndex:
    """Read-only mapping of region id -> RegionEntry for one plane."""

    plane: int
    regions: Mapping[int, RegionEntry]
    layout: RegionLayout = DEFAULT_LAYOUT

    @property
    def tile_count(self) -> int:
        return sum(len(entry) for entry in self.regions.values())

    @property
    def region_count(self) -> int:
        return len(self.regions)

    def get(self, region_id: int) -> Optional[RegionEntry]:
        return self.regions.get(region_id)

    def __contains__(self, coordinate: object) -> bool:
        """Membership test for ``(x, y)`` keys; scans a single region."""
        try:
            x, y = coordinate[0], coordinate[1]  # type: ignore[index]
        except (TypeError, IndexError):
            return False
        entry = self.regions.get(self.layout.region_id(x, y))
        if entry is None:
            return False
        return any(tx == x and ty == y for tx, ty in entry)

    def iter_tiles(self) -> Iterator[TileKey]:
        for entry in self.regions.values():
            yield from entry


@dataclass
class LoadReport:
    """Counters describing one plane build."""

    plane: int
    rows_read: int = 0
    tiles_indexed: int = 0
    skipped: int = 0
    region_mismatches: int = 0
    skipped_samples: List[Any] = field(default_factory=list)

    def summary(self) -> str:
        text = (
            f"plane {self.plane}: {self.tiles_indexed} tiles indexed "
            f"from {self.rows_read} rows"
        )
        if self.skipped:
            text += f", {self.skipped} malformed rows skipped"
        if self.region_mismatches:
            text += f", {self.region_mismatches} region ids corrected"
        return text


def coerce_coordinate(value: Any) -> Optional[int]:
    """Return ``value`` as an int tile coordinate, or None if it is not one.

    Accepts ints, integral finite floats and integer strings; rejects bools, NaN,
    infinities and fractional values.
    """

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return int(value)
        return None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


class PlaneIndexBuilder:
    """Accumulates ``(x, y, region_id)`` rows and freezes them into a PlaneIndex.

    Rows are grouped into growable per-region lists while streaming, then frozen into
    fixed arrays by ``build()``. Malformed rows (non-integer or non-finite values,
    coordinates outside the world extent) are counted and skipped; a single bad row
    never aborts the load.

    The stored region id is always derived from ``(x, y)`` so that viewport scans,
    which compute region ids from coordinates, find every tile. A source-supplied id
    that disagrees is counted in ``report.region_mismatches``.
    """

    _MAX_SAMPLES = 5

    def __init__(
        self,
        plane: int,
        *,
        layout: RegionLayout = DEFAULT_LAYOUT,
        extent: Optional[WorldExtent] = None,
    ) -> None:
        self.plane = plane
        self.layout = layout
        self.extent = extent or WorldExtent()
        self.report = LoadReport(plane=plane)
        self._xs: Dict[int, List[int]] = defaultdict(list)
        self._ys: Dict[int, List[int]] = defaultdict(list)

    def add_row(self, x: Any, y: Any, region_id: Any = None) -> bool:
        """Add one tile. Returns False (and counts a skip) for malformed rows."""
        self.report.rows_read += 1
        tx = coerce_coordinate(x)
        ty = coerce_coordinate(y)
        if tx is None or ty is None or not self.extent.contains(tx, ty):
            self._skip((x, y, region_id))
            return False

        derived = self.layout.region_id(tx, ty)
        if region_id is not None and coerce_coordinate(region_id) != derived:
            self.report.region_mismatches += 1

        self._xs[derived].append(tx)
        self._ys[derived].append(ty)
        self.report.tiles_indexed += 1
        return True

    def add_rows(self, rows: Iterable[Any]) -> None:
        """Add rows shaped ``(x, y)``, ``(x, y, region_id)`` or mappings with x/y keys."""
        for row in rows:
            if isinstance(row, Mapping):
                self.add_row(
                    row.get("x"), row.get("y"), row.get("region_id", row.get("RegionID"))
                )
                continue
            try:
                values = tuple(row)
            except TypeError:
                self.report.rows_read += 1
                self._skip(row)
                continue
            if len(values) == 2:
                self.add_row(values[0], values[1])
            elif len(values) == 3:
                self.add_row(*values)
            else:
                self.report.rows_read += 1
                self._skip(row)

    def build(self) -> PlaneIndex:
        regions = {
            rid: RegionEntry.from_lists(rid, xs, self._ys[rid]) for rid, xs in self._xs.items()
        }
        return PlaneIndex(
            plane=self.plane, regions=MappingProxyType(regions), layout=self.layout
        )

    def _skip(self, row: Any) -> None:
        self.report.skipped += 1
        if len(self.report.skipped_samples) < self._MAX_SAMPLES:
            self.report.skipped_samples.append(row)


def build_plane_index(
    plane: int,
    rows: Iterable[Any],
    *,
    layout: RegionLayout = DEFAULT_LAYOUT,
    extent: Optional[WorldExtent] = None,
) -> PlaneIndex:
    """Convenience wrapper: build a PlaneIndex from rows in one call."""
    builder = PlaneIndexBuilder(plane, layout=layout, extent=extent)
    builder.add_rows(rows)
    return builder.build()


# ---------------------------------------------------------------------------
# Region grid overlay helpers
# ---------------------------------------------------------------------------


class GridLine(NamedTuple):
    start: Tuple[int, int]
    end: Tuple[int, int]


class RegionLabel(NamedTuple):
    region_id: int
    center: Tuple[float, float]


def region_grid_lines(
    extent: Optional[WorldExtent] = None, layout: RegionLayout = DEFAULT_LAYOUT
) -> List[GridLine]:
    """Region boundary lines spanning the world extent (vertical lines first)."""
    extent = extent or WorldExtent()
    lines = [
        GridLine((x, extent.min_y), (x, extent.max_y))
        for x in range(extent.min_x, extent.max_x + 1, layout.width)
    ]
    lines.extend(
        GridLine((extent.min_x, y), (extent.max_x, y))
        for y in range(extent.min_y, extent.max_y + 1, layout.height)
    )
    return lines


def region_labels(
    extent: Optional[WorldExtent] = None, layout: RegionLayout = DEFAULT_LAYOUT
) -> Iterator[RegionLabel]:
    """Yield the id and centre point of every region inside the world extent."""
    extent = extent or WorldExtent()
    for x in range(extent.min_x, extent.max_x, layout.width):
        for y in range(extent.min_y, extent.max_y, layout.height):
            cx = x + layout.width / 2
            cy = y + layout.height / 2
            yield RegionLabel(layout.region_id(cx, cy), (cx, cy))


__all__ = [
    "TileKey",
    "Coordinate",
    "RegionLayout",
    "DEFAULT_LAYOUT",
    "region_id",
    "WorldExtent",
    "RegionEntry",
    "PlaneIndex",
    "LoadReport",
    "coerce_coordinate",
    "PlaneIndexBuilder",
    "build_plane_index",
    "GridLine",
    "RegionLabel",
    "region_grid_lines",
    "region_labels",
]
