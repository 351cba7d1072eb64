"""Spatial core: region index, viewport selection, pathfinding and bounds tests."""

from .bounds import (
    Bounds,
    point_in_bounds,
    rect_intersects_bounds,
    segment_intersects_bounds,
)
from .regions import (
    DEFAULT_LAYOUT,
    Coordinate,
    GridLine,
    LoadReport,
    PlaneIndex,
    PlaneIndexBuilder,
    RegionEntry,
    RegionLabel,
    RegionLayout,
    TileKey,
    WorldExtent,
    build_plane_index,
    region_grid_lines,
    region_id,
    region_labels,
)
from .selection import (
    EMPTY_SELECTION,
    TileSelection,
    build_tile_set,
    region_ids_in_bounds,
    select_tiles,
)
from .pathfinding import (
    DIRECTIONS,
    chebyshev_distance,
    find_path,
    find_path_on_plane,
)

__all__ = [
    "Bounds",
    "point_in_bounds",
    "rect_intersects_bounds",
    "segment_intersects_bounds",
    "DEFAULT_LAYOUT",
    "Coordinate",
    "GridLine",
    "LoadReport",
    "PlaneIndex",
    "PlaneIndexBuilder",
    "RegionEntry",
    "RegionLabel",
    "RegionLayout",
    "TileKey",
    "WorldExtent",
    "build_plane_index",
    "region_grid_lines",
    "region_id",
    "region_labels",
    "EMPTY_SELECTION",
    "TileSelection",
    "build_tile_set",
    "region_ids_in_bounds",
    "select_tiles",
    "DIRECTIONS",
    "chebyshev_distance",
    "find_path",
    "find_path_on_plane",
]
