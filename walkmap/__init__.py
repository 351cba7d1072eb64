"""
Walkmap - spatial tile cache and pathfinding for tile-based world maps.

Load walkable tiles per plane from a tile database, select the nearest tiles in a
viewport under a budget, measure walking distances with 8-directional A*, and
filter transport links (doors, teleports, ladders) to what the viewport shows.

No global state: sources, caches and overlays are constructed and injected by the
caller. ``Config`` only supplies defaults.
"""

__version__ = "0.1.0"

# Data access
from .sources import (
    TileDataSource,
    InMemoryTileSource,
    SqliteTileSource,
    PostgresTileSource,
    FeatureSource,
    InMemoryFeatureSource,
    JsonFeatureSource,
    SheetFeatureSource,
)
from .tile_cache import TileCache

# Spatial core
from .spatial import (
    Bounds,
    Coordinate,
    PlaneIndex,
    PlaneIndexBuilder,
    RegionEntry,
    RegionLayout,
    WorldExtent,
    TileSelection,
    build_plane_index,
    build_tile_set,
    find_path,
    find_path_on_plane,
    region_id,
    region_ids_in_bounds,
    select_tiles,
)

# Features and overlays
from .features import NodeCollection, classify_group, parse_csv
from .transport import FeatureCatalog, group_by_location, is_node_visible, visible_nodes
from .distance import DistanceMeasurement, DistanceTool
from .overlays import TransportOverlay, WalkableTilesOverlay

# Schemas
from .schemas import DestinationRect, TransportNode, Viewport

from .config import Config
from .errors import DataSourceUnavailable, WalkmapError

__all__ = [
    "__version__",
    # Data access
    "TileDataSource",
    "InMemoryTileSource",
    "SqliteTileSource",
    "PostgresTileSource",
    "FeatureSource",
    "InMemoryFeatureSource",
    "JsonFeatureSource",
    "SheetFeatureSource",
    "TileCache",
    # Spatial core
    "Bounds",
    "Coordinate",
    "PlaneIndex",
    "PlaneIndexBuilder",
    "RegionEntry",
    "RegionLayout",
    "WorldExtent",
    "TileSelection",
    "build_plane_index",
    "build_tile_set",
    "find_path",
    "find_path_on_plane",
    "region_id",
    "region_ids_in_bounds",
    "select_tiles",
    # Features and overlays
    "NodeCollection",
    "classify_group",
    "parse_csv",
    "FeatureCatalog",
    "group_by_location",
    "is_node_visible",
    "visible_nodes",
    "DistanceMeasurement",
    "DistanceTool",
    "TransportOverlay",
    "WalkableTilesOverlay",
    # Schemas
    "DestinationRect",
    "TransportNode",
    "Viewport",
    # Config and errors
    "Config",
    "DataSourceUnavailable",
    "WalkmapError",
]
