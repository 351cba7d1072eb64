"""
Overlay controllers: turn viewport changes into render-ready results and status text.

These sit between the map widget (which supplies a Viewport on every move) and the
spatial core. They hold the per-overlay UI state the core must not own: enabled
flags, the tile budget, the last status string, and the most recent result.

Status strings pushed to ``on_status_change``:
- Walkable tiles: "Loading...", "<n> tiles", "<n> / <m> tiles",
  "Zoom in to see tiles", "Database unavailable", "" (disabled)
- Transport nodes: "<n> visible", "<n> nodes at <m> locations", "Failed to load"
"""

from __future__ import annotations

import asyncio
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .config import Config
from .errors import DataSourceUnavailable
from .logging_utils import log_debug, log_error
from .schemas import TransportNode, Viewport
from .spatial.selection import EMPTY_SELECTION, TileSelection, select_tiles
from .tile_cache import TileCache
from .transport import FeatureCatalog, LocationGroup, group_by_location, visible_nodes


StatusCallback = Callable[[str], None]

STATUS_LOADING = "Loading..."
STATUS_ZOOM_IN = "Zoom in to see tiles"
STATUS_DB_UNAVAILABLE = "Database unavailable"
STATUS_FAILED = "Failed to load"


class _StatusMixin:
    on_status_change: Optional[StatusCallback] = None
    status: str = ""

    def _set_status(self, message: str) -> None:
        self.status = message or ""
        if self.on_status_change is not None:
            self.on_status_change(self.status)


class WalkableTilesOverlay(_StatusMixin):
    """Walkable tile layer driven by viewport refreshes.

    Refresh flow:
    1. Disabled -> clear tiles and status
    2. Zoomed out past ``min_zoom`` -> clear tiles, ask the user to zoom in
    3. Otherwise report "Loading...", ensure the plane index, select the nearest
       tiles under the budget and report "<n> tiles" or "<n> / <m> tiles"
    4. A source failure reports "Database unavailable" and marks the database
       unavailable; re-enabling then short-circuits with the same status

    ``request_refresh`` debounces bursts of move events: each call cancels the
    previously scheduled refresh, so only the last viewport of a pan is scanned.
    """

    def __init__(
        self,
        cache: TileCache,
        *,
        tile_limit: int = Config.DEFAULT_TILE_LIMIT,
        min_tile_limit: int = Config.MIN_TILE_LIMIT,
        max_tile_limit: int = Config.MAX_TILE_LIMIT,
        min_zoom: float = Config.MIN_ZOOM_FOR_TILES,
        debounce_seconds: float = 0.05,
        on_status_change: Optional[StatusCallback] = None,
    ) -> None:
        self.cache = cache
        self.min_tile_limit = min_tile_limit
        self.max_tile_limit = max_tile_limit
        self.tile_limit = self._clamp(tile_limit)
        self.min_zoom = min_zoom
        self.debounce_seconds = debounce_seconds
        self.on_status_change = on_status_change
        self.status = ""
        self.enabled = False
        self.selection: TileSelection = EMPTY_SELECTION
        self.viewport: Optional[Viewport] = None
        # None until a load settles; False once the tile database has failed
        self.db_available: Optional[bool] = None
        self._scheduled: Optional["asyncio.Task[Optional[TileSelection]]"] = None
        # Bumped by every refresh and by disabling; a load that returns under an
        # older generation is discarded
        self._generation = 0

    def _clamp(self, limit: int) -> int:
        return max(self.min_tile_limit, min(self.max_tile_limit, int(limit)))

    async def set_enabled(
        self, enabled: bool, viewport: Optional[Viewport] = None
    ) -> Optional[TileSelection]:
        self.enabled = enabled
        if viewport is not None:
            self.viewport = viewport
        if not enabled:
            self._cancel_scheduled()
            self._generation += 1
            self.selection = EMPTY_SELECTION
            self._set_status("")
            return None
        if self.db_available is False:
            self._set_status(STATUS_DB_UNAVAILABLE)
            return None
        return await self.refresh()

    async def toggle(self, viewport: Optional[Viewport] = None) -> Optional[TileSelection]:
        return await self.set_enabled(not self.enabled, viewport)

    async def set_tile_limit(self, limit: int) -> Optional[TileSelection]:
        """Clamp and apply a new budget; re-scan when enabled and the budget changed."""
        new_limit = self._clamp(limit)
        if new_limit == self.tile_limit:
            return None
        self.tile_limit = new_limit
        if self.enabled:
            return await self.refresh()
        return None

    async def refresh(self, viewport: Optional[Viewport] = None) -> Optional[TileSelection]:
        self._generation += 1
        generation = self._generation
        if viewport is not None:
            self.viewport = viewport

        if not self.enabled:
            self.selection = EMPTY_SELECTION
            self._set_status("")
            return None

        view = self.viewport
        if view is None:
            return None

        if view.zoom < self.min_zoom:
            self.selection = EMPTY_SELECTION
            self._set_status(STATUS_ZOOM_IN)
            return None

        self._set_status(STATUS_LOADING)
        try:
            plane_index = await self.cache.ensure_plane(view.plane)
        except DataSourceUnavailable as exc:
            log_error(f"[Walkable] {exc}")
            self.db_available = False
            if generation != self._generation:
                return None
            self.selection = EMPTY_SELECTION
            self._set_status(STATUS_DB_UNAVAILABLE)
            return None

        if generation != self._generation:
            log_debug(f"[Walkable] dropped stale load for plane {view.plane}")
            return None

        self.db_available = True
        selection = select_tiles(
            plane_index, view.bounds(), view.reference_point(), self.tile_limit
        )
        self.selection = selection
        self._set_status(selection.status_text())
        return selection

    def request_refresh(self, viewport: Viewport) -> "asyncio.Task[Optional[TileSelection]]":
        """Schedule a debounced refresh for ``viewport`` and return its task."""
        self.viewport = viewport
        self._cancel_scheduled()
        self._scheduled = asyncio.ensure_future(self._debounced())
        return self._scheduled

    async def _debounced(self) -> Optional[TileSelection]:
        await asyncio.sleep(self.debounce_seconds)
        self._scheduled = None
        return await self.refresh()

    def _cancel_scheduled(self) -> None:
        if self._scheduled is not None and not self._scheduled.done():
            log_debug("[Walkable] superseded pending refresh")
            self._scheduled.cancel()
        self._scheduled = None


class TransportOverlay(_StatusMixin):
    """Transport link layer with per-key toggles.

    ``key_field`` picks which node attribute the toggles apply to: ``"kind"`` for
    the sheet feed (door, item, npc...) or ``"category"`` for the grouped feed
    (agility, portals...). In grouped mode nodes sharing a tile are merged into one
    marker and the status counts locations.
    """

    def __init__(
        self,
        catalog: FeatureCatalog,
        keys: Iterable[str],
        *,
        key_field: str = "kind",
        group_locations: bool = False,
        on_status_change: Optional[StatusCallback] = None,
    ) -> None:
        if key_field not in ("kind", "category"):
            raise ValueError(f"key_field must be 'kind' or 'category', got {key_field!r}")
        self.catalog = catalog
        self.keys: List[str] = list(keys)
        self.key_field = key_field
        self.group_locations = group_locations
        self.on_status_change = on_status_change
        self.status = ""
        self.visibility: Dict[str, bool] = {key: False for key in self.keys}
        self.viewport: Optional[Viewport] = None
        self.nodes: List[TransportNode] = []
        self.groups: Tuple[List[LocationGroup], List[LocationGroup]] = ([], [])

    @property
    def enabled(self) -> bool:
        return any(self.visibility.values())

    def is_key_enabled(self, key: str) -> bool:
        return self.visibility.get(key, False)

    async def set_key_enabled(
        self, key: str, enabled: bool, viewport: Optional[Viewport] = None
    ) -> None:
        if key not in self.visibility:
            raise KeyError(f"Unknown transport {self.key_field} '{key}'")
        if viewport is not None:
            self.viewport = viewport
        if self.visibility[key] == enabled:
            return
        self.visibility[key] = enabled
        if self.enabled:
            await self.refresh()
        else:
            self.nodes = []
            self.groups = ([], [])
            self._set_status("")

    async def toggle_key(self, key: str, viewport: Optional[Viewport] = None) -> None:
        await self.set_key_enabled(key, not self.is_key_enabled(key), viewport)

    def _is_enabled(self, node: TransportNode) -> bool:
        return self.visibility.get(getattr(node, self.key_field) or "", False)

    async def refresh(self, viewport: Optional[Viewport] = None) -> List[TransportNode]:
        if viewport is not None:
            self.viewport = viewport
        view = self.viewport
        if not self.enabled or view is None:
            return []

        try:
            nodes = await self.catalog.nodes_on_plane(view.plane)
        except DataSourceUnavailable as exc:
            log_error(f"[Transport] {exc}")
            self.nodes = []
            self.groups = ([], [])
            self._set_status(STATUS_FAILED)
            return []

        bounds = view.bounds()
        if self.group_locations:
            sources, destinations = group_by_location(nodes, bounds, enabled=self._is_enabled)
            self.groups = (sources, destinations)
            self.nodes = [node for group in sources + destinations for node in group.nodes]
            self._set_status(
                f"{len(self.nodes)} nodes at {len(sources) + len(destinations)} locations"
            )
        else:
            self.nodes = visible_nodes(nodes, bounds, enabled=self._is_enabled)
            self._set_status(f"{len(self.nodes)} visible")
        return self.nodes


__all__ = [
    "StatusCallback",
    "STATUS_LOADING",
    "STATUS_ZOOM_IN",
    "STATUS_DB_UNAVAILABLE",
    "STATUS_FAILED",
    "WalkableTilesOverlay",
    "TransportOverlay",
]
