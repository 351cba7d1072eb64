"""
Session cache of per-plane walkable tile indexes.

TileCache is the single owner of PlaneIndex data. The first ``ensure_plane(p)``
call streams plane ``p`` from the tile source and freezes it into a PlaneIndex;
every later call returns that object without I/O. Source data is append-only for
a session, so built planes are never evicted.

Concurrency:
- Loads are the only suspension point. Concurrent callers for the same plane share
  one in-flight task (at most one load per plane).
- Waiters are shielded: cancelling one caller does not cancel the shared load.
- Built PlaneIndex objects are immutable, so any number of selections and path
  queries may read them at once without locking.

Failures:
- ``DataSourceUnavailable`` from the source is remembered per plane. Later calls
  for that plane re-raise it without contacting the source until ``reset()``.
- Any other exception is a bug and propagates uncached.

Usage:
    cache = TileCache(SqliteTileSource("walkable_tiles.db"))
    index = await cache.ensure_plane(0)
    selection = select_tiles(index, bounds, center, limit=100_000)
"""

from __future__ import annotations

import asyncio
from typing import Dict, Optional

from .errors import DataSourceUnavailable
from .logging_utils import log_error, log_success
from .sources import TileDataSource
from .spatial.regions import (
    DEFAULT_LAYOUT,
    LoadReport,
    PlaneIndex,
    PlaneIndexBuilder,
    RegionLayout,
    WorldExtent,
)


class TileCache:
    """Lazily built, never-evicted PlaneIndex per plane."""

    def __init__(
        self,
        source: TileDataSource,
        *,
        layout: RegionLayout = DEFAULT_LAYOUT,
        extent: Optional[WorldExtent] = None,
    ) -> None:
        self.source = source
        self.layout = layout
        self.extent = extent or WorldExtent()
        self._planes: Dict[int, PlaneIndex] = {}
        self._pending: Dict[int, "asyncio.Task[PlaneIndex]"] = {}
        self._failures: Dict[int, DataSourceUnavailable] = {}
        self.reports: Dict[int, LoadReport] = {}
        # None until the first load settles; then whether the last load succeeded
        self.available: Optional[bool] = None

    async def ensure_plane(self, plane: int) -> PlaneIndex:
        """Return the PlaneIndex for ``plane``, loading it on first use.

        Raises:
            DataSourceUnavailable: If the source failed for this plane, now or earlier
        """

        index = self._planes.get(plane)
        if index is not None:
            return index

        failure = self._failures.get(plane)
        if failure is not None:
            raise failure.replay() from failure

        task = self._pending.get(plane)
        if task is None:
            task = asyncio.ensure_future(self._load(plane))
            self._pending[plane] = task
        return await asyncio.shield(task)

    def get_plane(self, plane: int) -> Optional[PlaneIndex]:
        """Return an already-built PlaneIndex, or None (never triggers a load)."""
        return self._planes.get(plane)

    def is_loading(self, plane: int) -> bool:
        return plane in self._pending

    def has_failed(self, plane: int) -> bool:
        return plane in self._failures

    @property
    def planes(self) -> Dict[int, PlaneIndex]:
        return dict(self._planes)

    def reset(self, plane: Optional[int] = None) -> None:
        """Forget recorded failures so the next call retries the source.

        Built planes are kept; they stay valid for the whole session.
        """
        if plane is None:
            self._failures.clear()
            self.available = None
        else:
            self._failures.pop(plane, None)

    async def _load(self, plane: int) -> PlaneIndex:
        try:
            try:
                rows = await self.source.fetch_plane(plane)
            except DataSourceUnavailable as exc:
                self._failures[plane] = exc
                self.available = False
                log_error(f"[TileCache] Failed to load walkable tiles: {exc}")
                raise

            builder = PlaneIndexBuilder(plane, layout=self.layout, extent=self.extent)
            builder.add_rows(rows)
            index = builder.build()

            self._planes[plane] = index
            self.reports[plane] = builder.report
            self.available = True
            if builder.report.skipped:
                log_error(
                    f"[TileCache] Skipped {builder.report.skipped} malformed rows on plane {plane} "
                    f"(e.g. {builder.report.skipped_samples[:3]})"
                )
            log_success(f"[TileCache] {builder.report.summary()} in {index.region_count} regions")
            return index
        finally:
            self._pending.pop(plane, None)


__all__ = ["TileCache"]
