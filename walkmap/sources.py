"""
Data source interfaces for walkable tiles and transport features.

Walkmap never owns the underlying data. Walkable tiles come from a tile database
queried one plane at a time; transport links come from flat feature feeds. This
module defines the two abstract source interfaces and the concrete backends:

Tile sources (``TileDataSource``):
1. InMemoryTileSource - dict-backed, for tests and small demos
2. SqliteTileSource - the shipped ``walkable_tiles.db`` file (table ``tiles``)
3. PostgresTileSource - same table in Postgres (asyncpg, optional dependency)

Feature sources (``FeatureSource``):
1. InMemoryFeatureSource - pre-built nodes
2. JsonFeatureSource - grouped JSON export on disk
3. SheetFeatureSource - per-kind CSV sheets over HTTP

Failure contract:
- An unreachable or unreadable source raises ``DataSourceUnavailable``.
- A reachable source with no rows for a plane returns an empty list; that is a
  valid answer, not a failure.
- Blocking I/O (sqlite, files, HTTP) runs in a worker thread via
  ``asyncio.to_thread`` so the event loop keeps serving other refreshes.

Usage pattern:
    source = SqliteTileSource("walkable_tiles.db")
    await source.initialize()
    rows = await source.fetch_plane(0)
    await source.close()
"""

from __future__ import annotations

import asyncio
import json
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple
from urllib import error, parse, request

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .config import Config
from .errors import DataSourceUnavailable
from .features import SHEETS, NodeCollection, nodes_from_grouped, nodes_from_sheets, parse_csv
from .logging_utils import log_error, log_io
from .schemas import TransportNode

try:  # Optional dependency (only needed for PostgresTileSource)
    import asyncpg
except ImportError:  # pragma: no cover - asyncpg may not be installed for sqlite/memory usage
    asyncpg = None


TileSourceRow = Tuple[Any, Any, Any]


# ============================================================================
# Tile sources
# ============================================================================


class TileDataSource(ABC):
    """Abstract source of walkable tiles, queried per plane.

    Implementations return raw ``(x, y, region_id)`` rows; validation and grouping
    happen in the TileCache so every backend gets the same skip-malformed-rows
    behaviour.

    Method categories:
    1. Lifecycle: initialize(), close()
    2. Queries: fetch_plane()
    """

    name: str = "tiles"

    async def initialize(self) -> None:
        """Open connections or handles. Default: nothing to do."""

    async def close(self) -> None:
        """Release connections or handles. Default: nothing to do."""

    @abstractmethod
    async def fetch_plane(self, plane: int) -> Sequence[TileSourceRow]:
        """
        Return every walkable tile on ``plane``.

        Args:
            plane: Plane (floor level) to query

        Returns:
            Rows of ``(x, y, region_id)``; empty when the plane has no tiles

        Raises:
            DataSourceUnavailable: If the source cannot be reached or read
        """


class InMemoryTileSource(TileDataSource):
    """Dict-backed tile source.

    ``tiles`` maps plane -> iterable of ``(x, y)`` or ``(x, y, region_id)`` rows.
    Planes listed in ``unavailable_planes`` raise DataSourceUnavailable, which lets
    tests exercise the failure path. Every call is recorded in ``requests``.
    """

    name = "memory"

    def __init__(
        self,
        tiles: Optional[Mapping[int, Iterable[Sequence[Any]]]] = None,
        *,
        unavailable_planes: Iterable[int] = (),
        available: bool = True,
    ) -> None:
        self.tiles: Dict[int, List[Sequence[Any]]] = {
            plane: list(rows) for plane, rows in (tiles or {}).items()
        }
        self.unavailable_planes: Set[int] = set(unavailable_planes)
        self.available = available
        self.requests: List[int] = []

    async def fetch_plane(self, plane: int) -> Sequence[TileSourceRow]:
        self.requests.append(plane)
        # Yield once so concurrent callers genuinely overlap with an in-flight load
        await asyncio.sleep(0)
        if not self.available or plane in self.unavailable_planes:
            raise DataSourceUnavailable("tile source offline", source=self.name, plane=plane)
        rows = []
        for row in self.tiles.get(plane, []):
            row = tuple(row)
            rows.append(row if len(row) == 3 else (*row, None))
        return rows


class SqliteTileSource(TileDataSource):
    """Read tiles from the sqlite database shipped alongside the map.

    Expected schema:
        CREATE TABLE tiles (x INTEGER, y INTEGER, plane INTEGER, RegionID INTEGER)

    The file is opened read-only per query; sqlite connections are cheap and this
    keeps each ``asyncio.to_thread`` call self-contained.
    """

    QUERY = "SELECT x, y, RegionID FROM tiles WHERE plane = ?"

    def __init__(self, path: Path | str = Config.TILE_DB_PATH):
        self.path = Path(path)
        self.name = f"sqlite:{self.path.name}"

    async def initialize(self) -> None:
        exists = await asyncio.to_thread(self.path.exists)
        if not exists:
            raise DataSourceUnavailable(f"database file {self.path} not found", source=self.name)

    async def fetch_plane(self, plane: int) -> Sequence[TileSourceRow]:
        log_io(f"[Tiles] Querying {self.path.name} for plane {plane}...")
        return await asyncio.to_thread(self._query, plane)

    def _query(self, plane: int) -> List[TileSourceRow]:
        if not self.path.exists():
            raise DataSourceUnavailable(
                f"database file {self.path} not found", source=self.name, plane=plane
            )
        uri = f"file:{parse.quote(str(self.path.resolve()))}?mode=ro"
        try:
            conn = sqlite3.connect(uri, uri=True)
        except sqlite3.Error as exc:
            raise DataSourceUnavailable(str(exc), source=self.name, plane=plane) from exc
        try:
            return conn.execute(self.QUERY, (plane,)).fetchall()
        except sqlite3.Error as exc:
            # Covers corrupt files, missing table and "file is not a database"
            raise DataSourceUnavailable(str(exc), source=self.name, plane=plane) from exc
        finally:
            conn.close()


class PostgresTileSource(TileDataSource):
    """Read tiles from a Postgres ``tiles`` table via an asyncpg pool.

    Schema:
        CREATE TABLE tiles (
            x INTEGER NOT NULL,
            y INTEGER NOT NULL,
            plane SMALLINT NOT NULL,
            region_id INTEGER
        );
        CREATE INDEX tiles_plane_idx ON tiles (plane);
    """

    QUERY = "SELECT x, y, region_id FROM tiles WHERE plane = $1"

    def __init__(self, database_url: str, *, max_pool_size: int = 4):
        if asyncpg is None:  # pragma: no cover - handled during runtime when dependency missing
            raise ImportError(
                "asyncpg is required for PostgresTileSource. Install with `pip install walkmap[postgres]`."
            )
        self.database_url = database_url
        self.max_pool_size = max_pool_size
        self.pool: Optional["asyncpg.Pool"] = None
        self.name = "postgres"

    async def initialize(self) -> None:
        if self.pool is None:
            try:
                self.pool = await asyncpg.create_pool(
                    self.database_url, min_size=1, max_size=self.max_pool_size
                )
            except (OSError, asyncpg.PostgresError) as exc:
                raise DataSourceUnavailable(str(exc), source=self.name) from exc

    async def close(self) -> None:
        if self.pool is not None:
            await self.pool.close()
            self.pool = None

    async def fetch_plane(self, plane: int) -> Sequence[TileSourceRow]:
        if self.pool is None:
            await self.initialize()
        log_io(f"[Tiles] Querying Postgres for plane {plane}...")
        try:
            async with self.pool.acquire() as conn:
                records = await conn.fetch(self.QUERY, plane)
        except (OSError, asyncpg.PostgresError) as exc:
            raise DataSourceUnavailable(str(exc), source=self.name, plane=plane) from exc
        return [(record["x"], record["y"], record["region_id"]) for record in records]


# ============================================================================
# Feature sources
# ============================================================================


class FeatureSource(ABC):
    """Abstract source of transport nodes.

    ``load()`` fetches and normalises the whole feed in one go; feeds are small
    (thousands of rows) and are cached by FeatureCatalog for the session.
    """

    name: str = "features"

    @abstractmethod
    async def load(self) -> NodeCollection:
        """
        Fetch the feed and return its nodes grouped by plane.

        Raises:
            DataSourceUnavailable: If the feed cannot be fetched or parsed
        """


class InMemoryFeatureSource(FeatureSource):
    """Serve a fixed list of nodes (shadows added for cross-plane links)."""

    name = "memory"

    def __init__(self, nodes: Iterable[TransportNode] = (), *, available: bool = True):
        self.nodes = list(nodes)
        self.available = available
        self.requests = 0

    async def load(self) -> NodeCollection:
        self.requests += 1
        await asyncio.sleep(0)
        if not self.available:
            raise DataSourceUnavailable("feature source offline", source=self.name)
        collection = NodeCollection()
        for node in self.nodes:
            collection.add(node)
        return collection


class JsonFeatureSource(FeatureSource):
    """Grouped transport export: a JSON list of ``{groupName, origin, destination, ...}``."""

    def __init__(self, path: Path | str = Config.TRANSPORT_DATA_PATH):
        self.path = Path(path)
        self.name = f"json:{self.path.name}"

    async def load(self) -> NodeCollection:
        log_io(f"[Features] Reading {self.path}...")
        try:
            text = await asyncio.to_thread(self.path.read_text, "utf-8")
            entries = json.loads(text)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise DataSourceUnavailable(str(exc), source=self.name) from exc
        if not isinstance(entries, list):
            raise DataSourceUnavailable("expected a JSON list of entries", source=self.name)
        return nodes_from_grouped(entry for entry in entries if isinstance(entry, dict))


class SheetFeatureSource(FeatureSource):
    """Per-kind CSV sheets exported from a published spreadsheet.

    Each sheet is fetched with a small bounded retry (tenacity) to ride out a
    transient network blip; after that the failure propagates and the catalog
    caches it.
    """

    URL_TEMPLATE = "https://docs.google.com/spreadsheets/d/{sheet_id}/gviz/tq?tqx=out:csv&sheet={sheet}"

    def __init__(
        self,
        sheet_id: str = Config.SHEET_ID,
        *,
        sheets: Optional[Mapping[str, str]] = None,
        timeout: float = Config.SHEET_TIMEOUT_SECONDS,
        max_attempts: int = 3,
    ):
        self.sheet_id = sheet_id
        self.sheets = dict(sheets or SHEETS)
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.name = "sheets"

    def sheet_url(self, sheet_name: str) -> str:
        return self.URL_TEMPLATE.format(sheet_id=self.sheet_id, sheet=parse.quote(sheet_name))

    def _download(self, url: str) -> str:
        with request.urlopen(url, timeout=self.timeout) as resp:
            return resp.read().decode("utf-8")

    async def fetch_sheet(self, kind: str) -> List[Dict[str, Any]]:
        sheet_name = self.sheets[kind]
        url = self.sheet_url(sheet_name)
        try:
            async for attempt in AsyncRetrying(
                # HTTP errors are answers, not blips: only connection-level failures retry
                retry=retry_if_exception_type(error.URLError)
                & retry_if_not_exception_type(error.HTTPError),
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(multiplier=0.5, max=4),
                reraise=True,
            ):
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        log_error(
                            f"[Features] Retry {attempt.retry_state.attempt_number}/"
                            f"{self.max_attempts} for sheet {sheet_name}"
                        )
                    text = await asyncio.to_thread(self._download, url)
        except error.HTTPError as exc:
            raise DataSourceUnavailable(
                f"failed to fetch {sheet_name} (status {exc.code})", source=self.name
            ) from exc
        except (error.URLError, OSError, UnicodeDecodeError) as exc:
            raise DataSourceUnavailable(f"failed to fetch {sheet_name}: {exc}", source=self.name) from exc
        return parse_csv(text)

    async def load(self) -> NodeCollection:
        log_io(f"[Features] Fetching {len(self.sheets)} sheets...")
        kinds = list(self.sheets)
        results = await asyncio.gather(*(self.fetch_sheet(kind) for kind in kinds))
        return nodes_from_sheets(dict(zip(kinds, results)))


__all__ = [
    "TileDataSource",
    "InMemoryTileSource",
    "SqliteTileSource",
    "PostgresTileSource",
    "FeatureSource",
    "InMemoryFeatureSource",
    "JsonFeatureSource",
    "SheetFeatureSource",
]
