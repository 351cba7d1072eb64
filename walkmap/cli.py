"""Command line access to the tile cache and pathfinder.

    walkmap tiles --db walkable_tiles.db --plane 0 --bounds 3200 3260 3200 3260
    walkmap path --db walkable_tiles.db --plane 0 --start 3222 3218 --end 3240 3230

When ``WALKMAP_TILE_DSN`` is set and ``--db`` is not given, tiles are read from
Postgres instead of the sqlite file.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Optional, Sequence

from .config import Config
from .distance import DistanceTool
from .errors import DataSourceUnavailable
from .logging_utils import log_error, log_info
from .sources import PostgresTileSource, SqliteTileSource, TileDataSource
from .spatial.bounds import Bounds
from .spatial.selection import select_tiles
from .tile_cache import TileCache


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="walkmap", description="Query walkable tiles and walking distances"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def add_source_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("--db", help="Path to the sqlite tile database")
        p.add_argument("--plane", type=int, default=0, help="Plane (floor level)")

    tiles = sub.add_parser("tiles", help="Select walkable tiles inside a box")
    add_source_args(tiles)
    tiles.add_argument(
        "--bounds", type=int, nargs=4, required=True, metavar=("MINX", "MAXX", "MINY", "MAXY"),
    )
    tiles.add_argument("--limit", type=int, default=Config.DEFAULT_TILE_LIMIT, help="Tile budget")
    tiles.add_argument("--show", action="store_true", help="Print every selected tile")

    path = sub.add_parser("path", help="Walking distance between two tiles")
    add_source_args(path)
    path.add_argument("--start", type=int, nargs=2, required=True, metavar=("X", "Y"))
    path.add_argument("--end", type=int, nargs=2, required=True, metavar=("X", "Y"))
    path.add_argument("--show", action="store_true", help="Print every tile on the path")

    sub.add_parser("config", help="Show the active configuration")
    return parser


def make_source(db: Optional[str]) -> TileDataSource:
    if db is None and Config.TILE_DSN:
        return PostgresTileSource(Config.TILE_DSN)
    return SqliteTileSource(db or Config.TILE_DB_PATH)


async def run_tiles(args: argparse.Namespace) -> int:
    source = make_source(args.db)
    cache = TileCache(source)
    try:
        index = await cache.ensure_plane(args.plane)
    finally:
        await source.close()

    min_x, max_x, min_y, max_y = args.bounds
    selection = select_tiles(index, Bounds(min_x, max_x, min_y, max_y), limit=args.limit)
    print(selection.status_text())
    if args.show:
        for x, y in selection.tiles:
            print(f"{x},{y}")
    return 0


async def run_path(args: argparse.Namespace) -> int:
    source = make_source(args.db)
    cache = TileCache(source)
    try:
        await cache.ensure_plane(args.plane)
    finally:
        await source.close()

    tool = DistanceTool(cache)
    result = tool.measure((*args.start, args.plane), (*args.end, args.plane))
    print(result.message)
    if not result.found_path:
        print(f"Straight line: {result.distance} tiles")
    elif args.show:
        for x, y in result.points:
            print(f"{x},{y}")
    return 0 if result.found_path else 1


async def main_async(args: argparse.Namespace) -> int:
    """Dispatch a parsed command."""
    if args.command == "config":
        print(Config.display())
        return 0

    try:
        if args.command == "tiles":
            return await run_tiles(args)
        return await run_path(args)
    except DataSourceUnavailable as exc:
        log_error(str(exc))
        return 2


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        Config.validate()
    except ValueError as exc:
        log_error(f"Invalid configuration: {exc}")
        return 2
    log_info(f"walkmap {args.command}")
    return asyncio.run(main_async(args))


if __name__ == "__main__":
    sys.exit(main())
