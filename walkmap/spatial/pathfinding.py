"""8-directional A* over a sparse set of walkable tiles.

Movement rules:
- Eight neighbours, every step costs 1 (diagonals included).
- A diagonal step ``(dx, dy)`` is allowed only when both ``(x + dx, y)`` and
  ``(x, y + dy)`` are walkable, so paths never squeeze between two blocked tiles.
- The heuristic is Chebyshev distance, which is exact on an open grid under this
  cost model and therefore admissible.

The search stops after ``max_iterations`` pops; hitting the cap is reported the
same way as "no path" (``None``) and callers fall back to a straight-line estimate.
"""

from __future__ import annotations

import heapq
from typing import Callable, Collection, Dict, List, Optional, Sequence, Set, Tuple, Union

from ..config import Config
from ..logging_utils import log_debug
from .bounds import Bounds
from .regions import Coordinate, PlaneIndex, TileKey
from .selection import build_tile_set


# North, East, South, West, then the diagonals
DIRECTIONS: Tuple[Tuple[int, int], ...] = (
    (0, 1),
    (1, 0),
    (0, -1),
    (-1, 0),
    (1, 1),
    (1, -1),
    (-1, -1),
    (-1, 1),
)

Walkable = Union[Callable[[TileKey], bool], Collection[TileKey]]


def chebyshev_distance(a: Sequence[int], b: Sequence[int]) -> int:
    """Tile distance with free diagonal movement: ``max(|dx|, |dy|)``."""
    return max(abs(b[0] - a[0]), abs(b[1] - a[1]))


def _as_predicate(walkable: Walkable) -> Callable[[TileKey], bool]:
    if callable(walkable):
        return walkable
    return walkable.__contains__


def find_path(
    walkable: Walkable,
    start: Sequence[int],
    end: Sequence[int],
    *,
    max_iterations: int = Config.PATH_MAX_ITERATIONS,
) -> Optional[List[TileKey]]:
    """Return the shortest tile path from ``start`` to ``end`` (both included).

    Args:
        walkable: Predicate ``(x, y) -> bool`` or a collection of walkable keys
        start: Start tile; only the first two items (x, y) are used
        end: Goal tile; only the first two items (x, y) are used
        max_iterations: Upper bound on open-set pops before giving up

    Returns:
        List of ``(x, y)`` tiles, or None when either endpoint is not walkable, the
        goal is unreachable, or the iteration cap is reached.
    """

    is_walkable = _as_predicate(walkable)
    start_key: TileKey = (int(start[0]), int(start[1]))
    end_key: TileKey = (int(end[0]), int(end[1]))

    if not is_walkable(start_key):
        log_debug(f"[Path] start {start_key} is not walkable")
        return None
    if not is_walkable(end_key):
        log_debug(f"[Path] end {end_key} is not walkable")
        return None

    end_x, end_y = end_key

    def heuristic(x: int, y: int) -> int:
        return max(abs(end_x - x), abs(end_y - y))

    # Heap entries are (f, h, x, y): ties on f prefer the node closer to the goal.
    start_h = heuristic(*start_key)
    open_heap: List[Tuple[int, int, int, int]] = [(start_h, start_h, *start_key)]
    g_score: Dict[TileKey, int] = {start_key: 0}
    came_from: Dict[TileKey, TileKey] = {}
    closed: Set[TileKey] = set()
    iterations = 0

    while open_heap and iterations < max_iterations:
        iterations += 1
        _, _, x, y = heapq.heappop(open_heap)
        current = (x, y)

        if current == end_key:
            path = [current]
            while current in came_from:
                current = came_from[current]
                path.append(current)
            path.reverse()
            log_debug(f"[Path] found {len(path)} tiles in {iterations} iterations")
            return path

        # Stale heap entries for nodes already finalised
        if current in closed:
            continue
        closed.add(current)

        g = g_score[current]
        for dx, dy in DIRECTIONS:
            neighbor = (x + dx, y + dy)
            if neighbor in closed or not is_walkable(neighbor):
                continue
            if dx and dy:
                if not is_walkable((x + dx, y)) or not is_walkable((x, y + dy)):
                    continue

            tentative_g = g + 1
            known_g = g_score.get(neighbor)
            if known_g is None or tentative_g < known_g:
                came_from[neighbor] = current
                g_score[neighbor] = tentative_g
                h = heuristic(*neighbor)
                heapq.heappush(open_heap, (tentative_g + h, h, neighbor[0], neighbor[1]))

    if open_heap:
        log_debug(f"[Path] gave up after {iterations} iterations (cap {max_iterations})")
    else:
        log_debug(f"[Path] no path after {iterations} iterations")
    return None


def find_path_on_plane(
    plane_index: PlaneIndex,
    start: Coordinate,
    end: Coordinate,
    *,
    margin: int = Config.PATH_MARGIN,
    max_iterations: int = Config.PATH_MAX_ITERATIONS,
) -> Optional[List[Coordinate]]:
    """Path between two tiles using only walkable tiles near the endpoints.

    The walkable set is restricted to the endpoints' bounding box grown by
    ``margin`` tiles, so a query never scans more than that box no matter how large
    the plane is. Paths needing a longer detour are reported as not found.

    Returns:
        The path as coordinates on the index's plane, an empty list when the box
        holds no walkable tiles at all, or None when the tiles exist but no path
        joins the endpoints
    """

    bounds = Bounds.from_points(start, end, margin=margin)
    tile_set = build_tile_set(plane_index, bounds)
    if not tile_set:
        return []
    path = find_path(tile_set, start, end, max_iterations=max_iterations)
    if path is None:
        return None
    return [Coordinate(x, y, plane_index.plane) for x, y in path]


__all__ = [
    "DIRECTIONS",
    "Walkable",
    "chebyshev_distance",
    "find_path",
    "find_path_on_plane",
]
