"""Two-click distance measurement over cached walkable tiles."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .config import Config
from .logging_utils import log_deterministic
from .spatial.pathfinding import chebyshev_distance, find_path_on_plane
from .spatial.regions import Coordinate
from .tile_cache import TileCache


MSG_ENABLE_WALKABLE = 'Enable "Show Walkable" first'
MSG_NO_TILES = "No walkable tiles in range"
MSG_NO_PATH = "No walkable path found"
PROMPT_START = "Click to set start point"
PROMPT_END = "Click to set end point"


@dataclass(frozen=True)
class DistanceMeasurement:
    """Outcome of one measurement.

    ``method`` is ``"path"`` when a walkable path was found and ``"straight_line"``
    for the Chebyshev fallback. ``points`` is what gets drawn: the whole path, or
    just the two endpoints.
    """

    start: Coordinate
    end: Coordinate
    distance: int
    method: str
    message: str
    path: Optional[Tuple[Coordinate, ...]] = None

    @property
    def found_path(self) -> bool:
        return self.method == "path"

    @property
    def points(self) -> List[Tuple[int, int]]:
        if self.path:
            return [c.key for c in self.path]
        return [self.start.key, self.end.key]

    @property
    def midpoint(self) -> Tuple[float, float]:
        """Label anchor: the middle drawn point."""
        points = self.points
        x, y = points[len(points) // 2]
        return (float(x), float(y))


def _to_coordinate(point: Sequence[float], plane: int) -> Coordinate:
    return Coordinate(math.floor(point[0]), math.floor(point[1]), plane)


class DistanceTool:
    """Measures walking distance between two tiles using only already-loaded planes.

    The tool never triggers a tile load: if the plane is not in the cache the user is
    asked to enable the walkable overlay and a straight-line estimate is returned.
    """

    def __init__(
        self,
        cache: TileCache,
        *,
        margin: int = Config.PATH_MARGIN,
        max_iterations: int = Config.PATH_MAX_ITERATIONS,
    ) -> None:
        self.cache = cache
        self.margin = margin
        self.max_iterations = max_iterations
        self.measuring = False
        self.start_point: Optional[Coordinate] = None
        self.prompt = ""
        self.last: Optional[DistanceMeasurement] = None

    def measure(self, start: Sequence[float], end: Sequence[float]) -> DistanceMeasurement:
        # Endpoints are measured on the start point's plane
        plane = int(start[2]) if len(start) > 2 else 0
        start_c = _to_coordinate(start, plane)
        end_c = _to_coordinate(end, plane)

        plane_index = self.cache.get_plane(plane)
        if plane_index is None or plane_index.region_count == 0:
            return self._straight_line(start_c, end_c, MSG_ENABLE_WALKABLE)

        path = find_path_on_plane(
            plane_index, start_c, end_c, margin=self.margin, max_iterations=self.max_iterations
        )
        if path is None:
            return self._straight_line(start_c, end_c, MSG_NO_PATH)
        if not path:
            return self._straight_line(start_c, end_c, MSG_NO_TILES)

        distance = len(path) - 1
        log_deterministic(f"[Distance] {start_c.key} -> {end_c.key}: {distance} tiles")
        result = DistanceMeasurement(
            start=start_c,
            end=end_c,
            distance=distance,
            method="path",
            message=f"Distance: {distance} tiles",
            path=tuple(path),
        )
        self.last = result
        return result

    def _straight_line(
        self, start: Coordinate, end: Coordinate, message: str
    ) -> DistanceMeasurement:
        result = DistanceMeasurement(
            start=start,
            end=end,
            distance=chebyshev_distance(start, end),
            method="straight_line",
            message=message,
        )
        self.last = result
        return result

    # Click flow: start -> first click sets start -> second click measures and stops

    def start_measuring(self) -> str:
        self.measuring = True
        self.start_point = None
        self.last = None
        self.prompt = PROMPT_START
        return self.prompt

    def stop_measuring(self) -> None:
        self.measuring = False
        self.start_point = None

    def toggle(self) -> bool:
        if self.measuring:
            self.stop_measuring()
        else:
            self.start_measuring()
        return self.measuring

    def is_measuring(self) -> bool:
        return self.measuring

    def click(self, point: Sequence[float]) -> Optional[DistanceMeasurement]:
        """Feed a map click; returns the measurement on the second click."""
        if not self.measuring:
            return None
        if self.start_point is None:
            plane = int(point[2]) if len(point) > 2 else 0
            self.start_point = _to_coordinate(point, plane)
            self.prompt = PROMPT_END
            return None

        start = self.start_point
        self.stop_measuring()
        result = self.measure(start, point)
        self.prompt = result.message
        return result


__all__ = [
    "MSG_ENABLE_WALKABLE",
    "MSG_NO_TILES",
    "MSG_NO_PATH",
    "PROMPT_START",
    "PROMPT_END",
    "DistanceMeasurement",
    "DistanceTool",
]
