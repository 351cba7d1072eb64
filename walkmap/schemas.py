"""
Pydantic schemas for data crossing the Walkmap boundary.

Records coming from external collaborators (the map widget's viewport and
transport feature sheets) are validated here before the spatial core
touches them. The core itself works on plain tuples and frozen dataclasses.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel, Field

from .spatial.bounds import Bounds


class Viewport(BaseModel):
    """What the map widget currently shows, in world-space units.

    ``west``/``east`` are x bounds and ``south``/``north`` y bounds; they may be
    fractional since the widget works in continuous coordinates.
    """

    west: float
    east: float
    south: float
    north: float
    plane: int = 0
    zoom: float = 0.0
    center: Optional[Tuple[float, float]] = Field(
        None, description="Reference point for nearest-first ordering; defaults to box centre",
    )

    def bounds(self) -> Bounds:
        return Bounds.from_viewport(self.west, self.east, self.south, self.north)

    def reference_point(self) -> Tuple[float, float]:
        if self.center is not None:
            return self.center
        return ((self.west + self.east) / 2, (self.south + self.north) / 2)


class DestinationRect(BaseModel):
    """Inclusive destination area of a teleport (e.g. "anywhere in this square")."""

    min_x: float
    max_x: float
    min_y: float
    max_y: float
    plane: int = 0

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.min_x + self.max_x) / 2, (self.min_y + self.max_y) / 2)


Point = Tuple[float, float, int]


def make_point(x: Any, y: Any, plane: Any) -> Optional[Point]:
    """Return ``(x, y, plane)`` when all three are finite numbers, else None."""
    try:
        nx = float(x)
        ny = float(y)
        np_ = float(plane)
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(nx) and math.isfinite(ny) and math.isfinite(np_)):
        return None
    return (nx, ny, int(np_))


class TransportNode(BaseModel):
    """A transport link drawn on the map (door, teleport, ladder, boat...).

    ``plane`` is the plane the node is listed on. A shadow node is a copy listed on
    the destination plane of a link that starts on another plane; it is only drawn
    at its destination.
    """

    id: Union[int, str]
    kind: str
    category: Optional[str] = None
    group_name: Optional[str] = None
    color: str = "#ffffff"
    x: Optional[float] = None
    y: Optional[float] = None
    plane: int = 0
    dst_x: Optional[float] = None
    dst_y: Optional[float] = None
    dst_plane: Optional[int] = None
    dest_rect: Optional[DestinationRect] = None
    shadow: bool = False
    oneway: bool = False
    detail: Dict[str, Any] = Field(
        default_factory=dict, description="Free-form source fields (names, actions, codes)",
    )

    def source_point(self) -> Optional[Point]:
        return make_point(self.x, self.y, self.plane)

    def destination_point(self) -> Optional[Point]:
        if self.dest_rect is not None:
            cx, cy = self.dest_rect.center
            return make_point(cx, cy, self.dest_rect.plane)
        plane = self.dst_plane if self.dst_plane is not None else self.plane
        return make_point(self.dst_x, self.dst_y, plane)

    def as_shadow(self, plane: int) -> "TransportNode":
        return self.model_copy(update={"plane": plane, "shadow": True})


__all__ = [
    "Viewport",
    "DestinationRect",
    "Point",
    "make_point",
    "TransportNode",
]
