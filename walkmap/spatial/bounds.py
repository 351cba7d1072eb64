"""Axis-aligned bounds and intersection tests.

All tests are inclusive on every edge: a tile sitting exactly on ``max_x`` is
inside the box. Used by the viewport selector (tile containment) and by the
transport visibility filter (points, connecting lines, destination areas).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol, Tuple


class RectLike(Protocol):
    """Anything exposing inclusive min/max edges (Bounds, DestinationRect)."""

    min_x: float
    max_x: float
    min_y: float
    max_y: float


@dataclass(frozen=True, slots=True)
class Bounds:
    """Inclusive world-space rectangle ``[min_x, max_x] x [min_y, max_y]``."""

    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @classmethod
    def from_points(
        cls, a: Tuple[float, float], b: Tuple[float, float], *, margin: float = 0
    ) -> "Bounds":
        """Smallest box containing both points, grown by ``margin`` on every side."""
        return cls(
            min(a[0], b[0]) - margin,
            max(a[0], b[0]) + margin,
            min(a[1], b[1]) - margin,
            max(a[1], b[1]) + margin,
        )

    @classmethod
    def from_viewport(cls, west: float, east: float, south: float, north: float) -> "Bounds":
        """Snap fractional map bounds outward to whole tiles."""
        return cls(math.floor(west), math.ceil(east), math.floor(south), math.ceil(north))

    def padded(self, margin: float) -> "Bounds":
        return Bounds(
            self.min_x - margin, self.max_x + margin, self.min_y - margin, self.max_y + margin
        )

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.min_x + self.max_x) / 2, (self.min_y + self.max_y) / 2)

    @property
    def is_empty(self) -> bool:
        return self.min_x > self.max_x or self.min_y > self.max_y

    def contains(self, x: float, y: float) -> bool:
        return point_in_bounds(x, y, self)


def point_in_bounds(x: float, y: float, box: RectLike) -> bool:
    """Return True if ``(x, y)`` lies inside ``box`` (edges included)."""
    return box.min_x <= x <= box.max_x and box.min_y <= y <= box.max_y


def segment_intersects_bounds(
    x1: float, y1: float, x2: float, y2: float, box: RectLike
) -> bool:
    """Liang–Barsky clip of the segment ``(x1, y1) -> (x2, y2)`` against ``box``.

    The segment is parameterised as ``P(t) = P1 + t * (P2 - P1)`` for ``t`` in
    ``[0, 1]``. Each box edge is a half-plane constraint ``p * t <= q``; entering
    edges (``p < 0``) raise the lower bound ``t0``, leaving edges (``p > 0``) lower
    the upper bound ``t1``. The segment touches the box iff ``t0 <= t1`` survives
    all four edges.

    A zero directional component (``p == 0``) means the segment is parallel to
    that edge: a negative offset ``q`` puts it entirely outside.
    """

    t0 = 0.0
    t1 = 1.0
    dx = x2 - x1
    dy = y2 - y1
    checks = (
        (-dx, x1 - box.min_x),
        (dx, box.max_x - x1),
        (-dy, y1 - box.min_y),
        (dy, box.max_y - y1),
    )

    for p, q in checks:
        if p == 0:
            if q < 0:
                return False
            continue
        r = q / p
        if p < 0:
            if r > t1:
                return False
            if r > t0:
                t0 = r
        else:
            if r < t0:
                return False
            if r < t1:
                t1 = r

    return True


def rect_intersects_bounds(rect: RectLike, box: RectLike) -> bool:
    """Return True if the two rectangles overlap or touch."""
    return not (
        rect.max_x < box.min_x
        or rect.min_x > box.max_x
        or rect.max_y < box.min_y
        or rect.min_y > box.max_y
    )


__all__ = [
    "Bounds",
    "RectLike",
    "point_in_bounds",
    "segment_intersects_bounds",
    "rect_intersects_bounds",
]
