"""Tests for viewport tile selection."""

import pytest

from walkmap.spatial.bounds import Bounds
from walkmap.spatial.regions import build_plane_index
from walkmap.spatial.selection import (
    build_tile_set,
    region_ids_in_bounds,
    select_tiles,
)


def grid_index(x0: int, x1: int, y0: int, y1: int, plane: int = 0):
    return build_plane_index(
        plane, [(x, y) for x in range(x0, x1) for y in range(y0, y1)]
    )


def test_selection_counts_every_tile_in_bounds():
    index = grid_index(100, 110, 100, 110)
    selection = select_tiles(index, Bounds(100, 109, 100, 109))
    assert selection.total == 100
    assert selection.count == 100
    assert not selection.truncated
    assert selection.status_text() == "100 tiles"


def test_selection_truncates_nearest_first():
    index = grid_index(100, 110, 100, 110)
    selection = select_tiles(index, Bounds(100, 109, 100, 109), center=(100, 100), limit=10)

    assert selection.count == 10
    assert selection.total == 100
    assert selection.truncated
    assert selection.tiles[0] == (100, 100)
    assert selection.status_text() == "10 / 100 tiles"

    distances = [(x - 100) ** 2 + (y - 100) ** 2 for x, y in selection.tiles]
    assert distances == sorted(distances)
    # Every dropped tile is at least as far as the farthest kept one
    kept = set(selection.tiles)
    dropped = [(x, y) for x in range(100, 110) for y in range(100, 110) if (x, y) not in kept]
    assert min((x - 100) ** 2 + (y - 100) ** 2 for x, y in dropped) >= distances[-1]


def test_selection_bounds_are_inclusive():
    index = grid_index(100, 110, 100, 110)
    selection = select_tiles(index, Bounds(100, 100, 100, 100))
    assert selection.tiles == ((100, 100),)


def test_selection_spans_region_boundaries():
    index = build_plane_index(0, [(63, 0), (64, 0), (200, 0)])
    selection = select_tiles(index, Bounds(60, 70, 0, 5))
    assert sorted(selection.tiles) == [(63, 0), (64, 0)]


def test_selection_is_deterministic():
    index = grid_index(0, 130, 0, 70)
    bounds = Bounds(10, 120, 5, 65)
    first = select_tiles(index, bounds, center=(40, 40), limit=500)
    second = select_tiles(index, bounds, center=(40, 40), limit=500)
    assert first == second


def test_selection_uses_thousands_separators():
    index = grid_index(0, 40, 0, 40)
    selection = select_tiles(index, Bounds(0, 39, 0, 39), limit=1000)
    assert selection.status_text() == "1,000 / 1,600 tiles"


def test_zero_limit_and_empty_plane():
    index = grid_index(0, 5, 0, 5)
    selection = select_tiles(index, Bounds(0, 4, 0, 4), limit=0)
    assert selection.count == 0
    assert selection.total == 25

    empty = build_plane_index(0, [])
    assert select_tiles(empty, Bounds(0, 100, 0, 100)).total == 0


def test_negative_limit_rejected():
    index = grid_index(0, 5, 0, 5)
    with pytest.raises(ValueError):
        select_tiles(index, Bounds(0, 4, 0, 4), limit=-1)


def test_region_ids_ordered_by_distance():
    bounds = Bounds(0, 127, 0, 63)
    assert region_ids_in_bounds(bounds) == [0, 256]
    assert region_ids_in_bounds(bounds, center=(100, 30)) == [256, 0]
    assert region_ids_in_bounds(Bounds(5, 4, 0, 0)) == []


def test_build_tile_set_filters_to_box():
    index = grid_index(0, 10, 0, 10)
    tile_set = build_tile_set(index, Bounds(2, 3, 2, 3))
    assert tile_set == {(2, 2), (2, 3), (3, 2), (3, 3)}
