"""Tests for 8-directional A* over walkable tile sets."""

from walkmap.spatial.pathfinding import chebyshev_distance, find_path, find_path_on_plane
from walkmap.spatial.regions import Coordinate, build_plane_index


def open_grid(size: int):
    return {(x, y) for x in range(size) for y in range(size)}


def assert_valid_path(path, walkable):
    for (x1, y1), (x2, y2) in zip(path, path[1:]):
        dx, dy = x2 - x1, y2 - y1
        assert max(abs(dx), abs(dy)) == 1
        assert (x2, y2) in walkable
        if dx and dy:
            assert (x1 + dx, y1) in walkable
            assert (x1, y1 + dy) in walkable


def test_straight_path():
    tiles = open_grid(11)
    path = find_path(tiles, (0, 0), (3, 0))
    assert path is not None
    assert len(path) - 1 == 3
    assert path[0] == (0, 0)
    assert path[-1] == (3, 0)


def test_diagonal_path_costs_one_per_step():
    tiles = open_grid(11)
    path = find_path(tiles, (0, 0), (3, 3))
    assert len(path) - 1 == 3


def test_open_grid_corner_to_corner_is_all_diagonal():
    tiles = open_grid(11)
    path = find_path(tiles, (0, 0), (10, 10))
    assert len(path) - 1 == 10
    assert all(x2 - x1 == 1 and y2 - y1 == 1 for (x1, y1), (x2, y2) in zip(path, path[1:]))


def test_start_equals_end():
    assert find_path(open_grid(3), (1, 1), (1, 1)) == [(1, 1)]


def test_unwalkable_endpoints():
    tiles = open_grid(3)
    assert find_path(tiles, (5, 5), (1, 1)) is None
    assert find_path(tiles, (1, 1), (5, 5)) is None


def test_diagonal_blocked_by_corner():
    assert find_path({(0, 0), (1, 1)}, (0, 0), (1, 1)) is None

    tiles = {(0, 0), (1, 0), (1, 1)}
    path = find_path(tiles, (0, 0), (1, 1))
    assert path == [(0, 0), (1, 0), (1, 1)]


def test_path_goes_around_wall():
    tiles = open_grid(7) - {(3, y) for y in range(6)}
    path = find_path(tiles, (0, 0), (6, 0))
    assert path is not None
    assert path[0] == (0, 0) and path[-1] == (6, 0)
    assert (3, 6) in path
    assert_valid_path(path, tiles)


def test_disconnected_islands():
    tiles = {(0, 0), (1, 0), (5, 5), (6, 5)}
    assert find_path(tiles, (0, 0), (6, 5)) is None


def test_iteration_cap_reports_no_path():
    tiles = open_grid(51)
    assert find_path(tiles, (0, 0), (50, 50), max_iterations=5) is None
    assert find_path(tiles, (0, 0), (50, 50)) is not None


def test_predicate_walkable():
    path = find_path(lambda key: True, (0, 0), (5, 2))
    assert len(path) - 1 == 5


def test_chebyshev_distance():
    assert chebyshev_distance((0, 0), (5, 2)) == 5
    assert chebyshev_distance((3, -4), (0, 0)) == 4


def u_shaped_plane():
    # Start and end are two tiles apart; the only connection is a detour up to y=20
    tiles = {(0, y) for y in range(21)} | {(2, y) for y in range(21)} | {(1, 20)}
    return build_plane_index(0, tiles)


def test_path_on_plane_returns_coordinates():
    index = u_shaped_plane()
    path = find_path_on_plane(index, Coordinate(0, 0), Coordinate(2, 0), margin=30)
    assert path is not None
    assert len(path) - 1 == 42
    assert all(isinstance(c, Coordinate) and c.plane == 0 for c in path)


def test_path_on_plane_limited_by_margin():
    index = u_shaped_plane()
    assert find_path_on_plane(index, Coordinate(0, 0), Coordinate(2, 0), margin=5) is None


def test_path_on_plane_without_tiles():
    index = build_plane_index(0, [(500, 500)])
    assert find_path_on_plane(index, Coordinate(0, 0), Coordinate(1, 1)) == []
