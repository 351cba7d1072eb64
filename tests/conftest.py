"""Shared fixtures for walkmap tests."""

import sqlite3

import pytest


def grid_rows(x0: int, x1: int, y0: int, y1: int):
    return [(x, y) for x in range(x0, x1) for y in range(y0, y1)]


@pytest.fixture
def tile_db(tmp_path):
    """Sqlite tile database with an 11x11 open grid on plane 0 and one tile on plane 1."""
    path = tmp_path / "walkable_tiles.db"
    conn = sqlite3.connect(path)
    conn.execute("CREATE TABLE tiles (x INTEGER, y INTEGER, plane INTEGER, RegionID INTEGER)")
    rows = [(x, y, 0, (x // 64) * 256 + y // 64) for x, y in grid_rows(0, 11, 0, 11)]
    rows.append((5, 5, 1, 0))
    conn.executemany("INSERT INTO tiles VALUES (?, ?, ?, ?)", rows)
    conn.commit()
    conn.close()
    return path
