"""Tests for tile and feature data sources."""

import json
from urllib import error

import pytest

from walkmap.errors import DataSourceUnavailable
from walkmap.sources import (
    InMemoryFeatureSource,
    InMemoryTileSource,
    JsonFeatureSource,
    SheetFeatureSource,
    SqliteTileSource,
)
from walkmap.schemas import TransportNode


@pytest.mark.asyncio
async def test_sqlite_source_reads_one_plane(tile_db):
    source = SqliteTileSource(tile_db)
    await source.initialize()

    rows = await source.fetch_plane(0)
    assert len(rows) == 121
    assert (10, 10, 0) in rows

    assert await source.fetch_plane(1) == [(5, 5, 0)]
    assert await source.fetch_plane(7) == []


@pytest.mark.asyncio
async def test_sqlite_source_missing_file(tmp_path):
    source = SqliteTileSource(tmp_path / "missing.db")
    with pytest.raises(DataSourceUnavailable) as excinfo:
        await source.fetch_plane(0)
    assert excinfo.value.plane == 0
    assert "not found" in str(excinfo.value)

    with pytest.raises(DataSourceUnavailable):
        await source.initialize()


@pytest.mark.asyncio
async def test_sqlite_source_corrupt_file(tmp_path):
    path = tmp_path / "broken.db"
    path.write_text("this is not a database" * 100)
    with pytest.raises(DataSourceUnavailable):
        await SqliteTileSource(path).fetch_plane(0)


@pytest.mark.asyncio
async def test_in_memory_tile_source_pads_region_ids():
    source = InMemoryTileSource({0: [(1, 2), (3, 4, 0)]})
    assert await source.fetch_plane(0) == [(1, 2, None), (3, 4, 0)]
    assert source.requests == [0]


@pytest.mark.asyncio
async def test_in_memory_feature_source_adds_shadows():
    node = TransportNode(id=1, kind="door", x=1, y=1, plane=0, dst_x=1, dst_y=1, dst_plane=1)
    collection = await InMemoryFeatureSource([node]).load()
    assert len(collection.nodes_by_plane[0]) == 1
    assert collection.nodes_by_plane[1][0].shadow

    with pytest.raises(DataSourceUnavailable):
        await InMemoryFeatureSource([node], available=False).load()


@pytest.mark.asyncio
async def test_json_feature_source(tmp_path):
    path = tmp_path / "transport.json"
    path.write_text(
        json.dumps(
            [
                {
                    "rowNumber": 3,
                    "groupName": "Agility shortcuts",
                    "origin": {"x": 10, "y": 20, "plane": 0},
                    "destination": {"x": 12, "y": 20, "plane": 0},
                },
                "not an entry",
            ]
        )
    )
    collection = await JsonFeatureSource(path).load()
    nodes = collection.nodes_by_plane[0]
    assert [node.id for node in nodes] == [3]
    assert nodes[0].category == "agility"


@pytest.mark.asyncio
async def test_json_feature_source_errors(tmp_path):
    with pytest.raises(DataSourceUnavailable):
        await JsonFeatureSource(tmp_path / "missing.json").load()

    bad = tmp_path / "bad.json"
    bad.write_text("{not json")
    with pytest.raises(DataSourceUnavailable):
        await JsonFeatureSource(bad).load()

    wrong_shape = tmp_path / "object.json"
    wrong_shape.write_text('{"groupName": "Door"}')
    with pytest.raises(DataSourceUnavailable):
        await JsonFeatureSource(wrong_shape).load()


DOOR_CSV = (
    "id,tile_inside_x,tile_inside_y,tile_inside_plane,tile_outside_x,tile_outside_y,"
    "tile_outside_plane,direction,open_action\n"
    '1,3200,3200,0,3201,3200,0,"east, then north",Open\n'
)


@pytest.mark.asyncio
async def test_sheet_source_parses_csv():
    source = SheetFeatureSource("sheet123", sheets={"door": "doors"})
    urls = []

    def fake_download(url):
        urls.append(url)
        return DOOR_CSV

    source._download = fake_download
    collection = await source.load()

    assert len(urls) == 1
    assert "sheet123" in urls[0] and "sheet=doors" in urls[0]
    node = collection.nodes_by_plane[0][0]
    assert node.kind == "door"
    assert node.detail["direction"] == "east, then north"


@pytest.mark.asyncio
async def test_sheet_source_does_not_retry_http_errors():
    source = SheetFeatureSource("sheet123", sheets={"door": "doors"}, max_attempts=3)
    calls = []

    def fake_download(url):
        calls.append(url)
        raise error.HTTPError(url, 404, "Not Found", hdrs=None, fp=None)

    source._download = fake_download
    with pytest.raises(DataSourceUnavailable) as excinfo:
        await source.load()

    assert len(calls) == 1
    assert "404" in str(excinfo.value)


@pytest.mark.asyncio
async def test_sheet_source_retries_connection_errors():
    source = SheetFeatureSource("sheet123", sheets={"door": "doors"}, max_attempts=2)
    calls = []

    def flaky_download(url):
        calls.append(url)
        if len(calls) == 1:
            raise error.URLError("connection reset")
        return DOOR_CSV

    source._download = flaky_download
    collection = await source.load()

    assert len(calls) == 2
    assert collection.count() == 1


@pytest.mark.asyncio
async def test_sheet_source_gives_up_after_max_attempts():
    source = SheetFeatureSource("sheet123", sheets={"door": "doors"}, max_attempts=2)
    calls = []

    def dead_download(url):
        calls.append(url)
        raise error.URLError("no route to host")

    source._download = dead_download
    with pytest.raises(DataSourceUnavailable):
        await source.load()
    assert len(calls) == 2
