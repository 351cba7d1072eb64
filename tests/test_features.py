"""Tests for CSV parsing, group classification and node normalisation."""

import pytest

from walkmap.features import (
    DEFAULT_CATEGORY,
    KIND_COLORS,
    NodeCollection,
    classify_group,
    nodes_from_grouped,
    nodes_from_sheets,
    parse_csv,
)
from walkmap.schemas import TransportNode


def test_parse_csv_quoted_fields_and_numbers():
    text = 'id,name,x\n1,"Door, big",3200\n,,\n2,nan,1.5\n'
    rows = parse_csv(text)
    assert rows == [
        {"id": 1, "name": "Door, big", "x": 3200},
        {"id": 2, "name": "nan", "x": 1.5},
    ]


def test_parse_csv_short_rows_and_empty_input():
    assert parse_csv("") == []
    assert parse_csv("a,b\n1\n") == [{"a": 1, "b": ""}]


@pytest.mark.parametrize(
    "group_name, category",
    [
        ("Agility shortcuts (north)", "agility"),
        ("Wilderness wall", "doors"),
        ("Ladder", "stairs_ladders"),
        ("Spirit tree network", "transport"),
        ("Fairy ring", "fairy_rings"),
        ("Dungeon entrances", "dungeons"),
        ("Lunar portal", "portals"),
        ("Something new", DEFAULT_CATEGORY),
    ],
)
def test_classify_group(group_name, category):
    assert classify_group(group_name) == category


DOOR_ROW = {
    "id": 1,
    "tile_inside_x": 3200,
    "tile_inside_y": 3200,
    "tile_inside_plane": 0,
    "tile_outside_x": 3201,
    "tile_outside_y": 3200,
    "tile_outside_plane": 1,
}

ITEM_ROW = {
    "id": 5,
    "dest_min_x": 3000,
    "dest_max_x": 3010,
    "dest_min_y": 3000,
    "dest_max_y": 3004,
    "dest_plane": 0,
    "name": "Ring of travel",
}


def test_door_crossing_planes_gets_shadow():
    collection = nodes_from_sheets({"door": [DOOR_ROW]})

    door = collection.nodes_by_plane[0][0]
    shadow = collection.nodes_by_plane[1][0]
    assert door.color == KIND_COLORS["door"]
    assert not door.shadow
    assert shadow.shadow and shadow.plane == 1
    assert shadow.destination_point() == (3201.0, 3200.0, 1)
    assert collection.details["door"][1]["open_action"] == "Open"


def test_item_lives_at_destination_centre():
    collection = nodes_from_sheets({"item": [ITEM_ROW]})
    item = collection.nodes_by_plane[0][0]
    assert item.shadow
    assert (item.x, item.y) == (3005, 3002)
    assert item.dest_rect is not None
    assert collection.count() == 1
    assert item.detail["name"] == "Ring of travel"


def test_npc_uses_origin_and_destination_areas():
    row = {
        "id": 9,
        "orig_min_x": 10,
        "orig_max_x": 12,
        "orig_min_y": 20,
        "orig_max_y": 20,
        "orig_plane": 0,
        "dest_min_x": 100,
        "dest_max_x": 104,
        "dest_min_y": 200,
        "dest_max_y": 202,
        "dest_plane": 0,
        "npc_id": 42,
    }
    collection = nodes_from_sheets({"npc": [row]})
    npc = collection.nodes_by_plane[0][0]
    assert npc.source_point() == (11.0, 20.0, 0)
    assert npc.destination_point() == (102.0, 201.0, 0)
    assert npc.detail["npc_name"] == "NPC #42"
    assert npc.detail["action"] == "Talk-to"


def test_fairy_ring_and_lodestone_are_self_links():
    collection = nodes_from_sheets(
        {
            "fairy_ring": [{"id": 1, "x": 50, "y": 60, "plane": 0, "code": "AJR"}],
            "lodestone": [{"id": 2, "dest_x": 70, "dest_y": 80, "dest_plane": 0, "lodestone": "Lumbridge"}],
        }
    )
    ring, lodestone = collection.nodes_by_plane[0]
    assert ring.source_point() == ring.destination_point() == (50.0, 60.0, 0)
    assert lodestone.source_point() == (70.0, 80.0, 0)
    assert collection.details["fairy_ring"][1]["code"] == "AJR"


def test_unusable_sheet_rows_are_skipped():
    collection = nodes_from_sheets(
        {"door": [{"id": "", "tile_inside_x": 1}, {"id": 3, "tile_inside_x": "", "tile_inside_y": 2}]}
    )
    assert collection.count() == 0
    assert collection.skipped == 2


def test_unknown_kind_rejected():
    with pytest.raises(ValueError):
        nodes_from_sheets({"balloon": []})


def test_grouped_entries():
    entries = [
        {
            "rowNumber": 7,
            "groupName": "Ladder",
            "origin": {"x": 1, "y": 2, "plane": 0},
            "destination": {"x": 1, "y": 2, "plane": 1},
        },
        {"groupName": "Spirit tree", "destination": {"x": 5, "y": 5, "plane": 2}},
        {"groupName": "Spirit tree", "destination": {"x": 5, "y": 5, "plane": 0}},
    ]
    collection = nodes_from_grouped(entries)

    ladder = collection.nodes_by_plane[0][0]
    assert ladder.id == 7
    assert ladder.category == "stairs_ladders"
    assert collection.nodes_by_plane[1][0].shadow

    # Origin-less entry on another plane is listed only at its destination
    orphan = collection.nodes_by_plane[2][0]
    assert orphan.id == 1
    assert orphan.shadow
    assert collection.skipped == 1
    assert len(collection.nodes_by_plane[0]) == 1


def test_collection_does_not_shadow_shadows():
    collection = NodeCollection()
    node = TransportNode(id=1, kind="item", x=1, y=1, plane=0, dst_plane=2, shadow=True)
    collection.add(node)
    assert list(collection.nodes_by_plane) == [0]
