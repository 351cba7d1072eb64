"""Normalisation of raw transport feature rows into TransportNode records.

Two feature feeds exist:

1. Sheet feed: six CSV sheets (doors, items, npcs, objects, fairy rings,
   lodestones), each with its own column layout. Every row becomes one node of a
   fixed *kind*.
2. Grouped feed: a JSON list of entries with a free-text ``groupName`` plus
   ``origin``/``destination`` objects. Group names are mapped onto a small set of
   display *categories* by substring patterns.

Both feeds share one rule: a node whose destination is on a different plane than
its source is also listed, as a shadow, on the destination plane.

Rows that cannot be turned into a node (missing id, missing coordinates, values
pydantic rejects) are skipped and counted, never fatal.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from pydantic import ValidationError

from .logging_utils import log_debug
from .schemas import DestinationRect, TransportNode


KIND_COLORS: Dict[str, str] = {
    "door": "#e67e22",
    "item": "#3498db",
    "lodestone": "#f1c40f",
    "npc": "#1abc9c",
    "object": "#9b59b6",
    "fairy_ring": "#ff6ad5",
}

# Sheet name per kind in the published spreadsheet
SHEETS: Dict[str, str] = {
    "door": "teleports_door_nodes",
    "item": "teleports_item_nodes",
    "npc": "teleports_npc_nodes",
    "object": "teleports_object_nodes",
    "fairy_ring": "teleports_fairy_rings_nodes",
    "lodestone": "teleports_lodestone_nodes",
}


@dataclass(frozen=True)
class CategoryGroup:
    label: str
    color: str
    patterns: tuple


CATEGORY_GROUPS: Dict[str, CategoryGroup] = {
    "agility": CategoryGroup(
        "Agility",
        "#2ecc71",
        (
            "Agility shortcuts",
            "Agility Pyramid",
            "Agility Course",
            "Agility Arena",
            "Runespan obstacles",
            "Gully",
        ),
    ),
    "doors": CategoryGroup(
        "Doors & Gates",
        "#e67e22",
        ("Door", "Gate", "Large door", "Combat barrier", "Wilderness wall"),
    ),
    "stairs_ladders": CategoryGroup(
        "Stairs & Ladders", "#9b59b6", ("Stairs", "Ladder", "Staircase"),
    ),
    "transport": CategoryGroup(
        "Transport",
        "#3498db",
        (
            "Boats",
            "Charter ship",
            "Balloons",
            "Gnome gliders",
            "Magic carpet",
            "Spirit tree",
            "Portmaster Kags",
        ),
    ),
    "fairy_rings": CategoryGroup("Fairy Rings", "#ff6ad5", ("Fairy ring", "fairy ring")),
    "dungeons": CategoryGroup(
        "Dungeons",
        "#e74c3c",
        ("Dungeon entrances", "Resource Dungeons", "Underground Pass", "Abyss"),
    ),
    "portals": CategoryGroup("Portals", "#f1c40f", ("portal", "Portal", "obelisks", "Jennica")),
    "interactive": CategoryGroup(
        "Interactive",
        "#1abc9c",
        (
            "NPCs",
            "Interactive scenery",
            "Misc items",
            "Prifddinas",
            "Player owned",
            "Temple of Light",
            "Poison Waste",
        ),
    ),
}

DEFAULT_CATEGORY = "interactive"


def classify_group(group_name: str) -> str:
    """Map a free-text group name to a category key (first matching pattern wins)."""
    for category, group in CATEGORY_GROUPS.items():
        if any(pattern in group_name for pattern in group.patterns):
            return category
    return DEFAULT_CATEGORY


# ---------------------------------------------------------------------------
# CSV parsing
# ---------------------------------------------------------------------------


def _coerce_cell(value: str) -> Any:
    """Turn numeric-looking cells into int/float; leave everything else as text."""
    text = value.strip()
    if text == "":
        return ""
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return text
    # "nan"/"inf" stay text so they read as missing rather than as coordinates
    if number != number or number in (float("inf"), float("-inf")):
        return text
    return number


def parse_csv(text: str) -> List[Dict[str, Any]]:
    """Parse a CSV export (header row + quoted fields) into dicts with numeric coercion."""
    reader = csv.reader(io.StringIO(text.strip()))
    try:
        headers = [header.strip() for header in next(reader)]
    except StopIteration:
        return []
    rows: List[Dict[str, Any]] = []
    for values in reader:
        if not any(cell.strip() for cell in values):
            continue
        row = {}
        for index, header in enumerate(headers):
            row[header] = _coerce_cell(values[index]) if index < len(values) else ""
        rows.append(row)
    return rows


# ---------------------------------------------------------------------------
# Node collection
# ---------------------------------------------------------------------------


@dataclass
class NodeCollection:
    """Nodes grouped by the plane they are listed on, plus per-kind detail tables."""

    nodes_by_plane: Dict[int, List[TransportNode]] = field(default_factory=dict)
    details: Dict[str, Dict[Any, Dict[str, Any]]] = field(default_factory=dict)
    skipped: int = 0

    def add(self, node: TransportNode) -> None:
        """List ``node`` on its plane and, if it crosses planes, a shadow on the other."""
        self.nodes_by_plane.setdefault(node.plane, []).append(node)
        if node.shadow or node.dst_plane is None or node.dst_plane == node.plane:
            return
        self.nodes_by_plane.setdefault(node.dst_plane, []).append(node.as_shadow(node.dst_plane))

    def count(self) -> int:
        return sum(len(nodes) for nodes in self.nodes_by_plane.values())


def _num(row: Mapping[str, Any], key: str) -> Optional[float]:
    value = row.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _plane(row: Mapping[str, Any], key: str) -> int:
    value = _num(row, key)
    return int(value) if value is not None else 0


def _mid(row: Mapping[str, Any], low: str, high: str) -> Optional[float]:
    a = _num(row, low)
    b = _num(row, high)
    if a is None or b is None:
        return None
    return (a + b) / 2


def _dest_rect(row: Mapping[str, Any]) -> Optional[DestinationRect]:
    values = [_num(row, key) for key in ("dest_min_x", "dest_max_x", "dest_min_y", "dest_max_y")]
    if any(value is None for value in values):
        return None
    return DestinationRect(
        min_x=values[0],
        max_x=values[1],
        min_y=values[2],
        max_y=values[3],
        plane=_plane(row, "dest_plane"),
    )


def _door_node(row: Mapping[str, Any]) -> Optional[TransportNode]:
    src_x = _num(row, "tile_inside_x")
    src_y = _num(row, "tile_inside_y")
    if src_x is None or src_y is None:
        return None
    return TransportNode(
        id=row["id"],
        kind="door",
        x=src_x,
        y=src_y,
        plane=_plane(row, "tile_inside_plane"),
        dst_x=_num(row, "tile_outside_x"),
        dst_y=_num(row, "tile_outside_y"),
        dst_plane=_plane(row, "tile_outside_plane"),
        detail={
            "direction": row.get("direction") or "",
            "real_id_open": row.get("real_id_open"),
            "real_id_closed": row.get("real_id_closed"),
            "open_action": row.get("open_action") or "Open",
        },
    )


def _item_node(row: Mapping[str, Any]) -> Optional[TransportNode]:
    # Items are inventory teleports with no fixed source; they live at their destination.
    rect = _dest_rect(row)
    if rect is None:
        return None
    dest_x, dest_y = rect.center
    return TransportNode(
        id=row["id"],
        kind="item",
        x=dest_x,
        y=dest_y,
        plane=rect.plane,
        dst_x=dest_x,
        dst_y=dest_y,
        dst_plane=rect.plane,
        dest_rect=rect,
        shadow=True,
        detail={
            "name": row.get("name") or row.get("INFO") or f"Item #{row.get('item_id')}",
            "item_id": row.get("item_id"),
            "action": row.get("action") or "Teleport",
        },
    )


def _area_node(kind: str, id_key: str, name_key: str, default_action: str, label: str):
    def build(row: Mapping[str, Any]) -> Optional[TransportNode]:
        src_x = _mid(row, "orig_min_x", "orig_max_x")
        src_y = _mid(row, "orig_min_y", "orig_max_y")
        if src_x is None or src_y is None:
            return None
        rect = _dest_rect(row)
        dst_plane = _plane(row, "dest_plane")
        return TransportNode(
            id=row["id"],
            kind=kind,
            x=src_x,
            y=src_y,
            plane=_plane(row, "orig_plane"),
            dst_x=rect.center[0] if rect else None,
            dst_y=rect.center[1] if rect else None,
            dst_plane=dst_plane,
            dest_rect=rect,
            detail={
                id_key: row.get(id_key),
                name_key: row.get(name_key) or f"{label} #{row.get(id_key)}",
                "action": row.get("action") or default_action,
            },
        )

    return build


def _fairy_ring_node(row: Mapping[str, Any]) -> Optional[TransportNode]:
    x = _num(row, "x")
    y = _num(row, "y")
    if x is None or y is None:
        return None
    plane = _plane(row, "plane")
    return TransportNode(
        id=row["id"],
        kind="fairy_ring",
        x=x,
        y=y,
        plane=plane,
        dst_x=x,
        dst_y=y,
        dst_plane=plane,
        detail={
            "object_id": row.get("object_id"),
            "code": row.get("code") or "",
            "action": row.get("action") or "Use",
        },
    )


def _lodestone_node(row: Mapping[str, Any]) -> Optional[TransportNode]:
    x = _num(row, "dest_x")
    y = _num(row, "dest_y")
    if x is None or y is None:
        return None
    plane = _plane(row, "dest_plane")
    return TransportNode(
        id=row["id"],
        kind="lodestone",
        x=x,
        y=y,
        plane=plane,
        dst_x=x,
        dst_y=y,
        dst_plane=plane,
        detail={"lodestone": row.get("lodestone")},
    )


ROW_BUILDERS: Dict[str, Callable[[Mapping[str, Any]], Optional[TransportNode]]] = {
    "door": _door_node,
    "item": _item_node,
    "npc": _area_node("npc", "npc_id", "npc_name", "Talk-to", "NPC"),
    "object": _area_node("object", "object_id", "object_name", "Use", "Object"),
    "fairy_ring": _fairy_ring_node,
    "lodestone": _lodestone_node,
}


def nodes_from_sheets(sheets: Mapping[str, Iterable[Mapping[str, Any]]]) -> NodeCollection:
    """Build nodes from per-kind sheet rows (keys of ``KIND_COLORS``)."""
    collection = NodeCollection()
    for kind, rows in sheets.items():
        builder = ROW_BUILDERS.get(kind)
        if builder is None:
            raise ValueError(f"Unknown transport kind '{kind}'")
        details = collection.details.setdefault(kind, {})
        for row in rows:
            if not row.get("id"):
                collection.skipped += 1
                continue
            try:
                node = builder(row)
            except ValidationError as exc:
                log_debug(f"[Features] skipping {kind} row {row.get('id')}: {exc.error_count()} errors")
                node = None
            if node is None:
                collection.skipped += 1
                continue
            node = node.model_copy(update={"color": KIND_COLORS[kind]})
            details[node.id] = node.detail
            collection.add(node)
    return collection


def _endpoint(entry: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = entry.get(key)
    return value if isinstance(value, Mapping) else {}


def nodes_from_grouped(entries: Iterable[Mapping[str, Any]]) -> NodeCollection:
    """Build category nodes from grouped JSON entries.

    Entries without an origin are only listed on their destination plane (as a
    shadow) when the destination is on a different plane than the default origin
    plane 0.
    """

    collection = NodeCollection()
    for index, entry in enumerate(entries):
        group_name = str(entry.get("groupName") or "")
        category = classify_group(group_name)
        origin = _endpoint(entry, "origin")
        destination = _endpoint(entry, "destination")
        src_plane = _plane(origin, "plane")
        dst_plane = _plane(destination, "plane")
        try:
            node = TransportNode(
                id=entry.get("rowNumber", index),
                kind=category,
                category=category,
                group_name=group_name,
                color=CATEGORY_GROUPS[category].color,
                oneway=bool(entry.get("oneway", False)),
                x=_num(origin, "x"),
                y=_num(origin, "y"),
                plane=src_plane,
                dst_x=_num(destination, "x"),
                dst_y=_num(destination, "y"),
                dst_plane=dst_plane,
            )
        except ValidationError:
            collection.skipped += 1
            continue

        collection.details.setdefault(category, {})[node.id] = node.detail
        if node.x is not None and node.y is not None:
            collection.add(node)
        elif dst_plane != src_plane and node.dst_x is not None:
            collection.nodes_by_plane.setdefault(dst_plane, []).append(node.as_shadow(dst_plane))
        else:
            collection.skipped += 1
    return collection


__all__ = [
    "KIND_COLORS",
    "SHEETS",
    "CategoryGroup",
    "CATEGORY_GROUPS",
    "DEFAULT_CATEGORY",
    "classify_group",
    "parse_csv",
    "NodeCollection",
    "nodes_from_sheets",
    "nodes_from_grouped",
]
