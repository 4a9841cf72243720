from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from .errors import ParseError
from .types import (
    Column,
    Diagram,
    EndPoint,
    Position,
    RelationType,
    Relationship,
    Table,
    TableId,
)

# ============================================================================
# Diagram IR loader
#
# Reads the JSON form of the diagram model produced by a DBML front end:
#
#   {
#     "tables": [
#       {"id": {"schema": "public", "name": "users"},
#        "columns": [{"name": "id", "type_raw": "int", "is_pk": true,
#                     "is_nullable": false}],
#        "position": null}
#     ],
#     "relationships": [
#       {"relation_type": "ManyToOne",
#        "from": {"table_id": {"schema": "public", "name": "posts"},
#                 "column_names": ["user_id"]},
#        "to":   {"table_id": {"schema": "public", "name": "users"},
#                 "column_names": ["id"]}}
#     ]
#   }
# ============================================================================

DEFAULT_SCHEMA = "public"

RELATION_TYPES: dict[str, RelationType] = {
    "OneToOne": "one-to-one",
    "OneToMany": "one-to-many",
    "ManyToOne": "many-to-one",
    "ManyToMany": "many-to-many",
    "one-to-one": "one-to-one",
    "one-to-many": "one-to-many",
    "many-to-one": "many-to-one",
    "many-to-many": "many-to-many",
}

RELATION_TAGS: dict[RelationType, str] = {
    "one-to-one": "OneToOne",
    "one-to-many": "OneToMany",
    "many-to-one": "ManyToOne",
    "many-to-many": "ManyToMany",
}


def parse_diagram(source: str | Mapping[str, Any]) -> Diagram:
    """Build a Diagram from its JSON text or an already-decoded mapping."""
    if isinstance(source, str):
        try:
            source = json.loads(source)
        except json.JSONDecodeError as err:
            raise ParseError(f"Invalid diagram JSON: {err}") from err

    if not isinstance(source, Mapping):
        raise ParseError("Diagram must be a JSON object")

    try:
        tables = [_parse_table(t) for t in source.get("tables", [])]
        relationships = [_parse_relationship(r) for r in source.get("relationships", [])]
    except (KeyError, TypeError, ValueError, AttributeError) as err:
        raise ParseError(f"Malformed diagram: {err}") from err

    return Diagram(tables=tables, relationships=relationships)


def _parse_table_id(raw: Any) -> TableId:
    if isinstance(raw, str):
        schema, sep, name = raw.partition(".")
        if not sep:
            return TableId(schema=DEFAULT_SCHEMA, name=schema)
        return TableId(schema=schema, name=name)
    return TableId(schema=str(raw.get("schema") or DEFAULT_SCHEMA), name=str(raw["name"]))


def _parse_flag(raw: Mapping[str, Any], key: str, default: bool) -> bool:
    value = raw.get(key, default)
    if not isinstance(value, bool):
        raise ParseError(f"{key} must be a boolean, got {value!r}")
    return value


def _parse_table(raw: Mapping[str, Any]) -> Table:
    columns = [
        Column(
            name=str(c["name"]),
            type_raw=str(c.get("type_raw", "")),
            is_pk=_parse_flag(c, "is_pk", False),
            is_nullable=_parse_flag(c, "is_nullable", True),
        )
        for c in raw.get("columns", [])
    ]
    pos = raw.get("position")
    position = Position(x=float(pos["x"]), y=float(pos["y"])) if pos is not None else None
    return Table(id=_parse_table_id(raw["id"]), columns=columns, position=position)


def _parse_endpoint(raw: Mapping[str, Any]) -> EndPoint:
    return EndPoint(
        table_id=_parse_table_id(raw["table_id"]),
        column_names=[str(n) for n in raw.get("column_names", [])],
    )


def _parse_relationship(raw: Mapping[str, Any]) -> Relationship:
    tag = raw["relation_type"]
    relation_type = RELATION_TYPES.get(tag)
    if relation_type is None:
        raise ValueError(f"unknown relation type {tag!r}")
    return Relationship(
        relation_type=relation_type,
        from_=_parse_endpoint(raw["from"]),
        to=_parse_endpoint(raw["to"]),
    )


# ============================================================================
# Dumping
# ============================================================================


def dump_diagram(diagram: Diagram) -> dict[str, Any]:
    """Inverse of parse_diagram, for handing the model to an editor front end."""

    def table_id(tid: TableId) -> dict[str, str]:
        return {"schema": tid.schema, "name": tid.name}

    def endpoint(ep: EndPoint) -> dict[str, Any]:
        return {"table_id": table_id(ep.table_id), "column_names": list(ep.column_names)}

    return {
        "tables": [
            {
                "id": table_id(t.id),
                "columns": [
                    {
                        "name": c.name,
                        "type_raw": c.type_raw,
                        "is_pk": c.is_pk,
                        "is_nullable": c.is_nullable,
                    }
                    for c in t.columns
                ],
                "position": (
                    {"x": t.position.x, "y": t.position.y} if t.position is not None else None
                ),
            }
            for t in diagram.tables
        ],
        "relationships": [
            {
                "relation_type": RELATION_TAGS[r.relation_type],
                "from": endpoint(r.from_),
                "to": endpoint(r.to),
            }
            for r in diagram.relationships
        ],
    }
