from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

# ============================================================================
# Diagram model
#
# The typed in-memory form of a parsed DBML schema. After construction only
# the ``position`` field of each table is ever mutated (by auto layout, by a
# restored layout file, or by the editor).
# ============================================================================

# Relationship kind, read from the ``from`` endpoint towards ``to``:
#   'many-to-one'   posts.user_id > users.id
#   'one-to-many'   users.id < posts.user_id
#   'one-to-one'    users.id - profiles.user_id
#   'many-to-many'  posts.id <> tags.id
RelationType = Literal["one-to-one", "one-to-many", "many-to-one", "many-to-many"]


@dataclass(frozen=True, slots=True, order=True)
class TableId:
    """Composite table key; stringifies as ``schema.name``."""

    schema: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.schema}.{self.name}"

    def __str__(self) -> str:
        return self.full_name


@dataclass(slots=True)
class Column:
    name: str
    # Type text exactly as written in the source (varchar(255), int[], ...)
    type_raw: str
    is_pk: bool = False
    is_nullable: bool = True


@dataclass(slots=True)
class Position:
    """Top-left pixel coordinate of a table box."""

    x: float
    y: float


@dataclass(slots=True)
class Table:
    id: TableId
    # Display order
    columns: list[Column] = field(default_factory=list)
    position: Position | None = None

    def find_column(self, name: str) -> Column | None:
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def column_index(self, name: str) -> int | None:
        for i, col in enumerate(self.columns):
            if col.name == name:
                return i
        return None


@dataclass(slots=True)
class EndPoint:
    table_id: TableId
    # Foreign-key columns; only the first one anchors the drawn line
    column_names: list[str] = field(default_factory=list)

    @property
    def first_column(self) -> str:
        return self.column_names[0] if self.column_names else ""


@dataclass(slots=True)
class Relationship:
    relation_type: RelationType
    from_: EndPoint
    to: EndPoint


@dataclass(slots=True)
class Diagram:
    tables: list[Table] = field(default_factory=list)
    # Endpoints may name tables that are not in ``tables``
    relationships: list[Relationship] = field(default_factory=list)

    def table_map(self) -> dict[TableId, Table]:
        """Index tables by id. The first table wins if an id repeats."""
        lookup: dict[TableId, Table] = {}
        for table in self.tables:
            lookup.setdefault(table.id, table)
        return lookup

    def find_table(self, full_name: str) -> Table | None:
        for table in self.tables:
            if table.id.full_name == full_name:
                return table
        return None


# ============================================================================
# Geometry
# ============================================================================

# Which edge of a table box a relationship line attaches to
Side = Literal["left", "right", "top", "bottom"]


@dataclass(slots=True)
class Point:
    x: float
    y: float
