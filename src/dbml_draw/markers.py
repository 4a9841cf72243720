from __future__ import annotations

from typing import Literal

from .styles import DrawingConfig, DEFAULT_CONFIG
from .types import Relationship, Table

# ============================================================================
# IE notation markers
#
# Four glyphs, each defined once per path end (start markers face the
# table the path leaves, end markers the table it reaches):
#   'one-mandatory'   ||   exactly one
#   'one-optional'    |o   zero or one
#   'many-mandatory'  |<   one or many
#   'many-optional'   o<   zero or many
#
# Marker ids follow "{one|many}-{mandatory|optional}-{start|end}".
# ============================================================================

IeMarker = Literal["one-mandatory", "one-optional", "many-mandatory", "many-optional"]
MarkerEnd = Literal["start", "end"]

MARKER_WIDTH = 32
MARKER_HEIGHT = 24
MARKER_REF_Y = 12
START_REF_X = 4
END_REF_X = 28


def marker_id(marker: IeMarker, end: MarkerEnd) -> str:
    return f"{marker}-{end}"


def fk_is_nullable(column_names: list[str], table: Table) -> bool:
    """Nullability of the first FK column; unknown columns count as nullable."""
    name = column_names[0] if column_names else ""
    col = table.find_column(name)
    return col.is_nullable if col is not None else True


def _one(nullable: bool) -> IeMarker:
    return "one-optional" if nullable else "one-mandatory"


def _many(nullable: bool) -> IeMarker:
    return "many-optional" if nullable else "many-mandatory"


def determine_ie_markers(
    rel: Relationship,
    from_table: Table,
    to_table: Table,
) -> tuple[IeMarker, IeMarker]:
    """(from marker, to marker) for a relationship.

    The FK column that decides optionality is on the "many" side: the
    ``from`` endpoint for many-to-one and one-to-one, the ``to`` endpoint
    for one-to-many. Many-to-many is always optional on both ends.
    """
    if rel.relation_type == "many-to-one":
        nullable = fk_is_nullable(rel.from_.column_names, from_table)
        return _many(nullable), _one(nullable)
    if rel.relation_type == "one-to-many":
        nullable = fk_is_nullable(rel.to.column_names, to_table)
        return _one(nullable), _many(nullable)
    if rel.relation_type == "one-to-one":
        nullable = fk_is_nullable(rel.from_.column_names, from_table)
        return _one(nullable), _one(nullable)
    return "many-optional", "many-optional"


# ============================================================================
# <defs> block
# ============================================================================


def create_marker_defs(config: DrawingConfig | None = None) -> str:
    """All eight marker definitions wrapped in a single <defs> element."""
    if config is None:
        config = DEFAULT_CONFIG

    stroke = config.colors.relation
    sw = config.relation_stroke_width
    fill = config.colors.marker_fill

    def vertical_line(x: int) -> str:
        return (
            f'<line x1="{x}" y1="3" x2="{x}" y2="21" '
            f'stroke="{stroke}" stroke-width="{sw}" />'
        )

    def circle(cx: int) -> str:
        return (
            f'<circle cx="{cx}" cy="{MARKER_REF_Y}" r="5" '
            f'stroke="{stroke}" stroke-width="{sw}" fill="{fill}" />'
        )

    def crow_foot(tip_x: int, base_x: int) -> str:
        d = f"M {base_x} 12 L {tip_x} 3 M {base_x} 12 L {tip_x} 21"
        return f'<path d="{d}" stroke="{stroke}" stroke-width="{sw}" fill="none" />'

    # Start geometry mirrors end geometry around the marker box
    shapes: list[tuple[str, int, list[str]]] = [
        ("one-mandatory-start", START_REF_X, [vertical_line(16), vertical_line(22)]),
        ("one-mandatory-end", END_REF_X, [vertical_line(10), vertical_line(16)]),
        ("one-optional-start", START_REF_X, [vertical_line(16), circle(22)]),
        ("one-optional-end", END_REF_X, [circle(10), vertical_line(16)]),
        ("many-mandatory-start", START_REF_X, [crow_foot(6, 16), vertical_line(24)]),
        ("many-mandatory-end", END_REF_X, [vertical_line(8), crow_foot(26, 16)]),
        ("many-optional-start", START_REF_X, [crow_foot(6, 16), circle(22)]),
        ("many-optional-end", END_REF_X, [circle(10), crow_foot(26, 16)]),
    ]

    parts: list[str] = ["<defs>"]
    for mid, ref_x, children in shapes:
        parts.append(
            f'<marker id="{mid}" markerWidth="{MARKER_WIDTH}" markerHeight="{MARKER_HEIGHT}" '
            f'refX="{ref_x}" refY="{MARKER_REF_Y}" orient="auto" markerUnits="userSpaceOnUse">'
        )
        parts.extend(children)
        parts.append("</marker>")
    parts.append("</defs>")
    return "\n".join(parts)
