"""Tests for the SVG renderer -- canvas sizing, draw order, table boxes and
relationship paths.
"""
from __future__ import annotations

import re

from dbml_draw.renderer import compute_canvas_size, render_svg, render_table
from dbml_draw.styles import DrawingConfig
from dbml_draw.theme import THEMES
from dbml_draw.types import Column, Diagram, EndPoint, Position, Relationship, Table, TableId

config = DrawingConfig()


def make_table(name: str, x: float | None = None, y: float | None = None, schema: str = "public") -> Table:
    return Table(
        id=TableId(schema, name),
        columns=[
            Column(name="id", type_raw="int", is_pk=True, is_nullable=False),
            Column(name="owner_id", type_raw="varchar(255)", is_nullable=False),
        ],
        position=Position(float(x), float(y)) if x is not None and y is not None else None,
    )


def many_to_one(a: str, b: str) -> Relationship:
    return Relationship(
        relation_type="many-to-one",
        from_=EndPoint(TableId("public", a), ["owner_id"]),
        to=EndPoint(TableId("public", b), ["id"]),
    )


# ============================================================================
# Canvas
# ============================================================================


class TestCanvasSize:
    def test_has_a_minimum_size(self):
        d = Diagram(tables=[make_table("a", 50, 50)])
        assert compute_canvas_size(d, config) == (800, 600)

    def test_grows_to_fit_the_furthest_table(self):
        # height = 36 + 2 * 28 = 92
        d = Diagram(tables=[make_table("a", 50, 50), make_table("b", 700, 600)])
        assert compute_canvas_size(d, config) == (700 + 260 + 50, 600 + 92 + 50)

    def test_ignores_unpositioned_tables(self):
        d = Diagram(tables=[make_table("a")])
        assert compute_canvas_size(d, config) == (800, 600)

    def test_root_element_carries_the_size(self):
        svg = render_svg(Diagram(tables=[make_table("a", 50, 50)]))
        assert svg.startswith("<svg ")
        assert 'width="800.0" height="600.0"' in svg
        assert 'viewBox="0 0 800.0 600.0"' in svg
        assert svg.endswith("</svg>")


# ============================================================================
# Document structure
# ============================================================================


class TestRenderSvg:
    def test_draws_background_then_markers_then_paths_then_tables(self):
        d = Diagram(
            tables=[make_table("users", 50, 50), make_table("posts", 410, 50)],
            relationships=[many_to_one("posts", "users")],
        )
        svg = render_svg(d)
        bg = svg.index('<rect width="100%" height="100%"')
        defs = svg.index("<defs>")
        path = svg.index('class="relationship"')
        first_table = svg.index('class="table"')
        assert bg < defs < path < first_table

    def test_one_group_per_positioned_table_in_diagram_order(self):
        d = Diagram(tables=[make_table("b", 410, 50), make_table("a", 50, 50), make_table("floating")])
        svg = render_svg(d)
        ids = re.findall(r'data-table-id="([^"]+)"', svg)
        assert ids == ["public.b", "public.a"]

    def test_relationship_path_references_markers(self):
        d = Diagram(
            tables=[make_table("users", 50, 50), make_table("posts", 410, 50)],
            relationships=[many_to_one("posts", "users")],
        )
        svg = render_svg(d)
        assert 'marker-start="url(#many-mandatory-start)"' in svg
        assert 'marker-end="url(#one-mandatory-end)"' in svg
        # posts.owner_id (row 1) on the left edge, users.id (row 0) on the right edge
        assert 'd="M 410.0 128.0 L 360.0 128.0 L 360.0 100.0 L 310.0 100.0"' in svg

    def test_dangling_relationship_is_omitted(self):
        d = Diagram(
            tables=[make_table("users", 50, 50), make_table("posts", 410, 50)],
            relationships=[many_to_one("posts", "ghosts"), many_to_one("posts", "users")],
        )
        svg = render_svg(d)
        assert svg.count('class="relationship"') == 1

    def test_is_deterministic(self):
        d = Diagram(
            tables=[make_table("users", 50, 50), make_table("posts", 410, 300)],
            relationships=[many_to_one("posts", "users")],
        )
        assert render_svg(d) == render_svg(d)

    def test_applies_theme_colors(self):
        cfg = DrawingConfig(colors=THEMES["nord"])
        svg = render_svg(Diagram(tables=[make_table("a", 50, 50)]), cfg)
        assert THEMES["nord"].canvas_bg in svg
        assert THEMES["nord"].header_bg in svg


# ============================================================================
# Table boxes
# ============================================================================


class TestRenderTable:
    def test_translates_to_the_table_position(self):
        out = render_table(make_table("users", 120, 80))
        assert 'transform="translate(120.0, 80.0)"' in out

    def test_header_shows_the_table_name_not_the_schema(self):
        out = render_table(make_table("users", 0, 0, schema="auth"))
        assert ">users</text>" in out
        assert 'data-table-id="auth.users"' in out

    def test_rows_follow_column_order(self):
        out = render_table(make_table("users", 0, 0))
        assert out.index(">\U0001F511 id</text>") < out.index(">owner_id</text>")

    def test_primary_key_is_marked_and_colored(self):
        out = render_table(make_table("users", 0, 0))
        assert f'fill="{config.colors.pk}">\U0001F511 id</text>' in out
        assert f'fill="{config.colors.column_text}">owner_id</text>' in out

    def test_type_is_right_aligned(self):
        out = render_table(make_table("users", 0, 0))
        assert 'x="248.0"' in out
        assert 'text-anchor="end">varchar(255)</text>' in out

    def test_box_height_matches_column_count(self):
        out = render_table(make_table("users", 0, 0))
        assert '<rect width="260.0" height="92.0"' in out

    def test_escapes_xml_in_names_and_types(self):
        t = Table(
            id=TableId("public", "a&b"),
            columns=[Column(name="<x>", type_raw='enum("a")')],
            position=Position(0, 0),
        )
        out = render_table(t)
        assert "a&amp;b" in out
        assert "&lt;x&gt;" in out
        assert "enum(&quot;a&quot;)" in out
