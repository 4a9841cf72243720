from __future__ import annotations

from .markers import create_marker_defs, determine_ie_markers, marker_id
from .routing import Route, path_data, route_relationships
from .styles import DrawingConfig, DEFAULT_CONFIG
from .theme import background_rect, svg_open_tag
from .types import Diagram, Point, Table

# ============================================================================
# SVG renderer
#
# Render order:
#   1. Background
#   2. Marker definitions (shared by every relationship)
#   3. Relationship paths (behind boxes)
#   4. Table boxes, in diagram order
#
# Tables without a position are not drawn.
# ============================================================================


def render_svg(diagram: Diagram, config: DrawingConfig | None = None) -> str:
    """Render a positioned diagram as a standalone SVG string."""
    if config is None:
        config = DEFAULT_CONFIG

    width, height = compute_canvas_size(diagram, config)

    parts: list[str] = []
    parts.append(svg_open_tag(width, height))
    parts.append(background_rect(config.colors))
    parts.append(create_marker_defs(config))

    for route, points in route_relationships(diagram, config):
        parts.append(_render_relationship(route, points, config))

    for table in diagram.tables:
        if table.position is None:
            continue
        parts.append(render_table(table, config))

    parts.append("</svg>")
    return "\n".join(parts)


def compute_canvas_size(diagram: Diagram, config: DrawingConfig) -> tuple[float, float]:
    max_x = config.min_canvas_width
    max_y = config.min_canvas_height
    for table in diagram.tables:
        pos = table.position
        if pos is None:
            continue
        max_x = max(max_x, pos.x + config.table_width + config.canvas_margin)
        max_y = max(max_y, pos.y + config.table_height(table) + config.canvas_margin)
    return max_x, max_y


# ============================================================================
# Relationships
# ============================================================================


def _render_relationship(route: Route, points: list[Point], config: DrawingConfig) -> str:
    from_marker, to_marker = determine_ie_markers(
        route.relationship, route.from_table, route.to_table
    )
    return (
        f'<g class="relationship">'
        f'<path d="{path_data(points)}" stroke="{config.colors.relation}" '
        f'stroke-width="{config.relation_stroke_width}" fill="none" '
        f'marker-start="url(#{marker_id(from_marker, "start")})" '
        f'marker-end="url(#{marker_id(to_marker, "end")})" />'
        f"</g>"
    )


# ============================================================================
# Table boxes
# ============================================================================


def render_table(table: Table, config: DrawingConfig | None = None) -> str:
    """Render one table box: border, header band, name and column rows."""
    if config is None:
        config = DEFAULT_CONFIG

    colors = config.colors
    x = table.position.x if table.position else 0.0
    y = table.position.y if table.position else 0.0
    w = config.table_width
    h = config.table_height(table)
    font = f'font-family="{config.font_family}"'

    parts: list[str] = [
        f'<g class="table" data-table-id="{_escape_xml(table.id.full_name)}" '
        f'transform="translate({x}, {y})">'
    ]

    parts.append(
        f'<rect width="{w}" height="{h}" rx="{config.border_radius}" '
        f'fill="{colors.table_bg}" stroke="{colors.table_border}" />'
    )
    parts.append(f'<rect width="{w}" height="{config.header_height}" fill="{colors.header_bg}" />')
    parts.append(
        f'<text x="{config.padding_x}" '
        f'y="{config.header_height / 2 + config.header_font_size / 3}" {font} '
        f'font-size="{config.header_font_size}" font-weight="bold" '
        f'fill="{colors.header_text}">{_escape_xml(table.id.name)}</text>'
    )
    parts.append(
        f'<line x1="0" y1="{config.header_height}" x2="{w}" y2="{config.header_height}" '
        f'stroke="{colors.table_border}" />'
    )

    for i, col in enumerate(table.columns):
        text_y = (
            config.header_height + i * config.row_height
            + config.row_height / 2 + config.font_size / 3
        )
        label = f"{config.pk_indicator} {col.name}" if col.is_pk else col.name
        fill = colors.pk if col.is_pk else colors.column_text
        parts.append(
            f'<text x="{config.padding_x}" y="{text_y}" {font} '
            f'font-size="{config.font_size}" fill="{fill}">{_escape_xml(label)}</text>'
        )
        parts.append(
            f'<text x="{w - config.padding_x}" y="{text_y}" {font} '
            f'font-size="{config.font_size}" fill="{colors.type_text}" '
            f'text-anchor="end">{_escape_xml(col.type_raw)}</text>'
        )

    parts.append("</g>")
    return "\n".join(parts)


# ============================================================================
# Utilities
# ============================================================================


def _escape_xml(text: str) -> str:
    """Escape special XML characters in text content."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
    )
