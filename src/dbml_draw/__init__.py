"""dbml-draw: lay out and render DBML entity-relationship diagrams to SVG."""

from __future__ import annotations

from pathlib import Path

from .types import (
    Column,
    Diagram,
    EndPoint,
    Point,
    Position,
    RelationType,
    Relationship,
    Table,
    TableId,
)
from .errors import DbmlDrawError, LayoutFileError, ParseError
from .theme import DiagramColors, THEMES, DEFAULTS
from .styles import DrawingConfig, DEFAULT_CONFIG
from .layout import auto_layout
from .renderer import render_svg
from .parser import parse_diagram, dump_diagram
from .layout_file import apply_layout, read_layout, write_layout, default_layout_path
from .editor import EditorSession, set_table_position, set_table_positions

__all__ = [
    "render_diagram",
    "render_diagram_file",
    "auto_layout",
    "render_svg",
    "parse_diagram",
    "dump_diagram",
    "apply_layout",
    "read_layout",
    "write_layout",
    "default_layout_path",
    "set_table_position",
    "set_table_positions",
    "EditorSession",
    "Column",
    "Diagram",
    "EndPoint",
    "Point",
    "Position",
    "RelationType",
    "Relationship",
    "Table",
    "TableId",
    "DiagramColors",
    "DrawingConfig",
    "DEFAULT_CONFIG",
    "THEMES",
    "DEFAULTS",
    "DbmlDrawError",
    "ParseError",
    "LayoutFileError",
]


def render_diagram(
    diagram: Diagram,
    config: DrawingConfig | None = None,
    strategy: str = "cross",
) -> str:
    """Position any unplaced tables, then render the diagram to an SVG string."""
    auto_layout(diagram, config, strategy)
    return render_svg(diagram, config)


def render_diagram_file(
    source_path: str | Path,
    layout_path: str | Path | None = None,
    config: DrawingConfig | None = None,
    strategy: str = "cross",
) -> str:
    """Load a diagram JSON file, restore its saved layout and render it.

    The layout file defaults to ``<source>.layout.toml`` next to the source.
    """
    source_path = Path(source_path)
    diagram = parse_diagram(source_path.read_text(encoding="utf-8"))
    if layout_path is None:
        layout_path = default_layout_path(source_path)
    apply_layout(diagram, layout_path)
    return render_diagram(diagram, config, strategy)
