from __future__ import annotations

from dataclasses import dataclass, field

from .theme import DiagramColors, DEFAULTS
from .types import Table

# ============================================================================
# Drawing configuration
#
# Every size, spacing and search bound used by layout and rendering lives
# here so alternate sizes and themes are a configuration change.
# ============================================================================


@dataclass(frozen=True, slots=True)
class DrawingConfig:
    # Table box
    table_width: float = 260.0
    header_height: float = 36.0
    row_height: float = 28.0
    padding_x: float = 12.0
    border_radius: float = 4.0

    # Fonts
    font_family: str = "monospace"
    font_size: float = 14.0
    header_font_size: float = 15.0
    pk_indicator: str = "\U0001F511"

    # Relationship lines
    relation_stroke_width: float = 1.5

    # Auto layout (grid cell -> pixel conversion)
    spacing_x: float = 100.0
    spacing_y: float = 80.0
    margin_x: float = 50.0
    margin_y: float = 50.0
    # Height assumed for a grid row with no tables in it
    empty_row_height: float = 200.0
    # Largest Chebyshev ring searched for a free grid cell
    max_search_radius: int = 19

    # Corridor distribution
    corridor_bucket: float = 10.0
    corridor_spacing: float = 20.0

    # Canvas
    canvas_margin: float = 50.0
    min_canvas_width: float = 800.0
    min_canvas_height: float = 600.0

    colors: DiagramColors = field(default_factory=lambda: DEFAULTS)

    def table_height(self, table: Table) -> float:
        return self.header_height + len(table.columns) * self.row_height

    def column_row_y(self, table: Table, column_name: str) -> float:
        """Vertical center of a column row relative to the table top.

        Unknown column names anchor to the first row.
        """
        idx = table.column_index(column_name)
        if idx is None:
            idx = 0
        return self.header_height + idx * self.row_height + self.row_height / 2


DEFAULT_CONFIG = DrawingConfig()
