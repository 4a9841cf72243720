from __future__ import annotations

from dataclasses import dataclass

# ============================================================================
# Types
# ============================================================================


@dataclass(frozen=True, slots=True)
class DiagramColors:
    """Diagram color configuration.

    Every field is a literal CSS color so the output renders the same in
    browsers and in SVG rasterizers without CSS variable support.
    """

    canvas_bg: str = "#f5f5f5"
    header_bg: str = "#3498db"
    header_text: str = "#ffffff"
    table_bg: str = "#ffffff"
    table_border: str = "#cccccc"
    column_text: str = "#333333"
    type_text: str = "#888888"
    pk: str = "#e74c3c"
    relation: str = "#666666"
    # Fill inside the optional (circle) markers
    marker_fill: str = "white"


# ============================================================================
# Defaults
# ============================================================================

DEFAULTS = DiagramColors()

# ============================================================================
# Well-known theme palettes
# ============================================================================

THEMES: dict[str, DiagramColors] = {
    "default": DEFAULTS,
    "zinc-dark": DiagramColors(
        canvas_bg="#18181B", header_bg="#3F3F46", header_text="#FAFAFA",
        table_bg="#27272A", table_border="#52525B", column_text="#FAFAFA",
        type_text="#A1A1AA", pk="#F87171", relation="#A1A1AA",
        marker_fill="#18181B",
    ),
    "nord": DiagramColors(
        canvas_bg="#2e3440", header_bg="#5e81ac", header_text="#eceff4",
        table_bg="#3b4252", table_border="#4c566a", column_text="#d8dee9",
        type_text="#81a1c1", pk="#bf616a", relation="#616e88",
        marker_fill="#2e3440",
    ),
    "github-light": DiagramColors(
        canvas_bg="#ffffff", header_bg="#0969da", header_text="#ffffff",
        table_bg="#ffffff", table_border="#d1d9e0", column_text="#1f2328",
        type_text="#59636e", pk="#cf222e", relation="#59636e",
    ),
    "solarized-light": DiagramColors(
        canvas_bg="#fdf6e3", header_bg="#268bd2", header_text="#fdf6e3",
        table_bg="#eee8d5", table_border="#93a1a1", column_text="#657b83",
        type_text="#93a1a1", pk="#dc322f", relation="#586e75",
        marker_fill="#fdf6e3",
    ),
}


# ============================================================================
# SVG root
# ============================================================================


def svg_open_tag(width: float, height: float) -> str:
    """Build the SVG opening tag with a viewBox matching the canvas size."""
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}">'
    )


def background_rect(colors: DiagramColors) -> str:
    return f'<rect width="100%" height="100%" fill="{colors.canvas_bg}" />'
