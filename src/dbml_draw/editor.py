from __future__ import annotations

import base64
import binascii
import json
import logging
import queue
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .layout_file import collect_layout, default_layout_path, write_layout
from .renderer import render_svg
from .styles import DrawingConfig
from .types import Diagram, Position

logger = logging.getLogger(__name__)

# ============================================================================
# Editor bridge
#
# An interactive front end moves tables around and asks for exports. Its
# messages are decoded here and applied, one at a time, by the session that
# owns the diagram.
# ============================================================================

PNG_DATA_URL_PREFIX = "data:image/png;base64,"


def set_table_position(diagram: Diagram, table_id: str, x: float, y: float) -> bool:
    """Move one table, found by its "schema.name" id. Unknown ids are ignored."""
    table = diagram.find_table(table_id)
    if table is None:
        return False
    table.position = Position(x=float(x), y=float(y))
    return True


def set_table_positions(
    diagram: Diagram,
    positions: Mapping[str, Position | tuple[float, float]],
) -> int:
    """Move many tables at once. Returns how many ids matched."""
    updated = 0
    for table_id, pos in positions.items():
        if isinstance(pos, Position):
            x, y = pos.x, pos.y
        else:
            x, y = pos
        if set_table_position(diagram, table_id, x, y):
            updated += 1
    return updated


# ============================================================================
# Messages
# ============================================================================


@dataclass(slots=True)
class TableMoved:
    table_id: str
    x: float
    y: float


@dataclass(slots=True)
class SaveLayout:
    tables: dict[str, Position] = field(default_factory=dict)


@dataclass(slots=True)
class ExportSvg:
    pass


@dataclass(slots=True)
class ExportPng:
    data_url: str


EditorMessage = TableMoved | SaveLayout | ExportSvg | ExportPng


def parse_message(body: str | Mapping[str, Any]) -> EditorMessage:
    """Decode one front-end message (a JSON object tagged by "type")."""
    if isinstance(body, str):
        try:
            body = json.loads(body)
        except json.JSONDecodeError as err:
            raise ValueError(f"Failed to parse editor message: {err}") from err
    if not isinstance(body, Mapping):
        raise ValueError("Editor message must be a JSON object")

    kind = body.get("type")
    try:
        if kind == "table_moved":
            return TableMoved(
                table_id=str(body["table_id"]),
                x=float(body["x"]),
                y=float(body["y"]),
            )
        if kind == "save_layout":
            return SaveLayout(
                tables={
                    str(key): Position(x=float(value["x"]), y=float(value["y"]))
                    for key, value in body["tables"].items()
                }
            )
        if kind == "export_svg":
            return ExportSvg()
        if kind == "export_png":
            return ExportPng(data_url=str(body["data_url"]))
    except (KeyError, TypeError, ValueError, AttributeError) as err:
        raise ValueError(f"Malformed {kind} message: {err}") from err

    raise ValueError(f"Unknown editor message type: {kind!r}")


# ============================================================================
# Session
# ============================================================================


class EditorSession:
    """Sole owner of a diagram while it is being edited.

    Messages may be submitted from any thread; they are applied in
    submission order by whoever calls ``process_pending``. Position
    changes are persisted to the layout file straight away.
    """

    def __init__(
        self,
        diagram: Diagram,
        source_path: str | Path,
        layout_path: str | Path | None = None,
        config: DrawingConfig | None = None,
    ) -> None:
        self.diagram = diagram
        self.source_path = Path(source_path)
        self.layout_path = (
            Path(layout_path) if layout_path is not None else default_layout_path(self.source_path)
        )
        self.config = config
        self._inbox: queue.Queue[EditorMessage] = queue.Queue()

    def submit(self, message: EditorMessage | str) -> None:
        if isinstance(message, str):
            message = parse_message(message)
        self._inbox.put(message)

    def process_pending(self) -> list[str | None]:
        """Apply every queued message in order and return their results."""
        results: list[str | None] = []
        while True:
            try:
                message = self._inbox.get_nowait()
            except queue.Empty:
                break
            results.append(self.handle(message))
        return results

    def handle(self, message: EditorMessage) -> str | None:
        """Apply one message. Exports return the path they wrote."""
        if isinstance(message, TableMoved):
            set_table_position(self.diagram, message.table_id, message.x, message.y)
            self.save_layout()
            return None
        if isinstance(message, SaveLayout):
            set_table_positions(self.diagram, message.tables)
            self.save_layout()
            return None
        if isinstance(message, ExportSvg):
            return str(self.export_svg())
        if isinstance(message, ExportPng):
            return str(self.export_png(message.data_url))
        raise TypeError(f"Unsupported editor message: {message!r}")

    def save_layout(self) -> None:
        data = collect_layout(self.diagram, source=self.source_path.name)
        write_layout(self.layout_path, data)

    def export_svg(self) -> Path:
        output = self.source_path.with_suffix(".svg")
        output.write_text(render_svg(self.diagram, self.config), encoding="utf-8")
        logger.info("Exported SVG to %s", output)
        return output

    def export_png(self, data_url: str) -> Path:
        if not data_url.startswith(PNG_DATA_URL_PREFIX):
            raise ValueError("Invalid PNG data URL")
        try:
            png_bytes = base64.b64decode(data_url[len(PNG_DATA_URL_PREFIX):], validate=True)
        except binascii.Error as err:
            raise ValueError(f"Failed to decode PNG data: {err}") from err

        output = self.source_path.with_suffix(".png")
        output.write_bytes(png_bytes)
        logger.info("Exported PNG to %s", output)
        return output
