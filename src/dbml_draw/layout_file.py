from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path

import tomli_w

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from .errors import LayoutFileError
from .types import Diagram, Position

logger = logging.getLogger(__name__)

# ============================================================================
# Layout file
#
# Saved table positions, keyed by "schema.name":
#
#   [meta]
#   version = 1
#   source = "schema.dbml"
#
#   [tables."public.users"]
#   x = 100.0
#   y = 200.0
#
#   [tables."public.posts"]
#   x = 450.0
#   y = 200.0
# ============================================================================

LAYOUT_VERSION = 1
LAYOUT_SUFFIX = ".layout.toml"


@dataclass(slots=True)
class LayoutData:
    source: str = ""
    version: int = LAYOUT_VERSION
    tables: dict[str, Position] = field(default_factory=dict)


def default_layout_path(source_path: str | Path) -> Path:
    """``schema.dbml`` -> ``schema.layout.toml``"""
    source_path = Path(source_path)
    return source_path.with_name(source_path.stem + LAYOUT_SUFFIX)


def read_layout(path: str | Path) -> LayoutData:
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as err:
        raise LayoutFileError(f"Failed to read {path}: {err}") from err

    try:
        raw = tomllib.loads(content)
        meta = raw.get("meta", {})
        tables = {
            str(key): Position(x=float(value["x"]), y=float(value["y"]))
            for key, value in raw.get("tables", {}).items()
        }
        return LayoutData(
            source=str(meta.get("source", "")),
            version=int(meta.get("version", LAYOUT_VERSION)),
            tables=tables,
        )
    except (ValueError, TypeError, KeyError, AttributeError) as err:
        raise LayoutFileError(f"Failed to parse {path}: {err}") from err


def write_layout(path: str | Path, data: LayoutData) -> None:
    path = Path(path)
    payload = {
        "meta": {"version": data.version, "source": data.source},
        "tables": {
            key: {"x": float(pos.x), "y": float(pos.y)}
            for key, pos in sorted(data.tables.items())
        },
    }
    try:
        path.write_text(tomli_w.dumps(payload), encoding="utf-8")
    except OSError as err:
        raise LayoutFileError(f"Failed to write {path}: {err}") from err
    logger.info("Wrote layout for %d tables to %s", len(data.tables), path)


def collect_layout(diagram: Diagram, source: str = "") -> LayoutData:
    """Snapshot the positions of every positioned table."""
    return LayoutData(
        source=source,
        tables={
            t.id.full_name: Position(x=t.position.x, y=t.position.y)
            for t in diagram.tables
            if t.position is not None
        },
    )


def apply_layout(diagram: Diagram, path: str | Path | None) -> int:
    """Restore saved positions onto ``diagram``.

    A missing file is not an error. Returns the number of tables updated.
    """
    if path is None or not Path(path).exists():
        return 0

    try:
        data = read_layout(path)
    except LayoutFileError:
        logger.warning("Could not apply layout file %s", path)
        raise

    updated = 0
    for table in diagram.tables:
        pos = data.tables.get(table.id.full_name)
        if pos is not None:
            table.position = Position(x=pos.x, y=pos.y)
            updated += 1
    return updated
