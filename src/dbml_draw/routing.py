from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Literal

from .styles import DrawingConfig, DEFAULT_CONFIG
from .types import Diagram, Point, Position, Relationship, Side, Table

logger = logging.getLogger(__name__)

# ============================================================================
# Relationship routing
#
#   1. Resolve both tables and pick the attachment sides
#   2. Group routes whose middle segment falls in the same corridor and
#      spread them apart
#   3. Emit an orthogonal polyline per route
# ============================================================================

RouteKind = Literal["horizontal", "vertical", "mixed"]


@dataclass(slots=True)
class Route:
    """Connection geometry of one relationship."""

    # Index of the relationship in Diagram.relationships
    index: int
    relationship: Relationship
    from_table: Table
    to_table: Table
    from_side: Side
    to_side: Side
    start: Point
    end: Point

    @property
    def kind(self) -> RouteKind:
        return route_kind(self.from_side, self.to_side)


def route_kind(from_side: Side, to_side: Side) -> RouteKind:
    horizontal = ("left", "right")
    vertical = ("top", "bottom")
    if from_side in horizontal and to_side in horizontal:
        return "horizontal"
    if from_side in vertical and to_side in vertical:
        return "vertical"
    return "mixed"


# ============================================================================
# Route resolution
# ============================================================================


def determine_sides(
    from_pos: Position,
    from_h: float,
    to_pos: Position,
    to_h: float,
    table_width: float,
) -> tuple[Side, Side]:
    """Pick attachment sides from the relative placement of two boxes.

    Boxes that overlap horizontally are joined top/bottom, otherwise the
    line leaves the right edge of the left box for the left edge of the
    right box.
    """
    h_overlap = from_pos.x < to_pos.x + table_width and to_pos.x < from_pos.x + table_width

    if h_overlap:
        from_cy = from_pos.y + from_h / 2
        to_cy = to_pos.y + to_h / 2
        if from_cy < to_cy:
            return "bottom", "top"
        return "top", "bottom"
    if from_pos.x < to_pos.x:
        return "right", "left"
    return "left", "right"


def connection_point(
    table: Table,
    side: Side,
    column_name: str,
    config: DrawingConfig,
) -> Point:
    """Left/right sides anchor on the column row, top/bottom on the center."""
    pos = table.position or Position(x=0.0, y=0.0)
    w = config.table_width
    if side == "left":
        return Point(x=pos.x, y=pos.y + config.column_row_y(table, column_name))
    if side == "right":
        return Point(x=pos.x + w, y=pos.y + config.column_row_y(table, column_name))
    if side == "top":
        return Point(x=pos.x + w / 2, y=pos.y)
    return Point(x=pos.x + w / 2, y=pos.y + config.table_height(table))


def resolve_route(
    index: int,
    rel: Relationship,
    from_table: Table,
    to_table: Table,
    config: DrawingConfig,
) -> Route:
    fp = from_table.position or Position(x=0.0, y=0.0)
    tp = to_table.position or Position(x=0.0, y=0.0)
    from_side, to_side = determine_sides(
        fp, config.table_height(from_table), tp, config.table_height(to_table), config.table_width
    )
    return Route(
        index=index,
        relationship=rel,
        from_table=from_table,
        to_table=to_table,
        from_side=from_side,
        to_side=to_side,
        start=connection_point(from_table, from_side, rel.from_.first_column, config),
        end=connection_point(to_table, to_side, rel.to.first_column, config),
    )


def compute_routes(
    diagram: Diagram,
    config: DrawingConfig | None = None,
) -> list[Route | None]:
    """One entry per relationship; None where it cannot be drawn.

    A relationship is dropped when either table is missing from the diagram
    or has no position.
    """
    if config is None:
        config = DEFAULT_CONFIG

    tables = diagram.table_map()
    routes: list[Route | None] = []
    for i, rel in enumerate(diagram.relationships):
        from_table = tables.get(rel.from_.table_id)
        to_table = tables.get(rel.to.table_id)
        if from_table is None or to_table is None:
            logger.debug(
                "Dropping relationship %s -> %s: unknown table",
                rel.from_.table_id, rel.to.table_id,
            )
            routes.append(None)
            continue
        if from_table.position is None or to_table.position is None:
            logger.debug(
                "Dropping relationship %s -> %s: table has no position",
                rel.from_.table_id, rel.to.table_id,
            )
            routes.append(None)
            continue
        routes.append(resolve_route(i, rel, from_table, to_table, config))
    return routes


# ============================================================================
# Corridor distribution
# ============================================================================


def _round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _corridor_key(value: float, bucket: float) -> int:
    return _round_half_away(value / bucket)


def distribute_corridors(
    routes: list[Route | None],
    config: DrawingConfig | None = None,
) -> list[float | None]:
    """Middle-segment coordinate for each route.

    Horizontal routes get an x, vertical routes a y, mixed routes and
    dropped relationships None. Routes whose natural midpoints share a
    bucket are spread around the first member's midpoint at a fixed
    spacing, in relationship order.
    """
    if config is None:
        config = DEFAULT_CONFIG

    natural: dict[int, float] = {}
    h_groups: dict[int, list[int]] = {}
    v_groups: dict[int, list[int]] = {}

    for i, route in enumerate(routes):
        if route is None:
            continue
        kind = route.kind
        if kind == "horizontal":
            mid = (route.start.x + route.end.x) / 2
            h_groups.setdefault(_corridor_key(mid, config.corridor_bucket), []).append(i)
        elif kind == "vertical":
            mid = (route.start.y + route.end.y) / 2
            v_groups.setdefault(_corridor_key(mid, config.corridor_bucket), []).append(i)
        else:
            continue
        natural[i] = mid

    mids: list[float | None] = [natural.get(i) for i in range(len(routes))]
    for groups in (h_groups, v_groups):
        for indices in groups.values():
            if len(indices) <= 1:
                continue
            center = natural[indices[0]]
            count = len(indices)
            logger.debug("Spreading %d routes around corridor %s", count, center)
            for j, idx in enumerate(indices):
                mids[idx] = center + (j - (count - 1) / 2) * config.corridor_spacing

    return mids


# ============================================================================
# Path building
# ============================================================================


def build_path(route: Route, corridor: float | None) -> list[Point]:
    """Orthogonal polyline from ``route.start`` to ``route.end``.

    Horizontal and vertical routes bend twice through the corridor, mixed
    routes bend once.
    """
    start = route.start
    end = route.end
    kind = route.kind

    if kind == "horizontal":
        mid = corridor if corridor is not None else (start.x + end.x) / 2
        return [start, Point(x=mid, y=start.y), Point(x=mid, y=end.y), end]
    if kind == "vertical":
        mid = corridor if corridor is not None else (start.y + end.y) / 2
        return [start, Point(x=start.x, y=mid), Point(x=end.x, y=mid), end]
    return [start, Point(x=end.x, y=start.y), end]


def path_data(points: list[Point]) -> str:
    """SVG path ``d`` attribute for a polyline."""
    if not points:
        return ""
    first, *rest = points
    return " ".join([f"M {first.x} {first.y}"] + [f"L {p.x} {p.y}" for p in rest])


def route_relationships(
    diagram: Diagram,
    config: DrawingConfig | None = None,
) -> list[tuple[Route, list[Point]]]:
    """Resolve, distribute and build every drawable relationship, in order."""
    if config is None:
        config = DEFAULT_CONFIG

    routes = compute_routes(diagram, config)
    mids = distribute_corridors(routes, config)
    return [
        (route, build_path(route, mids[i]))
        for i, route in enumerate(routes)
        if route is not None
    ]
