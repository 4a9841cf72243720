from __future__ import annotations

import logging
from collections import deque

from grandalf.graphs import Vertex, Edge, Graph
from grandalf.layouts import SugiyamaLayout

from .styles import DrawingConfig, DEFAULT_CONFIG
from .types import Diagram, Position, Table, TableId

logger = logging.getLogger(__name__)

# ============================================================================
# Auto layout
#
# Assigns a position to every table that does not have one yet. Tables that
# are already positioned are left alone and take no part in the placement
# graph.
#
# Default "cross" strategy:
#   1. Adjacency between unpositioned tables (relationship order)
#   2. Root = highest degree, first table in diagram order on ties
#   3. BFS on a signed integer grid, neighbors tried E, S, W, N
#   4. Fallback to the nearest free cell in growing square rings
#   5. Disconnected tables fill free cells around the origin
#   6. Grid cells -> pixels (row heights follow the tallest table per row)
# ============================================================================

Cell = tuple[int, int]

# East, south, west, north
CROSS_DIRECTIONS: tuple[Cell, ...] = ((1, 0), (0, 1), (-1, 0), (0, -1))

STRATEGIES = ("cross", "layered")


def auto_layout(
    diagram: Diagram,
    config: DrawingConfig | None = None,
    strategy: str = "cross",
) -> None:
    """Position every table of ``diagram`` that has no position, in place."""
    if config is None:
        config = DEFAULT_CONFIG

    if strategy == "cross":
        layout_cross(diagram, config)
    elif strategy == "layered":
        layout_layered(diagram, config)
    else:
        raise ValueError(
            f"Unknown layout strategy: {strategy!r} (expected one of {', '.join(STRATEGIES)})"
        )


def build_adjacency(diagram: Diagram) -> dict[TableId, list[TableId]]:
    """Undirected adjacency over the unpositioned tables only."""
    adjacency: dict[TableId, list[TableId]] = {}
    for table in diagram.tables:
        if table.position is None:
            adjacency.setdefault(table.id, [])

    for rel in diagram.relationships:
        a = rel.from_.table_id
        b = rel.to.table_id
        if a in adjacency and b in adjacency:
            adjacency[a].append(b)
            adjacency[b].append(a)

    return adjacency


def choose_root(adjacency: dict[TableId, list[TableId]]) -> TableId | None:
    """Most connected vertex; the first one encountered wins a tie."""
    root: TableId | None = None
    best = -1
    for table_id, neighbors in adjacency.items():
        if len(neighbors) > best:
            best = len(neighbors)
            root = table_id
    return root


def find_nearest_empty(
    origin: Cell,
    occupied: set[Cell],
    max_radius: int,
) -> Cell | None:
    """First free cell on the smallest square ring around ``origin``.

    Each ring of Chebyshev radius r is scanned in (dx, dy) lexicographic
    order. Returns None if every ring up to ``max_radius`` is full.
    """
    cx, cy = origin
    for radius in range(1, max_radius + 1):
        for dx in range(-radius, radius + 1):
            for dy in range(-radius, radius + 1):
                if abs(dx) != radius and abs(dy) != radius:
                    continue
                cell = (cx + dx, cy + dy)
                if cell not in occupied:
                    return cell
    return None


def assign_grid_cells(
    adjacency: dict[TableId, list[TableId]],
    max_radius: int,
) -> dict[TableId, Cell]:
    """Run the BFS cross placement and return the grid cell of each vertex.

    Vertices that could not be placed are absent from the result.
    """
    grid: dict[TableId, Cell] = {}
    root = choose_root(adjacency)
    if root is None:
        return grid

    logger.debug("Layout root: %s (degree %d)", root, len(adjacency[root]))

    occupied: set[Cell] = {(0, 0)}
    visited: set[TableId] = {root}
    grid[root] = (0, 0)
    queue: deque[tuple[TableId, Cell]] = deque([(root, (0, 0))])

    while queue:
        current, (cx, cy) = queue.popleft()
        for neighbor in adjacency[current]:
            if neighbor in visited:
                continue
            visited.add(neighbor)

            cell: Cell | None = None
            for dx, dy in CROSS_DIRECTIONS:
                candidate = (cx + dx, cy + dy)
                if candidate not in occupied:
                    cell = candidate
                    break
            if cell is None:
                cell = find_nearest_empty((cx, cy), occupied, max_radius)
            if cell is None:
                logger.warning("No free grid cell near %s for table %s", current, neighbor)
                continue

            grid[neighbor] = cell
            occupied.add(cell)
            queue.append((neighbor, cell))

    # Tables not reachable from the root, in diagram order
    for table_id in adjacency:
        if table_id in visited:
            continue
        cell = find_nearest_empty((0, 0), occupied, max_radius)
        if cell is None:
            logger.warning("No free grid cell for disconnected table %s", table_id)
            continue
        grid[table_id] = cell
        occupied.add(cell)

    return grid


def grid_to_pixels(
    grid: dict[TableId, Cell],
    tables: dict[TableId, Table],
    config: DrawingConfig,
) -> dict[TableId, Position]:
    """Convert grid cells to top-left pixel positions."""
    if not grid:
        return {}

    min_col = min(col for col, _row in grid.values())
    min_row = min(row for _col, row in grid.values())

    row_heights: dict[int, float] = {}
    for table_id, (_col, row) in grid.items():
        h = config.table_height(tables[table_id])
        row_heights[row] = max(row_heights.get(row, 0.0), h)

    positions: dict[TableId, Position] = {}
    for table_id, (col, row) in grid.items():
        x = config.margin_x + (col - min_col) * (config.table_width + config.spacing_x)
        y = config.margin_y
        for r in range(min_row, row):
            y += row_heights.get(r, config.empty_row_height) + config.spacing_y
        positions[table_id] = Position(x=x, y=y)

    return positions


def layout_cross(diagram: Diagram, config: DrawingConfig) -> None:
    adjacency = build_adjacency(diagram)
    if not adjacency:
        return

    grid = assign_grid_cells(adjacency, config.max_search_radius)
    tables = diagram.table_map()
    for table_id, position in grid_to_pixels(grid, tables, config).items():
        tables[table_id].position = position


# ============================================================================
# Layered layout (grandalf / Sugiyama)
# ============================================================================


class _VertexView:
    """Minimal view object required by grandalf's SugiyamaLayout."""

    def __init__(self, w: float, h: float) -> None:
        self.w = w
        self.h = h
        # xy is set by the layout engine (center coordinates)
        self.xy = (0.0, 0.0)


def layout_layered(diagram: Diagram, config: DrawingConfig) -> None:
    """Lay out unpositioned tables with grandalf, one component at a time.

    Components are placed left to right and the whole result is shifted so
    its top-left corner sits on the layout margins.
    """
    adjacency = build_adjacency(diagram)
    if not adjacency:
        return
    tables = diagram.table_map()

    vertices: dict[TableId, Vertex] = {}
    for table_id in adjacency:
        v = Vertex(table_id)
        v.view = _VertexView(config.table_width, config.table_height(tables[table_id]))
        vertices[table_id] = v

    edges: list[Edge] = []
    seen: set[tuple[TableId, TableId]] = set()
    for rel in diagram.relationships:
        a = rel.from_.table_id
        b = rel.to.table_id
        if a not in vertices or b not in vertices or a == b:
            continue
        # grandalf wants a simple graph
        if (a, b) in seen or (b, a) in seen:
            continue
        seen.add((a, b))
        edges.append(Edge(vertices[a], vertices[b]))

    g = Graph(list(vertices.values()), edges)

    top_left: dict[TableId, tuple[float, float]] = {}
    offset_x = 0.0
    for component in g.C:
        try:
            sug = SugiyamaLayout(component)
            sug.xspace = config.spacing_x
            sug.yspace = config.spacing_y
            sug.init_all()
            sug.draw()
        except Exception as err:
            raise RuntimeError(f"Grandalf layout failed (layered): {err}") from err

        comp_vertices = list(component.sV)
        min_x = min(v.view.xy[0] - v.view.w / 2 for v in comp_vertices)
        max_x = max(v.view.xy[0] + v.view.w / 2 for v in comp_vertices)
        for v in comp_vertices:
            x = v.view.xy[0] - v.view.w / 2 - min_x + offset_x
            y = v.view.xy[1] - v.view.h / 2
            top_left[v.data] = (x, y)
        offset_x += (max_x - min_x) + config.spacing_x

    if not top_left:
        return

    shift_x = config.margin_x - min(x for x, _y in top_left.values())
    shift_y = config.margin_y - min(y for _x, y in top_left.values())
    for table_id, (x, y) in top_left.items():
        tables[table_id].position = Position(x=x + shift_x, y=y + shift_y)
