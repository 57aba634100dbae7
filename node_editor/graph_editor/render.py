"""Render Engine: graph snapshot + viewport -> list of draw commands.

Pure functions, no Qt.  The canvas widget replays the commands onto a
QPainter every frame.  Command order:

  Clear       – wipe the whole surface (screen space)
  Transform   – scale, then translate(position); everything after is world space
  Line…       – background grid, GRID_SIZE world units apart, anchored at origin
  Bezier/Disc – one S-curve plus two endpoint discs per resolvable connection
  Bezier/Disc – the drag preview, if any

Connections whose node or point no longer resolves are skipped silently.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Union

from .graph_model import GraphState, GraphConnection, Position, Viewport, DRAG_PREVIEW_COLOR

GRID_SIZE       = 20
GRID_COLOR      = "#374151"
GRID_LINE_WIDTH = 0.5
WIRE_WIDTH      = 2.0
ENDPOINT_RADIUS = 4.0
CONTROL_RATIO   = 0.25


# ---------------------------------------------------------------------------
# Draw commands
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Clear:
    width: float
    height: float


@dataclass(frozen=True)
class Transform:
    scale: float
    dx: float
    dy: float


@dataclass(frozen=True)
class Line:
    x1: float
    y1: float
    x2: float
    y2: float
    color: str
    width: float


@dataclass(frozen=True)
class Bezier:
    start: Position
    cp1: Position
    cp2: Position
    end: Position
    color: str
    width: float


@dataclass(frozen=True)
class Disc:
    center: Position
    radius: float
    color: str


DrawCommand = Union[Clear, Transform, Line, Bezier, Disc]


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

def bezier_controls(start: Position, end: Position) -> tuple[Position, Position]:
    """Control points giving horizontal tangents at both ends."""
    dx = abs(end.x - start.x) * CONTROL_RATIO
    return Position(start.x + dx, start.y), Position(end.x - dx, end.y)


def bezier_point(start: Position, cp1: Position, cp2: Position, end: Position,
                 t: float) -> Position:
    mt = 1 - t
    return Position(
        mt**3 * start.x + 3 * mt**2 * t * cp1.x + 3 * mt * t**2 * cp2.x + t**3 * end.x,
        mt**3 * start.y + 3 * mt**2 * t * cp1.y + 3 * mt * t**2 * cp2.y + t**3 * end.y,
    )


def point_to_connection_dist(pt: Position, start: Position, end: Position,
                             samples: int = 30) -> float:
    """Approximate minimum distance from pt to the connection curve."""
    cp1, cp2 = bezier_controls(start, end)
    best = math.inf
    for i in range(samples + 1):
        b = bezier_point(start, cp1, cp2, end, i / samples)
        best = min(best, math.hypot(pt.x - b.x, pt.y - b.y))
    return best


def visible_world_rect(viewport: Viewport, canvas_size: tuple[float, float]
                       ) -> tuple[float, float, float, float]:
    """(left, top, right, bottom) of the world area shown on the canvas."""
    w, h = canvas_size
    left, top = -viewport.position.x, -viewport.position.y
    return left, top, left + w / viewport.scale, top + h / viewport.scale


def grid_lines(viewport: Viewport, canvas_size: tuple[float, float]) -> list[Line]:
    left, top, right, bottom = visible_world_rect(viewport, canvas_size)
    lines = []
    x = math.floor(left / GRID_SIZE) * GRID_SIZE
    while x <= right:
        lines.append(Line(x, top, x, bottom, GRID_COLOR, GRID_LINE_WIDTH))
        x += GRID_SIZE
    y = math.floor(top / GRID_SIZE) * GRID_SIZE
    while y <= bottom:
        lines.append(Line(left, y, right, y, GRID_COLOR, GRID_LINE_WIDTH))
        y += GRID_SIZE
    return lines


def connection_endpoints(state: GraphState, conn: GraphConnection
                         ) -> Optional[tuple[Position, Position]]:
    """World-space endpoints of *conn*, or None if anything is dangling."""
    src = state.get_node(conn.from_node)
    dst = state.get_node(conn.to_node)
    if src is None or dst is None:
        return None
    sp = src.find_output_point(conn.from_point)
    dp = dst.find_input_point(conn.to_point)
    if sp is None or dp is None:
        return None
    return src.point_world_position(sp), dst.point_world_position(dp)


def connection_commands(start: Position, end: Position, color: str) -> list[DrawCommand]:
    cp1, cp2 = bezier_controls(start, end)
    return [
        Bezier(start, cp1, cp2, end, color, WIRE_WIDTH),
        Disc(start, ENDPOINT_RADIUS, color),
        Disc(end, ENDPOINT_RADIUS, color),
    ]


# ---------------------------------------------------------------------------
# Frame
# ---------------------------------------------------------------------------

def render(state: GraphState, viewport: Viewport,
           canvas_size: tuple[float, float]) -> list[DrawCommand]:
    w, h = canvas_size
    commands: list[DrawCommand] = [
        Clear(w, h),
        Transform(viewport.scale, viewport.position.x, viewport.position.y),
    ]
    commands.extend(grid_lines(viewport, canvas_size))

    for conn in state.connections:
        ends = connection_endpoints(state, conn)
        if ends is None:
            continue
        commands.extend(connection_commands(ends[0], ends[1], conn.color))

    drag = state.drag_connection
    if drag is not None:
        src = state.get_node(drag.from_node)
        point = src.find_output_point(drag.from_point) if src else None
        if point is not None:
            commands.extend(connection_commands(
                src.point_world_position(point), drag.to_position, DRAG_PREVIEW_COLOR))

    return commands
