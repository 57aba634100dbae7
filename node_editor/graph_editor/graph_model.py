"""Node graph data model.

Pure Python, no Qt dependency.  Describes the graph that the node editor
canvas edits and that project_io serialises into documents.

Coordinate spaces:
  world  – GraphNode.position, DragConnection.to_position, grid geometry
  local  – ConnectionPoint.position, relative to the owning node's top-left

Input kinds (tagged values):
  TEXT    – str
  NUMBER  – float
  SELECT  – str, one of NodeInput.options

Every connection joins the first output point of one node to the first
input point of another.  At most one connection exists per unordered node
pair; the point ids play no part in that rule.
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field
from typing import Optional
from enum import Enum


CONNECTION_COLOR = "#fbbf24"
DRAG_PREVIEW_COLOR = "#fbbf24"

SCALE_MIN = 0.1
SCALE_MAX = 2.0


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class GraphError(Exception):
    """Base class for graph mutation / load failures."""


class ConflictError(GraphError):
    """An id is already taken (node id on add, connection id on add)."""


class UnknownNodeError(GraphError, KeyError):
    def __init__(self, node_id: str):
        super().__init__(node_id)
        self.node_id = node_id

    def __str__(self) -> str:
        return f"unknown node {self.node_id!r}"


class DuplicateConnectionError(GraphError):
    def __init__(self, a: str, b: str):
        super().__init__(f"nodes {a!r} and {b!r} are already connected")
        self.pair = (a, b)


class InvalidConnectionError(GraphError):
    """Self-connection, or a node without the needed connection point."""


class InvalidInputValueError(GraphError, ValueError):
    pass


class MalformedStateError(GraphError, ValueError):
    """A loaded document does not parse or does not match the expected shape."""



def _str_field(d: dict, key: str, default=None) -> str:
    """d[key] as a str; *default* when absent (if given), else KeyError."""
    value = d[key] if default is None else d.get(key, default)
    if not isinstance(value, str):
        raise TypeError(f"{key!r} must be a string, got {value!r}")
    return value


def as_number(v) -> float:
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise TypeError(f"expected a number, got {v!r}")
    try:
        value = float(v)
    except OverflowError:
        raise ValueError(f"number out of range: {v!r}") from None
    if not math.isfinite(value):
        raise ValueError(f"number must be finite, got {v!r}")
    return value


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------

@dataclass
class Position:
    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: "Position") -> "Position":
        return Position(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Position") -> "Position":
        return Position(self.x - other.x, self.y - other.y)

    def scaled(self, factor: float) -> "Position":
        return Position(self.x * factor, self.y * factor)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}

    @staticmethod
    def from_dict(d: dict) -> "Position":
        return Position(x=as_number(d["x"]), y=as_number(d["y"]))


class PointKind(Enum):
    INPUT  = "input"
    OUTPUT = "output"


@dataclass
class ConnectionPoint:
    id: str
    kind: PointKind
    position: Position      # local to the owning node

    def to_dict(self) -> dict:
        return {"id": self.id, "type": self.kind.value,
                "position": self.position.to_dict()}

    @staticmethod
    def from_dict(d: dict) -> "ConnectionPoint":
        return ConnectionPoint(
            id=_str_field(d, "id"),
            kind=PointKind(d["type"]),
            position=Position.from_dict(d["position"]),
        )


# ---------------------------------------------------------------------------
# Node inputs
# ---------------------------------------------------------------------------

class InputKind(Enum):
    NUMBER = "number"
    TEXT   = "text"
    SELECT = "select"


def coerce_input_value(kind: InputKind, value, options: Optional[list[str]] = None):
    """Convert *value* to the variant *kind* declares, or raise.

    NUMBER accepts ints, floats and numeric strings (editors hand back text);
    bools and non-finite numbers are rejected.  TEXT accepts strings and
    numbers.  SELECT accepts only one of *options*.
    """
    if kind == InputKind.NUMBER:
        if isinstance(value, bool):
            raise InvalidInputValueError(f"not a number: {value!r}")
        if isinstance(value, str):
            try:
                value = float(value.strip())
            except ValueError:
                raise InvalidInputValueError(f"not a number: {value!r}") from None
        if not isinstance(value, (int, float)):
            raise InvalidInputValueError(f"not a number: {value!r}")
        try:
            value = float(value)
        except OverflowError:
            raise InvalidInputValueError(f"number out of range: {value!r}") from None
        if not math.isfinite(value):
            raise InvalidInputValueError(f"number must be finite, got {value!r}")
        return value

    if kind == InputKind.TEXT:
        if isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        raise InvalidInputValueError(f"not text: {value!r}")

    # SELECT
    if not isinstance(value, str) or value not in (options or []):
        raise InvalidInputValueError(
            f"{value!r} is not one of the options {options or []!r}")
    return value


@dataclass
class NodeInput:
    id: str
    kind: InputKind
    label: str
    value: object
    options: Optional[list[str]] = None    # SELECT only

    def __post_init__(self):
        if self.kind != InputKind.SELECT:
            self.options = None
        self.value = coerce_input_value(self.kind, self.value, self.options)

    def to_dict(self) -> dict:
        d = {"id": self.id, "type": self.kind.value,
             "label": self.label, "value": self.value}
        if self.kind == InputKind.SELECT:
            d["options"] = list(self.options or [])
        return d

    @staticmethod
    def from_dict(d: dict) -> "NodeInput":
        options = d.get("options")
        if options is not None:
            if not isinstance(options, list) or not all(isinstance(o, str) for o in options):
                raise TypeError(f"'options' must be a list of strings, got {options!r}")
            options = list(options)
        return NodeInput(
            id=_str_field(d, "id"),
            kind=InputKind(d["type"]),
            label=_str_field(d, "label", ""),
            value=d["value"],
            options=options,
        )


# ---------------------------------------------------------------------------
# Graph node
# ---------------------------------------------------------------------------

@dataclass
class GraphNode:
    """One node on the canvas.

    id            – unique across the graph.
    title         – shown in the node header.
    position      – world coordinates of the top-left anchor.
    inputs        – editable values, in display order.
    input_points / output_points – attachment sites, node-local positions.
    is_minimized  – body collapsed; only the header is drawn.
    """
    id: str
    title: str = ""
    position: Position = field(default_factory=Position)
    inputs: list[NodeInput] = field(default_factory=list)
    input_points: list[ConnectionPoint] = field(default_factory=list)
    output_points: list[ConnectionPoint] = field(default_factory=list)
    is_minimized: bool = False

    def find_input(self, input_id: str) -> Optional[NodeInput]:
        return next((i for i in self.inputs if i.id == input_id), None)

    def find_input_point(self, point_id: str) -> Optional[ConnectionPoint]:
        return next((p for p in self.input_points if p.id == point_id), None)

    def find_output_point(self, point_id: str) -> Optional[ConnectionPoint]:
        return next((p for p in self.output_points if p.id == point_id), None)

    def point_world_position(self, point: ConnectionPoint) -> Position:
        return self.position + point.position

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "position": self.position.to_dict(),
            "inputs": [i.to_dict() for i in self.inputs],
            "inputPoints": [p.to_dict() for p in self.input_points],
            "outputPoints": [p.to_dict() for p in self.output_points],
            "isMinimized": self.is_minimized,
        }

    @staticmethod
    def from_dict(d: dict) -> "GraphNode":
        is_minimized = d.get("isMinimized", False)
        if not isinstance(is_minimized, bool):
            raise TypeError(f"'isMinimized' must be a boolean, got {is_minimized!r}")
        return GraphNode(
            id=_str_field(d, "id"),
            title=_str_field(d, "title", ""),
            position=Position.from_dict(d["position"]),
            inputs=[NodeInput.from_dict(i) for i in d.get("inputs", [])],
            input_points=[ConnectionPoint.from_dict(p) for p in d.get("inputPoints", [])],
            output_points=[ConnectionPoint.from_dict(p) for p in d.get("outputPoints", [])],
            is_minimized=is_minimized,
        )


def make_default_node(node_id: str, position: Optional[Position] = None) -> GraphNode:
    """Build the node the "Add Node" action creates: two inputs, three points."""
    return GraphNode(
        id=node_id,
        title=f"Node {node_id}",
        position=position or Position(100.0, 100.0),
        inputs=[
            NodeInput("input1", InputKind.TEXT, "Text Input", ""),
            NodeInput("input2", InputKind.NUMBER, "Number Input", 0),
        ],
        input_points=[
            ConnectionPoint("in1", PointKind.INPUT, Position(0.0, 20.0)),
            ConnectionPoint("in2", PointKind.INPUT, Position(0.0, 40.0)),
        ],
        output_points=[
            ConnectionPoint("out1", PointKind.OUTPUT, Position(280.0, 30.0)),
        ],
    )


# ---------------------------------------------------------------------------
# Connections
# ---------------------------------------------------------------------------

@dataclass
class GraphConnection:
    id: str
    from_node: str
    from_point: str
    to_node: str
    to_point: str
    color: str = CONNECTION_COLOR

    def touches(self, node_id: str) -> bool:
        return self.from_node == node_id or self.to_node == node_id

    def joins(self, a: str, b: str) -> bool:
        """True if this connection links *a* and *b* in either direction."""
        return {self.from_node, self.to_node} == {a, b}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "fromNode": self.from_node, "fromPoint": self.from_point,
            "toNode":   self.to_node,   "toPoint":   self.to_point,
            "color": self.color,
        }

    @staticmethod
    def from_dict(d: dict) -> "GraphConnection":
        return GraphConnection(
            id=_str_field(d, "id"),
            from_node=_str_field(d, "fromNode"), from_point=_str_field(d, "fromPoint"),
            to_node=_str_field(d, "toNode"),     to_point=_str_field(d, "toPoint"),
            color=_str_field(d, "color", CONNECTION_COLOR),
        )


@dataclass
class DragConnection:
    """In-progress connection drag; live state only."""
    from_node: str
    from_point: str
    to_position: Position

    def to_dict(self) -> dict:
        return {"fromNode": self.from_node, "fromPoint": self.from_point,
                "toPosition": self.to_position.to_dict()}

    @staticmethod
    def from_dict(d: dict) -> "DragConnection":
        return DragConnection(
            from_node=d["fromNode"], from_point=d["fromPoint"],
            to_position=Position.from_dict(d["toPosition"]),
        )


# ---------------------------------------------------------------------------
# Viewport + whole-graph snapshot
# ---------------------------------------------------------------------------

def clamp_scale(scale: float) -> float:
    return max(SCALE_MIN, min(SCALE_MAX, scale))


@dataclass
class Viewport:
    scale: float = 1.0
    position: Position = field(default_factory=Position)   # world-space pan

    def __post_init__(self):
        self.scale = clamp_scale(self.scale)


@dataclass
class GraphState:
    nodes: list[GraphNode] = field(default_factory=list)
    connections: list[GraphConnection] = field(default_factory=list)
    drag_connection: Optional[DragConnection] = None
    viewport: Viewport = field(default_factory=Viewport)

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        return next((n for n in self.nodes if n.id == node_id), None)

    def get_connection(self, conn_id: str) -> Optional[GraphConnection]:
        return next((c for c in self.connections if c.id == conn_id), None)

    def connections_for_node(self, node_id: str) -> list[GraphConnection]:
        return [c for c in self.connections if c.touches(node_id)]

    def to_dict(self) -> dict:
        """Flat document form.  The drag preview is never written out."""
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "connections": [c.to_dict() for c in self.connections],
            "dragConnection": None,
            "scale": self.viewport.scale,
            "position": self.viewport.position.to_dict(),
        }
