"""Node graph editor package.

Public surface:
  GraphState, GraphNode, GraphConnection, NodeInput, ConnectionPoint,
  DragConnection, Viewport, Position        – model primitives
  GraphStore            – single owner of the graph; all mutations
  ConnectionManager     – node-pair connections
  ViewportController    – zoom / pan / coordinate conversion
  NodeDragController, ConnectionDragController – pointer state machines
  render                – snapshot -> draw commands

Qt widgets (NodeGraphCanvas, GraphEditorWindow) live in node_canvas and
graph_editor_window and are imported from there, so the model layer can be
used without PySide6.
"""

from .graph_model import (
    GraphState, GraphNode, GraphConnection, NodeInput, InputKind,
    ConnectionPoint, PointKind, DragConnection, Viewport, Position,
    make_default_node,
    GraphError, ConflictError, UnknownNodeError, DuplicateConnectionError,
    InvalidConnectionError, InvalidInputValueError, MalformedStateError,
)
from .graph_store import GraphStore
from .connections import ConnectionManager, ConnectionResult
from .viewport import ViewportController, PointerButton
from .interaction import NodeDragController, ConnectionDragController
from .render import render

__all__ = [
    "GraphState", "GraphNode", "GraphConnection", "NodeInput", "InputKind",
    "ConnectionPoint", "PointKind", "DragConnection", "Viewport", "Position",
    "make_default_node",
    "GraphError", "ConflictError", "UnknownNodeError", "DuplicateConnectionError",
    "InvalidConnectionError", "InvalidInputValueError", "MalformedStateError",
    "GraphStore", "ConnectionManager", "ConnectionResult",
    "ViewportController", "PointerButton",
    "NodeDragController", "ConnectionDragController", "render",
]
