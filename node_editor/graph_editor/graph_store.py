"""Graph Store: the single owner of nodes, connections and viewport.

Every mutation goes through a named method here.  Each one either applies
completely or raises before touching anything; after a successful mutation
the new snapshot is written through to local storage (when configured) and
change listeners are notified with a short source tag.

Invariants held at all times:
  - node ids are unique
  - at most one connection per unordered node pair
  - connections added through the store reference existing nodes
  - removing a node removes every connection touching it, in the same update
  - viewport scale stays within [SCALE_MIN, SCALE_MAX]
"""

from __future__ import annotations

import copy
from typing import Callable, Optional

from .graph_model import (
    GraphState, GraphNode, GraphConnection, DragConnection, Position,
    ConflictError, UnknownNodeError, DuplicateConnectionError,
    coerce_input_value, clamp_scale,
)


class GraphStore:
    """Mutable graph state with observer pattern for canvas updates."""

    def __init__(self, state: Optional[GraphState] = None, storage=None):
        self._state = state if state is not None else GraphState()
        self._storage = storage
        self._listeners: list[Callable] = []
        self._next_id: int = 1
        self._reseed_ids()

    # -- Observation --

    @property
    def state(self) -> GraphState:
        """Live snapshot; read it, mutate only through the store."""
        return self._state

    def snapshot(self) -> GraphState:
        return copy.deepcopy(self._state)

    def on_change(self, callback: Callable):
        self._listeners.append(callback)

    def notify(self, source=None):
        for cb in self._listeners:
            cb(source)

    def _commit(self, source: str, persist: bool = True):
        if persist and self._storage is not None:
            try:
                self._storage.write(self._state)
            except OSError as e:
                print(f"[GraphStore] Write-through to local storage failed: {e}")
        self.notify(source)

    # -- Ids --

    def _reseed_ids(self):
        numeric = [int(n.id) for n in self._state.nodes
                   if isinstance(n.id, str) and n.id.isdigit()]
        self._next_id = max(numeric, default=0) + 1

    def new_node_id(self) -> str:
        """Next free id from a monotonically increasing counter."""
        taken = {n.id for n in self._state.nodes}
        while str(self._next_id) in taken:
            self._next_id += 1
        nid = str(self._next_id)
        self._next_id += 1
        return nid

    # -- Lookups --

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        return self._state.get_node(node_id)

    def find_connection_between(self, a: str, b: str) -> Optional[GraphConnection]:
        return next((c for c in self._state.connections if c.joins(a, b)), None)

    # -- Nodes --

    def add_node(self, node: GraphNode):
        if self._state.get_node(node.id) is not None:
            raise ConflictError(f"node id {node.id!r} already exists")
        self._state.nodes = self._state.nodes + [node]
        self._commit('add_node')

    def remove_node(self, node_id: str):
        """Remove the node and every connection touching it.  No-op if absent."""
        if self._state.get_node(node_id) is None:
            return
        nodes = [n for n in self._state.nodes if n.id != node_id]
        connections = [c for c in self._state.connections if not c.touches(node_id)]
        drag = self._state.drag_connection
        if drag is not None and drag.from_node == node_id:
            drag = None
        self._state.nodes = nodes
        self._state.connections = connections
        self._state.drag_connection = drag
        self._commit('remove_node')

    def update_node_position(self, node_id: str, position: Position):
        node = self._state.get_node(node_id)
        if node is None:
            return
        node.position = Position(position.x, position.y)
        self._commit('node_position')

    def update_node_input(self, node_id: str, input_id: str, value):
        """Replace one input's value, converted to the input's declared kind.

        Raises InvalidInputValueError (and changes nothing) when the value
        does not fit the kind.  No-op if the node or input is absent.
        """
        node = self._state.get_node(node_id)
        if node is None:
            return
        inp = node.find_input(input_id)
        if inp is None:
            return
        inp.value = coerce_input_value(inp.kind, value, inp.options)
        self._commit('node_input')

    def toggle_node_minimize(self, node_id: str):
        node = self._state.get_node(node_id)
        if node is None:
            return
        node.is_minimized = not node.is_minimized
        self._commit('node_minimize')

    # -- Connections --

    def add_connection(self, conn: GraphConnection):
        """Append *conn* after checking ids, endpoints and the pair rule."""
        for nid in (conn.from_node, conn.to_node):
            if self._state.get_node(nid) is None:
                raise UnknownNodeError(nid)
        if self._state.get_connection(conn.id) is not None:
            raise ConflictError(f"connection id {conn.id!r} already exists")
        if self.find_connection_between(conn.from_node, conn.to_node) is not None:
            raise DuplicateConnectionError(conn.from_node, conn.to_node)
        self._state.connections = self._state.connections + [conn]
        self._commit('add_connection')

    def remove_connection(self, conn_id: str):
        if self._state.get_connection(conn_id) is None:
            return
        self._state.connections = [c for c in self._state.connections if c.id != conn_id]
        self._commit('remove_connection')

    def set_drag_connection(self, drag: Optional[DragConnection]):
        """Set or clear the connection drag preview.  Never persisted."""
        self._state.drag_connection = drag
        self._commit('drag_connection', persist=False)

    # -- Viewport --

    def set_scale(self, scale: float):
        self._state.viewport.scale = clamp_scale(float(scale))
        self._commit('scale')

    def set_position(self, position: Position):
        self._state.viewport.position = Position(position.x, position.y)
        self._commit('position')

    # -- Wholesale replace --

    def load_state(self, state: GraphState):
        """Replace the whole graph.  No merge with the previous contents."""
        state.viewport.scale = clamp_scale(state.viewport.scale)
        self._state = state
        self._reseed_ids()
        self._commit('load')
