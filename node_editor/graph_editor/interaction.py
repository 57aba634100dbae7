"""Pointer interaction state machines.

NodeDragController
  Idle --primary press on a node header--> Dragging(node_id, grab_offset)
  Dragging --pointer move--> Dragging   (position written to the store)
  Dragging --primary release anywhere--> Idle

  grab_offset is the world-space offset between the pointer and the node's
  top-left anchor, fixed for the whole drag.  There is no snapping, no
  movement threshold and no cancel path; a lost release leaves the
  controller in Dragging until the next release arrives.

ConnectionDragController
  Drives the DragConnection preview: a press on an output point starts it,
  moves update its world-space end, a release over another node commits
  through the ConnectionManager and a release anywhere else (or cancel) drops it.

Both assume a single pointer.  All positions passed in are canvas-local
screen coordinates.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .graph_model import DragConnection, Position
from .graph_store import GraphStore
from .connections import ConnectionManager, ConnectionResult
from .viewport import PointerButton, ViewportController


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Dragging:
    node_id: str
    grab_offset: Position


class NodeDragController:
    def __init__(self, store: GraphStore, viewport: ViewportController):
        self.store = store
        self.viewport = viewport
        self.state: Union[Idle, Dragging] = Idle()

    @property
    def is_dragging(self) -> bool:
        return isinstance(self.state, Dragging)

    def press_header(self, node_id: str, screen_pos: Position,
                     button: PointerButton = PointerButton.PRIMARY) -> bool:
        if button != PointerButton.PRIMARY or self.is_dragging:
            return False
        node = self.store.get_node(node_id)
        if node is None:
            return False
        top_left = self.viewport.world_to_screen(node.position)
        grab = (screen_pos - top_left).scaled(1.0 / self.viewport.scale)
        self.state = Dragging(node_id, grab)
        return True

    def move(self, screen_pos: Position) -> bool:
        """Move to screen_to_world(pointer) - grab_offset.

        Converting through the full viewport, pan included, keeps the node
        under the pointer after the view has been panned.
        """
        if not isinstance(self.state, Dragging):
            return False
        world = self.viewport.screen_to_world(screen_pos)
        self.store.update_node_position(self.state.node_id, world - self.state.grab_offset)
        return True

    def release(self, button: PointerButton = PointerButton.PRIMARY) -> bool:
        if button != PointerButton.PRIMARY or not self.is_dragging:
            return False
        self.state = Idle()
        return True


class ConnectionDragController:
    def __init__(self, store: GraphStore, viewport: ViewportController,
                 connections: ConnectionManager):
        self.store = store
        self.viewport = viewport
        self.connections = connections

    @property
    def is_dragging(self) -> bool:
        return self.store.state.drag_connection is not None

    def press_output(self, node_id: str, point_id: str, screen_pos: Position) -> bool:
        node = self.store.get_node(node_id)
        if node is None or node.find_output_point(point_id) is None:
            return False
        self.store.set_drag_connection(
            DragConnection(node_id, point_id, self.viewport.screen_to_world(screen_pos)))
        return True

    def move(self, screen_pos: Position) -> bool:
        drag = self.store.state.drag_connection
        if drag is None:
            return False
        self.store.set_drag_connection(
            DragConnection(drag.from_node, drag.from_point,
                           self.viewport.screen_to_world(screen_pos)))
        return True

    def release(self, target_node_id: Optional[str]) -> Optional[ConnectionResult]:
        """End the drag.  Commits when released over a different node.

        Connection errors propagate to the caller after the preview has
        been cleared.
        """
        drag = self.store.state.drag_connection
        if drag is None:
            return None
        self.store.set_drag_connection(None)
        if target_node_id is None or target_node_id == drag.from_node:
            return None
        return self.connections.create_connection(drag.from_node, target_node_id)

    def cancel(self):
        """Drop the preview without connecting."""
        if self.is_dragging:
            self.store.set_drag_connection(None)

