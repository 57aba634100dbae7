"""Connection Manager.

Creates connections between two nodes by id.  Each node pair gets a single
connection slot: the first output point of the source node is joined to the
first input point of the target node, whichever points the user dragged
from.  Which way round the pair was connected does not matter for the
duplicate check.
"""

from __future__ import annotations

from dataclasses import dataclass

from .graph_model import (
    GraphConnection, CONNECTION_COLOR,
    UnknownNodeError, DuplicateConnectionError, InvalidConnectionError,
)
from .graph_store import GraphStore


@dataclass
class ConnectionResult:
    """Outcome of a successful create_connection, for user feedback."""
    connection: GraphConnection
    from_title: str
    to_title: str

    @property
    def message(self) -> str:
        return f"Connected {self.from_title} to {self.to_title}"


def connection_id(from_node_id: str, to_node_id: str) -> str:
    return f"{from_node_id}-{to_node_id}"


class ConnectionManager:
    def __init__(self, store: GraphStore):
        self.store = store

    def create_connection(self, from_node_id: str, to_node_id: str) -> ConnectionResult:
        """Connect two nodes.

        Raises UnknownNodeError if either node is missing,
        DuplicateConnectionError if the pair is already connected in either
        direction, InvalidConnectionError for a self-connection or a node
        with no output / input point.  Nothing is mutated on failure.
        """
        src = self.store.get_node(from_node_id)
        if src is None:
            raise UnknownNodeError(from_node_id)
        dst = self.store.get_node(to_node_id)
        if dst is None:
            raise UnknownNodeError(to_node_id)

        if self.store.find_connection_between(from_node_id, to_node_id) is not None:
            raise DuplicateConnectionError(from_node_id, to_node_id)

        if from_node_id == to_node_id:
            raise InvalidConnectionError(f"cannot connect node {from_node_id!r} to itself")
        if not src.output_points:
            raise InvalidConnectionError(f"{src.title or src.id} has no output point")
        if not dst.input_points:
            raise InvalidConnectionError(f"{dst.title or dst.id} has no input point")

        conn = GraphConnection(
            id=connection_id(from_node_id, to_node_id),
            from_node=from_node_id,
            from_point=src.output_points[0].id,
            to_node=to_node_id,
            to_point=dst.input_points[0].id,
            color=CONNECTION_COLOR,
        )
        self.store.add_connection(conn)
        return ConnectionResult(conn, src.title, dst.title)

    def remove_connection(self, conn_id: str):
        """Delete the connection with *conn_id*; no-op if absent."""
        self.store.remove_connection(conn_id)
