"""Graph document save/load.

Document format (flat JSON object, no version tag):

    {"nodes": [...], "connections": [...], "dragConnection": null,
     "scale": <number>, "position": {"x": <number>, "y": <number>}}

The drag preview is live state only, so it is always written as null and
dropped on load.  Parsing never touches a store: callers get a complete
GraphState or a MalformedStateError, and only then hand it to load_state.
"""

import json

from ..graph_editor.graph_model import (
    GraphState, GraphNode, GraphConnection, Position, Viewport,
    GraphError, MalformedStateError, as_number,
)

DEFAULT_FILENAME = 'node-editor-state.json'

_TOP_LEVEL_KEYS = ('nodes', 'connections', 'scale', 'position')


def export_state(state: GraphState) -> str:
    """Serialise the full graph to document text."""
    return json.dumps(state.to_dict(), indent=2)


def export_bytes(state: GraphState) -> bytes:
    return export_state(state).encode('utf-8')


def state_from_dict(d) -> GraphState:
    """Build a GraphState from a decoded document.

    Raises MalformedStateError on any shape problem: missing keys, wrong
    types, bad enum values, input values of the wrong kind, or repeated
    node / connection ids.
    """
    if not isinstance(d, dict):
        raise MalformedStateError(f"expected a JSON object, got {type(d).__name__}")
    missing = [k for k in _TOP_LEVEL_KEYS if k not in d]
    if missing:
        raise MalformedStateError(f"missing field(s): {', '.join(missing)}")
    if not isinstance(d['nodes'], list) or not isinstance(d['connections'], list):
        raise MalformedStateError("'nodes' and 'connections' must be lists")
    drag = d.get('dragConnection')
    if drag is not None and not isinstance(drag, dict):
        raise MalformedStateError("'dragConnection' must be an object or null")

    try:
        nodes = [GraphNode.from_dict(n) for n in d['nodes']]
        connections = [GraphConnection.from_dict(c) for c in d['connections']]
        scale = as_number(d['scale'])
        position = Position.from_dict(d['position'])
        node_ids = [n.id for n in nodes]
        if len(set(node_ids)) != len(node_ids):
            raise MalformedStateError("duplicate node ids")
        conn_ids = [c.id for c in connections]
        if len(set(conn_ids)) != len(conn_ids):
            raise MalformedStateError("duplicate connection ids")
    except MalformedStateError:
        raise
    except (GraphError, LookupError, TypeError, ValueError, ArithmeticError,
            AttributeError) as e:
        raise MalformedStateError(f"bad graph document: {e!r}") from e

    return GraphState(
        nodes=nodes,
        connections=connections,
        drag_connection=None,
        viewport=Viewport(scale=scale, position=position),
    )


def parse_state(data) -> GraphState:
    """Parse document text or bytes into a GraphState."""
    if isinstance(data, (bytes, bytearray)):
        try:
            data = bytes(data).decode('utf-8')
        except UnicodeDecodeError as e:
            raise MalformedStateError(f"document is not UTF-8: {e}") from e
    try:
        d = json.loads(data)
    except (TypeError, ValueError) as e:
        raise MalformedStateError(f"document is not valid JSON: {e}") from e
    return state_from_dict(d)


def save_graph(state: GraphState, path: str):
    """Write the graph document to *path*.  Raises on I/O error."""
    with open(path, 'w', encoding='utf-8') as f:
        f.write(export_state(state))


def load_graph(store, path: str) -> GraphState:
    """Read *path* and replace the store's graph with it.

    The store is only touched once the whole document has parsed, so a
    MalformedStateError (or OSError) leaves the previous graph intact.
    """
    with open(path, 'rb') as f:
        data = f.read()
    try:
        state = parse_state(data)
    except MalformedStateError as e:
        print(f"[ProjectIO] Rejected {path}: {e}")
        raise
    store.load_state(state)
    return state
