import pytest

from node_editor.graph_editor.graph_model import (
    GraphNode, CONNECTION_COLOR, make_default_node,
    UnknownNodeError, DuplicateConnectionError, InvalidConnectionError,
)


def test_create_connection_scenario(manager):
    store = manager.store
    result = manager.create_connection("1", "2")

    assert [c.to_dict() for c in store.state.connections] == [{
        "id": "1-2", "fromNode": "1", "fromPoint": "out1",
        "toNode": "2", "toPoint": "in1", "color": CONNECTION_COLOR,
    }]
    assert result.from_title == "Node 1" and result.to_title == "Node 2"
    assert result.message == "Connected Node 1 to Node 2"

    with pytest.raises(DuplicateConnectionError):
        manager.create_connection("2", "1")
    assert len(store.state.connections) == 1

    store.remove_node("1")
    assert store.state.connections == []
    assert [n.id for n in store.state.nodes] == ["2"]


def test_same_direction_duplicate_rejected(manager):
    manager.create_connection("1", "2")
    with pytest.raises(DuplicateConnectionError):
        manager.create_connection("1", "2")
    assert len(manager.store.state.connections) == 1


def test_every_unconnected_pair_connects_once(store):
    from node_editor.graph_editor.connections import ConnectionManager
    for nid in "1234":
        store.add_node(make_default_node(nid))
    manager = ConnectionManager(store)
    pairs = [(a, b) for a in "1234" for b in "1234" if a < b]
    for a, b in pairs:
        manager.create_connection(a, b)
    for a, b in pairs:
        for x, y in ((a, b), (b, a)):
            with pytest.raises(DuplicateConnectionError):
                manager.create_connection(x, y)
    assert len(store.state.connections) == len(pairs)


def test_unknown_node(manager):
    with pytest.raises(UnknownNodeError) as exc:
        manager.create_connection("1", "42")
    assert exc.value.node_id == "42"
    with pytest.raises(UnknownNodeError):
        manager.create_connection("42", "1")
    assert manager.store.state.connections == []


def test_self_connection_rejected(manager):
    with pytest.raises(InvalidConnectionError):
        manager.create_connection("1", "1")


def test_node_without_points_rejected(manager):
    manager.store.add_node(GraphNode(id="bare", title="Bare"))
    with pytest.raises(InvalidConnectionError):
        manager.create_connection("bare", "1")
    with pytest.raises(InvalidConnectionError):
        manager.create_connection("1", "bare")
    assert manager.store.state.connections == []


def test_remove_connection(manager):
    manager.create_connection("1", "2")
    manager.remove_connection("1-2")
    manager.remove_connection("1-2")
    assert manager.store.state.connections == []
    manager.create_connection("2", "1")
    assert manager.store.state.connections[0].id == "2-1"
