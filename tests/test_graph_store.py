import copy

import pytest

from node_editor.graph_editor.graph_model import (
    GraphConnection, GraphState, Position, DragConnection, make_default_node,
    ConflictError, UnknownNodeError, DuplicateConnectionError,
    InvalidInputValueError, NodeInput, InputKind,
)
from node_editor.graph_editor.graph_store import GraphStore


def _conn(a, b):
    return GraphConnection(f"{a}-{b}", a, "out1", b, "in1")


def test_add_node_rejects_duplicate_id(two_nodes):
    before = copy.deepcopy(two_nodes.state.nodes)
    with pytest.raises(ConflictError):
        two_nodes.add_node(make_default_node("1"))
    assert two_nodes.state.nodes == before


def test_remove_node_cascades_to_connections(store):
    for nid in "123":
        store.add_node(make_default_node(nid))
    store.add_connection(_conn("1", "2"))
    store.add_connection(_conn("2", "3"))
    store.add_connection(_conn("3", "1"))

    store.remove_node("1")

    assert [n.id for n in store.state.nodes] == ["2", "3"]
    assert [c.id for c in store.state.connections] == ["2-3"]


def test_remove_node_clears_drag_preview_from_it(two_nodes):
    two_nodes.set_drag_connection(DragConnection("1", "out1", Position(0, 0)))
    two_nodes.remove_node("1")
    assert two_nodes.state.drag_connection is None


def test_remove_absent_node_is_noop(two_nodes):
    notified = []
    two_nodes.on_change(notified.append)
    two_nodes.remove_node("nope")
    assert len(two_nodes.state.nodes) == 2
    assert notified == []


def test_update_node_position_touches_only_position(two_nodes):
    before = copy.deepcopy(two_nodes.state.nodes)
    two_nodes.update_node_position("1", Position(12.0, -3.0))

    moved, other = two_nodes.state.nodes
    assert moved.position == Position(12.0, -3.0)
    moved_before = before[0]
    moved_before.position = Position(12.0, -3.0)
    assert moved == moved_before
    assert other == before[1]


def test_update_node_position_copies_the_argument(two_nodes):
    p = Position(1.0, 1.0)
    two_nodes.update_node_position("1", p)
    p.x = 99.0
    assert two_nodes.get_node("1").position == Position(1.0, 1.0)


def test_update_node_input_converts_to_declared_kind(two_nodes):
    two_nodes.update_node_input("1", "input2", "42.5")
    two_nodes.update_node_input("1", "input1", "hello")
    node = two_nodes.get_node("1")
    assert node.find_input("input2").value == 42.5
    assert node.find_input("input2").kind == InputKind.NUMBER
    assert node.find_input("input1").value == "hello"
    assert two_nodes.get_node("2").find_input("input1").value == ""


def test_update_node_input_rejects_wrong_kind(two_nodes):
    notified = []
    two_nodes.on_change(notified.append)
    with pytest.raises(InvalidInputValueError):
        two_nodes.update_node_input("1", "input2", "not a number")
    assert two_nodes.get_node("1").find_input("input2").value == 0.0
    assert notified == []


def test_update_select_input(store):
    node = make_default_node("1")
    node.inputs.append(NodeInput("mode", InputKind.SELECT, "Mode", "a", ["a", "b"]))
    store.add_node(node)
    store.update_node_input("1", "mode", "b")
    assert store.get_node("1").find_input("mode").value == "b"
    with pytest.raises(InvalidInputValueError):
        store.update_node_input("1", "mode", "z")


def test_toggle_minimize_twice_restores(two_nodes):
    two_nodes.toggle_node_minimize("1")
    assert two_nodes.get_node("1").is_minimized is True
    two_nodes.toggle_node_minimize("1")
    assert two_nodes.get_node("1").is_minimized is False


def test_add_connection_checks_endpoints_and_pairs(two_nodes):
    with pytest.raises(UnknownNodeError):
        two_nodes.add_connection(_conn("1", "9"))
    two_nodes.add_connection(_conn("1", "2"))
    with pytest.raises(DuplicateConnectionError):
        two_nodes.add_connection(_conn("2", "1"))
    with pytest.raises(ConflictError):
        two_nodes.add_connection(GraphConnection("1-2", "2", "out1", "1", "in2"))
    assert len(two_nodes.state.connections) == 1


def test_remove_connection(two_nodes):
    two_nodes.add_connection(_conn("1", "2"))
    two_nodes.remove_connection("missing")
    assert len(two_nodes.state.connections) == 1
    two_nodes.remove_connection("1-2")
    assert two_nodes.state.connections == []


@pytest.mark.parametrize("requested", [-1.0, 0.0, 0.05, 0.1, 1.0, 2.0, 3.5, 1e9])
def test_set_scale_always_in_range(store, requested):
    store.set_scale(requested)
    assert 0.1 <= store.state.viewport.scale <= 2.0


def test_set_position(store):
    store.set_position(Position(5.0, -7.0))
    assert store.state.viewport.position == Position(5.0, -7.0)


def test_new_node_ids_never_reused_after_delete(store):
    ids = []
    for _ in range(3):
        nid = store.new_node_id()
        store.add_node(make_default_node(nid))
        ids.append(nid)
    store.remove_node(ids[0])
    nid = store.new_node_id()
    assert nid not in ids
    assert ids == ["1", "2", "3"] and nid == "4"


def test_new_node_id_skips_taken_ids(store):
    store.add_node(make_default_node("1"))
    store.add_node(make_default_node("2"))
    assert store.new_node_id() == "3"


def test_load_state_replaces_wholesale_and_reseeds_ids(two_nodes):
    two_nodes.add_connection(_conn("1", "2"))
    replacement = GraphState(nodes=[make_default_node("10")])
    replacement.viewport.scale = 1.5

    two_nodes.load_state(replacement)

    assert [n.id for n in two_nodes.state.nodes] == ["10"]
    assert two_nodes.state.connections == []
    assert two_nodes.state.viewport.scale == 1.5
    assert two_nodes.new_node_id() == "11"


def test_mutations_write_through(recording_storage):
    store = GraphStore(storage=recording_storage)
    store.add_node(make_default_node("1"))
    store.update_node_position("1", Position(1.0, 2.0))
    store.set_scale(1.5)
    assert len(recording_storage.writes) == 3
    last = recording_storage.writes[-1]
    assert last["scale"] == 1.5
    assert last["nodes"][0]["position"] == {"x": 1.0, "y": 2.0}


def test_drag_preview_is_not_written_through(recording_storage):
    store = GraphStore(storage=recording_storage)
    store.add_node(make_default_node("1"))
    store.set_drag_connection(DragConnection("1", "out1", Position(3, 3)))
    assert len(recording_storage.writes) == 1
    assert store.state.drag_connection is not None


def test_write_through_failure_does_not_abort_mutation(capsys):
    class Broken:
        def write(self, state):
            raise OSError("disk full")

    store = GraphStore(storage=Broken())
    store.add_node(make_default_node("1"))
    assert store.get_node("1") is not None
    assert "[GraphStore]" in capsys.readouterr().out


def test_listeners_receive_source_tags(two_nodes):
    seen = []
    two_nodes.on_change(seen.append)
    two_nodes.toggle_node_minimize("2")
    two_nodes.set_position(Position(1, 1))
    assert seen == ["node_minimize", "position"]


def test_snapshot_is_independent(two_nodes):
    snap = two_nodes.snapshot()
    two_nodes.update_node_position("1", Position(0.0, 0.0))
    assert snap.get_node("1").position == Position(100.0, 100.0)
