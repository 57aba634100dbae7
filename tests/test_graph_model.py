import math

import pytest

from node_editor.graph_editor.graph_model import (
    InputKind, NodeInput, GraphNode, GraphConnection, Position, PointKind,
    Viewport, GraphState, make_default_node, coerce_input_value,
    InvalidInputValueError, SCALE_MIN, SCALE_MAX,
)


def test_default_node_layout():
    node = make_default_node("7")
    assert node.title == "Node 7"
    assert node.position == Position(100.0, 100.0)
    assert [(i.id, i.kind, i.value) for i in node.inputs] == [
        ("input1", InputKind.TEXT, ""),
        ("input2", InputKind.NUMBER, 0.0),
    ]
    assert [(p.id, p.position) for p in node.input_points] == [
        ("in1", Position(0.0, 20.0)), ("in2", Position(0.0, 40.0))]
    assert [(p.id, p.kind, p.position) for p in node.output_points] == [
        ("out1", PointKind.OUTPUT, Position(280.0, 30.0))]
    assert node.is_minimized is False


@pytest.mark.parametrize("value, expected", [
    (3, 3.0), (2.5, 2.5), ("4.25", 4.25), (" 10 ", 10.0),
])
def test_number_accepts_numeric_values(value, expected):
    assert coerce_input_value(InputKind.NUMBER, value) == expected


@pytest.mark.parametrize("value", ["abc", True, None, [1], math.inf, float("nan"), "nan"])
def test_number_rejects_non_numbers(value):
    with pytest.raises(InvalidInputValueError):
        coerce_input_value(InputKind.NUMBER, value)


def test_text_accepts_strings_and_numbers():
    assert coerce_input_value(InputKind.TEXT, "hi") == "hi"
    assert coerce_input_value(InputKind.TEXT, 12) == "12"
    with pytest.raises(InvalidInputValueError):
        coerce_input_value(InputKind.TEXT, None)
    with pytest.raises(InvalidInputValueError):
        coerce_input_value(InputKind.TEXT, False)


def test_select_requires_an_option():
    assert coerce_input_value(InputKind.SELECT, "b", ["a", "b"]) == "b"
    with pytest.raises(InvalidInputValueError):
        coerce_input_value(InputKind.SELECT, "c", ["a", "b"])


def test_options_only_kept_for_select():
    inp = NodeInput("x", InputKind.TEXT, "X", "v", options=["v"])
    assert inp.options is None
    assert "options" not in inp.to_dict()
    sel = NodeInput("s", InputKind.SELECT, "S", "a", options=["a", "b"])
    assert sel.to_dict()["options"] == ["a", "b"]


def test_node_dict_uses_document_field_names():
    d = make_default_node("1").to_dict()
    assert set(d) == {"id", "title", "position", "inputs",
                      "inputPoints", "outputPoints", "isMinimized"}
    assert d["inputPoints"][0] == {"id": "in1", "type": "input",
                                   "position": {"x": 0.0, "y": 20.0}}


def test_node_from_dict_matches_original():
    node = make_default_node("3", Position(-5.0, 12.5))
    assert GraphNode.from_dict(node.to_dict()) == node


def test_connection_joins_is_unordered():
    c = GraphConnection("1-2", "1", "out1", "2", "in1")
    assert c.joins("1", "2") and c.joins("2", "1")
    assert not c.joins("1", "3")
    assert c.to_dict()["fromNode"] == "1" and c.to_dict()["toPoint"] == "in1"


def test_position_from_dict_rejects_non_numbers():
    with pytest.raises(TypeError):
        Position.from_dict({"x": "1", "y": 2})


@pytest.mark.parametrize("requested, stored", [
    (0.0, SCALE_MIN), (5.0, SCALE_MAX), (1.3, 1.3),
])
def test_viewport_scale_is_clamped(requested, stored):
    assert Viewport(scale=requested).scale == stored


def test_state_document_never_contains_drag_preview():
    from node_editor.graph_editor.graph_model import DragConnection
    state = GraphState(nodes=[make_default_node("1")],
                       drag_connection=DragConnection("1", "out1", Position(5, 5)))
    d = state.to_dict()
    assert d["dragConnection"] is None
    assert set(d) == {"nodes", "connections", "dragConnection", "scale", "position"}
