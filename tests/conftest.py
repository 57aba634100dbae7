import os

import pytest

# Qt tests run headless
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from node_editor.graph_editor.graph_model import make_default_node, Position
from node_editor.graph_editor.graph_store import GraphStore
from node_editor.graph_editor.connections import ConnectionManager
from node_editor.core.storage import LocalStorage


class RecordingStorage:
    """Stand-in for LocalStorage that keeps every written snapshot."""

    def __init__(self):
        self.writes = []

    def write(self, state):
        self.writes.append(state.to_dict())


@pytest.fixture
def store():
    return GraphStore()


@pytest.fixture
def two_nodes(store):
    store.add_node(make_default_node("1"))
    store.add_node(make_default_node("2", Position(400.0, 100.0)))
    return store


@pytest.fixture
def manager(two_nodes):
    return ConnectionManager(two_nodes)


@pytest.fixture
def recording_storage():
    return RecordingStorage()


@pytest.fixture
def local_storage(tmp_path):
    return LocalStorage(tmp_path / "node-editor-storage.json")
