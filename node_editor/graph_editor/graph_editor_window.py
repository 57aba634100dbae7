"""Graph editor window.

Layout:
  ┌──────────────────────────────────────────────────────────────┐
  │ [＋ Add Node] [Save] [Load] [＋] [－]                 status │  ← toolbar
  ├──────────────────────────────────────────────────────────────┤
  │                                                              │
  │              NodeGraphCanvas                                 │
  │                                                              │
  └──────────────────────────────────────────────────────────────┘

The toolbar, status label, dialogs and node context menu only call into the
store, ConnectionManager, ViewportController and project_io, and report the
results back to the user.
"""

from __future__ import annotations

import os

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QPushButton, QMenu, QLabel, QFrame,
    QFileDialog, QMessageBox,
)
from PySide6.QtCore import QPoint

from .graph_model import GraphError, Position, make_default_node
from .graph_store import GraphStore
from .connections import ConnectionResult
from .node_canvas import NodeGraphCanvas
from ..ops.project_io import save_graph, load_graph, DEFAULT_FILENAME


# ---------------------------------------------------------------------------
# Window
# ---------------------------------------------------------------------------

class GraphEditorWindow(QWidget):
    """Top-level graph editor.

    Parameters
    ----------
    store      GraphStore edited in place.
    settings   Settings (frame interval, last dialog directory); may be None.
    """

    def __init__(self, store: GraphStore, settings=None, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Node Editor")
        self.resize(1100, 700)

        self.store = store
        self.settings = settings

        self._build_ui()

        self.setStyleSheet("""
            QWidget { background-color: #111827; color: #e5e7eb; }
            QPushButton {
                background-color: #1f2937; color: #e5e7eb;
                border: 1px solid #374151; border-radius: 4px;
                padding: 3px 8px;
            }
            QPushButton:hover { background-color: #374151; }
            QMenu { background: #1f2937; color: #eee; border: 1px solid #374151; }
            QMenu::item:selected { background: #3a7bd5; }
            QMenu::item:disabled { color: #6b7280; }
            QLabel { background: transparent; }
        """)

    # -----------------------------------------------------------------------
    # UI construction
    # -----------------------------------------------------------------------

    def _build_ui(self) -> None:
        outer = QVBoxLayout(self)
        outer.setContentsMargins(6, 6, 6, 6)
        outer.setSpacing(4)

        frame_ms = self.settings.frame_interval_ms if self.settings else 16
        self._canvas = NodeGraphCanvas(self.store, self, frame_interval_ms=frame_ms)
        self._canvas.connection_made.connect(self._on_connected)
        self._canvas.graph_error.connect(self._show_error)
        self._canvas.node_right_clicked.connect(self._on_node_right_click)

        toolbar = QHBoxLayout()
        toolbar.setSpacing(6)

        add_btn = QPushButton("＋ Add Node")
        add_btn.clicked.connect(self._add_node)
        toolbar.addWidget(add_btn)

        save_btn = QPushButton("Save")
        save_btn.clicked.connect(self._save_graph)
        toolbar.addWidget(save_btn)

        load_btn = QPushButton("Load")
        load_btn.clicked.connect(self._load_graph)
        toolbar.addWidget(load_btn)

        toolbar.addSpacing(8)

        zoom_in_btn = QPushButton("＋")
        zoom_in_btn.setToolTip("Zoom in  [Ctrl + wheel]")
        zoom_in_btn.clicked.connect(self._canvas.viewport.zoom_in)
        toolbar.addWidget(zoom_in_btn)

        zoom_out_btn = QPushButton("－")
        zoom_out_btn.setToolTip("Zoom out  [Ctrl + wheel]")
        zoom_out_btn.clicked.connect(self._canvas.viewport.zoom_out)
        toolbar.addWidget(zoom_out_btn)

        toolbar.addStretch()

        self._status_lbl = QLabel("")
        self._status_lbl.setStyleSheet("color: #888; font-size: 10px;")
        toolbar.addWidget(self._status_lbl)

        outer.addLayout(toolbar)

        sep = QFrame()
        sep.setFrameShape(QFrame.HLine)
        sep.setStyleSheet("color: #374151;")
        outer.addWidget(sep)

        outer.addWidget(self._canvas, 1)

    # -----------------------------------------------------------------------
    # Status feedback
    # -----------------------------------------------------------------------

    def _show_status(self, text: str) -> None:
        self._status_lbl.setText(text)
        self._status_lbl.setStyleSheet("color: #6bcb77; font-size: 10px;")

    def _show_error(self, text: str) -> None:
        self._status_lbl.setText(f"⚠ {text}")
        self._status_lbl.setStyleSheet("color: #e94560; font-size: 10px;")

    def _on_connected(self, result: ConnectionResult) -> None:
        self._show_status(result.message)

    # -----------------------------------------------------------------------
    # Node / connection actions
    # -----------------------------------------------------------------------

    def _add_node(self) -> None:
        node = make_default_node(self.store.new_node_id(), Position(100.0, 100.0))
        self.store.add_node(node)
        self._canvas.highlight_node(node.id)

    def _connect(self, from_id: str, to_id: str) -> None:
        try:
            result = self._canvas.connections.create_connection(from_id, to_id)
        except GraphError as e:
            self._show_error(str(e))
            return
        self._on_connected(result)

    def _on_node_right_click(self, node_id: str, global_pos: QPoint) -> None:
        node = self.store.get_node(node_id)
        if node is None:
            return
        menu = QMenu(self)

        head = menu.addAction("Connect to:")
        head.setEnabled(False)
        for other in self.store.state.nodes:
            if other.id == node_id:
                continue
            act = menu.addAction(other.title or other.id)
            act.triggered.connect(
                lambda checked=False, a=node_id, b=other.id: self._connect(a, b))

        touching = self.store.state.connections_for_node(node_id)
        if touching:
            menu.addSeparator()
            head = menu.addAction("Remove connection:")
            head.setEnabled(False)
            for conn in touching:
                if conn.from_node == node_id:
                    peer = self.store.get_node(conn.to_node)
                    label = f"To {peer.title if peer else conn.to_node}"
                else:
                    peer = self.store.get_node(conn.from_node)
                    label = f"From {peer.title if peer else conn.from_node}"
                act = menu.addAction(label)
                act.triggered.connect(
                    lambda checked=False, cid=conn.id:
                    self._canvas.connections.remove_connection(cid))

        menu.addSeparator()
        min_act = menu.addAction("Expand" if node.is_minimized else "Minimize")
        min_act.triggered.connect(lambda: self.store.toggle_node_minimize(node_id))
        del_act = menu.addAction("Delete node")
        del_act.triggered.connect(lambda: self.store.remove_node(node_id))

        menu.exec(global_pos)

    # -----------------------------------------------------------------------
    # Save / load graph
    # -----------------------------------------------------------------------

    def _dialog_dir(self) -> str:
        return self.settings.last_directory if self.settings else ""

    def _remember_dir(self, path: str) -> None:
        if self.settings:
            self.settings.last_directory = os.path.dirname(path)
            self.settings.save()

    def _save_graph(self) -> None:
        start = os.path.join(self._dialog_dir(), DEFAULT_FILENAME)
        path, _ = QFileDialog.getSaveFileName(
            self, "Save Graph", start, "Graph JSON (*.json)")
        if not path:
            return
        try:
            save_graph(self.store.state, path)
        except OSError as e:
            QMessageBox.warning(self, "Save failed", str(e))
            return
        self._remember_dir(path)
        self._show_status("Saved")

    def _load_graph(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self, "Load Graph", self._dialog_dir(), "Graph JSON (*.json)")
        if not path:
            return
        try:
            load_graph(self.store, path)
        except (GraphError, OSError) as e:
            QMessageBox.warning(self, "Load failed", str(e))
            return
        self._remember_dir(path)
        self._show_status("Loaded")

    # -----------------------------------------------------------------------
    # Window lifecycle
    # -----------------------------------------------------------------------

    def closeEvent(self, event) -> None:
        if self.settings:
            self.settings.save()
        super().closeEvent(event)
