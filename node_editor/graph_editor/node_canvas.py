"""Node graph canvas widget.

A QWidget that renders and interacts with a GraphStore.  Handles:
  - Pan (middle-mouse drag)
  - Zoom (Ctrl + mouse wheel, anchored at the world origin)
  - Node drag by its header
  - Click-drag from an output point onto another node to connect
  - Right-click on a connection to remove it
  - Right-click on a node (window shows the connect / remove menu)
  - Header buttons: minimize toggle and delete
  - Per-node input editors embedded inline

Coordinate spaces:
  world  – GraphNode.position, connection point positions
  screen – widget pixels; ViewportController converts between them

The grid and the connection curves come from render.render() as draw
commands and are replayed here; node boxes are painted on top of them.
The canvas repaints on a fixed timer whether or not anything changed.
"""

from __future__ import annotations

from typing import Optional

from PySide6.QtWidgets import (
    QWidget, QSizePolicy, QFormLayout, QLineEdit, QDoubleSpinBox, QComboBox,
)
from PySide6.QtCore import Qt, QPointF, QRectF, QPoint, Signal, QTimer
from PySide6.QtGui import (
    QPainter, QPen, QBrush, QColor, QPainterPath, QMouseEvent, QWheelEvent,
    QCursor, QKeyEvent,
)

from .graph_model import (
    GraphNode, GraphConnection, ConnectionPoint, InputKind, Position,
    GraphError,
)
from .graph_store import GraphStore
from .connections import ConnectionManager
from .viewport import ViewportController, PointerButton
from .interaction import NodeDragController, ConnectionDragController
from .render import (
    render, connection_endpoints, point_to_connection_dist,
    Clear, Transform, Line, Bezier, Disc,
)


# ---------------------------------------------------------------------------
# Visual constants
# ---------------------------------------------------------------------------

NODE_W          = 280     # node width (world units); out1 sits on the right edge
NODE_HEADER_H   = 32      # title bar height
INPUT_ROW_H     = 28      # height per inline input row
BODY_PAD        = 8       # padding inside the body
POINT_R         = 6       # connection point radius
HEADER_BUTTON_W = 18
HEADER_BUTTON_H = 14
MIN_EDIT_SCALE  = 0.4     # below this zoom the inline editors are hidden
HIGHLIGHT_MS    = 2000    # "new node" highlight duration

# Colours
C_BG            = QColor("#111827")
C_NODE_BG       = QColor(31, 41, 55, 230)
C_NODE_BORDER   = QColor("#374151")
C_NODE_HEADER   = QColor("#1f2937")
C_NODE_NEW      = QColor("#fbbf24")
C_INPUT_POINT   = QColor("#facc15")
C_OUTPUT_POINT  = QColor("#f472b6")
C_TEXT          = QColor("#d1d5db")
C_TEXT_DIM      = QColor("#6b7280")


# ---------------------------------------------------------------------------
# Hit-test result
# ---------------------------------------------------------------------------

class _Hit:
    NONE         = "none"
    NODE_BODY    = "node_body"
    NODE_HEADER  = "node_header"   # for drag
    INPUT_POINT  = "input_point"
    OUTPUT_POINT = "output_point"
    WIRE         = "wire"
    MIN_BUTTON   = "min_button"
    DEL_BUTTON   = "del_button"

    def __init__(self, kind=NONE, node: GraphNode = None,
                 point: ConnectionPoint = None, conn: GraphConnection = None):
        self.kind = kind
        self.node = node
        self.point = point
        self.conn = conn


# ---------------------------------------------------------------------------
# Node geometry (world units)
# ---------------------------------------------------------------------------

def node_height(node: GraphNode) -> float:
    if node.is_minimized:
        return NODE_HEADER_H
    return NODE_HEADER_H + BODY_PAD * 2 + max(len(node.inputs), 1) * INPUT_ROW_H


def node_rect(node: GraphNode) -> QRectF:
    return QRectF(node.position.x, node.position.y, NODE_W, node_height(node))


def header_rect(node: GraphNode) -> QRectF:
    return QRectF(node.position.x, node.position.y, NODE_W, NODE_HEADER_H)


def _header_button_rect(node: GraphNode, slot: int) -> QRectF:
    """slot 0 is the rightmost button (delete), slot 1 the minimize toggle."""
    r = header_rect(node)
    return QRectF(
        r.right() - (HEADER_BUTTON_W + 4) * (slot + 1),
        r.top() + (NODE_HEADER_H - HEADER_BUTTON_H) / 2,
        HEADER_BUTTON_W, HEADER_BUTTON_H,
    )


def _qpt(p: Position) -> QPointF:
    return QPointF(p.x, p.y)


def _button_of(event: QMouseEvent) -> Optional[PointerButton]:
    b = event.button()
    if b == Qt.LeftButton:
        return PointerButton.PRIMARY
    if b == Qt.MiddleButton:
        return PointerButton.MIDDLE
    if b == Qt.RightButton:
        return PointerButton.SECONDARY
    return None


def paint_commands(painter: QPainter, commands) -> None:
    """Replay render() output onto *painter*."""
    for cmd in commands:
        if isinstance(cmd, Clear):
            painter.fillRect(QRectF(0, 0, cmd.width, cmd.height), C_BG)
        elif isinstance(cmd, Transform):
            painter.scale(cmd.scale, cmd.scale)
            painter.translate(cmd.dx, cmd.dy)
        elif isinstance(cmd, Line):
            painter.setPen(QPen(QColor(cmd.color), cmd.width))
            painter.drawLine(QPointF(cmd.x1, cmd.y1), QPointF(cmd.x2, cmd.y2))
        elif isinstance(cmd, Bezier):
            path = QPainterPath(_qpt(cmd.start))
            path.cubicTo(_qpt(cmd.cp1), _qpt(cmd.cp2), _qpt(cmd.end))
            painter.setPen(QPen(QColor(cmd.color), cmd.width))
            painter.setBrush(Qt.NoBrush)
            painter.drawPath(path)
        elif isinstance(cmd, Disc):
            painter.setPen(Qt.NoPen)
            painter.setBrush(QBrush(QColor(cmd.color)))
            painter.drawEllipse(_qpt(cmd.center), cmd.radius, cmd.radius)


# ---------------------------------------------------------------------------
# Node graph canvas
# ---------------------------------------------------------------------------

class NodeGraphCanvas(QWidget):
    """Interactive node graph editor canvas.

    Signals:
      connection_made(ConnectionResult)  – a drag-to-connect succeeded
      graph_error(str)                   – a connect / input edit was rejected
      node_right_clicked(str, QPoint)    – (node_id, global_pos)
    """

    connection_made = Signal(object)
    graph_error = Signal(str)
    node_right_clicked = Signal(str, QPoint)

    def __init__(self, store: GraphStore, parent=None, frame_interval_ms: int = 16):
        super().__init__(parent)
        self.store = store
        self.viewport = ViewportController(store)
        self.connections = ConnectionManager(store)
        self.node_drag = NodeDragController(store, self.viewport)
        self.connection_drag = ConnectionDragController(store, self.viewport, self.connections)

        self.setFocusPolicy(Qt.StrongFocus)
        self.setMouseTracking(True)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self.setMinimumSize(400, 300)

        self._highlighted: set = set()   # node_ids flashing after "Add Node"

        # Inline input editors: node_id → QWidget
        self._input_widgets: dict = {}
        self._rebuild_input_widgets()
        store.on_change(self._on_store_changed)

        # Frame loop: repaint every tick from the latest snapshot
        self._frame_timer = QTimer(self)
        self._frame_timer.setInterval(frame_interval_ms)
        self._frame_timer.timeout.connect(self.update)
        self._frame_timer.start()

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    def highlight_node(self, node_id: str) -> None:
        self._highlighted.add(node_id)
        QTimer.singleShot(HIGHLIGHT_MS, lambda: self._highlighted.discard(node_id))

    # -----------------------------------------------------------------------
    # Store sync
    # -----------------------------------------------------------------------

    def _on_store_changed(self, source) -> None:
        if source in ('add_node', 'remove_node', 'load'):
            self._rebuild_input_widgets()
        self.update()

    # -----------------------------------------------------------------------
    # Hit testing
    # -----------------------------------------------------------------------

    def _hit_test(self, world: Position) -> _Hit:
        wp = _qpt(world)
        # Points, then header buttons, before any body; topmost node wins
        for node in reversed(self.store.state.nodes):
            for point in node.output_points:
                pp = _qpt(node.point_world_position(point))
                if (wp - pp).manhattanLength() <= POINT_R * 1.8:
                    return _Hit(_Hit.OUTPUT_POINT, node, point)
            for point in node.input_points:
                pp = _qpt(node.point_world_position(point))
                if (wp - pp).manhattanLength() <= POINT_R * 1.8:
                    return _Hit(_Hit.INPUT_POINT, node, point)
            if _header_button_rect(node, 0).contains(wp):
                return _Hit(_Hit.DEL_BUTTON, node)
            if _header_button_rect(node, 1).contains(wp):
                return _Hit(_Hit.MIN_BUTTON, node)

        for node in reversed(self.store.state.nodes):
            if header_rect(node).contains(wp):
                return _Hit(_Hit.NODE_HEADER, node)
            if node_rect(node).contains(wp):
                return _Hit(_Hit.NODE_BODY, node)

        for conn in self.store.state.connections:
            ends = connection_endpoints(self.store.state, conn)
            if ends and point_to_connection_dist(world, *ends) < 6.0 / self.viewport.scale:
                return _Hit(_Hit.WIRE, conn=conn)

        return _Hit()

    # -----------------------------------------------------------------------
    # Inline input editors
    # -----------------------------------------------------------------------

    def _rebuild_input_widgets(self) -> None:
        for nid in list(self._input_widgets.keys()):
            w = self._input_widgets.pop(nid)
            w.setParent(None)
            w.deleteLater()
        for node in self.store.state.nodes:
            self._input_widgets[node.id] = self._make_input_widget(node)

    def _make_input_widget(self, node: GraphNode) -> QWidget:
        panel = QWidget(self)
        panel.setStyleSheet(
            "QWidget { background: transparent; color: #9ca3af; font-size: 10px; }"
            "QLineEdit, QDoubleSpinBox, QComboBox {"
            " background: #374151; color: #e5e7eb;"
            " border: 1px solid #4b5563; border-radius: 3px; padding: 1px 4px; }")
        form = QFormLayout(panel)
        form.setContentsMargins(0, 0, 0, 0)
        form.setSpacing(4)

        for inp in node.inputs:
            if inp.kind == InputKind.NUMBER:
                editor = QDoubleSpinBox()
                editor.setRange(-1e12, 1e12)
                editor.setDecimals(3)
                editor.setValue(inp.value)
                editor.valueChanged.connect(
                    lambda v, nid=node.id, iid=inp.id: self._on_input_edited(nid, iid, v))
            elif inp.kind == InputKind.SELECT:
                editor = QComboBox()
                editor.addItems(inp.options or [])
                editor.setCurrentText(inp.value)
                editor.currentTextChanged.connect(
                    lambda v, nid=node.id, iid=inp.id: self._on_input_edited(nid, iid, v))
            else:
                editor = QLineEdit(inp.value)
                editor.textEdited.connect(
                    lambda v, nid=node.id, iid=inp.id: self._on_input_edited(nid, iid, v))
            form.addRow(inp.label, editor)

        panel.hide()
        return panel

    def _on_input_edited(self, node_id: str, input_id: str, value) -> None:
        try:
            self.store.update_node_input(node_id, input_id, value)
        except GraphError as e:
            self.graph_error.emit(str(e))

    def _place_input_widgets(self) -> None:
        """Position input editors over their nodes (screen space)."""
        scale = self.viewport.scale
        for node in self.store.state.nodes:
            w = self._input_widgets.get(node.id)
            if w is None:
                continue
            if node.is_minimized or scale < MIN_EDIT_SCALE:
                w.hide()
                continue
            tl = self.viewport.world_to_screen(Position(
                node.position.x + BODY_PAD,
                node.position.y + NODE_HEADER_H + BODY_PAD))
            w.setGeometry(int(tl.x), int(tl.y),
                          int((NODE_W - BODY_PAD * 2) * scale),
                          int(len(node.inputs) * INPUT_ROW_H * scale))
            w.show()

    # -----------------------------------------------------------------------
    # Paint
    # -----------------------------------------------------------------------

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)

        state = self.store.state
        commands = render(state, state.viewport, (self.width(), self.height()))
        painter.save()
        paint_commands(painter, commands)
        for node in state.nodes:
            self._draw_node(painter, node)
        painter.restore()

        self._place_input_widgets()

    def _draw_node(self, painter: QPainter, node: GraphNode) -> None:
        r = node_rect(node)

        # Body
        body_path = QPainterPath()
        body_path.addRoundedRect(r, 8, 8)
        painter.fillPath(body_path, C_NODE_BG)
        border = C_NODE_NEW if node.id in self._highlighted else C_NODE_BORDER
        painter.setPen(QPen(border, 2.0 if node.id in self._highlighted else 1.0))
        painter.setBrush(Qt.NoBrush)
        painter.drawPath(body_path)

        # Header
        hr = header_rect(node)
        header_path = QPainterPath()
        header_path.addRoundedRect(hr, 8, 8)
        painter.fillPath(header_path, C_NODE_HEADER)
        if not node.is_minimized:
            painter.setPen(QPen(C_NODE_BORDER, 1.0))
            painter.drawLine(QPointF(hr.left(), hr.bottom()), QPointF(hr.right(), hr.bottom()))

        painter.setPen(C_TEXT)
        painter.drawText(hr.adjusted(12, 0, -80, 0), Qt.AlignVCenter | Qt.AlignLeft, node.title)
        painter.setPen(C_TEXT_DIM)
        painter.drawText(hr.adjusted(0, 0, -(HEADER_BUTTON_W + 4) * 2 - 6, 0),
                         Qt.AlignVCenter | Qt.AlignRight, f"#{node.id}")

        # Header buttons: minimize toggle, delete
        mb = _header_button_rect(node, 1)
        painter.setPen(QPen(C_TEXT_DIM, 1.5))
        if node.is_minimized:
            painter.drawRect(mb.adjusted(4, 2, -4, -2))
        else:
            painter.drawLine(QPointF(mb.left() + 4, mb.center().y()),
                             QPointF(mb.right() - 4, mb.center().y()))
        db = _header_button_rect(node, 0).adjusted(5, 3, -5, -3)
        painter.drawLine(db.topLeft(), db.bottomRight())
        painter.drawLine(db.topRight(), db.bottomLeft())

        # Connection points
        painter.setPen(Qt.NoPen)
        for point, colour in ([(p, C_INPUT_POINT) for p in node.input_points] +
                              [(p, C_OUTPUT_POINT) for p in node.output_points]):
            painter.setBrush(QBrush(colour))
            painter.drawEllipse(_qpt(node.point_world_position(point)), POINT_R, POINT_R)

    # -----------------------------------------------------------------------
    # Mouse events
    # -----------------------------------------------------------------------

    def mousePressEvent(self, event: QMouseEvent) -> None:
        screen = Position(event.position().x(), event.position().y())
        button = _button_of(event)

        if self.viewport.press(button, screen):
            self.setCursor(QCursor(Qt.ClosedHandCursor))
            return

        hit = self._hit_test(self.viewport.screen_to_world(screen))

        if button == PointerButton.SECONDARY:
            if hit.kind == _Hit.WIRE:
                self.connections.remove_connection(hit.conn.id)
            elif hit.node is not None:
                self.node_right_clicked.emit(hit.node.id, event.globalPosition().toPoint())
            return

        if button != PointerButton.PRIMARY:
            return

        if hit.kind == _Hit.MIN_BUTTON:
            self.store.toggle_node_minimize(hit.node.id)
        elif hit.kind == _Hit.DEL_BUTTON:
            self.store.remove_node(hit.node.id)
        elif hit.kind == _Hit.OUTPUT_POINT:
            self.connection_drag.press_output(hit.node.id, hit.point.id, screen)
        elif hit.kind == _Hit.NODE_HEADER:
            self.node_drag.press_header(hit.node.id, screen, button)

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        screen = Position(event.position().x(), event.position().y())
        if self.viewport.move(screen):
            return
        if self.connection_drag.move(screen):
            return
        self.node_drag.move(screen)

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        screen = Position(event.position().x(), event.position().y())
        button = _button_of(event)

        if self.viewport.release(button):
            self.setCursor(QCursor(Qt.ArrowCursor))
            return

        if button != PointerButton.PRIMARY:
            return

        if self.connection_drag.is_dragging:
            hit = self._hit_test(self.viewport.screen_to_world(screen))
            try:
                result = self.connection_drag.release(hit.node.id if hit.node else None)
            except GraphError as e:
                self.graph_error.emit(str(e))
            else:
                if result is not None:
                    self.connection_made.emit(result)

        self.node_drag.release(button)

    def keyPressEvent(self, event: QKeyEvent) -> None:
        if event.key() == Qt.Key_Escape and self.connection_drag.is_dragging:
            self.connection_drag.cancel()
            event.accept()
            return
        super().keyPressEvent(event)

    def wheelEvent(self, event: QWheelEvent) -> None:
        zoom_mod = bool(event.modifiers() & Qt.ControlModifier)
        if self.viewport.wheel(event.angleDelta().y(), zoom_mod):
            event.accept()
        else:
            event.ignore()
