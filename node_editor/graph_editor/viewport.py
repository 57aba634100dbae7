"""Viewport Controller: zoom, pan and screen <-> world conversion.

The render transform applies scale, then translate(position):

    screen = (world + position) * scale
    world  = screen / scale - position

Zoom is anchored at the coordinate origin, not at the pointer.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from .graph_model import Position
from .graph_store import GraphStore

ZOOM_IN_FACTOR  = 1.1
ZOOM_OUT_FACTOR = 0.9


class PointerButton(Enum):
    PRIMARY   = "primary"
    MIDDLE    = "middle"
    SECONDARY = "secondary"


PAN_BUTTON = PointerButton.MIDDLE


class ViewportController:
    def __init__(self, store: GraphStore):
        self.store = store
        self._pan_last: Optional[Position] = None    # screen coords

    @property
    def scale(self) -> float:
        return self.store.state.viewport.scale

    @property
    def position(self) -> Position:
        return self.store.state.viewport.position

    # -- Coordinate conversion --

    def screen_to_world(self, p: Position) -> Position:
        return p.scaled(1.0 / self.scale) - self.position

    def world_to_screen(self, p: Position) -> Position:
        return (p + self.position).scaled(self.scale)

    # -- Zoom --

    def zoom_by(self, factor: float):
        self.store.set_scale(self.scale * factor)

    def zoom_in(self):
        self.zoom_by(ZOOM_IN_FACTOR)

    def zoom_out(self):
        self.zoom_by(ZOOM_OUT_FACTOR)

    def wheel(self, delta_away: float, modifier: bool) -> bool:
        """Handle a wheel step.  Returns True if it was consumed as a zoom.

        *delta_away* > 0 means the wheel turned away from the user.  Without
        the zoom modifier the event is left for the host to scroll.
        """
        if not modifier or delta_away == 0:
            return False
        self.zoom_by(ZOOM_IN_FACTOR if delta_away > 0 else ZOOM_OUT_FACTOR)
        return True

    # -- Pan --

    @property
    def is_panning(self) -> bool:
        return self._pan_last is not None

    def press(self, button: PointerButton, screen_pos: Position) -> bool:
        if button != PAN_BUTTON:
            return False
        self._pan_last = Position(screen_pos.x, screen_pos.y)
        return True

    def move(self, screen_pos: Position) -> bool:
        """Shift the pan offset by the screen delta since the last sample."""
        if self._pan_last is None:
            return False
        delta = (screen_pos - self._pan_last).scaled(1.0 / self.scale)
        self._pan_last = Position(screen_pos.x, screen_pos.y)
        self.store.set_position(self.position + delta)
        return True

    def release(self, button: PointerButton) -> bool:
        if button != PAN_BUTTON or self._pan_last is None:
            return False
        self._pan_last = None
        return True
