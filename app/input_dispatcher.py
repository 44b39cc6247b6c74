"""Pointer / wheel interpretation for the highlight canvas.

Whether a drag pans the view or paints highlights is decided by the caller's
``highlighting`` flag, which arrives with every event.  All coordinates are
screen (widget) pixels; events outside ``[0, w] × [0, h]`` are dropped.
"""
from typing import Callable, Optional, Tuple

from PySide6.QtCore import Qt

from highlight_layer import HighlightLayer
from models import BRUSH_STEP, CanvasProps, InputState, StrokeSegment, clamp_brush_size
from viewport import ViewportTransform


class InputDispatcher:
    def __init__(self, viewport: ViewportTransform, layer: HighlightLayer,
                 on_brush_size_change: Callable[[int], None]):
        self._viewport = viewport
        self._layer = layer
        self._on_brush_size_change = on_brush_size_change
        self._width = 0
        self._height = 0
        self.state = InputState.IDLE
        self._last: Optional[Tuple[float, float]] = None
        # Last in-bounds pointer position, for the brush preview
        self.hover_pos: Optional[Tuple[float, float]] = None

    def set_bounds(self, width: int, height: int) -> None:
        self._width = width
        self._height = height

    def contains(self, x: float, y: float) -> bool:
        return 0 <= x <= self._width and 0 <= y <= self._height

    # ── Pointer ───────────────────────────────────────────────────────────────

    def pointer_down(self, x: float, y: float, button: Qt.MouseButton,
                     props: CanvasProps) -> None:
        if not self.contains(x, y):
            return
        self.hover_pos = (x, y)
        if props.highlighting:
            if self._layer.is_allocated:
                self.state = InputState.HIGHLIGHTING
                self._last = (x, y)
        elif button == Qt.MouseButton.LeftButton:
            self.state = InputState.PANNING
            self._last = (x, y)

    def pointer_move(self, x: float, y: float, props: CanvasProps) -> None:
        if not self.contains(x, y):
            # Forget the previous sample so no segment spans the outside region
            self._last = None
            self.hover_pos = None
            return
        self.hover_pos = (x, y)
        if self.state is InputState.IDLE:
            return

        if props.highlighting:
            if not self._layer.is_allocated:
                self._last = (x, y)
                return
            # A drag that started as a pan turns into painting once
            # highlight mode switches on.
            self.state = InputState.HIGHLIGHTING
        elif self.state is InputState.HIGHLIGHTING:
            self._last = (x, y)
            return

        last, self._last = self._last, (x, y)
        if last is None:
            return
        if self.state is InputState.PANNING:
            self._viewport.pan(x - last[0], y - last[1])
        else:
            self._paint(last, (x, y), props)

    def pointer_up(self) -> None:
        self.state = InputState.IDLE
        self._last = None

    def pointer_left(self) -> None:
        self.hover_pos = None
        self._last = None

    def _paint(self, start: Tuple[float, float], end: Tuple[float, float],
               props: CanvasProps) -> None:
        fx, fy = self._viewport.screen_to_image(*start)
        tx, ty = self._viewport.screen_to_image(*end)
        self._layer.paint_segment(StrokeSegment(
            from_x=fx, from_y=fy, to_x=tx, to_y=ty,
            color=props.highlight_color,
            width=props.brush_size / self._viewport.zoom,
        ))

    # ── Wheel ─────────────────────────────────────────────────────────────────

    def wheel(self, x: float, y: float, delta_y: float, props: CanvasProps) -> bool:
        """Handle one wheel notch.  Returns True if the event was consumed."""
        if not self.contains(x, y):
            return False
        if delta_y == 0:
            return True
        direction = -1 if delta_y > 0 else 1
        if props.highlighting:
            new_size = clamp_brush_size(props.brush_size + direction * BRUSH_STEP)
            if new_size != props.brush_size:
                self._on_brush_size_change(new_size)
            return True
        self._viewport.wheel_zoom(x, y, delta_y)
        return True
