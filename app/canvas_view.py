"""Qt widget hosting the highlight canvas.

The widget only translates Qt events into canvas calls and repaints on a
frame timer; all state lives in :class:`highlight_canvas.HighlightCanvas`.
"""
from typing import Optional

from PySide6.QtCore import QTimer, Qt
from PySide6.QtGui import QPainter
from PySide6.QtWidgets import QSizePolicy, QWidget

from highlight_canvas import HighlightCanvas
from image_loader import ImageLoader
from models import CanvasProps, FitMode

_FRAME_INTERVAL_MS = 16     # ~60 fps
_WHEEL_NOTCH = 120          # angleDelta units per physical wheel notch

DEFAULT_PLACEHOLDER = "Select an image or PDF to begin."


class HighlightCanvasView(QWidget):
    def __init__(self, loader: Optional[ImageLoader] = None,
                 fit_mode: FitMode = FitMode.FIT_TO_CANVAS, parent=None):
        super().__init__(parent)
        self.canvas = HighlightCanvas(loader, fit_mode, self)
        self._placeholder = DEFAULT_PLACEHOLDER
        self._wheel_accum = 0

        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self.setMinimumSize(200, 200)

        # Re-exposed so callers can connect to the view directly
        self.composite_image_ready = self.canvas.composite_image_ready
        self.generation_trigger_consumed = self.canvas.generation_trigger_consumed
        self.brush_size_changed = self.canvas.brush_size_changed
        self.document_loaded = self.canvas.document_loaded
        self.document_failed = self.canvas.document_failed

        self._frame_timer = QTimer(self)
        self._frame_timer.setInterval(_FRAME_INTERVAL_MS)
        self._frame_timer.timeout.connect(self._on_frame)
        self._frame_timer.start()

    def set_props(self, props: CanvasProps) -> None:
        self.canvas.update_props(props)
        self.update()

    @property
    def placeholder(self) -> str:
        return self._placeholder

    def set_placeholder(self, text: str) -> None:
        self._placeholder = text
        self.update()

    # ── Frame loop ────────────────────────────────────────────────────────────

    def _on_frame(self):
        shape = self.canvas.cursor_shape()
        if self.cursor().shape() != shape:
            self.setCursor(shape)
        self.update()

    def paintEvent(self, event):
        painter = QPainter(self)
        try:
            self.canvas.render(painter)
            if self.canvas.document is None and self._placeholder:
                painter.setPen(Qt.GlobalColor.darkGray)
                painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter,
                                 self._placeholder)
        finally:
            painter.end()

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self.canvas.resize(event.size().width(), event.size().height())

    # ── Input ─────────────────────────────────────────────────────────────────

    def mousePressEvent(self, event):
        pos = event.position()
        self.canvas.pointer_down(pos.x(), pos.y(), event.button())
        event.accept()

    def mouseMoveEvent(self, event):
        pos = event.position()
        self.canvas.pointer_move(pos.x(), pos.y())
        event.accept()

    def mouseReleaseEvent(self, event):
        self.canvas.pointer_up()
        event.accept()

    def leaveEvent(self, event):
        self.canvas.pointer_left()
        super().leaveEvent(event)

    def wheelEvent(self, event):
        pos = event.position()
        delta = event.angleDelta().y()
        if delta == 0:
            event.ignore()
            return
        if not self.canvas.dispatcher.contains(pos.x(), pos.y()):
            self._wheel_accum = 0
            event.ignore()
            return
        # High-resolution wheels and trackpads send fractions of a notch;
        # the canvas only ever sees whole notches.
        if (delta > 0) != (self._wheel_accum > 0):
            self._wheel_accum = 0
        self._wheel_accum += delta
        while abs(self._wheel_accum) >= _WHEEL_NOTCH:
            notch = _WHEEL_NOTCH if self._wheel_accum > 0 else -_WHEEL_NOTCH
            self._wheel_accum -= notch
            # Qt reports wheel-up as a positive delta; the canvas expects
            # scroll-down-is-positive.
            self.canvas.wheel(pos.x(), pos.y(), -notch)
        event.accept()
