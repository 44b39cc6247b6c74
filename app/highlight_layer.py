"""Highlight layer: a raster registered to the document image's pixel grid.

Strokes are painted fully opaque; the half transparency is applied only when
the layer is drawn (on screen or into the composite), so overlapping strokes
of one colour never darken each other.
"""
from typing import Optional

from PySide6.QtCore import QPointF, Qt
from PySide6.QtGui import QImage, QPainter, QPen

from colors import parse_css_color
from models import StrokeSegment

# Alpha (out of 255) the layer is blended with, on screen and in the composite.
LAYER_ALPHA = 128


class HighlightLayer:
    def __init__(self):
        self._image: Optional[QImage] = None

    @property
    def image(self) -> Optional[QImage]:
        return self._image

    @property
    def is_allocated(self) -> bool:
        return self._image is not None

    @property
    def width(self) -> int:
        return self._image.width() if self._image is not None else 0

    @property
    def height(self) -> int:
        return self._image.height() if self._image is not None else 0

    def reset(self, width: int, height: int) -> None:
        """Drop all strokes and (re)allocate a transparent *width* × *height* buffer."""
        if width <= 0 or height <= 0:
            raise ValueError(f"invalid highlight layer size {width}x{height}")
        if self._image is not None and self._image.width() == width \
                and self._image.height() == height:
            self._image.fill(Qt.GlobalColor.transparent)
            return
        image = QImage(width, height, QImage.Format.Format_ARGB32_Premultiplied)
        image.fill(Qt.GlobalColor.transparent)
        self._image = image

    def release(self) -> None:
        self._image = None

    def paint_segment(self, segment: StrokeSegment) -> None:
        """Draw one round-capped line segment into the layer."""
        if self._image is None:
            raise RuntimeError("paint_segment() called on an unallocated highlight layer")
        pen = QPen(parse_css_color(segment.color))
        pen.setWidthF(max(segment.width, 0.0))
        pen.setCapStyle(Qt.PenCapStyle.RoundCap)
        pen.setJoinStyle(Qt.PenJoinStyle.RoundJoin)
        painter = QPainter(self._image)
        try:
            painter.setRenderHint(QPainter.RenderHint.Antialiasing)
            painter.setPen(pen)
            painter.setBrush(Qt.BrushStyle.NoBrush)
            painter.drawLine(
                QPointF(segment.from_x, segment.from_y),
                QPointF(segment.to_x, segment.to_y),
            )
        finally:
            painter.end()
