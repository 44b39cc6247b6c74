"""Per-frame drawing of the highlight canvas."""
from typing import Optional, Tuple

from PySide6.QtCore import QPointF, Qt
from PySide6.QtGui import QColor, QPainter

from colors import parse_css_color
from highlight_layer import LAYER_ALPHA, HighlightLayer
from models import CanvasProps, DocumentImage
from viewport import ViewportTransform

BACKGROUND = QColor(241, 243, 244)
BRUSH_PREVIEW_ALPHA = 128


def render_frame(painter: QPainter, width: int, height: int,
                 viewport: ViewportTransform,
                 document: Optional[DocumentImage],
                 layer: HighlightLayer,
                 props: CanvasProps,
                 pointer: Optional[Tuple[float, float]]) -> None:
    painter.fillRect(0, 0, width, height, BACKGROUND)

    painter.save()
    ox, oy = viewport.offset
    painter.translate(ox, oy)
    painter.scale(viewport.zoom, viewport.zoom)
    if document is not None:
        painter.drawImage(0, 0, document.image)
        if layer.is_allocated:
            painter.setOpacity(LAYER_ALPHA / 255.0)
            painter.drawImage(0, 0, layer.image)
            painter.setOpacity(1.0)
    painter.restore()

    # Brush preview lives in screen space: its size does not follow the zoom.
    if props.highlighting and pointer is not None:
        color = QColor(parse_css_color(props.highlight_color))
        color.setAlpha(BRUSH_PREVIEW_ALPHA)
        radius = props.brush_size / 2
        painter.save()
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(color)
        painter.drawEllipse(QPointF(*pointer), radius, radius)
        painter.restore()


def cursor_for(props: CanvasProps) -> Qt.CursorShape:
    """The system cursor is hidden while the brush preview follows the pointer."""
    if props.highlighting:
        return Qt.CursorShape.BlankCursor
    return Qt.CursorShape.ArrowCursor
