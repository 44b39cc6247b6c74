"""Viewport transform: pan/zoom mapping between screen and image pixels.

Screen coordinates are widget pixels; image coordinates are pixels of the
document raster.  The mapping is ``screen = offset + image * zoom``.
"""
from typing import Tuple

from models import FitMode, Viewport, clamp_zoom

FIT_MARGIN = 0.95       # fitted page fills 95 % of the limiting canvas side
WHEEL_ZOOM_STEP = 0.05  # zoom change per wheel notch (5 %)


class ViewportTransform:
    def __init__(self, fit_mode: FitMode = FitMode.FIT_TO_CANVAS):
        self.fit_mode = fit_mode
        self.view = Viewport()

    @property
    def zoom(self) -> float:
        return self.view.zoom

    @property
    def offset(self) -> Tuple[float, float]:
        return self.view.offset_x, self.view.offset_y

    def fit_to_image(self, image_w: int, image_h: int,
                     canvas_w: int, canvas_h: int) -> None:
        """Reset the view for a freshly loaded image of *image_w* × *image_h*."""
        if image_w <= 0 or image_h <= 0 or canvas_w <= 0 or canvas_h <= 0:
            self.view = Viewport()
            return
        if self.fit_mode is FitMode.FIT_TO_CANVAS:
            zoom = min(canvas_w / image_w, canvas_h / image_h) * FIT_MARGIN
        else:
            zoom = 1.0
        zoom = clamp_zoom(zoom)
        self.view = Viewport(
            offset_x=(canvas_w - image_w * zoom) / 2,
            offset_y=(canvas_h - image_h * zoom) / 2,
            zoom=zoom,
        )

    def screen_to_image(self, sx: float, sy: float) -> Tuple[float, float]:
        v = self.view
        return (sx - v.offset_x) / v.zoom, (sy - v.offset_y) / v.zoom

    def image_to_screen(self, ix: float, iy: float) -> Tuple[float, float]:
        v = self.view
        return v.offset_x + ix * v.zoom, v.offset_y + iy * v.zoom

    def pan(self, dx: float, dy: float) -> None:
        self.view.offset_x += dx
        self.view.offset_y += dy

    def zoom_at(self, sx: float, sy: float, new_zoom: float) -> bool:
        """Zoom to *new_zoom* keeping the image point under *(sx, sy)* fixed.

        Returns False (and changes nothing) when the clamped zoom equals the
        current one.
        """
        v = self.view
        zoom = clamp_zoom(new_zoom)
        if zoom == v.zoom:
            return False
        ratio = zoom / v.zoom
        v.offset_x = sx - (sx - v.offset_x) * ratio
        v.offset_y = sy - (sy - v.offset_y) * ratio
        v.zoom = zoom
        return True

    def wheel_zoom(self, sx: float, sy: float, delta_y: float) -> bool:
        """One wheel notch: scrolling down (*delta_y* > 0) zooms out."""
        if delta_y == 0:
            return False
        direction = -1 if delta_y > 0 else 1
        return self.zoom_at(sx, sy, self.view.zoom * (1 + direction * WHEEL_ZOOM_STEP))
