"""Flatten the document and its highlight layer into one exportable PNG.

A composite is requested by the caller's trigger edge.  Whatever happens
(no document, decode failure, success, or cancellation by a newer document)
``on_consumed`` is called exactly once per request, and ``on_ready`` at most
once, always before ``on_consumed``.
"""
import base64
from concurrent.futures import Future
from typing import Callable, Optional

from PySide6.QtCore import QBuffer, QByteArray, QIODevice, QRect, Qt
from PySide6.QtGui import QImage, QPainter

import data_store
from highlight_layer import LAYER_ALPHA, HighlightLayer
from image_loader import ImageLoader
from models import DocumentImage

PNG_DATA_URL_PREFIX = "data:image/png;base64,"


def flatten(base: QImage, overlay: Optional[QImage], alpha: int = LAYER_ALPHA) -> QImage:
    """Return *base* with *overlay* blended on top at *alpha*/255.

    *overlay* is scaled to exactly cover *base*, so a highlight layer painted on
    a lower-resolution display raster lines up with a full-resolution page.
    """
    w, h = base.width(), base.height()
    out = QImage(w, h, QImage.Format.Format_ARGB32_Premultiplied)
    out.fill(Qt.GlobalColor.transparent)
    painter = QPainter(out)
    try:
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.drawImage(0, 0, base)
        if overlay is not None and not overlay.isNull():
            painter.setOpacity(alpha / 255.0)
            painter.drawImage(QRect(0, 0, w, h), overlay)
    finally:
        painter.end()
    return out


def encode_png_data_url(image: QImage) -> str:
    data = QByteArray()
    buf = QBuffer(data)
    buf.open(QIODevice.OpenModeFlag.WriteOnly)
    try:
        if not image.save(buf, "PNG"):
            raise RuntimeError("PNG encoding failed")
    finally:
        buf.close()
    return PNG_DATA_URL_PREFIX + base64.b64encode(bytes(data)).decode("ascii")


def strip_data_url(data_url: str) -> str:
    """Return only the base64 payload of a ``data:`` URL."""
    return data_url.split(",", 1)[1]


class _Job:
    """One composite request: the layer snapshot and its completion state."""

    def __init__(self, job_id: int, overlay: Optional[QImage]):
        self.job_id = job_id
        self.overlay = overlay
        self.finished = False


class Compositor:
    def __init__(self, loader: ImageLoader,
                 on_ready: Callable[[str], None],
                 on_consumed: Callable[[], None]):
        self._loader = loader
        self._on_ready = on_ready
        self._on_consumed = on_consumed
        self._job: Optional[_Job] = None
        self._next_id = 0

    @property
    def pending(self) -> bool:
        return self._job is not None

    def on_trigger(self, document: Optional[DocumentImage], layer: HighlightLayer,
                   full_res_source: Optional[str] = None) -> None:
        """Start a composite of *document* + *layer*.

        The full-resolution raster comes from *full_res_source* when it names a
        different source than the document; otherwise the decoded document
        image is reused.
        """
        self._next_id += 1
        overlay = layer.image.copy() if layer.is_allocated else None
        job = _Job(self._next_id, overlay)

        if document is None:
            data_store.dbg("Composite requested with no document loaded")
            self._finish(job)
            return

        self._job = job
        if full_res_source and full_res_source != document.source:
            data_store.dbg(f"Composite #{job.job_id}: loading full-resolution source")
            future = self._loader.load(full_res_source)
        else:
            future = Future()
            future.set_result(document.image)
        future.add_done_callback(lambda f: self._on_loaded(job, f))

    def cancel(self) -> None:
        """Drop the pending composite; its late result will be ignored."""
        job, self._job = self._job, None
        if job is not None:
            data_store.dbg(f"Composite #{job.job_id} cancelled")
            self._finish(job)

    def _on_loaded(self, job: _Job, future: "Future[QImage]") -> None:
        if job.finished:
            return
        exc = future.exception()
        if exc is not None:
            print(f"[composite] full-resolution image failed to load: {exc}")
            self._finish(job)
            return
        full_res = future.result()
        try:
            flat = flatten(full_res, job.overlay)
            payload = strip_data_url(encode_png_data_url(flat))
        except RuntimeError as exc:
            print(f"[composite] {exc}")
            self._finish(job)
            return
        data_store.dbg(
            f"Composite #{job.job_id}: {flat.width()}x{flat.height()}, "
            f"{len(payload)} base64 chars"
        )
        self._finish(job, payload)

    def _finish(self, job: _Job, payload: Optional[str] = None) -> None:
        if job.finished:
            return
        job.finished = True
        if self._job is job:
            self._job = None
        try:
            if payload is not None:
                self._on_ready(payload)
        finally:
            self._on_consumed()
