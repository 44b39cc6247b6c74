"""Asynchronous image decoding.

``load()`` returns a :class:`concurrent.futures.Future` right away.  The decode
runs on a later turn of the Qt event loop, so ``add_done_callback``
continuations always execute on the GUI thread and never re-enter the caller
synchronously.

Supported sources: filesystem paths, ``file://`` URLs and ``data:`` URLs with
base64 payloads (what the PDF rasteriser produces).
"""
import base64
import binascii
from concurrent.futures import Future
from urllib.parse import unquote, urlparse

from PySide6.QtCore import QTimer
from PySide6.QtGui import QImage

import data_store


class ImageLoadError(Exception):
    """A display or full-resolution image could not be decoded."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"could not load {_short(source)}: {reason}")


def _short(source: str, limit: int = 60) -> str:
    return source if len(source) <= limit else source[:limit] + "…"


class ImageLoader:
    """Collaborator interface: decode *source* into a QImage."""

    def load(self, source: str) -> "Future[QImage]":
        raise NotImplementedError


class QtImageLoader(ImageLoader):
    def load(self, source: str) -> "Future[QImage]":
        future: "Future[QImage]" = Future()
        future.set_running_or_notify_cancel()
        QTimer.singleShot(0, lambda: self._decode(source, future))
        return future

    def _decode(self, source: str, future: "Future[QImage]") -> None:
        if future.done():
            return
        try:
            image = decode_image(source)
        except ImageLoadError as exc:
            data_store.dbg(str(exc))
            future.set_exception(exc)
            return
        data_store.dbg(f"Decoded {_short(source)} ({image.width()}x{image.height()})")
        future.set_result(image)


def decode_image(source: str) -> QImage:
    """Synchronously decode *source*; raise ImageLoadError on failure."""
    if not source:
        raise ImageLoadError(source, "empty source")
    image = QImage()
    if source.startswith("data:"):
        header, sep, payload = source.partition(",")
        if not sep or not header.endswith(";base64"):
            raise ImageLoadError(source, "only base64 data URLs are supported")
        try:
            raw = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ImageLoadError(source, f"bad base64 payload ({exc})") from exc
        ok = image.loadFromData(raw)
    else:
        path = source
        if source.startswith("file:"):
            path = unquote(urlparse(source).path)
        ok = image.load(path)
    if not ok or image.isNull():
        raise ImageLoadError(source, "unsupported or corrupt image data")
    return image
