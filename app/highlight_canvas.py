"""Highlight canvas core: document, viewport, highlight layer and compositor.

The host (``canvas_view.HighlightCanvasView`` or a test) feeds it three things:

* the caller's :class:`~models.CanvasProps` through :meth:`update_props`, once
  per change;
* the canvas size through :meth:`resize`;
* pointer / wheel events in screen coordinates.

Edges between successive props (new document, document cleared, trigger
raised) are computed once per update by :class:`PropsEdgeDetector` and
dispatched from :meth:`update_props`; nothing else looks at old props.

Replacing the document releases the old image and highlight layer right away
and cancels a pending composite (its trigger is still consumed, without an
artifact).  The new image and a freshly sized layer are installed together
when the load completes, so a stroke can never land on a layer sized for
another image.
"""
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Optional

from PySide6.QtCore import QObject, Qt, Signal
from PySide6.QtGui import QImage, QPainter

import data_store
from colors import parse_css_color
from compositor import Compositor
from highlight_layer import HighlightLayer
from image_loader import ImageLoader, QtImageLoader
from input_dispatcher import InputDispatcher
from models import CanvasProps, DocumentImage, FitMode, InputState
from render import cursor_for, render_frame
from viewport import ViewportTransform


@dataclass(frozen=True)
class PropsEdges:
    document_changed: bool = False
    document_cleared: bool = False
    trigger_raised: bool = False


class PropsEdgeDetector:
    """Remember the previous props and report what changed in one update."""

    def __init__(self):
        self._previous = CanvasProps()

    @property
    def previous(self) -> CanvasProps:
        return self._previous

    def update(self, props: CanvasProps) -> PropsEdges:
        prev, self._previous = self._previous, props
        return PropsEdges(
            document_changed=bool(props.display_url)
            and props.display_url != prev.display_url,
            document_cleared=not props.display_url and bool(prev.display_url),
            trigger_raised=props.generation_trigger and not prev.generation_trigger,
        )


class HighlightCanvas(QObject):
    composite_image_ready = Signal(str)        # base64 PNG payload
    generation_trigger_consumed = Signal()
    brush_size_changed = Signal(int)
    document_loaded = Signal(int, int)         # width, height in pixels
    document_failed = Signal(str)              # error message

    def __init__(self, loader: Optional[ImageLoader] = None,
                 fit_mode: FitMode = FitMode.FIT_TO_CANVAS, parent=None):
        super().__init__(parent)
        self._loader = loader or QtImageLoader()
        self._edges = PropsEdgeDetector()
        self._props = CanvasProps()
        self._document: Optional[DocumentImage] = None
        self._load_generation = 0
        self._needs_fit = False
        self._width = 0
        self._height = 0

        self.viewport = ViewportTransform(fit_mode)
        self.layer = HighlightLayer()
        self.dispatcher = InputDispatcher(
            self.viewport, self.layer, self.brush_size_changed.emit
        )
        self.compositor = Compositor(
            self._loader,
            on_ready=self.composite_image_ready.emit,
            on_consumed=self.generation_trigger_consumed.emit,
        )

    # ── State ─────────────────────────────────────────────────────────────────

    @property
    def props(self) -> CanvasProps:
        return self._props

    @property
    def document(self) -> Optional[DocumentImage]:
        return self._document

    @property
    def input_state(self) -> InputState:
        return self.dispatcher.state

    @property
    def size(self):
        return self._width, self._height

    def set_fit_mode(self, fit_mode: FitMode, refit: bool = True) -> None:
        self.viewport.fit_mode = fit_mode
        if refit:
            self.fit_to_document()

    def fit_to_document(self) -> None:
        if self._document is None:
            return
        if self._width <= 0 or self._height <= 0:
            self._needs_fit = True
            return
        self.viewport.fit_to_image(self._document.width, self._document.height,
                                   self._width, self._height)
        self._needs_fit = False

    # ── Caller props ──────────────────────────────────────────────────────────

    def update_props(self, props: CanvasProps) -> None:
        """Apply a new props snapshot and act on its edges.

        Raises ValueError (and applies nothing) for an unparseable highlight
        colour.
        """
        parse_css_color(props.highlight_color)
        edges = self._edges.update(props)
        self._props = props

        if edges.document_changed:
            self._start_document_load(props.display_url)
        elif edges.document_cleared:
            data_store.dbg("Document cleared")
            self._drop_document()

        if edges.trigger_raised:
            self.compositor.on_trigger(self._document, self.layer, props.full_res_url)

    def resize(self, width: int, height: int) -> None:
        """Track the canvas size.  The view transform is kept as it is."""
        self._width = max(0, int(width))
        self._height = max(0, int(height))
        self.dispatcher.set_bounds(self._width, self._height)
        if self._needs_fit:
            self.fit_to_document()

    # ── Document loading ──────────────────────────────────────────────────────

    def _drop_document(self) -> None:
        self._load_generation += 1
        self.compositor.cancel()
        self._document = None
        self.layer.release()
        self.dispatcher.pointer_up()

    def _start_document_load(self, source: str) -> None:
        self._drop_document()
        generation = self._load_generation
        data_store.dbg(f"Loading document #{generation}")
        future = self._loader.load(source)
        future.add_done_callback(
            lambda f: self._on_document_loaded(generation, source, f)
        )

    def _on_document_loaded(self, generation: int, source: str,
                            future: "Future[QImage]") -> None:
        if generation != self._load_generation:
            data_store.dbg(f"Dropping stale document load #{generation}")
            return
        exc = future.exception()
        if exc is not None:
            print(f"[canvas] document failed to load: {exc}")
            self.document_failed.emit(str(exc))
            return
        image = future.result()
        self._document = DocumentImage(image=image, source=source)
        self.layer.reset(image.width(), image.height())
        self.fit_to_document()
        data_store.dbg(f"Document #{generation} ready: {image.width()}x{image.height()}")
        self.document_loaded.emit(image.width(), image.height())

    # ── Input ─────────────────────────────────────────────────────────────────

    def pointer_down(self, x: float, y: float,
                     button: Qt.MouseButton = Qt.MouseButton.LeftButton) -> None:
        self.dispatcher.pointer_down(x, y, button, self._props)

    def pointer_move(self, x: float, y: float) -> None:
        self.dispatcher.pointer_move(x, y, self._props)

    def pointer_up(self) -> None:
        self.dispatcher.pointer_up()

    def pointer_left(self) -> None:
        self.dispatcher.pointer_left()

    def wheel(self, x: float, y: float, delta_y: float) -> bool:
        return self.dispatcher.wheel(x, y, delta_y, self._props)

    # ── Rendering ─────────────────────────────────────────────────────────────

    def render(self, painter: QPainter) -> None:
        render_frame(painter, self._width, self._height, self.viewport,
                     self._document, self.layer, self._props,
                     self.dispatcher.hover_pos)

    def cursor_shape(self) -> Qt.CursorShape:
        return cursor_for(self._props)
