import base64
import dataclasses

import pytest
from PySide6.QtCore import QByteArray, Qt
from PySide6.QtGui import QImage, QPainter

from highlight_canvas import HighlightCanvas, PropsEdgeDetector
from models import CanvasProps, FitMode, InputState

DOC = CanvasProps(display_url="display.png", full_res_url="full.png")


class Recorder:
    """Collects every signal a canvas emits, in order."""

    def __init__(self, canvas: HighlightCanvas):
        self.events = []
        canvas.composite_image_ready.connect(lambda p: self.events.append(("ready", p)))
        canvas.generation_trigger_consumed.connect(lambda: self.events.append(("consumed",)))
        canvas.brush_size_changed.connect(lambda s: self.events.append(("brush", s)))
        canvas.document_loaded.connect(lambda w, h: self.events.append(("loaded", w, h)))
        canvas.document_failed.connect(lambda m: self.events.append(("failed", m)))

    def kinds(self):
        return [e[0] for e in self.events]


def make_canvas(loader, fit_mode=FitMode.NATIVE_SCALE, size=(800, 600)):
    canvas = HighlightCanvas(loader=loader, fit_mode=fit_mode)
    recorder = Recorder(canvas)
    if size:
        canvas.resize(*size)
    return canvas, recorder


def with_(props: CanvasProps, **changes) -> CanvasProps:
    return dataclasses.replace(props, **changes)


def loaded_canvas(loader, **kwargs):
    canvas, rec = make_canvas(loader, **kwargs)
    canvas.update_props(DOC)
    loader.resolve("display.png")
    return canvas, rec


# ── Edge detection ────────────────────────────────────────────────────────────

def test_edge_detector_reports_each_edge_once():
    det = PropsEdgeDetector()
    first = det.update(DOC)
    assert first.document_changed and not first.document_cleared
    assert not det.update(DOC).document_changed

    raised = det.update(with_(DOC, generation_trigger=True))
    assert raised.trigger_raised
    assert not det.update(with_(DOC, generation_trigger=True)).trigger_raised

    cleared = det.update(CanvasProps())
    assert cleared.document_cleared and not cleared.document_changed
    assert det.previous == CanvasProps()


def test_empty_display_url_counts_as_no_document():
    det = PropsEdgeDetector()
    edges = det.update(CanvasProps(display_url=""))
    assert not edges.document_changed and not edges.document_cleared


# ── Document lifecycle ────────────────────────────────────────────────────────

def test_loaded_document_sizes_the_layer(loader):
    canvas, rec = loaded_canvas(loader)
    assert canvas.document.source == "display.png"
    assert (canvas.layer.width, canvas.layer.height) == (800, 600)
    assert rec.events == [("loaded", 800, 600)]


def test_layer_is_not_allocated_while_loading(loader):
    canvas, _ = make_canvas(loader)
    canvas.update_props(DOC)
    assert canvas.document is None
    assert not canvas.layer.is_allocated


def test_replacing_document_resets_layer_to_new_size(loader):
    canvas, _ = loaded_canvas(loader)
    canvas.update_props(with_(DOC, display_url="other.png"))
    assert not canvas.layer.is_allocated
    loader.resolve("other.png")
    assert (canvas.layer.width, canvas.layer.height) == (400, 300)
    assert canvas.layer.image.pixelColor(10, 10).alpha() == 0


def test_stale_document_load_is_dropped(loader):
    canvas, rec = make_canvas(loader)
    canvas.update_props(DOC)
    canvas.update_props(with_(DOC, display_url="other.png"))
    loader.resolve("display.png")
    assert canvas.document is None
    assert rec.events == []
    loader.resolve("other.png")
    assert canvas.document.source == "other.png"
    assert rec.events == [("loaded", 400, 300)]


def test_document_load_failure_is_reported(loader):
    canvas, rec = make_canvas(loader)
    canvas.update_props(DOC)
    loader.fail("display.png", "corrupt")
    assert canvas.document is None
    assert rec.kinds() == ["failed"]
    assert "corrupt" in rec.events[0][1]


def test_clearing_the_document_releases_everything(loader):
    canvas, _ = loaded_canvas(loader)
    canvas.update_props(CanvasProps())
    assert canvas.document is None
    assert not canvas.layer.is_allocated


def test_invalid_highlight_color_is_rejected(loader):
    canvas, _ = make_canvas(loader)
    with pytest.raises(ValueError):
        canvas.update_props(with_(DOC, highlight_color="not-a-colour"))
    assert canvas.props == CanvasProps()
    assert loader.requested == []


# ── Viewport ──────────────────────────────────────────────────────────────────

def test_fit_mode_fits_loaded_document(loader):
    canvas, _ = loaded_canvas(loader, fit_mode=FitMode.FIT_TO_CANVAS)
    assert canvas.viewport.zoom == pytest.approx(0.95)
    assert canvas.viewport.offset == pytest.approx((20.0, 15.0))


def test_fit_waits_for_a_canvas_size(loader):
    canvas, _ = make_canvas(loader, fit_mode=FitMode.FIT_TO_CANVAS, size=None)
    canvas.update_props(DOC)
    loader.resolve("display.png")
    assert canvas.viewport.zoom == 1.0
    canvas.resize(800, 600)
    assert canvas.viewport.zoom == pytest.approx(0.95)


def test_resize_keeps_the_view(loader):
    canvas, _ = loaded_canvas(loader, fit_mode=FitMode.FIT_TO_CANVAS)
    canvas.wheel(400, 300, -1)
    before = (canvas.viewport.offset, canvas.viewport.zoom)
    canvas.resize(1200, 900)
    assert (canvas.viewport.offset, canvas.viewport.zoom) == before
    assert canvas.size == (1200, 900)


# ── Input ─────────────────────────────────────────────────────────────────────

def test_wheel_in_highlight_mode_reports_brush_size(loader):
    canvas, rec = loaded_canvas(loader)
    canvas.update_props(with_(DOC, highlighting=True, brush_size=40))
    zoom = canvas.viewport.zoom
    assert canvas.wheel(400, 300, 120) is True
    assert rec.events[-1] == ("brush", 35)
    assert canvas.viewport.zoom == zoom


def test_wheel_outside_canvas_is_not_consumed(loader):
    canvas, _ = loaded_canvas(loader)
    assert canvas.wheel(900, 300, 120) is False


def test_drag_without_highlighting_pans(loader):
    canvas, _ = loaded_canvas(loader)
    canvas.pointer_down(100, 100)
    assert canvas.input_state is InputState.PANNING
    canvas.pointer_move(150, 130)
    canvas.pointer_up()
    assert canvas.viewport.offset == (50.0, 30.0)
    assert canvas.input_state is InputState.IDLE


def test_cursor_follows_highlight_mode(loader):
    canvas, _ = make_canvas(loader)
    assert canvas.cursor_shape() == Qt.CursorShape.ArrowCursor
    canvas.update_props(with_(DOC, highlighting=True))
    assert canvas.cursor_shape() == Qt.CursorShape.BlankCursor


# ── Composite ─────────────────────────────────────────────────────────────────

def decode_payload(payload: str) -> QImage:
    image = QImage()
    assert image.loadFromData(QByteArray(base64.b64decode(payload)), "PNG")
    return image


def test_stroke_is_composited_at_full_resolution(loader):
    canvas, rec = loaded_canvas(loader)
    painting = with_(DOC, highlighting=True, brush_size=20, highlight_color="#FFFF00")
    canvas.update_props(painting)
    canvas.pointer_down(100, 100)
    canvas.pointer_move(200, 100)
    canvas.pointer_up()

    canvas.update_props(with_(painting, highlighting=False, generation_trigger=True))
    assert loader.pending_sources() == ["full.png"]
    loader.resolve("full.png")

    assert rec.kinds() == ["loaded", "ready", "consumed"]
    image = decode_payload(rec.events[1][1])
    assert (image.width(), image.height()) == (1600, 1200)
    inside = image.pixelColor(300, 200)
    assert (inside.red(), inside.green()) == (255, 255)
    assert inside.blue() == pytest.approx(127, abs=3)
    outside = image.pixelColor(300, 260)
    assert (outside.red(), outside.green(), outside.blue()) == (255, 255, 255)


def test_trigger_fires_only_on_rising_edge(loader):
    canvas, rec = loaded_canvas(loader)
    canvas.update_props(with_(DOC, full_res_url=None, generation_trigger=True))
    canvas.update_props(with_(DOC, full_res_url=None, generation_trigger=True))
    assert rec.kinds().count("consumed") == 1
    canvas.update_props(with_(DOC, full_res_url=None))
    canvas.update_props(with_(DOC, full_res_url=None, generation_trigger=True))
    assert rec.kinds().count("consumed") == 2
    assert rec.kinds().count("ready") == 2


def test_trigger_without_document_is_consumed_without_artifact(loader):
    canvas, rec = make_canvas(loader)
    canvas.update_props(CanvasProps(generation_trigger=True))
    assert rec.events == [("consumed",)]


def test_trigger_while_document_is_loading_is_consumed(loader):
    canvas, rec = make_canvas(loader)
    canvas.update_props(with_(DOC, generation_trigger=True))
    assert rec.events == [("consumed",)]
    assert loader.pending_sources() == ["display.png"]


def test_document_replacement_cancels_pending_composite(loader):
    canvas, rec = loaded_canvas(loader)
    canvas.update_props(with_(DOC, generation_trigger=True))
    assert canvas.compositor.pending
    canvas.update_props(with_(DOC, display_url="other.png", generation_trigger=True))
    assert rec.kinds() == ["loaded", "consumed"]
    assert not canvas.compositor.pending

    loader.resolve("full.png")
    loader.resolve("other.png")
    assert rec.kinds() == ["loaded", "consumed", "loaded"]


# ── Rendering ─────────────────────────────────────────────────────────────────

def test_render_draws_document_in_view(loader):
    canvas, _ = loaded_canvas(loader, fit_mode=FitMode.FIT_TO_CANVAS)
    target = QImage(800, 600, QImage.Format.Format_ARGB32_Premultiplied)
    target.fill(0)
    painter = QPainter(target)
    try:
        canvas.render(painter)
    finally:
        painter.end()
    page = target.pixelColor(400, 300)
    margin = target.pixelColor(5, 5)
    assert (page.red(), page.green(), page.blue()) == (255, 255, 255)
    assert (margin.red(), margin.green(), margin.blue()) == (241, 243, 244)
