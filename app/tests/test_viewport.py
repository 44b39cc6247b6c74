import pytest

from models import MAX_ZOOM, MIN_ZOOM, FitMode
from viewport import ViewportTransform


def test_fit_to_canvas_uses_limiting_side_with_margin():
    vt = ViewportTransform(FitMode.FIT_TO_CANVAS)
    vt.fit_to_image(800, 600, 1000, 1000)
    assert vt.zoom == pytest.approx(1000 / 800 * 0.95)
    ox, oy = vt.offset
    assert ox == pytest.approx((1000 - 800 * vt.zoom) / 2)
    assert oy == pytest.approx((1000 - 600 * vt.zoom) / 2)


def test_fit_to_canvas_tall_image():
    vt = ViewportTransform(FitMode.FIT_TO_CANVAS)
    vt.fit_to_image(500, 2000, 1000, 1000)
    assert vt.zoom == pytest.approx(1000 / 2000 * 0.95)


def test_native_scale_centres_at_zoom_one():
    vt = ViewportTransform(FitMode.NATIVE_SCALE)
    vt.fit_to_image(800, 600, 1000, 1000)
    assert vt.zoom == 1.0
    assert vt.offset == (100.0, 200.0)


def test_fit_zoom_is_clamped():
    vt = ViewportTransform(FitMode.FIT_TO_CANVAS)
    vt.fit_to_image(100000, 100000, 500, 500)
    assert vt.zoom == MIN_ZOOM
    vt.fit_to_image(2, 2, 5000, 5000)
    assert vt.zoom == MAX_ZOOM


def test_fit_with_degenerate_sizes_resets_view():
    vt = ViewportTransform()
    vt.pan(10, 10)
    vt.fit_to_image(800, 600, 0, 0)
    assert vt.zoom == 1.0
    assert vt.offset == (0.0, 0.0)


def test_screen_image_round_trip():
    vt = ViewportTransform()
    vt.fit_to_image(800, 600, 1000, 700)
    ix, iy = vt.screen_to_image(321.0, 123.0)
    assert vt.image_to_screen(ix, iy) == pytest.approx((321.0, 123.0))


def test_pan_then_inverse_pan_keeps_mapping():
    vt = ViewportTransform()
    vt.fit_to_image(800, 600, 1000, 700)
    before = vt.screen_to_image(400, 300)
    for dx, dy in [(10, -4), (-37.5, 12), (0.25, 99)]:
        vt.pan(dx, dy)
    for dx, dy in [(-0.25, -99), (37.5, -12), (-10, 4)]:
        vt.pan(dx, dy)
    assert vt.screen_to_image(400, 300) == pytest.approx(before)


def test_zoom_at_keeps_pivot_fixed():
    vt = ViewportTransform()
    vt.fit_to_image(800, 600, 1000, 700)
    before = vt.screen_to_image(250, 410)
    assert vt.zoom_at(250, 410, vt.zoom * 2.5)
    assert vt.screen_to_image(250, 410) == pytest.approx(before)


def test_zoom_at_clamps_and_noops_at_bound():
    vt = ViewportTransform()
    assert vt.zoom_at(0, 0, 50.0)
    assert vt.zoom == MAX_ZOOM
    offset = vt.offset
    assert not vt.zoom_at(10, 10, 80.0)
    assert vt.offset == offset


def test_repeated_wheel_zoom_stays_in_range():
    vt = ViewportTransform()
    for _ in range(200):
        vt.wheel_zoom(100, 100, -1)
        assert MIN_ZOOM <= vt.zoom <= MAX_ZOOM
    assert vt.zoom == MAX_ZOOM
    for _ in range(400):
        vt.wheel_zoom(100, 100, 1)
        assert MIN_ZOOM <= vt.zoom <= MAX_ZOOM
    assert vt.zoom == MIN_ZOOM


def test_wheel_down_zooms_out_five_percent():
    vt = ViewportTransform()
    assert vt.wheel_zoom(50, 50, 3)
    assert vt.zoom == pytest.approx(0.95)


def test_wheel_without_vertical_delta_is_ignored():
    vt = ViewportTransform()
    assert not vt.wheel_zoom(50, 50, 0)
    assert vt.zoom == 1.0
