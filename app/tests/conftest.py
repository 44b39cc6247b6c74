import os
from concurrent.futures import Future
from typing import Dict, List, Tuple

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtGui import QColor, QImage
from PySide6.QtWidgets import QApplication

import data_store
from image_loader import ImageLoader, ImageLoadError


@pytest.fixture(scope="session", autouse=True)
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture(autouse=True)
def tmp_data_dir(tmp_path, monkeypatch):
    """Redirect settings and exports to a temporary directory."""
    monkeypatch.setattr(data_store, "DATA_DIR", str(tmp_path))
    monkeypatch.setattr(data_store, "SETTINGS_PATH", str(tmp_path / "settings.json"))
    monkeypatch.setattr(data_store, "DEFAULT_EXPORT_DIR", str(tmp_path / "export"))
    data_store.set_debug(False)
    return tmp_path


def solid_image(width: int, height: int, color: str = "white") -> QImage:
    image = QImage(width, height, QImage.Format.Format_ARGB32_Premultiplied)
    image.fill(QColor(color))
    return image


@pytest.fixture()
def make_image():
    return solid_image


class FakeLoader(ImageLoader):
    """Loader whose futures stay pending until the test resolves them."""

    def __init__(self, images: Dict[str, QImage] = None):
        self.images = dict(images or {})
        self.requested: List[str] = []
        self._pending: List[Tuple[str, Future]] = []

    def load(self, source: str) -> Future:
        future = Future()
        self.requested.append(source)
        self._pending.append((source, future))
        return future

    def pending_sources(self) -> List[str]:
        return [s for s, _ in self._pending]

    def _take(self, source: str) -> Future:
        for i, (s, future) in enumerate(self._pending):
            if s == source:
                del self._pending[i]
                return future
        raise AssertionError(f"no pending load for {source!r}")

    def resolve(self, source: str) -> None:
        self._take(source).set_result(self.images[source])

    def fail(self, source: str, reason: str = "broken") -> None:
        self._take(source).set_exception(ImageLoadError(source, reason))


@pytest.fixture()
def loader():
    return FakeLoader({
        "display.png": solid_image(800, 600),
        "full.png": solid_image(1600, 1200),
        "other.png": solid_image(400, 300, "blue"),
    })
