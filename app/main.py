"""Main entry point for the Highlight Editor app."""
import os
import sys
from typing import Optional

from PySide6.QtCore import QEvent, QObject, Qt, QTimer
from PySide6.QtGui import QAction
from PySide6.QtWidgets import (
    QApplication,
    QFileDialog,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QPlainTextEdit,
    QSplitter,
    QToolBar,
)

import data_store
from canvas_view import DEFAULT_PLACEHOLDER, HighlightCanvasView
from colors import random_highlight_color
from document_source import FILE_DIALOG_FILTER, DocumentIngestError, prepare_document
from highlight_panel import HighlightPanel
from image_loader import ImageLoader
from models import BRUSH_STEP, AppSettings, CanvasProps, DocumentSources, clamp_brush_size
from settings_dialog import SettingsDialog


class _ShortcutFilter(QObject):
    """App-level event filter: highlight toggle and brush size keys."""

    def __init__(self, window: "MainWindow", parent=None):
        super().__init__(parent)
        self._window = window

    def eventFilter(self, obj, event):
        if event.type() != QEvent.Type.KeyPress:
            return False
        # Don't steal keys while a prompt field has focus
        text_fields = (QLineEdit, QPlainTextEdit)
        if isinstance(obj, text_fields) or isinstance(QApplication.focusWidget(), text_fields):
            return False
        if event.modifiers() & (Qt.KeyboardModifier.ControlModifier
                                | Qt.KeyboardModifier.AltModifier
                                | Qt.KeyboardModifier.MetaModifier):
            return False

        key = event.key()
        if key == Qt.Key.Key_A:
            self._window.toggle_highlighting()
            return True
        if self._window.is_highlighting():
            if key in (Qt.Key.Key_Plus, Qt.Key.Key_Equal):
                self._window.change_brush_size(BRUSH_STEP)
                return True
            if key == Qt.Key.Key_Minus:
                self._window.change_brush_size(-BRUSH_STEP)
                return True
        return False


class MainWindow(QMainWindow):
    def __init__(self, loader: Optional[ImageLoader] = None):
        super().__init__()
        self.setWindowTitle("Highlight Editor")
        self.resize(1400, 900)

        self._settings: AppSettings = data_store.load_settings()
        data_store.set_debug(self._settings.debug_mode)

        self._sources: Optional[DocumentSources] = None
        self._highlighting = False
        self._brush_size = self._settings.default_brush_size
        self._color = ""
        self._trigger = False
        self._artifact_written = False

        self._setup_ui(loader)
        self._shortcut_filter = _ShortcutFilter(self, self)
        QApplication.instance().installEventFilter(self._shortcut_filter)
        self._push_props()

    def _setup_ui(self, loader: Optional[ImageLoader]):
        file_menu = self.menuBar().addMenu("File")
        file_menu.addAction("Open Document…").triggered.connect(self._open_document)
        file_menu.addSeparator()
        settings_action = file_menu.addAction("Settings…")
        settings_action.setMenuRole(QAction.MenuRole.NoRole)
        settings_action.triggered.connect(self._show_settings)
        file_menu.addSeparator()
        file_menu.addAction("Quit").triggered.connect(self.close)

        toolbar = QToolBar("Document")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)
        toolbar.addAction("Select Document").triggered.connect(self._open_document)
        self._highlight_action = toolbar.addAction("Start Highlighting")
        self._highlight_action.triggered.connect(self.toggle_highlighting)
        toolbar.addAction("Fit").triggered.connect(self._canvas_fit)

        splitter = QSplitter(Qt.Orientation.Horizontal)
        self.setCentralWidget(splitter)

        # Left: canvas
        self._view = HighlightCanvasView(loader, fit_mode=self._settings.fit_mode)
        self._view.composite_image_ready.connect(self._on_composite_ready)
        self._view.generation_trigger_consumed.connect(self._on_trigger_consumed)
        self._view.brush_size_changed.connect(self._on_brush_size_changed)
        self._view.document_loaded.connect(self._on_document_loaded)
        self._view.document_failed.connect(self._on_document_failed)
        splitter.addWidget(self._view)

        # Right: highlight prompts
        self._panel = HighlightPanel()
        self._panel.send_requested.connect(self._send)
        self._panel.try_again_requested.connect(self._try_again)
        splitter.addWidget(self._panel)
        splitter.setSizes([840, 560])

        self._mode_label = QLabel()
        self.statusBar().addPermanentWidget(self._mode_label)

    # ── Props ─────────────────────────────────────────────────────────────────

    def _push_props(self):
        self._view.set_props(CanvasProps(
            display_url=self._sources.display_url if self._sources else None,
            full_res_url=self._sources.full_res_url if self._sources else None,
            highlighting=self._highlighting,
            brush_size=self._brush_size,
            highlight_color=self._color or "#FFFF00",
            generation_trigger=self._trigger,
        ))
        self._highlight_action.setText(
            "Stop Highlighting" if self._highlighting else "Start Highlighting"
        )
        self._highlight_action.setEnabled(self._sources is not None and not self._trigger)
        mode = "ON" if self._highlighting else "OFF"
        text = f"Highlight mode: {mode}  (press 'A' to toggle)"
        if self._highlighting:
            text += f"   Brush size: {self._brush_size} (+/-, wheel)"
        self._mode_label.setText(text)

    # ── Highlighting ──────────────────────────────────────────────────────────

    def is_highlighting(self) -> bool:
        return self._highlighting

    def toggle_highlighting(self):
        if self._sources is None or self._trigger:
            return
        if not self._highlighting:
            self._color = random_highlight_color(self._panel.colors())
            self._panel.add_highlight(self._color)
        self._highlighting = not self._highlighting
        data_store.dbg(f"Highlighting {'on' if self._highlighting else 'off'} ({self._color})")
        self._push_props()

    def change_brush_size(self, delta: int):
        self._on_brush_size_changed(self._brush_size + delta)

    def _on_brush_size_changed(self, size: int):
        self._brush_size = clamp_brush_size(size)
        self._push_props()

    # ── Document ──────────────────────────────────────────────────────────────

    def _open_document(self):
        path, _ = QFileDialog.getOpenFileName(
            self, "Select Document", self._settings.last_open_dir, FILE_DIALOG_FILTER
        )
        if not path:
            return
        self.load_document(path)

    def load_document(self, path: str):
        try:
            sources = prepare_document(
                path,
                display_scale=self._settings.pdf_display_scale,
                full_res_scale=self._settings.pdf_full_res_scale,
            )
        except DocumentIngestError as exc:
            QMessageBox.warning(self, "Open Document", str(exc))
            return
        self._settings.last_open_dir = data_store.last_dir_of(path)
        data_store.save_settings(self._settings)
        self._reset_highlights()
        if self._sources and self._sources.display_url == sources.display_url:
            # Same file again: clear first so the canvas sees a new document
            self._sources = None
            self._push_props()
        self._sources = sources
        self._view.set_placeholder(f"Loading {os.path.basename(path)}…")
        self.statusBar().showMessage(f"Loading {os.path.basename(path)}…")
        self._push_props()

    def _on_document_loaded(self, width: int, height: int):
        self._view.set_placeholder(DEFAULT_PLACEHOLDER)
        name = self._sources.name if self._sources else "document"
        self.statusBar().showMessage(f"{name}: {width} × {height} px", 5000)

    def _on_document_failed(self, message: str):
        self._sources = None
        self._view.set_placeholder(DEFAULT_PLACEHOLDER)
        self._push_props()
        QMessageBox.warning(self, "Open Document", f"Could not load the document:\n{message}")

    def _canvas_fit(self):
        self._view.canvas.fit_to_document()

    def _reset_highlights(self):
        self._panel.clear()
        self._highlighting = False
        self._color = ""

    def _try_again(self):
        self._reset_highlights()
        self._sources = None
        self._view.set_placeholder(DEFAULT_PLACEHOLDER)
        self._push_props()

    # ── Composite hand-off ────────────────────────────────────────────────────

    def _send(self):
        if self._sources is None or not self._panel.can_send():
            return
        self._artifact_written = False
        self._trigger = True
        self._highlighting = False
        self._panel.set_busy(True)
        self.statusBar().showMessage("Building composite…")
        self._push_props()

    def _on_composite_ready(self, payload: str):
        export_dir = data_store.export_dir_for(self._settings)
        name = self._sources.name if self._sources else "document"
        try:
            png_path, prompt_path = data_store.write_handoff(
                export_dir, name, payload, self._panel.highlights()
            )
        except (OSError, ValueError) as exc:
            print(f"[composite] could not write hand-off files: {exc}")
            return
        self._artifact_written = True
        print(f"[composite] wrote {png_path}")
        data_store.dbg(f"Prompt written to {prompt_path}")
        self.statusBar().showMessage(f"Composite written to {png_path}", 8000)

    def _on_trigger_consumed(self):
        self._trigger = False
        self._panel.set_busy(False)
        # The canvas may still be inside update_props; continue on the next turn.
        QTimer.singleShot(0, self._after_composite)

    def _after_composite(self):
        self._push_props()
        if not self._artifact_written:
            self.statusBar().clearMessage()
            QMessageBox.warning(
                self, "Composite",
                "The composite image could not be produced. Please try again."
            )

    # ── Settings ──────────────────────────────────────────────────────────────

    def _show_settings(self):
        dlg = SettingsDialog(self._settings, self)
        if dlg.exec():
            self._settings = dlg.get_settings()
            data_store.set_debug(self._settings.debug_mode)
            data_store.save_settings(self._settings)
            self._view.canvas.set_fit_mode(self._settings.fit_mode, refit=False)
            data_store.dbg("Settings updated from dialog")

    def closeEvent(self, event):
        QApplication.instance().removeEventFilter(self._shortcut_filter)
        super().closeEvent(event)


def main():
    app = QApplication(sys.argv)
    app.setApplicationName("Highlight Editor")
    window = MainWindow()
    window.show()
    if len(sys.argv) > 1:
        window.load_document(sys.argv[1])
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
