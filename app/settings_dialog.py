"""Settings dialog.

Combines:
 - View settings (fit mode, default brush size)
 - PDF rasterisation scales
 - Export directory and debug mode
"""
from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QDialog,
    QDialogButtonBox,
    QDoubleSpinBox,
    QFileDialog,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QSpinBox,
    QTabWidget,
    QVBoxLayout,
    QWidget,
)

import data_store
from models import MAX_BRUSH_SIZE, MIN_BRUSH_SIZE, AppSettings, FitMode

_FIT_MODE_LABELS = [
    (FitMode.FIT_TO_CANVAS, "Fit page to canvas"),
    (FitMode.NATIVE_SCALE, "Actual size (100 %), centred"),
]


class SettingsDialog(QDialog):
    """Tabbed settings dialog: View, PDF, Export & Debug."""

    def __init__(self, settings: AppSettings, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Settings")
        self.setMinimumWidth(440)
        self._settings = settings

        layout = QVBoxLayout(self)
        tabs = QTabWidget()
        layout.addWidget(tabs)
        tabs.addTab(self._build_view_tab(settings), "View")
        tabs.addTab(self._build_pdf_tab(settings), "PDF")
        tabs.addTab(self._build_export_tab(settings), "Export && Debug")

        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel
        )
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    # ── Tabs ──────────────────────────────────────────────────────────────────

    def _build_view_tab(self, settings: AppSettings) -> QWidget:
        tab = QWidget()
        form = QFormLayout(tab)

        self._fit_combo = QComboBox()
        for mode, label in _FIT_MODE_LABELS:
            self._fit_combo.addItem(label, mode.value)
        self._fit_combo.setCurrentIndex(
            next(i for i, (m, _) in enumerate(_FIT_MODE_LABELS) if m == settings.fit_mode)
        )
        self._fit_combo.setToolTip("How a newly opened document is placed on the canvas.")
        form.addRow("New documents:", self._fit_combo)

        self._brush_spin = QSpinBox()
        self._brush_spin.setRange(MIN_BRUSH_SIZE, MAX_BRUSH_SIZE)
        self._brush_spin.setSingleStep(5)
        self._brush_spin.setValue(settings.default_brush_size)
        self._brush_spin.setSuffix(" px")
        form.addRow("Default brush size:", self._brush_spin)
        return tab

    def _build_pdf_tab(self, settings: AppSettings) -> QWidget:
        tab = QWidget()
        form = QFormLayout(tab)

        info = QLabel(
            "Only the first page of a PDF is used.  It is rendered once for the "
            "screen and once, larger, for the image that is sent for editing."
        )
        info.setWordWrap(True)
        form.addRow(info)

        self._display_scale_spin = QDoubleSpinBox()
        self._display_scale_spin.setRange(0.5, 8.0)
        self._display_scale_spin.setDecimals(1)
        self._display_scale_spin.setSingleStep(0.5)
        self._display_scale_spin.setValue(settings.pdf_display_scale)
        form.addRow("Display scale:", self._display_scale_spin)

        self._full_res_scale_spin = QDoubleSpinBox()
        self._full_res_scale_spin.setRange(0.5, 8.0)
        self._full_res_scale_spin.setDecimals(1)
        self._full_res_scale_spin.setSingleStep(0.5)
        self._full_res_scale_spin.setValue(settings.pdf_full_res_scale)
        self._full_res_scale_spin.setToolTip(
            "Set equal to the display scale to composite at display resolution."
        )
        form.addRow("Full-resolution scale:", self._full_res_scale_spin)
        return tab

    def _build_export_tab(self, settings: AppSettings) -> QWidget:
        tab = QWidget()
        form = QFormLayout(tab)

        row = QHBoxLayout()
        self._export_edit = QLineEdit(settings.export_dir)
        self._export_edit.setPlaceholderText(data_store.DEFAULT_EXPORT_DIR)
        row.addWidget(self._export_edit)
        browse = QPushButton("Browse…")
        browse.clicked.connect(self._browse_export_dir)
        row.addWidget(browse)
        form.addRow("Export folder:", row)

        self._debug_cb = QCheckBox("Print debug messages to the console")
        self._debug_cb.setChecked(settings.debug_mode)
        form.addRow("Debug mode:", self._debug_cb)
        return tab

    def _browse_export_dir(self):
        start = self._export_edit.text() or data_store.DEFAULT_EXPORT_DIR
        path = QFileDialog.getExistingDirectory(self, "Export folder", start)
        if path:
            self._export_edit.setText(path)

    # ── Public API ────────────────────────────────────────────────────────────

    def get_settings(self) -> AppSettings:
        return AppSettings(
            debug_mode=self._debug_cb.isChecked(),
            fit_mode=FitMode(self._fit_combo.currentData()),
            default_brush_size=self._brush_spin.value(),
            pdf_display_scale=self._display_scale_spin.value(),
            pdf_full_res_scale=self._full_res_scale_spin.value(),
            export_dir=self._export_edit.text().strip(),
            last_open_dir=self._settings.last_open_dir,
        )
