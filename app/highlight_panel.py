"""Right panel: one prompt per highlight colour, plus Send / Try again."""
from typing import List

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QFrame, QHBoxLayout, QLabel, QLineEdit, QPushButton, QScrollArea,
    QVBoxLayout, QWidget,
)

from colors import parse_css_color
from models import Highlight


class _HighlightRow(QFrame):
    prompt_changed = Signal(int, str)

    def __init__(self, highlight: Highlight, index: int, parent=None):
        super().__init__(parent)
        self.setFrameShape(QFrame.Shape.StyledPanel)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(6, 6, 6, 6)

        header = QHBoxLayout()
        swatch = QLabel()
        swatch.setFixedSize(16, 16)
        swatch.setStyleSheet(
            f"background-color: {parse_css_color(highlight.color).name()};"
            " border: 1px solid #999; border-radius: 8px;"
        )
        header.addWidget(swatch)
        title = QLabel(f"<b>Highlight #{index + 1}</b>")
        header.addWidget(title)
        header.addStretch()
        layout.addLayout(header)

        self._edit = QLineEdit(highlight.prompt)
        self._edit.setPlaceholderText("Describe what this highlight means…")
        self._edit.textChanged.connect(
            lambda text: self.prompt_changed.emit(highlight.id, text)
        )
        layout.addWidget(self._edit)


class HighlightPanel(QWidget):
    send_requested = Signal()
    try_again_requested = Signal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self._highlights: List[Highlight] = []
        self._busy = False
        self._next_id = 0

        layout = QVBoxLayout(self)
        layout.setContentsMargins(8, 8, 8, 8)

        heading = QLabel("<h2>Highlight Prompts</h2>")
        layout.addWidget(heading)

        self._empty_label = QLabel(
            "Your highlight prompts will appear here.\n"
            "Press 'A' over the document to start a new highlight."
        )
        self._empty_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._empty_label.setStyleSheet("color: #777;")
        layout.addWidget(self._empty_label)

        self._rows_host = QWidget()
        self._rows = QVBoxLayout(self._rows_host)
        self._rows.setContentsMargins(0, 0, 0, 0)
        self._rows.addStretch()
        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setFrameShape(QFrame.Shape.NoFrame)
        scroll.setWidget(self._rows_host)
        layout.addWidget(scroll, 1)

        self._send_btn = QPushButton("Send to edit service")
        self._send_btn.clicked.connect(lambda: self.send_requested.emit())
        layout.addWidget(self._send_btn)

        self._try_again_btn = QPushButton("Try again")
        self._try_again_btn.clicked.connect(lambda: self.try_again_requested.emit())
        layout.addWidget(self._try_again_btn)

        self._refresh()

    # ── Public API ────────────────────────────────────────────────────────────

    def highlights(self) -> List[Highlight]:
        return list(self._highlights)

    def colors(self) -> List[str]:
        return [h.color for h in self._highlights]

    def add_highlight(self, color: str) -> Highlight:
        self._next_id += 1
        highlight = Highlight(id=self._next_id, color=color)
        self._highlights.append(highlight)
        self._rebuild_rows()
        return highlight

    def clear(self):
        self._highlights = []
        self._rebuild_rows()

    def set_busy(self, busy: bool):
        self._busy = busy
        self._refresh()

    def can_send(self) -> bool:
        return (bool(self._highlights) and not self._busy
                and all(h.is_ready() for h in self._highlights))

    # ── Internal ──────────────────────────────────────────────────────────────

    def _rebuild_rows(self):
        while self._rows.count() > 1:
            item = self._rows.takeAt(0)
            if item.widget():
                item.widget().deleteLater()
        for i, h in enumerate(self._highlights):
            row = _HighlightRow(h, i)
            row.prompt_changed.connect(self._on_prompt_changed)
            self._rows.insertWidget(self._rows.count() - 1, row)
        self._refresh()

    def _on_prompt_changed(self, highlight_id: int, text: str):
        for h in self._highlights:
            if h.id == highlight_id:
                h.prompt = text
                break
        self._refresh()

    def _refresh(self):
        self._empty_label.setVisible(not self._highlights)
        self._send_btn.setEnabled(self.can_send())
        self._send_btn.setText("Working…" if self._busy else "Send to edit service")
        self._try_again_btn.setEnabled(not self._busy)
