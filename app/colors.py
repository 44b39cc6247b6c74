"""CSS-style colour parsing and highlight colour generation.

Qt understands ``#rgb``/``#rrggbb``/``#aarrggbb`` and SVG colour names but not
the functional ``rgb()``/``hsl()`` notations that highlight colours are
generated in, so those are parsed here.
"""
import random
import re
from typing import Iterable, Optional

from PySide6.QtGui import QColor

_FUNC_RE = re.compile(
    r"^\s*(rgba?|hsla?)\s*\(\s*([^)]*)\)\s*$", re.IGNORECASE
)


def parse_css_color(spec: str) -> QColor:
    """Return a QColor for *spec*; raise ValueError if it cannot be parsed."""
    if not isinstance(spec, str) or not spec.strip():
        raise ValueError(f"empty colour spec: {spec!r}")
    m = _FUNC_RE.match(spec)
    if m:
        func = m.group(1).lower()
        parts = [p.strip() for p in re.split(r"[,\s/]+", m.group(2).strip()) if p.strip()]
        if len(parts) not in (3, 4):
            raise ValueError(f"bad colour spec: {spec!r}")
        try:
            alpha = _alpha(parts[3]) if len(parts) == 4 else 1.0
            if func.startswith("rgb"):
                r, g, b = (_channel(p) for p in parts[:3])
                color = QColor.fromRgbF(r, g, b, alpha)
            else:
                h = (float(parts[0].rstrip("deg")) % 360) / 360.0
                s = _percent(parts[1])
                li = _percent(parts[2])
                color = QColor.fromHslF(h, s, li, alpha)
        except ValueError as exc:
            raise ValueError(f"bad colour spec: {spec!r}") from exc
        return color

    color = QColor(spec.strip())
    if not color.isValid():
        raise ValueError(f"unknown colour: {spec!r}")
    return color


def _channel(text: str) -> float:
    if text.endswith("%"):
        return _percent(text)
    return max(0.0, min(1.0, float(text) / 255.0))


def _percent(text: str) -> float:
    return max(0.0, min(1.0, float(text.rstrip("%")) / 100.0))


def _alpha(text: str) -> float:
    if text.endswith("%"):
        return _percent(text)
    return max(0.0, min(1.0, float(text)))


def random_highlight_color(existing: Iterable[str] = (),
                           rng: Optional[random.Random] = None) -> str:
    """Return a bright ``hsl(...)`` colour not already in *existing*.

    Saturation is kept in 70-100 % and lightness in 50-70 % so the colour
    stays readable when painted at half opacity over text.
    """
    rng = rng or random
    taken = set(existing)
    while True:
        hue = rng.randrange(360)
        saturation = rng.randrange(30) + 70
        lightness = rng.randrange(20) + 50
        color = f"hsl({hue}, {saturation}%, {lightness}%)"
        if color not in taken:
            return color
