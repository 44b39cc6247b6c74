"""Data persistence: app settings, debug logging and composite hand-off files."""
import base64
import json
import os
import re
from typing import List, Optional, Tuple

from models import AppSettings, FitMode, Highlight, clamp_brush_size


# ── App data directory ────────────────────────────────────────────────────────

_APP_DIR = os.path.dirname(os.path.abspath(__file__))
DATA_DIR = os.path.join(os.path.dirname(_APP_DIR), "data")
SETTINGS_PATH = os.path.join(DATA_DIR, "settings.json")
DEFAULT_EXPORT_DIR = os.path.join(DATA_DIR, "export")


# ── Debug logging ─────────────────────────────────────────────────────────────

_debug = False


def set_debug(enabled: bool) -> None:
    global _debug
    _debug = bool(enabled)


def is_debug() -> bool:
    return _debug


def dbg(msg: str) -> None:
    """Print *msg* to the console when debug mode is on."""
    if _debug:
        print(f"[debug] {msg}")


# ── Settings ──────────────────────────────────────────────────────────────────

def load_settings() -> AppSettings:
    """Read settings.json; missing file or keys fall back to defaults."""
    if not os.path.exists(SETTINGS_PATH):
        return AppSettings()
    with open(SETTINGS_PATH, "r", encoding="utf-8") as f:
        raw = json.load(f) or {}
    defaults = AppSettings()
    try:
        fit_mode = FitMode(raw.get("fit_mode", defaults.fit_mode.value))
    except ValueError:
        fit_mode = defaults.fit_mode
    return AppSettings(
        debug_mode=bool(raw.get("debug_mode", defaults.debug_mode)),
        fit_mode=fit_mode,
        default_brush_size=clamp_brush_size(
            raw.get("default_brush_size", defaults.default_brush_size)),
        pdf_display_scale=float(raw.get("pdf_display_scale", defaults.pdf_display_scale)),
        pdf_full_res_scale=float(raw.get("pdf_full_res_scale", defaults.pdf_full_res_scale)),
        export_dir=str(raw.get("export_dir", defaults.export_dir)),
        last_open_dir=str(raw.get("last_open_dir", defaults.last_open_dir)),
    )


def save_settings(settings: AppSettings) -> None:
    os.makedirs(DATA_DIR, exist_ok=True)
    data = {
        "debug_mode": settings.debug_mode,
        "fit_mode": settings.fit_mode.value,
        "default_brush_size": settings.default_brush_size,
        "pdf_display_scale": settings.pdf_display_scale,
        "pdf_full_res_scale": settings.pdf_full_res_scale,
        "export_dir": settings.export_dir,
        "last_open_dir": settings.last_open_dir,
    }
    with open(SETTINGS_PATH, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
        f.write("\n")


def export_dir_for(settings: AppSettings) -> str:
    return settings.export_dir or DEFAULT_EXPORT_DIR


# ── Composite hand-off ────────────────────────────────────────────────────────

def build_edit_prompt(highlights: List[Highlight]) -> str:
    """Return the edit instructions that accompany a composite image."""
    lines = [
        "You are a visual document editor. You will be given an original image, "
        "a second image showing highlighted regions, and a set of instructions "
        "corresponding to each highlighted region. Apply the instructions to the "
        "original image and return the edited image. The final image must retain "
        "the original's style and quality.",
        "",
        "Here are the instructions for the edits:",
    ]
    for i, h in enumerate(highlights):
        lines.append(
            f'For the region highlighted in {h.color} (Highlight #{i + 1}): "{h.prompt}"'
        )
    return "\n".join(lines)


def _safe_stem(name: str) -> str:
    stem = re.sub(r"[^\w.-]+", "_", name).strip("._")
    return stem or "document"


def write_handoff(export_dir: str, name: str, png_base64: str,
                  highlights: List[Highlight]) -> Tuple[str, str]:
    """Write the composite PNG and its prompt file; return both paths.

    Raises ValueError if *png_base64* is not valid base64.
    """
    png = base64.b64decode(png_base64, validate=True)
    os.makedirs(export_dir, exist_ok=True)
    stem = _safe_stem(name)
    png_path = os.path.join(export_dir, f"{stem}_composite.png")
    prompt_path = os.path.join(export_dir, f"{stem}_prompt.txt")
    with open(png_path, "wb") as f:
        f.write(png)
    with open(prompt_path, "w", encoding="utf-8") as f:
        f.write(build_edit_prompt(highlights))
        f.write("\n")
    return png_path, prompt_path


def last_dir_of(path: Optional[str]) -> str:
    return os.path.dirname(os.path.abspath(path)) if path else ""
