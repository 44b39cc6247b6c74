"""Data models for the highlight editor."""
import enum
from dataclasses import dataclass
from typing import Optional

from PySide6.QtGui import QImage

MIN_ZOOM = 0.1
MAX_ZOOM = 10.0

MIN_BRUSH_SIZE = 5
MAX_BRUSH_SIZE = 150
BRUSH_STEP = 5               # brush-size change per wheel notch / key press
DEFAULT_BRUSH_SIZE = 40

DEFAULT_HIGHLIGHT_COLOR = "#FFFF00"


class FitMode(enum.Enum):
    FIT_TO_CANVAS = "fit"    # scale the page to 95 % of the canvas
    NATIVE_SCALE = "native"  # zoom 1, centred


class InputState(enum.Enum):
    IDLE = "idle"
    PANNING = "panning"
    HIGHLIGHTING = "highlighting"


@dataclass
class Viewport:
    offset_x: float = 0.0
    offset_y: float = 0.0
    zoom: float = 1.0        # always within [MIN_ZOOM, MAX_ZOOM]


@dataclass
class DocumentImage:
    """A decoded document raster.  Never mutated; replaced wholesale."""
    image: QImage
    source: str

    @property
    def width(self) -> int:
        return self.image.width()

    @property
    def height(self) -> int:
        return self.image.height()


@dataclass(frozen=True)
class StrokeSegment:
    from_x: float  # image-space coordinates
    from_y: float
    to_x: float
    to_y: float
    color: str     # CSS-style colour spec
    width: float   # stroke width in image units (brush size / zoom)


@dataclass(frozen=True)
class CanvasProps:
    """Caller-owned state handed to the canvas on every update."""
    display_url: Optional[str] = None
    full_res_url: Optional[str] = None
    highlighting: bool = False
    brush_size: int = DEFAULT_BRUSH_SIZE
    highlight_color: str = DEFAULT_HIGHLIGHT_COLOR
    generation_trigger: bool = False


@dataclass
class Highlight:
    id: int
    color: str        # hsl(...) colour painted for this highlight
    prompt: str = ""  # what the user wants done with the highlighted region

    def is_ready(self) -> bool:
        return bool(self.prompt.strip())


@dataclass
class DocumentSources:
    """Display and (optional) full-resolution sources for one document."""
    display_url: str
    full_res_url: Optional[str] = None
    name: str = "document"  # file stem, used to name exported artifacts


@dataclass
class AppSettings:
    debug_mode: bool = False          # print debug messages
    fit_mode: FitMode = FitMode.FIT_TO_CANVAS
    default_brush_size: int = DEFAULT_BRUSH_SIZE
    pdf_display_scale: float = 2.0    # PDF page zoom for the on-screen raster
    pdf_full_res_scale: float = 4.0   # PDF page zoom for the composite raster
    export_dir: str = ""              # "" = <app data dir>/export
    last_open_dir: str = ""           # where the open dialog starts


def clamp_zoom(zoom: float) -> float:
    return max(MIN_ZOOM, min(MAX_ZOOM, zoom))


def clamp_brush_size(size: int) -> int:
    return max(MIN_BRUSH_SIZE, min(MAX_BRUSH_SIZE, int(size)))
