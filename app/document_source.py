"""Turn a user-selected file into display / full-resolution image sources.

Image files are shown as they are.  For a PDF only the first page is used; it
is rasterised twice with PyMuPDF: once at ``display_scale`` for the canvas and
once at ``full_res_scale`` for the composite, both handed over as PNG
``data:`` URLs.
"""
import base64
import os

import fitz  # pymupdf

import data_store
from models import DocumentSources

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".webp", ".tif", ".tiff"}
PDF_EXTENSION = ".pdf"

FILE_DIALOG_FILTER = (
    "Documents (*.pdf *.png *.jpg *.jpeg *.bmp *.gif *.webp *.tif *.tiff);;"
    "All files (*)"
)


class DocumentIngestError(Exception):
    """The selected file is not a supported image or PDF."""


def png_data_url(png: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")


def rasterize_pdf_page(pdf_path: str, zoom: float, page_index: int = 0) -> bytes:
    """Render one page of *pdf_path* at *zoom* and return PNG bytes."""
    try:
        doc = fitz.open(pdf_path)
    except Exception as exc:
        raise DocumentIngestError(f"Could not open PDF {pdf_path!r}: {exc}") from exc
    try:
        if doc.page_count == 0:
            raise DocumentIngestError(f"PDF {pdf_path!r} has no pages")
        page = doc[page_index]
        pix = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
        data_store.dbg(f"Rasterised page {page_index} of {pdf_path} at zoom {zoom:.2f}: "
                       f"{pix.width}x{pix.height}")
        return pix.tobytes("png")
    finally:
        doc.close()


def prepare_document(path: str, display_scale: float = 2.0,
                     full_res_scale: float = 4.0) -> DocumentSources:
    if not os.path.isfile(path):
        raise DocumentIngestError(f"File not found: {path}")
    stem, ext = os.path.splitext(os.path.basename(path))
    ext = ext.lower()
    if ext == PDF_EXTENSION:
        display = png_data_url(rasterize_pdf_page(path, display_scale))
        full_res = None
        if full_res_scale > display_scale:
            full_res = png_data_url(rasterize_pdf_page(path, full_res_scale))
        return DocumentSources(display_url=display, full_res_url=full_res, name=stem)
    if ext in IMAGE_EXTENSIONS:
        return DocumentSources(display_url=os.path.abspath(path), name=stem)
    raise DocumentIngestError("Please select an image or PDF file.")
