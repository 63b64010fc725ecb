"""
Page-at-a-time PDF rendering for the edit view.

Pages are numbered from 1. Zoom moves in steps of 0.2 between 30% and 300%
and starts at 100%, where a page is drawn at its CSS pixel size.
"""

import pypdfium2 as pdfium

DEFAULT_ZOOM = 1.0
MIN_ZOOM = 0.3
MAX_ZOOM = 3.0
ZOOM_STEP = 0.2

# PDF user space is 72 points per inch, CSS pixels are 96 per inch
PIXELS_PER_POINT = 96 / 72


def page_count(pdf_bytes: bytes) -> int:
    pdf = pdfium.PdfDocument(pdf_bytes)
    try:
        return len(pdf)
    finally:
        pdf.close()


def clamp_page(page: int, count: int) -> int:
    return max(1, min(page, count))


def zoom_in(zoom: float) -> float:
    return min(MAX_ZOOM, round(zoom + ZOOM_STEP, 1))


def zoom_out(zoom: float) -> float:
    return max(MIN_ZOOM, round(zoom - ZOOM_STEP, 1))


def render_page(pdf_bytes: bytes, page: int, zoom: float = DEFAULT_ZOOM):
    """
    Render one page to a PIL image.

    `page` is clamped into range; a PDF without pages renders as None.
    Raises pdfium.PdfiumError for bytes that are not a readable PDF.
    """
    pdf = pdfium.PdfDocument(pdf_bytes)
    try:
        if len(pdf) == 0:
            return None
        return pdf[clamp_page(page, len(pdf)) - 1].render(scale=zoom * PIXELS_PER_POINT).to_pil()
    finally:
        pdf.close()
