"""
Tests for page-at-a-time PDF rendering and the zoom steps used by the edit view.
"""

import io

import pypdfium2 as pdfium
import pytest
from pypdf import PdfWriter

from invoice_dashboard.ui.pdf_preview import (
    MAX_ZOOM, MIN_ZOOM, clamp_page, page_count, render_page, zoom_in, zoom_out,
)


def _blank_pdf(widths, height: int = 150) -> bytes:
    """One blank page per entry in `widths` (points)"""
    writer = PdfWriter()
    for width in widths:
        writer.add_blank_page(width=width, height=height)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def _css_pixels(points: float) -> int:
    return round(points * 96 / 72)


def test_page_count_covers_every_page():
    assert page_count(_blank_pdf([300] * 5)) == 5


def test_render_page_at_default_zoom_uses_css_pixels(make_pdf):
    image = render_page(make_pdf(["Invoice"]), 1)

    # A US Letter page (612 x 792 pt)
    assert abs(image.width - _css_pixels(612)) <= 1
    assert abs(image.height - _css_pixels(792)) <= 1


def test_render_page_scales_with_zoom():
    pdf = _blank_pdf([300])

    normal = render_page(pdf, 1, 1.0)
    doubled = render_page(pdf, 1, 2.0)

    assert abs(doubled.width - 2 * normal.width) <= 2
    assert abs(doubled.height - 2 * normal.height) <= 2


def test_render_page_reaches_late_pages():
    """Every page is reachable, and out-of-range numbers clamp to the first or last"""
    pdf = _blank_pdf([100, 110, 120, 130, 140, 150])

    assert abs(render_page(pdf, 6).width - _css_pixels(150)) <= 1
    assert abs(render_page(pdf, 99).width - _css_pixels(150)) <= 1
    assert abs(render_page(pdf, 4).width - _css_pixels(130)) <= 1
    assert abs(render_page(pdf, 0).width - _css_pixels(100)) <= 1


def test_render_rejects_bytes_that_are_not_a_pdf():
    with pytest.raises(pdfium.PdfiumError):
        render_page(b"this is not a pdf at all", 1)


def test_clamp_page():
    assert clamp_page(0, 4) == 1
    assert clamp_page(3, 4) == 3
    assert clamp_page(9, 4) == 4


def test_zoom_steps_by_a_fifth_within_bounds():
    assert zoom_in(1.0) == 1.2
    assert zoom_out(1.0) == 0.8
    assert zoom_in(2.9) == MAX_ZOOM
    assert zoom_in(MAX_ZOOM) == MAX_ZOOM
    assert zoom_out(0.4) == MIN_ZOOM
    assert zoom_out(MIN_ZOOM) == MIN_ZOOM
