"""PDF output through PyMuPDF.

Image sources get a single page sized to their pixel dimensions. Text and
markup sources use A4 pages with a 10 mm offset and a 190 mm content width.
Markup is laid out in a virtual window and scaled into the content width.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from io import BytesIO

import fitz

from .raster import encode_raster
from ..detection import PNG
from ..errors import EncodeError, library_errors
from ..models import PixelBuffer

MM_TO_PT = 72 / 25.4
PAGE_OFFSET_MM = 10
CONTENT_WIDTH_MM = 190
DOCX_VIRTUAL_WIDTH = 650
MARKUP_VIRTUAL_WIDTH = 800
TEXT_FONT = "helv"
TEXT_FONT_SIZE = 16
LINE_HEIGHT_FACTOR = 1.15
MAX_MARKUP_PAGES = 500


class RenderSurface:
    """Off-screen PDF writer used for markup layout.

    Must be used as a context manager so the writer is closed on every exit
    path.
    """

    def __init__(self) -> None:
        self._buffer = BytesIO()
        self._writer: fitz.DocumentWriter | None = None
        self.pages = 0
        self.closed = False

    def __enter__(self) -> "RenderSurface":
        self._writer = fitz.DocumentWriter(self._buffer)
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @contextmanager
    def page(self, mediabox: fitz.Rect) -> Iterator[object]:
        if self._writer is None or self.closed:
            raise EncodeError("Render surface is not open")
        device = self._writer.begin_page(mediabox)
        try:
            yield device
        finally:
            self._writer.end_page()
            self.pages += 1

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._writer is not None:
            self._writer.close()

    def getvalue(self) -> bytes:
        if not self.closed:
            raise EncodeError("Render surface must be closed before reading its output")
        return self._buffer.getvalue()


def _content_box() -> tuple[fitz.Rect, float, float]:
    paper = fitz.paper_rect("a4")
    return paper, PAGE_OFFSET_MM * MM_TO_PT, CONTENT_WIDTH_MM * MM_TO_PT


def encode_image_pdf(buffer: PixelBuffer) -> bytes:
    png = encode_raster(buffer, PNG)
    with library_errors("PyMuPDF", "image page render"):
        with fitz.open() as document:
            page = document.new_page(width=buffer.width, height=buffer.height)
            page.insert_image(page.rect, stream=png)
            return document.tobytes(deflate=True)


def wrap_text(text: str, max_width: float, *, fontsize: float = TEXT_FONT_SIZE) -> list[str]:
    """Greedy word wrap measured with the PDF font metrics."""

    def width(value: str) -> float:
        return fitz.get_text_length(value, fontname=TEXT_FONT, fontsize=fontsize)

    lines: list[str] = []
    for paragraph in text.expandtabs(4).splitlines() or [""]:
        current = ""
        for word in paragraph.split(" "):
            candidate = f"{current} {word}" if current else word
            if width(candidate) <= max_width:
                current = candidate
                continue
            if current:
                lines.append(current)
            while width(word) > max_width and len(word) > 1:
                cut = len(word) - 1
                while cut > 1 and width(word[:cut]) > max_width:
                    cut -= 1
                lines.append(word[:cut])
                word = word[cut:]
            current = word
        lines.append(current)
    return lines


def encode_text_pdf(text: str) -> bytes:
    paper, offset, content_width = _content_box()
    line_height = TEXT_FONT_SIZE * LINE_HEIGHT_FACTOR
    bottom = paper.height - offset
    with library_errors("PyMuPDF", "text layout"):
        lines = wrap_text(text, content_width)
        with fitz.open() as document:
            page = None
            baseline = 0.0
            for line in lines:
                if page is None or baseline + line_height > bottom:
                    page = document.new_page(width=paper.width, height=paper.height)
                    baseline = offset + TEXT_FONT_SIZE
                else:
                    baseline += line_height
                if line.strip():
                    page.insert_text((offset, baseline), line, fontname=TEXT_FONT, fontsize=TEXT_FONT_SIZE)
            return document.tobytes(deflate=True)


def encode_markup_pdf(html: str, virtual_width: int) -> bytes:
    if virtual_width <= 0:
        raise EncodeError(f"Invalid virtual layout width {virtual_width}")
    paper, offset, content_width = _content_box()
    scale = content_width / virtual_width
    where = fitz.Rect(0, 0, virtual_width, (paper.height - 2 * offset) / scale)
    matrix = fitz.Matrix(scale, 0, 0, scale, offset, offset)
    with library_errors("PyMuPDF", "markup render"):
        with RenderSurface() as surface:
            story = fitz.Story(html=html)
            more = True
            while more:
                if surface.pages >= MAX_MARKUP_PAGES:
                    raise EncodeError(f"Markup layout exceeded {MAX_MARKUP_PAGES} pages")
                with surface.page(paper) as device:
                    more, _ = story.place(where)
                    story.draw(device, matrix)
    return surface.getvalue()


__all__ = [
    "DOCX_VIRTUAL_WIDTH",
    "MARKUP_VIRTUAL_WIDTH",
    "RenderSurface",
    "encode_image_pdf",
    "encode_markup_pdf",
    "encode_text_pdf",
    "wrap_text",
]
