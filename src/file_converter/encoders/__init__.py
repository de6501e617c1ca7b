from __future__ import annotations

from .pdf import (
    DOCX_VIRTUAL_WIDTH,
    MARKUP_VIRTUAL_WIDTH,
    RenderSurface,
    encode_image_pdf,
    encode_markup_pdf,
    encode_text_pdf,
)
from .raster import LOSSY_QUALITY, RASTER_TARGETS, encode_raster
from .tabular import encode_csv, encode_html_table
from .text import encode_markup, encode_plain_text
from ..detection import CSV, HTML, PDF, TEXT
from ..errors import EncodeError
from ..models import (
    EncodeOptions,
    IntermediateRepresentation,
    MarkupText,
    PixelBuffer,
    PlainText,
    TabularSheet,
)


def encode(
    representation: IntermediateRepresentation,
    target: str,
    options: EncodeOptions | None = None,
) -> bytes:
    """Serialise an intermediate representation into *target* bytes."""

    opts = options or EncodeOptions()
    match representation:
        case PixelBuffer():
            if target == PDF:
                return encode_image_pdf(representation)
            if target in RASTER_TARGETS:
                return encode_raster(representation, target)
        case MarkupText():
            if target == PDF:
                return encode_markup_pdf(representation.html, opts.virtual_width)
            if target == HTML:
                return encode_markup(representation)
        case PlainText():
            if target == PDF:
                return encode_text_pdf(representation.text)
            if target == TEXT:
                return encode_plain_text(representation)
        case TabularSheet():
            if target in {CSV, TEXT}:
                return encode_csv(representation)
            if target == HTML:
                return encode_html_table(representation)
            if target == PDF:
                html = encode_html_table(representation).decode("utf-8")
                return encode_markup_pdf(html, opts.virtual_width)
    kind = type(representation).__name__
    raise EncodeError(f"Cannot encode {kind} as {target}")


__all__ = [
    "DOCX_VIRTUAL_WIDTH",
    "LOSSY_QUALITY",
    "MARKUP_VIRTUAL_WIDTH",
    "RenderSurface",
    "encode",
]
