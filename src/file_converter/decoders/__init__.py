from __future__ import annotations

from functools import lru_cache
from typing import Dict, Type

from .base import Decoder
from .docx import DocxDecoder
from .heic import HeicDecoder
from .pdf import PDFDecoder
from .raster import RasterDecoder
from .spreadsheet import CsvDecoder, WorkbookDecoder
from .text import HTMLDecoder, PlainTextDecoder
from .tiff import TiffDecoder
from ..detection import SourceFormat

_DECODER_CLASSES: Dict[SourceFormat, Type[Decoder]] = {
    SourceFormat.HEIC: HeicDecoder,
    SourceFormat.DOCX: DocxDecoder,
    SourceFormat.CSV: CsvDecoder,
    SourceFormat.WORKBOOK: WorkbookDecoder,
    SourceFormat.HTML: HTMLDecoder,
    SourceFormat.PLAIN_TEXT: PlainTextDecoder,
    SourceFormat.PDF: PDFDecoder,
    SourceFormat.TIFF: TiffDecoder,
    SourceFormat.RASTER: RasterDecoder,
}


@lru_cache(maxsize=len(_DECODER_CLASSES))
def get_decoder(source_format: SourceFormat) -> Decoder:
    decoder_cls = _DECODER_CLASSES.get(source_format)
    if not decoder_cls:
        raise KeyError(f"No decoder registered for {source_format}")
    return decoder_cls()  # type: ignore[return-value]


__all__ = [
    "Decoder",
    "get_decoder",
]
