from __future__ import annotations

import fitz

from ..detection import PDF, SourceFormat, sniff_format
from ..errors import DecodeError, library_errors
from ..models import PlainText

# MuPDF reports unparseable documents as FileDataError, a RuntimeError subclass.
MALFORMED_PDF: tuple[type[BaseException], ...] = (fitz.FileDataError, RuntimeError, ValueError)


class PDFDecoder:
    """Extract the text layer of a PDF with PyMuPDF, one page after another."""

    source_format = SourceFormat.PDF

    def decode(self, data: bytes) -> PlainText:  # type: ignore[override]
        if sniff_format(data) != PDF:
            raise DecodeError("PDF source is missing the %PDF header")
        with library_errors("PyMuPDF", "PDF text extraction", malformed=MALFORMED_PDF):
            with fitz.open(stream=data, filetype="pdf") as document:
                if document.needs_pass:
                    raise DecodeError("PDF is encrypted")
                if document.page_count == 0:
                    raise DecodeError("PDF has no pages")
                text = "\n".join(page.get_text() for page in document)
        if not text.strip():
            raise DecodeError("PDF has no extractable text layer")
        return PlainText(text=text)
