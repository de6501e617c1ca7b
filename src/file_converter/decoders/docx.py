from __future__ import annotations

import logging
import zipfile
from io import BytesIO

import mammoth

from ..detection import SourceFormat
from ..errors import DecodeError, library_errors
from ..models import MarkupText

logger = logging.getLogger(__name__)


class DocxDecoder:
    source_format = SourceFormat.DOCX

    def decode(self, data: bytes) -> MarkupText:  # type: ignore[override]
        if not zipfile.is_zipfile(BytesIO(data)):
            raise DecodeError("DOCX source is not a ZIP package")
        with library_errors("mammoth", "DOCX to HTML", malformed=(zipfile.BadZipFile, KeyError, ValueError)):
            result = mammoth.convert_to_html(BytesIO(data))
        for message in result.messages:
            logger.debug("mammoth: %s", message)
        return MarkupText(html=result.value)
