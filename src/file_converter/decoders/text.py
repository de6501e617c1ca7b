from __future__ import annotations

from ..detection import SourceFormat
from ..models import MarkupText, PlainText


def read_text(data: bytes) -> str:
    # Undecodable bytes become U+FFFD, the same as a browser text read.
    return data.decode("utf-8-sig", errors="replace")


class HTMLDecoder:
    source_format = SourceFormat.HTML

    def decode(self, data: bytes) -> MarkupText:  # type: ignore[override]
        return MarkupText(html=read_text(data))


class PlainTextDecoder:
    """Plain text and RTF sources; RTF control words are kept verbatim."""

    source_format = SourceFormat.PLAIN_TEXT

    def decode(self, data: bytes) -> PlainText:  # type: ignore[override]
        return PlainText(text=read_text(data))
