from __future__ import annotations

from ..models import MarkupText, PlainText


def encode_plain_text(text: PlainText) -> bytes:
    return text.text.encode("utf-8")


def encode_markup(markup: MarkupText) -> bytes:
    return markup.html.encode("utf-8")


__all__ = ["encode_markup", "encode_plain_text"]
