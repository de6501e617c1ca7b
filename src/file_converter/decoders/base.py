from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Protocol

from PIL import Image, UnidentifiedImageError

from ..detection import SourceFormat
from ..models import IntermediateRepresentation, PixelBuffer

# Pillow signals unreadable input through these.
MALFORMED_IMAGE: tuple[type[BaseException], ...] = (
    UnidentifiedImageError,
    OSError,
    SyntaxError,
    EOFError,
    ValueError,
)


class Decoder(Protocol):
    source_format: SourceFormat

    def decode(self, data: bytes) -> IntermediateRepresentation:  # pragma: no cover - interface
        ...


@contextmanager
def rgba_view(image: Image.Image) -> Iterator[Image.Image]:
    """Yield *image* in RGBA mode, closing any converted copy afterwards."""

    if image.mode == "RGBA":
        yield image
        return
    converted = image.convert("RGBA")
    try:
        yield converted
    finally:
        converted.close()


def pixel_buffer_from_image(image: Image.Image) -> PixelBuffer:
    with rgba_view(image) as rgba:
        return PixelBuffer(width=rgba.width, height=rgba.height, rgba=rgba.tobytes())


__all__ = ["Decoder", "MALFORMED_IMAGE", "pixel_buffer_from_image", "rgba_view"]
