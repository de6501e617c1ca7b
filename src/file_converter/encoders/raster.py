from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from io import BytesIO

from PIL import Image

from ..detection import BMP, GIF, JPEG, PNG, WEBP
from ..errors import EncodeError, library_errors
from ..models import PixelBuffer

# Fixed policy value; golden outputs depend on it.
LOSSY_QUALITY = 0.9

PILLOW_FORMATS: dict[str, str] = {
    JPEG: "JPEG",
    PNG: "PNG",
    WEBP: "WEBP",
    BMP: "BMP",
    GIF: "GIF",
}
RASTER_TARGETS = frozenset(PILLOW_FORMATS)
LOSSY_TARGETS = frozenset({JPEG, WEBP})
# These formats carry no alpha channel.
OPAQUE_TARGETS = frozenset({JPEG, BMP})
WHITE = (255, 255, 255, 255)


def pillow_quality() -> int:
    return round(LOSSY_QUALITY * 100)


@contextmanager
def pixel_surface(buffer: PixelBuffer) -> Iterator[Image.Image]:
    image = Image.frombytes("RGBA", (buffer.width, buffer.height), buffer.rgba)
    try:
        yield image
    finally:
        image.close()


@contextmanager
def flattened(image: Image.Image) -> Iterator[Image.Image]:
    """Composite *image* over an opaque white background."""

    background = Image.new("RGBA", image.size, WHITE)
    try:
        background.alpha_composite(image)
        opaque = background.convert("RGB")
    finally:
        background.close()
    try:
        yield opaque
    finally:
        opaque.close()


def _save(image: Image.Image, target: str) -> bytes:
    output = BytesIO()
    params: dict[str, object] = {}
    if target in LOSSY_TARGETS:
        params["quality"] = pillow_quality()
    image.save(output, format=PILLOW_FORMATS[target], **params)
    return output.getvalue()


def encode_raster(buffer: PixelBuffer, target: str) -> bytes:
    if target not in RASTER_TARGETS:
        raise EncodeError(f"{target} is not a raster image format")
    with library_errors("Pillow", f"{PILLOW_FORMATS[target]} encode"):
        with pixel_surface(buffer) as image:
            if target in OPAQUE_TARGETS:
                with flattened(image) as opaque:
                    return _save(opaque, target)
            return _save(image, target)


__all__ = ["LOSSY_QUALITY", "OPAQUE_TARGETS", "RASTER_TARGETS", "encode_raster", "flattened", "pixel_surface"]
