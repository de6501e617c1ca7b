from __future__ import annotations

from io import BytesIO

from PIL import Image

from .base import MALFORMED_IMAGE, pixel_buffer_from_image
from ..detection import SourceFormat
from ..errors import DecodeError, library_errors
from ..models import PixelBuffer


class RasterDecoder:
    """Decode browser-style raster images (JPEG, PNG, WebP, BMP, GIF) at native size."""

    source_format = SourceFormat.RASTER

    def decode(self, data: bytes) -> PixelBuffer:  # type: ignore[override]
        if not data:
            raise DecodeError("Image source is empty")
        with library_errors("Pillow", "image decode", malformed=MALFORMED_IMAGE):
            with Image.open(BytesIO(data)) as image:
                image.load()
                return pixel_buffer_from_image(image)
