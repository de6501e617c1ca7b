from __future__ import annotations

import logging
import struct
from io import BytesIO

from PIL import Image

from .base import MALFORMED_IMAGE, pixel_buffer_from_image
from ..detection import SourceFormat
from ..errors import DecodeError, library_errors
from ..models import PixelBuffer

logger = logging.getLogger(__name__)


def first_ifd_offset(data: bytes) -> int:
    """Return the offset of the first image file directory from the TIFF header."""

    if len(data) < 8:
        raise DecodeError("TIFF header is truncated")
    order = data[:2]
    if order == b"II":
        prefix = "<"
    elif order == b"MM":
        prefix = ">"
    else:
        raise DecodeError("TIFF byte-order mark is missing")
    (magic,) = struct.unpack(prefix + "H", data[2:4])
    if magic == 42:
        (offset,) = struct.unpack(prefix + "I", data[4:8])
    elif magic == 43:
        if len(data) < 16:
            raise DecodeError("BigTIFF header is truncated")
        (offset,) = struct.unpack(prefix + "Q", data[8:16])
    else:
        raise DecodeError(f"Unexpected TIFF magic number {magic}")
    return offset


class TiffDecoder:
    source_format = SourceFormat.TIFF

    def decode(self, data: bytes) -> PixelBuffer:  # type: ignore[override]
        offset = first_ifd_offset(data)
        if offset == 0 or offset >= len(data):
            raise DecodeError("TIFF file contains no image directories")
        with library_errors("Pillow", "TIFF decode", malformed=MALFORMED_IMAGE):
            with Image.open(BytesIO(data), formats=["TIFF"]) as image:
                frames = getattr(image, "n_frames", 1)
                image.seek(0)
                image.load()
                buffer = pixel_buffer_from_image(image)
        logger.debug("Decoded TIFF frame 1 of %d (%dx%d)", frames, buffer.width, buffer.height)
        return buffer
