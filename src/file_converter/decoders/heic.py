from __future__ import annotations

import logging
from io import BytesIO

from PIL import Image
from pillow_heif import register_heif_opener

from .base import MALFORMED_IMAGE, pixel_buffer_from_image
from ..detection import SourceFormat
from ..errors import DecodeError, library_errors
from ..models import PixelBuffer

logger = logging.getLogger(__name__)


class HeicDecoder:
    """Decode the first image of a HEIC/HEIF container.

    Containers with several images (bursts, live photos) only contribute their
    first image.
    """

    source_format = SourceFormat.HEIC

    def __init__(self) -> None:
        register_heif_opener()

    def decode(self, data: bytes) -> PixelBuffer:  # type: ignore[override]
        if not data:
            raise DecodeError("HEIC source is empty")
        with library_errors("pillow-heif", "HEIC decode", malformed=MALFORMED_IMAGE + (RuntimeError,)):
            with Image.open(BytesIO(data)) as image:
                frames = getattr(image, "n_frames", 1)
                if frames > 1:
                    logger.debug("HEIC container holds %d images; using the first", frames)
                    image.seek(0)
                image.load()
                return pixel_buffer_from_image(image)
