"""Route a source file through the decode and encode pipeline for its target.

The router owns the policy of which concrete source format may produce which
target. Decoding and encoding run in worker threads so that several
conversions can be awaited together.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .compatibility import is_compatible, label_for
from .decoders import Decoder, get_decoder
from .detection import (
    BMP,
    CSV,
    GIF,
    HTML,
    JPEG,
    PDF,
    PNG,
    TEXT,
    WEBP,
    Category,
    SourceFormat,
    classify,
    resolve_source_format,
    sniff_format,
)
from .encoders import DOCX_VIRTUAL_WIDTH, MARKUP_VIRTUAL_WIDTH, encode
from .errors import EncodeError, UnsupportedConversion, UnsupportedTarget
from .executors import run_sync
from .models import EncodeOptions, SourceFile

logger = logging.getLogger(__name__)

IMAGE_OUTPUTS = frozenset({JPEG, PNG, WEBP, BMP, GIF, PDF})
# Targets whose container can be recognised by its magic number.
BINARY_TARGETS = frozenset({JPEG, PNG, WEBP, BMP, GIF, PDF})


@dataclass(frozen=True, slots=True)
class Pipeline:
    category: Category
    source_format: SourceFormat
    target: str
    decoder: Decoder
    options: EncodeOptions


def supported_outputs(source_format: SourceFormat) -> frozenset[str]:
    match source_format:
        case SourceFormat.HEIC | SourceFormat.TIFF | SourceFormat.RASTER:
            return IMAGE_OUTPUTS
        case SourceFormat.DOCX:
            return frozenset({HTML, PDF})
        case SourceFormat.CSV | SourceFormat.WORKBOOK:
            return frozenset({CSV, TEXT, HTML, PDF})
        case SourceFormat.HTML | SourceFormat.PLAIN_TEXT:
            return frozenset({PDF})
        case SourceFormat.PDF:
            return frozenset({TEXT})
        case SourceFormat.LEGACY_DOC:
            return frozenset()
    raise ValueError(f"Unknown source format: {source_format!r}")


def plan(source: SourceFile, target: str) -> Pipeline:
    """Validate the (source, target) pair and pick the decoder and options."""

    category = classify(source.name, source.declared_mime_type)
    if category is None:
        raise UnsupportedConversion(f"{source.name} is not a supported input file")
    if not is_compatible(category, target):
        raise UnsupportedConversion(f"{category.value} files cannot be converted to {label_for(target)}")

    source_format = resolve_source_format(source.name, source.declared_mime_type, category)
    if source_format is SourceFormat.LEGACY_DOC:
        raise UnsupportedConversion(f"Legacy Word documents are not supported: {source.name}")
    if target not in supported_outputs(source_format):
        raise UnsupportedTarget(f"{source_format.value} sources cannot produce {label_for(target)}")

    width = DOCX_VIRTUAL_WIDTH if source_format is SourceFormat.DOCX else MARKUP_VIRTUAL_WIDTH
    return Pipeline(
        category=category,
        source_format=source_format,
        target=target,
        decoder=get_decoder(source_format),
        options=EncodeOptions(virtual_width=width),
    )


def verify_output(data: bytes, target: str) -> bytes:
    if not data:
        raise EncodeError(f"Encoder produced no bytes for {label_for(target)}")
    if target in BINARY_TARGETS:
        detected = sniff_format(data)
        if detected != target:
            raise EncodeError(f"Encoder produced {detected or 'unknown data'} instead of {target}")
    return data


async def convert(source: SourceFile, target: str) -> bytes:
    """Convert *source* into *target* bytes or raise a ``ConversionError``."""

    pipeline = plan(source, target)
    logger.info(
        "Converting %s (%s, %s) to %s",
        source.name,
        pipeline.category.value,
        pipeline.source_format.value,
        target,
    )
    representation = await run_sync(pipeline.decoder.decode, source.data)
    output = await run_sync(encode, representation, pipeline.target, pipeline.options)
    return verify_output(output, target)


__all__ = ["Pipeline", "convert", "plan", "supported_outputs", "verify_output"]
