"""Domain models for file conversion."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

from .logging import BatchSummary


@dataclass(frozen=True, slots=True)
class SourceFile:
    """Immutable input handed over by the intake layer."""

    name: str
    declared_mime_type: str
    data: bytes

    @classmethod
    def from_path(cls, path: Path, declared_mime_type: str | None = None) -> "SourceFile":
        from .detection import guess_declared_type

        mime = declared_mime_type if declared_mime_type is not None else guess_declared_type(path)
        return cls(name=path.name, declared_mime_type=mime, data=path.read_bytes())

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True, slots=True)
class PixelBuffer:
    width: int
    height: int
    rgba: bytes

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Invalid pixel dimensions {self.width}x{self.height}")
        expected = self.width * self.height * 4
        if len(self.rgba) != expected:
            raise ValueError(f"RGBA buffer holds {len(self.rgba)} bytes, expected {expected}")


@dataclass(frozen=True, slots=True)
class MarkupText:
    html: str


@dataclass(frozen=True, slots=True)
class PlainText:
    text: str


@dataclass(frozen=True, slots=True)
class TabularSheet:
    rows: tuple[tuple[str, ...], ...]
    name: str = "Sheet1"


IntermediateRepresentation = Union[PixelBuffer, MarkupText, PlainText, TabularSheet]


@dataclass(frozen=True, slots=True)
class EncodeOptions:
    """Per-pipeline encoder settings.

    ``virtual_width`` is the width of the virtual window markup is laid out in
    before being scaled onto the PDF content area.
    """

    virtual_width: int = 800


@dataclass(slots=True)
class ConversionResult:
    """Result metadata for an individual conversion."""

    run_id: str
    source_path: Path
    output_path: Path
    target: str
    size_bytes: int
    summary: str


@dataclass(slots=True)
class BatchConversionResult:
    """Aggregate results for a batch conversion request."""

    runs: list[ConversionResult]
    failures: dict[str, str] = field(default_factory=dict)
    summary: BatchSummary = field(default_factory=BatchSummary)


__all__ = [
    "BatchConversionResult",
    "ConversionResult",
    "EncodeOptions",
    "IntermediateRepresentation",
    "MarkupText",
    "PixelBuffer",
    "PlainText",
    "SourceFile",
    "TabularSheet",
]
