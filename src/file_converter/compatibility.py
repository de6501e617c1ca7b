"""Static policy of which target formats each category may be converted to."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from types import MappingProxyType

from .detection import BMP, CSV, DOCX, GIF, HTML, JPEG, PDF, PNG, TEXT, WEBP, Category
from .errors import UnsupportedTarget


@dataclass(frozen=True, slots=True)
class CompatibilityEntry:
    mime_type: str
    label: str


COMPATIBILITY_TABLE = MappingProxyType(
    {
        Category.IMAGE: (
            CompatibilityEntry(JPEG, "JPEG"),
            CompatibilityEntry(PNG, "PNG"),
            CompatibilityEntry(WEBP, "WebP"),
            CompatibilityEntry(BMP, "BMP"),
            CompatibilityEntry(GIF, "GIF"),
            CompatibilityEntry(PDF, "PDF"),
        ),
        Category.DOCUMENT: (
            CompatibilityEntry(PDF, "PDF"),
            CompatibilityEntry(HTML, "HTML"),
        ),
        Category.SPREADSHEET: (
            CompatibilityEntry(PDF, "PDF"),
            CompatibilityEntry(CSV, "CSV"),
            CompatibilityEntry(HTML, "HTML"),
        ),
        Category.TEXT: (
            CompatibilityEntry(PDF, "PDF"),
            CompatibilityEntry(DOCX, "DOCX (Basic)"),
        ),
        Category.PDF: (CompatibilityEntry(TEXT, "Text (TXT)"),),
    }
)

TARGET_ALIASES: dict[str, str] = {
    "jpg": JPEG,
    "jpeg": JPEG,
    "png": PNG,
    "webp": WEBP,
    "bmp": BMP,
    "gif": GIF,
    "pdf": PDF,
    "html": HTML,
    "htm": HTML,
    "csv": CSV,
    "txt": TEXT,
    "text": TEXT,
    "docx": DOCX,
}


def compatible_targets(category: Category | None) -> tuple[CompatibilityEntry, ...]:
    if category is None:
        return ()
    return COMPATIBILITY_TABLE.get(category, ())


def is_compatible(category: Category | None, target: str) -> bool:
    return any(entry.mime_type == target for entry in compatible_targets(category))


def common_targets(categories: Iterable[Category | None]) -> tuple[CompatibilityEntry, ...]:
    """Targets every given category supports, in the order of the first one."""

    groups = [compatible_targets(category) for category in categories]
    if not groups:
        return ()
    shared = set.intersection(*({entry.mime_type for entry in group} for group in groups))
    return tuple(entry for entry in groups[0] if entry.mime_type in shared)


def label_for(target: str) -> str:
    for entries in COMPATIBILITY_TABLE.values():
        for entry in entries:
            if entry.mime_type == target:
                return entry.label
    return target


def resolve_target(value: str) -> str:
    """Accept a MIME type, a display label or an extension alias."""

    candidate = value.strip()
    lowered = candidate.lower().lstrip(".")
    if lowered in TARGET_ALIASES:
        return TARGET_ALIASES[lowered]
    for entries in COMPATIBILITY_TABLE.values():
        for entry in entries:
            if candidate.lower() in {entry.mime_type, entry.label.lower()}:
                return entry.mime_type
    raise UnsupportedTarget(f"Unknown target format: {value!r}")


__all__ = [
    "COMPATIBILITY_TABLE",
    "CompatibilityEntry",
    "common_targets",
    "compatible_targets",
    "is_compatible",
    "label_for",
    "resolve_target",
]
