from __future__ import annotations

import mimetypes
from enum import Enum
from pathlib import Path, PurePath


class Category(str, Enum):
    IMAGE = "image"
    DOCUMENT = "document"
    SPREADSHEET = "spreadsheet"
    TEXT = "text"
    PDF = "pdf"


JPEG = "image/jpeg"
PNG = "image/png"
WEBP = "image/webp"
BMP = "image/bmp"
GIF = "image/gif"
TIFF = "image/tiff"
PDF = "application/pdf"
HTML = "text/html"
CSV = "text/csv"
TEXT = "text/plain"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
ZIP = "application/zip"

IMAGE_EXTENSIONS = frozenset({".heic", ".heif", ".tiff", ".tif"})
HEIC_EXTENSIONS = frozenset({".heic", ".heif"})
TIFF_EXTENSIONS = frozenset({".tiff", ".tif"})
DOCUMENT_EXTENSIONS = frozenset({".docx", ".doc"})
SPREADSHEET_EXTENSIONS = frozenset({".xlsx", ".xls", ".csv", ".ods"})
TEXT_EXTENSIONS = frozenset({".txt", ".html", ".rtf"})

TARGET_EXTENSIONS: dict[str, str] = {
    JPEG: "jpg",
    PNG: "png",
    WEBP: "webp",
    BMP: "bmp",
    GIF: "gif",
    PDF: "pdf",
    HTML: "html",
    CSV: "csv",
    TEXT: "txt",
    DOCX: "docx",
    XLSX: "xlsx",
}
FALLBACK_EXTENSION = "bin"


def extension_of(filename: str) -> str:
    return PurePath(filename).suffix.lower()


def classify(filename: str, declared_mime_type: str | None) -> Category | None:
    """Map a file name and its declared MIME type onto a category.

    Declared types are often missing or wrong, so extensions act as the
    fallback signal. The checks run in a fixed order and the first match wins.
    """

    mime = (declared_mime_type or "").strip().lower()
    extension = extension_of(filename)
    if mime.startswith("image/") or extension in IMAGE_EXTENSIONS:
        return Category.IMAGE
    if extension in DOCUMENT_EXTENSIONS:
        return Category.DOCUMENT
    if extension in SPREADSHEET_EXTENSIONS:
        return Category.SPREADSHEET
    if mime.startswith("text/") or extension in TEXT_EXTENSIONS:
        return Category.TEXT
    if mime == PDF or extension == ".pdf":
        return Category.PDF
    return None


class SourceFormat(str, Enum):
    HEIC = "heic"
    DOCX = "docx"
    LEGACY_DOC = "legacy_doc"
    CSV = "csv"
    WORKBOOK = "workbook"
    HTML = "html"
    PLAIN_TEXT = "plain_text"
    PDF = "pdf"
    TIFF = "tiff"
    RASTER = "raster"


def resolve_source_format(
    filename: str, declared_mime_type: str | None, category: Category
) -> SourceFormat:
    """Pick the concrete source format inside an already classified category.

    Extension-specific formats take precedence over the generic branches.
    """

    mime = (declared_mime_type or "").strip().lower()
    extension = extension_of(filename)
    if extension in HEIC_EXTENSIONS:
        return SourceFormat.HEIC
    if extension == ".docx":
        return SourceFormat.DOCX
    if extension == ".csv":
        return SourceFormat.CSV
    if extension in SPREADSHEET_EXTENSIONS:
        return SourceFormat.WORKBOOK
    if extension == ".html":
        return SourceFormat.HTML
    if extension in TEXT_EXTENSIONS:
        return SourceFormat.PLAIN_TEXT
    match category:
        case Category.IMAGE:
            if mime == TIFF or extension in TIFF_EXTENSIONS:
                return SourceFormat.TIFF
            return SourceFormat.RASTER
        case Category.DOCUMENT:
            return SourceFormat.LEGACY_DOC
        case Category.SPREADSHEET:
            return SourceFormat.WORKBOOK
        case Category.TEXT:
            return SourceFormat.HTML if mime == HTML else SourceFormat.PLAIN_TEXT
        case Category.PDF:
            return SourceFormat.PDF
    raise ValueError(f"Unknown category: {category!r}")


def extension_for_target(target: str) -> str:
    return TARGET_EXTENSIONS.get(target, FALLBACK_EXTENSION)


def output_filename(source_name: str, target: str) -> str:
    """Name for a converted download: ``<stem>_converted.<ext>``."""

    stem = PurePath(source_name).stem or "file"
    return f"{stem}_converted.{extension_for_target(target)}"


def guess_declared_type(path: Path) -> str:
    mime, _ = mimetypes.guess_type(path.name)
    return mime or ""


def sniff_format(data: bytes) -> str | None:
    """Identify binary containers by their magic numbers."""

    if data.startswith(b"\xff\xd8\xff"):
        return JPEG
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return PNG
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return WEBP
    if data.startswith(b"BM"):
        return BMP
    if data.startswith((b"GIF87a", b"GIF89a")):
        return GIF
    if data.startswith((b"II*\x00", b"MM\x00*", b"II+\x00", b"MM\x00+")):
        return TIFF
    if data.startswith(b"%PDF"):
        return PDF
    if data.startswith(b"PK\x03\x04"):
        return ZIP
    return None


__all__ = [
    "Category",
    "SourceFormat",
    "classify",
    "extension_for_target",
    "extension_of",
    "guess_declared_type",
    "output_filename",
    "resolve_source_format",
    "sniff_format",
]
