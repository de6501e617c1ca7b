from __future__ import annotations

import zipfile
from io import BytesIO
from pathlib import Path

import fitz
import pandas as pd
import pytest
from openpyxl import Workbook
from PIL import Image

from file_converter.config import AppConfig, RuntimeConfig
from file_converter.models import SourceFile

DOCX_CONTENT_TYPES = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">
<Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>
<Default Extension="xml" ContentType="application/xml"/>
<Override PartName="/word/document.xml" ContentType="application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml"/>
</Types>"""

DOCX_RELS = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">
<Relationship Id="rId1" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/officeDocument" Target="word/document.xml"/>
</Relationships>"""

DOCX_DOCUMENT_RELS = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships"></Relationships>"""

DOCX_DOCUMENT = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<w:document xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main">
<w:body><w:p><w:r><w:t>Hello DOCX</w:t></w:r></w:p></w:body>
</w:document>"""


def _image_bytes(image: Image.Image, fmt: str) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def transparent_png() -> bytes:
    with Image.new("RGBA", (4, 3), (200, 30, 30, 255)) as image:
        image.putpixel((0, 0), (0, 0, 0, 0))
        return _image_bytes(image, "PNG")


@pytest.fixture
def tiff_bytes() -> bytes:
    with Image.new("RGBA", (5, 7), (10, 120, 240, 255)) as image:
        image.putpixel((0, 0), (0, 0, 0, 0))
        return _image_bytes(image, "TIFF")


@pytest.fixture
def heic_bytes() -> bytes:
    pillow_heif = pytest.importorskip("pillow_heif")
    pillow_heif.register_heif_opener()
    with Image.new("RGB", (16, 16), (0, 128, 0)) as image:
        try:
            return _image_bytes(image, "HEIF")
        except (KeyError, OSError, ValueError, RuntimeError) as exc:
            pytest.skip(f"HEIF encoder unavailable: {exc}")


@pytest.fixture
def docx_bytes() -> bytes:
    buffer = BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        archive.writestr("[Content_Types].xml", DOCX_CONTENT_TYPES)
        archive.writestr("_rels/.rels", DOCX_RELS)
        archive.writestr("word/_rels/document.xml.rels", DOCX_DOCUMENT_RELS)
        archive.writestr("word/document.xml", DOCX_DOCUMENT)
    return buffer.getvalue()


@pytest.fixture
def xlsx_bytes() -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Data"
    sheet.append(["a", "b"])
    sheet.append([1, 2])
    extra = workbook.create_sheet("Ignored")
    extra.append(["not", "used"])
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def ods_bytes() -> bytes:
    buffer = BytesIO()
    frame = pd.DataFrame([["a", "b"], [1, 2]])
    frame.to_excel(buffer, engine="odf", sheet_name="Data", header=False, index=False)
    return buffer.getvalue()


@pytest.fixture
def xls_bytes() -> bytes:
    xlwt = pytest.importorskip("xlwt")
    workbook = xlwt.Workbook()
    sheet = workbook.add_sheet("Data")
    for row, values in enumerate([["a", "b"], [1, 2]]):
        for column, value in enumerate(values):
            sheet.write(row, column, value)
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def csv_bytes() -> bytes:
    return b"a,b\n1,2\n"


@pytest.fixture
def pdf_bytes() -> bytes:
    with fitz.open() as document:
        page = document.new_page()
        page.insert_text((72, 72), "Hello PDF", fontsize=14)
        return document.tobytes()


@pytest.fixture
def sources(
    transparent_png, tiff_bytes, docx_bytes, xlsx_bytes, ods_bytes, csv_bytes, pdf_bytes
) -> dict[str, SourceFile]:
    return {
        "png": SourceFile("photo.png", "image/png", transparent_png),
        "tiff": SourceFile("scan.tiff", "image/tiff", tiff_bytes),
        "docx": SourceFile("report.docx", "application/octet-stream", docx_bytes),
        "xlsx": SourceFile("table.xlsx", "", xlsx_bytes),
        "ods": SourceFile("table.ods", "", ods_bytes),
        "csv": SourceFile("data.csv", "text/csv", csv_bytes),
        "txt": SourceFile("notes.txt", "text/plain", b"First line\nSecond line with more words\n"),
        "html": SourceFile("page.html", "text/html", b"<h1>Title</h1><p>Body text</p>"),
        "pdf": SourceFile("scan.pdf", "application/pdf", pdf_bytes),
    }


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    runtime = RuntimeConfig(output_dir=tmp_path / "runs", parallelism=2, enable_local_api=True)
    return AppConfig(runtime=runtime)
