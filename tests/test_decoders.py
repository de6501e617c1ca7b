import fitz
import pytest

from file_converter.decoders import get_decoder
from file_converter.decoders.spreadsheet import format_cell, workbook_engine
from file_converter.decoders.tiff import first_ifd_offset
from file_converter.detection import SourceFormat
from file_converter.errors import DecodeError
from file_converter.models import MarkupText, PixelBuffer, PlainText, TabularSheet

EMPTY_TIFF = b"II*\x00\x00\x00\x00\x00"


def test_raster_decoder_keeps_native_size(transparent_png):
    buffer = get_decoder(SourceFormat.RASTER).decode(transparent_png)
    assert isinstance(buffer, PixelBuffer)
    assert (buffer.width, buffer.height) == (4, 3)
    assert buffer.rgba[:4] == b"\x00\x00\x00\x00"


def test_raster_decoder_rejects_garbage():
    with pytest.raises(DecodeError):
        get_decoder(SourceFormat.RASTER).decode(b"definitely not an image")


def test_tiff_decode_is_deterministic(tiff_bytes):
    decoder = get_decoder(SourceFormat.TIFF)
    first = decoder.decode(tiff_bytes)
    second = decoder.decode(tiff_bytes)
    assert first == second
    assert (first.width, first.height) == (5, 7)


def test_tiff_without_directories_is_a_decode_error():
    assert first_ifd_offset(EMPTY_TIFF) == 0
    with pytest.raises(DecodeError):
        get_decoder(SourceFormat.TIFF).decode(EMPTY_TIFF)


def test_tiff_with_bad_header_is_a_decode_error():
    with pytest.raises(DecodeError):
        get_decoder(SourceFormat.TIFF).decode(b"XX*\x00\x08\x00\x00\x00")


def test_heic_decoder_uses_first_image(heic_bytes):
    buffer = get_decoder(SourceFormat.HEIC).decode(heic_bytes)
    assert (buffer.width, buffer.height) == (16, 16)


def test_docx_decoder_produces_markup(docx_bytes):
    markup = get_decoder(SourceFormat.DOCX).decode(docx_bytes)
    assert isinstance(markup, MarkupText)
    assert "Hello DOCX" in markup.html


def test_docx_decoder_rejects_non_zip():
    with pytest.raises(DecodeError):
        get_decoder(SourceFormat.DOCX).decode(b"not a zip")


def test_workbook_decoder_reads_first_sheet_only(xlsx_bytes):
    sheet = get_decoder(SourceFormat.WORKBOOK).decode(xlsx_bytes)
    assert isinstance(sheet, TabularSheet)
    assert sheet.name == "Data"
    assert sheet.rows == (("a", "b"), ("1", "2"))


def test_csv_decoder_reads_rows(csv_bytes):
    sheet = get_decoder(SourceFormat.CSV).decode(csv_bytes)
    assert sheet.rows == (("a", "b"), ("1", "2"))


def test_workbook_decoder_reads_ods(ods_bytes):
    sheet = get_decoder(SourceFormat.WORKBOOK).decode(ods_bytes)
    assert sheet.name == "Data"
    assert sheet.rows == (("a", "b"), ("1", "2"))


def test_workbook_decoder_reads_xls(xls_bytes):
    sheet = get_decoder(SourceFormat.WORKBOOK).decode(xls_bytes)
    assert sheet.name == "Data"
    assert sheet.rows == (("a", "b"), ("1", "2"))


@pytest.mark.parametrize("data", [b"a,b\n1,2\n", b"\x00\x01\x02 this is not a workbook"])
def test_workbook_decoder_requires_a_container(data):
    with pytest.raises(DecodeError):
        get_decoder(SourceFormat.WORKBOOK).decode(data)


def test_workbook_engine_sniffing(xlsx_bytes, ods_bytes, csv_bytes):
    assert workbook_engine(xlsx_bytes) == "openpyxl"
    assert workbook_engine(ods_bytes) == "odf"
    assert workbook_engine(csv_bytes) is None
    assert workbook_engine(b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1rest") == "xlrd"


def test_format_cell():
    assert format_cell(None) == ""
    assert format_cell(3.0) == "3"
    assert format_cell(2.5) == "2.5"
    assert format_cell(True) == "TRUE"
    assert format_cell(float("nan")) == ""


def test_text_decoders(sources):
    html = get_decoder(SourceFormat.HTML).decode(sources["html"].data)
    assert html == MarkupText(html="<h1>Title</h1><p>Body text</p>")
    text = get_decoder(SourceFormat.PLAIN_TEXT).decode(b"\xef\xbb\xbfcaf\xc3\xa9")
    assert text == PlainText(text="café")


def test_pdf_decoder_extracts_text(pdf_bytes):
    text = get_decoder(SourceFormat.PDF).decode(pdf_bytes)
    assert "Hello PDF" in text.text


def test_pdf_decoder_requires_pdf_header():
    with pytest.raises(DecodeError):
        get_decoder(SourceFormat.PDF).decode(b"plain bytes")


def test_pdf_decoder_rejects_corrupt_body():
    with pytest.raises(DecodeError) as excinfo:
        get_decoder(SourceFormat.PDF).decode(b"%PDF-1.4 garbage")
    assert excinfo.value.code == "DECODE_ERROR"


def test_pdf_decoder_rejects_pages_without_text():
    with fitz.open() as document:
        document.new_page()
        blank = document.tobytes()
    with pytest.raises(DecodeError):
        get_decoder(SourceFormat.PDF).decode(blank)
