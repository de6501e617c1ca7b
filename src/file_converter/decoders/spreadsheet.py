"""First-worksheet spreadsheet decoding.

Workbooks with several sheets only contribute their first sheet; the rest are
dropped. CSV input is treated as a single sheet. Workbook files must carry a
ZIP or OLE container; they are never read as CSV text.
"""

from __future__ import annotations

import csv
import datetime as dt
import logging
import math
import zipfile
from io import BytesIO, StringIO

import numpy as np
import pandas as pd
from xlrd import XLRDError
from xlrd.compdoc import CompDocError

from ..detection import SourceFormat
from ..errors import DecodeError, library_errors
from ..models import TabularSheet

logger = logging.getLogger(__name__)

OLE_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
ODS_MIMETYPE = b"application/vnd.oasis.opendocument.spreadsheet"
MALFORMED_WORKBOOK: tuple[type[BaseException], ...] = (
    zipfile.BadZipFile,
    KeyError,
    ValueError,
    OSError,
    EOFError,
    XLRDError,
    CompDocError,
)


def workbook_engine(data: bytes) -> str | None:
    """Pick the pandas Excel engine from the container signature.

    Returns ``None`` for anything that is not a binary workbook container.
    """

    if data.startswith(OLE_SIGNATURE):
        return "xlrd"
    if not data.startswith(b"PK\x03\x04"):
        return None
    with library_errors("zipfile", "workbook sniff", malformed=MALFORMED_WORKBOOK):
        with zipfile.ZipFile(BytesIO(data)) as archive:
            names = set(archive.namelist())
            if "mimetype" in names and archive.read("mimetype").strip() == ODS_MIMETYPE:
                return "odf"
    return "openpyxl"


def format_cell(value: object) -> str:
    if value is None or value is pd.NaT or value is pd.NA:
        return ""
    if isinstance(value, (bool, np.bool_)):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    if isinstance(value, dt.datetime):
        if value.time() == dt.time(0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, (dt.date, dt.time)):
        return value.isoformat()
    return str(value)


class CsvDecoder:
    source_format = SourceFormat.CSV

    def decode(self, data: bytes) -> TabularSheet:  # type: ignore[override]
        text = data.decode("utf-8-sig", errors="replace")
        try:
            rows = tuple(tuple(row) for row in csv.reader(StringIO(text)))
        except csv.Error as exc:
            raise DecodeError(f"CSV source is malformed: {exc}") from exc
        return TabularSheet(rows=rows)


class WorkbookDecoder:
    source_format = SourceFormat.WORKBOOK

    def decode(self, data: bytes) -> TabularSheet:  # type: ignore[override]
        engine = workbook_engine(data)
        if engine is None:
            raise DecodeError("Workbook source has no XLSX, XLS or ODS container signature")
        with library_errors("pandas", f"{engine} workbook read", malformed=MALFORMED_WORKBOOK):
            with pd.ExcelFile(BytesIO(data), engine=engine) as workbook:
                sheet_names = workbook.sheet_names
                if not sheet_names:
                    raise DecodeError("Workbook contains no worksheets")
                if len(sheet_names) > 1:
                    logger.debug("Workbook has %d sheets; keeping %r", len(sheet_names), sheet_names[0])
                frame = workbook.parse(sheet_name=0, header=None)
        rows = tuple(
            tuple(format_cell(value) for value in record)
            for record in frame.itertuples(index=False, name=None)
        )
        return TabularSheet(rows=rows, name=str(sheet_names[0]))
