from __future__ import annotations

import csv
from html import escape
from io import StringIO

from ..models import TabularSheet

TABLE_STYLE = (
    "table { border-collapse: collapse; font-family: sans-serif; font-size: 12px; }"
    " td { border: 1px solid #999; padding: 4px 6px; vertical-align: top; }"
)


def encode_csv(sheet: TabularSheet) -> bytes:
    """Serialise rows as RFC 4180 CSV with ``\\n`` line endings."""

    buffer = StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(sheet.rows)
    return buffer.getvalue().encode("utf-8")


def sheet_to_html(sheet: TabularSheet) -> str:
    body: list[str] = []
    for row in sheet.rows:
        cells = "".join(f"<td>{escape(cell)}</td>" for cell in row)
        body.append(f"<tr>{cells}</tr>")
    return f"<table>{''.join(body)}</table>"


def encode_html_table(sheet: TabularSheet) -> bytes:
    document = (
        "<!DOCTYPE html>\n"
        "<html><head><meta charset=\"utf-8\">"
        f"<title>{escape(sheet.name)}</title>"
        f"<style>{TABLE_STYLE}</style></head>"
        f"<body>{sheet_to_html(sheet)}</body></html>\n"
    )
    return document.encode("utf-8")


__all__ = ["encode_csv", "encode_html_table", "sheet_to_html"]
