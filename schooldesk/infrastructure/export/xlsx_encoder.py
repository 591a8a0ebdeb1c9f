"""Spreadsheet encoder backed by openpyxl."""

import io
import json
import re
from collections.abc import Sequence
from typing import Any

from openpyxl import Workbook

from schooldesk.application.interfaces import SpreadsheetEncoder

_INVALID_TITLE_CHARS = re.compile(r"[\[\]:*?/\\]")


def _sheet_title(name: str) -> str:
    # Excel limits sheet titles to 31 characters
    title = _INVALID_TITLE_CHARS.sub("_", name)[:31]
    return title or "Sheet1"


def _cell(value: Any) -> Any:
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return value


class OpenpyxlSpreadsheetEncoder(SpreadsheetEncoder):
    """Writes one worksheet named after the record type."""

    media_type = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    extension = "xlsx"

    def encode(self, rows: Sequence[dict[str, Any]], sheet_name: str) -> bytes:
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = _sheet_title(sheet_name)

        if rows:
            headers = list(rows[0].keys())
            sheet.append(headers)
            for row in rows:
                sheet.append([_cell(row.get(h)) for h in headers])

        buffer = io.BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()
