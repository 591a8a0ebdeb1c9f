"""Application service for exporting visible records as JSON, CSV or a spreadsheet."""

import csv
import io
import json
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from schooldesk.application.interfaces import SpreadsheetEncoder
from schooldesk.application.services.record_store import RecordStore
from schooldesk.domain.entities import Identity, RecordType, type_tag
from schooldesk.domain.exceptions import UnsupportedExportFormatError
from schooldesk.infrastructure.logging.operation_logger import OperationLogger, StoreOperation

olog = OperationLogger("ExportService")


class ExportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"
    XLSX = "xlsx"


@dataclass(frozen=True)
class ExportResult:
    content: bytes
    media_type: str
    filename: str


def _csv_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def to_json(rows: list[dict[str, Any]]) -> str:
    return json.dumps(rows, indent=2, ensure_ascii=False, default=str)


def to_csv(rows: list[dict[str, Any]]) -> str:
    """Every field double-quoted; the header comes from the first row's keys."""
    if not rows:
        return ""
    headers = list(rows[0].keys())
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_csv_value(row.get(h)) for h in headers])
    return buffer.getvalue().rstrip("\n")


class ExportService:
    """Exports exactly what the viewer's ``query`` would show them."""

    def __init__(self, store: RecordStore, spreadsheet_encoder: SpreadsheetEncoder | None = None):
        self._store = store
        self._spreadsheet_encoder = spreadsheet_encoder

    def export(
        self,
        identity: Identity,
        record_type: RecordType | str,
        fmt: ExportFormat | str = ExportFormat.JSON,
        filters: Mapping[str, Any] | None = None,
    ) -> ExportResult:
        try:
            export_format = ExportFormat(fmt)
        except ValueError:
            raise UnsupportedExportFormatError(str(fmt)) from None

        tag = type_tag(record_type)
        with olog.timed_step(StoreOperation.EXPORT, f"Exporting {tag} as {export_format.value}"):
            rows = [r.to_public_dict() for r in self._store.query(identity, record_type, filters)]
            olog.detail("Rows selected", rows=len(rows))
            return self._encode(rows, tag, export_format)

    def _encode(self, rows: list[dict[str, Any]], tag: str, export_format: ExportFormat) -> ExportResult:
        if export_format is ExportFormat.JSON:
            return ExportResult(to_json(rows).encode("utf-8"), "application/json", f"{tag}.json")
        if export_format is ExportFormat.CSV:
            return ExportResult(to_csv(rows).encode("utf-8"), "text/csv", f"{tag}.csv")

        if self._spreadsheet_encoder is None:
            raise UnsupportedExportFormatError(export_format.value)
        encoder = self._spreadsheet_encoder
        return ExportResult(
            encoder.encode(rows, tag),
            encoder.media_type,
            f"{tag}.{encoder.extension}",
        )
