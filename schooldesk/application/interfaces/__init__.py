from .record_backend import BackendResult, ChangeHandler, ErrorHandler, RecordBackend
from .spreadsheet_encoder import SpreadsheetEncoder

__all__ = [
    "BackendResult",
    "ChangeHandler",
    "ErrorHandler",
    "RecordBackend",
    "SpreadsheetEncoder",
]
