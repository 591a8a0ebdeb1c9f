"""Abstract interface (port) for binary spreadsheet encoding."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any


class SpreadsheetEncoder(ABC):
    """Port for spreadsheet export: implemented in the infrastructure layer."""

    media_type: str = "application/octet-stream"
    extension: str = "bin"

    @abstractmethod
    def encode(self, rows: Sequence[dict[str, Any]], sheet_name: str) -> bytes:
        """Encode ``rows`` as a single-sheet workbook.

        The header row comes from the first row's keys.
        """
        ...
