"""Export encoders: concrete SpreadsheetEncoder implementations."""

from .xlsx_encoder import OpenpyxlSpreadsheetEncoder

__all__ = ["OpenpyxlSpreadsheetEncoder"]
