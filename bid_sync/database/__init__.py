"""Spreadsheet-backed row storage."""

from .sheets_client import SheetsClient

__all__ = ["SheetsClient"]
