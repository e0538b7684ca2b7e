"""
Integración con Google Sheets.
"""
from tariffs_sync.infrastructure.external.google_sheets.sheets_client import (
    GoogleSheetsClient,
    a1_range,
    quote_sheet_title,
)

__all__ = ["GoogleSheetsClient", "a1_range", "quote_sheet_title"]
