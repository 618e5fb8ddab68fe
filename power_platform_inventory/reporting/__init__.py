"""Reporting package — workbook output generation."""

from .xlsx_export import export_xlsx

__all__ = [
    "export_xlsx",
]
