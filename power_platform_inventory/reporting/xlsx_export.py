"""
XLSX exporter — Writes the inventory as one workbook with one sheet per row type.
"""

from __future__ import annotations

from pathlib import Path

from openpyxl import Workbook

from ..models import Inventory


def export_xlsx(inventory: Inventory, path: Path) -> Path:
    """
    Write every row collection to its own sheet, header row first.
    An existing file at ``path`` is overwritten.

    Returns:
        Path to the created workbook.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    wb = Workbook()
    wb.remove(wb.active)

    for sheet_name, row_type, rows in inventory.sheets():
        ws = wb.create_sheet(title=sheet_name)
        ws.append(row_type.columns())
        for row in rows:
            ws.append(row.values())

    wb.save(path)
    return path
