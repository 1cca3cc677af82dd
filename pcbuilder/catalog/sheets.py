"""Spreadsheet row adapter.

Catalog spreadsheets keep one tab per category with the columns:

    A name | B price | C description | D performance | E socket |
    F power / form factor / wattage | G integrated graphics

Column F is overloaded per category, so it is copied into every field it
may stand for and the normalizer keeps whichever the category uses.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence

SHEET_COLUMNS = (
    "name",
    "price",
    "description",
    "performance",
    "socket",
    "spec",
    "integratedGraphics",
)


def record_from_sheet_row(category: str, row: Sequence[Any]) -> Dict[str, Any]:
    """Map one spreadsheet row to a raw catalog record. Short rows are padded."""
    cells = list(row) + [""] * (len(SHEET_COLUMNS) - len(row))
    values = dict(zip(SHEET_COLUMNS, cells))
    spec = values.pop("spec")
    return {
        **values,
        "category": category,
        "power": spec,
        "formFactor": spec,
        "wattage": spec,
    }


def records_from_sheet(tabs: Mapping[str, Sequence[Sequence[Any]]]) -> List[Dict[str, Any]]:
    """Flatten `{category: rows}` into raw records, skipping blank rows."""
    records: List[Dict[str, Any]] = []
    for category, rows in tabs.items():
        for row in rows:
            if not row or not any(str(cell).strip() for cell in row):
                continue
            records.append(record_from_sheet_row(category, row))
    return records
