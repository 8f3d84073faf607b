"""
app/readers/workbook_reader.py

Turn an uploaded workbook buffer into a header row and typed data rows.

Only one tabular layout is supported: a single sheet whose header row sits
within the first few rows, followed by data rows. Raw openpyxl values are
converted to the Cell sum type here and nowhere else.
"""

from __future__ import annotations

import logging
import math
import zipfile
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from io import BytesIO
from typing import Any

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from app.domain.cost_report import EMPTY_CELL, Cell, NumberCell, TextCell, cell_text
from app.errors import SchemaError, SchemaErrorDetail, WorkbookReadError

logger = logging.getLogger(__name__)

DEFAULT_SHEET_NAME = "Cost Rpt Summary"
MIN_HEADER_CELLS = 3


@dataclass(frozen=True)
class WorkbookTable:
    """
    The selected sheet reduced to a header row and typed data rows.
    """

    sheet_name: str
    header_row_index: int
    headers: tuple[str, ...]
    rows: tuple[tuple[Cell, ...], ...]


def to_cell(value: Any) -> Cell:
    """
    Convert one raw openpyxl value into a Cell.
    """

    if value is None:
        return EMPTY_CELL
    if isinstance(value, bool):
        return TextCell(str(value).lower())
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
        if not math.isfinite(number):
            return EMPTY_CELL
        return NumberCell(number)
    if isinstance(value, datetime):
        return TextCell(value.date().isoformat() if value.time() == time(0) else value.isoformat())
    if isinstance(value, (date, time)):
        return TextCell(value.isoformat())
    text = str(value)
    if not text.strip():
        return EMPTY_CELL
    return TextCell(text)


def read_workbook(
    buffer: bytes,
    *,
    preferred_sheet: str = DEFAULT_SHEET_NAME,
    header_scan_rows: int = 10,
) -> WorkbookTable:
    """
    Read the cost report sheet from an ``.xlsx`` / ``.xlsm`` buffer.

    Raises:
        WorkbookReadError: the buffer is not a readable workbook.
        SchemaError: no usable sheet, or no data rows below the header.
    """

    try:
        workbook = openpyxl.load_workbook(BytesIO(buffer), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as exc:
        raise WorkbookReadError(f"Unable to read workbook: {exc}", field="file") from exc

    try:
        sheet_name, raw_rows = _select_sheet(workbook, preferred_sheet)
    finally:
        workbook.close()

    if sheet_name is None:
        raise SchemaError(
            message="Workbook has no sheet with at least two rows and two columns.",
            errors=[
                SchemaErrorDetail(
                    code="no_data_sheet",
                    message="No usable sheet found.",
                    context={"sheets": list(workbook.sheetnames)},
                )
            ],
        )

    grid = [tuple(to_cell(value) for value in row) for row in raw_rows]
    header_index = find_header_row(grid, scan_rows=header_scan_rows)
    width = max((len(row) for row in grid), default=0)

    header_row = grid[header_index] if grid else ()
    headers = dedupe_headers([cell_text(cell) or "" for cell in _pad(header_row, width)])
    data_rows = [_pad(row, width) for row in grid[header_index + 1 :]]
    while data_rows and _is_blank(data_rows[-1]):
        data_rows.pop()

    if not data_rows:
        raise SchemaError(
            message=f"Sheet '{sheet_name}' has no data rows below the header row.",
            errors=[
                SchemaErrorDetail(
                    code="no_data_rows",
                    message="Header row found but no data rows follow it.",
                    context={"sheet": sheet_name, "headerRowIndex": header_index},
                )
            ],
        )

    logger.info(
        "Workbook sheet selected sheet=%s header_row=%s data_rows=%s columns=%s",
        sheet_name,
        header_index,
        len(data_rows),
        width,
    )
    return WorkbookTable(
        sheet_name=sheet_name,
        header_row_index=header_index,
        headers=tuple(headers),
        rows=tuple(data_rows),
    )


def find_header_row(grid: Sequence[Sequence[Cell]], *, scan_rows: int = 10) -> int:
    """
    Index of the first row among the first ``scan_rows`` that has at least
    three non-empty cells; 0 when none qualifies.
    """

    for index, row in enumerate(grid[:scan_rows]):
        filled = sum(1 for cell in row if cell_text(cell) is not None)
        if filled >= MIN_HEADER_CELLS:
            return index
    return 0


def dedupe_headers(headers: Iterable[str]) -> list[str]:
    """
    Make header names unique by suffixing repeats: ``Budget``, ``Budget (2)``.
    """

    seen: dict[str, int] = {}
    result: list[str] = []
    for header in headers:
        if not header:
            result.append(header)
            continue
        count = seen.get(header.lower(), 0) + 1
        seen[header.lower()] = count
        result.append(header if count == 1 else f"{header} ({count})")
    return result


def _select_sheet(workbook: Any, preferred_sheet: str) -> tuple[str | None, list[tuple[Any, ...]]]:
    if preferred_sheet and preferred_sheet in workbook.sheetnames:
        rows = list(workbook[preferred_sheet].iter_rows(values_only=True))
        return preferred_sheet, rows

    for name in workbook.sheetnames:
        rows = list(workbook[name].iter_rows(values_only=True))
        populated = [row for row in rows if any(value is not None for value in row)]
        widest = max((_used_width(row) for row in populated), default=0)
        if len(populated) >= 2 and widest >= 2:
            return name, rows
    return None, []


def _used_width(row: Sequence[Any]) -> int:
    width = 0
    for position, value in enumerate(row, start=1):
        if value is not None and str(value).strip():
            width = position
    return width


def _pad(row: Sequence[Cell], width: int) -> tuple[Cell, ...]:
    if len(row) >= width:
        return tuple(row)
    return tuple(row) + (EMPTY_CELL,) * (width - len(row))


def _is_blank(row: Sequence[Cell]) -> bool:
    return all(cell_text(cell) is None for cell in row)
