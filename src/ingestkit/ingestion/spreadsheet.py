"""
Spreadsheet ingestion.

Reads worksheets with openpyxl, renders every cell as text, pads short
rows and takes the first row as the header.
"""

import zipfile
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Any

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.workbook.workbook import Workbook

from ingestkit.errors import OpenError
from ingestkit.ingestion.base import SourceAdapter
from ingestkit.normalization.columns import unique_column_names
from ingestkit.schemas.uniform import ColumnType
from ingestkit.sources.descriptor import SpreadsheetSource
from ingestkit.table import UniformTable
from ingestkit.utils.logging import get_logger

log = get_logger(__name__)

SECONDS_PER_DAY = 86_400


def _number_text(value: float) -> str:
    """Integral floats without a trailing '.0'."""
    if value.is_integer():
        return str(int(value))
    return repr(value)


def cell_text(value: Any) -> str:
    """
    Text representation of a worksheet cell.

    Dates and times use ISO text, durations fractional days, booleans
    ``true``/``false``, and empty cells the empty string.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _number_text(value)
    if isinstance(value, datetime | date | time):
        return value.isoformat()
    if isinstance(value, timedelta):
        return _number_text(value.total_seconds() / SECONDS_PER_DAY)
    return str(value)


@contextmanager
def open_workbook(path: Path) -> Iterator[Workbook]:
    """
    Open a workbook read-only with cached cell values.

    Raises:
        OpenError: If the file is missing or not a readable workbook.
    """
    if not path.exists():
        msg = f"Excel file not found: {path}"
        raise OpenError(msg)

    try:
        workbook = openpyxl.load_workbook(path, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
        msg = f"Failed to open Excel file '{path}': {e}"
        raise OpenError(msg) from e

    try:
        yield workbook
    finally:
        workbook.close()


def grid_to_table(rows: list[list[str]]) -> UniformTable:
    """
    Build a text table from a grid of cell texts.

    Short rows are padded to the widest row; the first row is the header.
    A grid without any non-empty cell gives an empty table.
    """
    if not any(cell for row in rows for cell in row):
        return UniformTable.from_columns([])

    width = max(len(row) for row in rows)
    padded = [row + [""] * (width - len(row)) for row in rows]

    names = unique_column_names(padded[0])
    body = padded[1:]
    columns = [
        (name, ColumnType.TEXT, [row[idx] for row in body])
        for idx, name in enumerate(names)
    ]
    return UniformTable.from_columns(columns)


class SpreadsheetAdapter(SourceAdapter[SpreadsheetSource]):
    """Adapter for Excel workbooks, one dataset per worksheet."""

    def dataset_names(self, descriptor: SpreadsheetSource) -> list[str]:
        """Selected worksheets, or every worksheet of the workbook."""
        if descriptor.sheets:
            return list(descriptor.sheets)
        with open_workbook(descriptor.path) as workbook:
            return list(workbook.sheetnames)

    def default_dataset(self, descriptor: SpreadsheetSource) -> str:
        """The first selected worksheet, else the workbook's first worksheet."""
        return self.dataset_names(descriptor)[0]

    def _read(self, descriptor: SpreadsheetSource, dataset_name: str) -> UniformTable:
        """Read one worksheet as a text table."""
        with open_workbook(descriptor.path) as workbook:
            if dataset_name not in workbook.sheetnames:
                msg = f"Failed to read worksheet '{dataset_name}': worksheet not found"
                raise OpenError(msg)

            sheet = workbook[dataset_name]
            rows = [[cell_text(v) for v in row] for row in sheet.iter_rows(values_only=True)]

        log.debug("Read worksheet", sheet=dataset_name, rows=len(rows))
        return grid_to_table(rows)
