"""
Relational type promotion.

Each column's type is widened monotonically as cells are scanned:
integer to float on the first real value, anything to text on the first
text or blob value. Integer columns holding only 0 and 1 become boolean.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ingestkit.schemas.uniform import ColumnType


class CellClass(Enum):
    """Storage class of a relational cell."""

    NULL = "null"
    INTEGER = "integer"
    REAL = "real"
    TEXT = "text"
    BLOB = "blob"


def classify_cell(value: Any) -> CellClass:
    """Storage class of a value returned by the database driver."""
    if value is None:
        return CellClass.NULL
    if isinstance(value, bool | int):
        return CellClass.INTEGER
    if isinstance(value, float):
        return CellClass.REAL
    if isinstance(value, bytes | bytearray | memoryview):
        return CellClass.BLOB
    return CellClass.TEXT


@dataclass
class ColumnVerdict:
    """
    Running type verdict of one column.

    ``kind`` is None while no non-null cell has been seen.
    """

    kind: ColumnType | None = None
    boolean_candidate: bool = True

    def observe(self, cell: CellClass, value: Any) -> None:
        """Update the verdict with one cell."""
        if cell is CellClass.NULL or self.kind is ColumnType.TEXT:
            return
        if cell is CellClass.INTEGER:
            if value not in (0, 1):
                self.boolean_candidate = False
            if self.kind is None:
                self.kind = ColumnType.INTEGER
        elif cell is CellClass.REAL:
            self.boolean_candidate = False
            self.kind = ColumnType.FLOAT
        else:
            self.boolean_candidate = False
            self.kind = ColumnType.TEXT

    def resolve(self) -> ColumnType:
        """Final column type."""
        if self.kind is None:
            return ColumnType.TEXT
        if self.kind is ColumnType.INTEGER and self.boolean_candidate:
            return ColumnType.BOOLEAN
        return self.kind


def cell_to_text(value: Any) -> str:
    """Text form of a relational cell; blobs render as hex of their bytes."""
    if isinstance(value, bytes | bytearray | memoryview):
        return bytes(value).hex()
    if isinstance(value, float):
        return repr(value)
    return str(value)


def _materialize_cell(value: Any, column_type: ColumnType) -> Any:
    if value is None:
        return None
    if column_type is ColumnType.BOOLEAN:
        return bool(value)
    if column_type is ColumnType.INTEGER:
        return int(value)
    if column_type is ColumnType.FLOAT:
        return float(value)
    return cell_to_text(value)


def promote_column(values: Iterable[Any]) -> tuple[ColumnType, list[Any]]:
    """
    Resolve the type of a column and convert its values.

    Args:
        values: Cells of the column as returned by the driver.

    Returns:
        Resolved type and the converted values (None for nulls).
    """
    cells = list(values)
    verdict = ColumnVerdict()
    for value in cells:
        verdict.observe(classify_cell(value), value)
    column_type = verdict.resolve()
    return column_type, [_materialize_cell(v, column_type) for v in cells]
