"""
Source descriptors: immutable descriptions of one import.

Each variant carries the location of the source and the options its
adapter needs. A descriptor may fan out into several datasets (one per
worksheet, per table, or per file of an unmerged multi-file import).
"""

from enum import Enum
from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ingestkit.normalization.columns import unique_column_names


class SourceVariant(str, Enum):
    """Kind of source a descriptor describes."""

    TEXT = "text"
    SPREADSHEET = "spreadsheet"
    RELATIONAL = "relational"
    RECORD = "record"
    COLUMNAR = "columnar"

    @property
    def display_name(self) -> str:
        """Human-readable name of the source kind."""
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    SourceVariant.TEXT: "Text File",
    SourceVariant.SPREADSHEET: "Excel File",
    SourceVariant.RELATIONAL: "SQLite Database",
    SourceVariant.RECORD: "JSON File",
    SourceVariant.COLUMNAR: "Parquet File",
}


class SourceDescriptor(BaseModel):
    """Common fields of all source descriptors."""

    model_config = ConfigDict(frozen=True)

    variant: ClassVar[SourceVariant]

    path: Path = Field(description="Location of the source file")

    @property
    def name(self) -> str:
        """Display name of the source (its file name)."""
        return self.path.name or "Unknown"

    @property
    def location(self) -> str:
        """Source location as text."""
        return str(self.path)


class _MultiFileSource(SourceDescriptor):
    """Descriptor for file formats that accept extra files of the same shape."""

    additional_paths: tuple[Path, ...] = Field(
        default=(), description="Further files read with the same options"
    )
    merge: bool = Field(
        default=False,
        description="Stack all files into one dataset instead of one dataset per file",
    )

    def dataset_paths(self) -> dict[str, list[Path]]:
        """
        Files read for each dataset of this source.

        A merged import yields one dataset named after the primary file that
        reads every file; otherwise each file is its own dataset, named after
        the file (disambiguated with ``_2``, ``_3``, ... on clashes).
        """
        paths = [self.path, *self.additional_paths]
        if self.merge:
            return {self.name: paths}
        names = unique_column_names(p.name or "Unknown" for p in paths)
        return {name: [p] for name, p in zip(names, paths, strict=True)}


class TextSource(_MultiFileSource):
    """Delimited text file (CSV, TSV, ...)."""

    variant: ClassVar[SourceVariant] = SourceVariant.TEXT

    delimiter: str = Field(default=",", description="Field delimiter")
    has_header: bool = Field(default=True, description="First row holds column names")
    quote_char: str | None = Field(default='"', description="Quote character, None disables quoting")
    escape_char: str | None = Field(default="\\", description="Escape character")
    encoding: str = Field(default="utf-8", description="Text encoding")
    text_columns: frozenset[str] = Field(
        default=frozenset(), description="Columns read as text without inference"
    )
    sample_rows: int = Field(default=100_000, ge=1, description="Rows used for type inference")
    max_coercion_attempts: int = Field(default=256, ge=1, description="Coercion retry bound")

    @field_validator("delimiter")
    @classmethod
    def validate_delimiter(cls, v: str) -> str:
        """Ensure the delimiter is a single character."""
        if len(v) != 1:
            msg = f"delimiter must be a single character, got: {v!r}"
            raise ValueError(msg)
        return v

    @field_validator("quote_char", "escape_char")
    @classmethod
    def validate_single_char(cls, v: str | None) -> str | None:
        """Ensure quote and escape characters are single characters."""
        if v is not None and len(v) != 1:
            msg = f"must be a single character, got: {v!r}"
            raise ValueError(msg)
        return v


class SpreadsheetSource(SourceDescriptor):
    """Excel workbook; each selected worksheet is a dataset."""

    variant: ClassVar[SourceVariant] = SourceVariant.SPREADSHEET

    sheets: tuple[str, ...] = Field(
        default=(), description="Worksheets to import; empty imports every worksheet"
    )

    @field_validator("sheets")
    @classmethod
    def dedupe_sheets(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Drop repeated worksheet names, keeping the first occurrence."""
        return tuple(dict.fromkeys(v))


class RelationalSource(SourceDescriptor):
    """SQLite database; each selected table is a dataset."""

    variant: ClassVar[SourceVariant] = SourceVariant.RELATIONAL

    tables: tuple[str, ...] = Field(default=(), description="Tables to import")
    all_tables: bool = Field(default=False, description="Import every user table")

    @field_validator("tables")
    @classmethod
    def dedupe_tables(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Drop repeated table names, keeping the first occurrence."""
        return tuple(dict.fromkeys(v))

    @model_validator(mode="after")
    def validate_selection(self) -> "RelationalSource":
        """Ensure at least one table is selected."""
        if not self.all_tables and not self.tables:
            msg = "Select at least one table or set all_tables"
            raise ValueError(msg)
        return self


class RecordSource(_MultiFileSource):
    """JSON document or NDJSON stream of records."""

    variant: ClassVar[SourceVariant] = SourceVariant.RECORD

    ndjson: bool | None = Field(
        default=None,
        description="One object per line; None decides from the file extension",
    )
    record_path: str | None = Field(
        default=None,
        description="Dot-separated path to the records inside the document (e.g. 'data.items')",
    )
    encoding: str = Field(default="utf-8", description="Text encoding")

    @property
    def is_ndjson(self) -> bool:
        """Whether the file is read line by line."""
        if self.ndjson is not None:
            return self.ndjson
        return self.path.suffix.lower() in {".ndjson", ".jsonl"}


class ColumnarSource(SourceDescriptor):
    """Parquet file whose own schema is trusted."""

    variant: ClassVar[SourceVariant] = SourceVariant.COLUMNAR
