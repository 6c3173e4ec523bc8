"""
Descriptor construction from bare file paths.

Picks the source variant from the file extension and fills unset text
options from the engine configuration.
"""

from pathlib import Path
from typing import Any

from ingestkit.config.settings import TextDefaults
from ingestkit.errors import OpenError
from ingestkit.sources.descriptor import (
    ColumnarSource,
    RecordSource,
    RelationalSource,
    SourceDescriptor,
    SpreadsheetSource,
    TextSource,
)

EXTENSION_MAP: dict[str, type[SourceDescriptor]] = {
    ".csv": TextSource,
    ".tsv": TextSource,
    ".tab": TextSource,
    ".txt": TextSource,
    ".xlsx": SpreadsheetSource,
    ".xlsm": SpreadsheetSource,
    ".db": RelationalSource,
    ".sqlite": RelationalSource,
    ".sqlite3": RelationalSource,
    ".json": RecordSource,
    ".ndjson": RecordSource,
    ".jsonl": RecordSource,
    ".parquet": ColumnarSource,
    ".pq": ColumnarSource,
}

TAB_SEPARATED = {".tsv", ".tab"}

UNSUPPORTED_SPREADSHEETS = {
    ".xls": "legacy Excel (.xls)",
    ".ods": "OpenDocument spreadsheet (.ods)",
}


def descriptor_for_path(
    path: Path,
    defaults: TextDefaults | None = None,
    **options: Any,
) -> SourceDescriptor:
    """
    Build a descriptor for ``path`` based on its extension.

    Options that do not apply to the detected variant are ignored, so a
    host can pass one set of options for a mixed list of files. Relational
    sources without an explicit table selection import every table.

    Args:
        path: Source file.
        defaults: Text defaults; unset text options are taken from here.
        **options: Variant options (delimiter, sheets, tables, ndjson, ...).

    Returns:
        Descriptor of the detected variant.

    Raises:
        OpenError: If the extension is not recognised.
    """
    suffix = path.suffix.lower()
    if suffix in UNSUPPORTED_SPREADSHEETS:
        msg = (
            f"Unsupported file type: {UNSUPPORTED_SPREADSHEETS[suffix]} workbooks cannot be read; "
            f"save {path.name} as .xlsx and import that instead"
        )
        raise OpenError(msg)

    descriptor_type = EXTENSION_MAP.get(suffix)
    if descriptor_type is None:
        msg = f"Unsupported file type '{suffix or path.name}': {path}"
        raise OpenError(msg)

    fields = set(descriptor_type.model_fields)
    values = {k: v for k, v in options.items() if k in fields and v is not None}

    if descriptor_type is TextSource:
        defaults = defaults or TextDefaults()
        base = defaults.model_dump(include=fields)
        if suffix in TAB_SEPARATED:
            base["delimiter"] = "\t"
        values = {**base, **values}
    elif descriptor_type is RelationalSource and not values.get("tables"):
        values["all_tables"] = True

    return descriptor_type(path=path, **values)
