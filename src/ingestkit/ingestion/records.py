"""
Structured record (JSON / NDJSON) ingestion.

The column set is the sorted union of keys over all records. Every
value is rendered as text; a record without a key yields an empty
string for that column.
"""

import json
from pathlib import Path
from typing import Any

from ingestkit.errors import FormatError, OpenError
from ingestkit.ingestion.base import SourceAdapter
from ingestkit.schemas.uniform import ColumnType
from ingestkit.sources.descriptor import RecordSource
from ingestkit.table import UniformTable
from ingestkit.utils.logging import get_logger

log = get_logger(__name__)

Record = dict[str, Any]


def value_text(value: Any) -> str:
    """
    Text form of a JSON value.

    Null is empty, booleans are ``true``/``false``, numbers use their
    canonical text and nested values are compact JSON.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, int | float):
        return str(value)
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def resolve_record_path(data: Any, record_path: str | None) -> Any:
    """
    Follow a dot-separated path into nested objects and arrays.

    Numeric segments index into arrays.

    Raises:
        FormatError: If a segment does not exist.
    """
    if not record_path or not record_path.strip():
        return data
    for key in record_path.split("."):
        key = key.strip()
        if not key:
            continue
        if isinstance(data, list):
            try:
                data = data[int(key)]
            except (ValueError, IndexError):
                msg = f"Record path '{record_path}' not found: no element '{key}'"
                raise FormatError(msg) from None
        elif isinstance(data, dict) and key in data:
            data = data[key]
        else:
            msg = f"Record path '{record_path}' not found: no key '{key}'"
            raise FormatError(msg)
    return data


def records_from_value(value: Any, where: str) -> list[Record]:
    """
    Records held by a JSON value: an object or an array of objects.

    Raises:
        FormatError: For any other shape.
    """
    if isinstance(value, dict):
        return [value]
    if isinstance(value, list):
        if not all(isinstance(item, dict) for item in value):
            msg = f"JSON array elements must be objects ({where})"
            raise FormatError(msg)
        return value
    msg = f"Top-level JSON must be object or array of objects ({where})"
    raise FormatError(msg)


def read_ndjson(path: Path, encoding: str, record_path: str | None) -> list[Record]:
    """Read one JSON object per line, skipping blank lines."""
    records: list[Record] = []
    try:
        with path.open(encoding=encoding) as f:
            for line_no, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    value = json.loads(line)
                except json.JSONDecodeError as e:
                    msg = f"Failed to parse NDJSON line {line_no} as JSON object: {e}"
                    raise OpenError(msg) from e
                if record_path:
                    value = resolve_record_path(value, record_path)
                    records.extend(records_from_value(value, f"line {line_no}"))
                elif isinstance(value, dict):
                    records.append(value)
                else:
                    msg = f"NDJSON line {line_no} is not a JSON object"
                    raise FormatError(msg)
    except (OSError, UnicodeDecodeError) as e:
        msg = f"Failed to read NDJSON file '{path}': {e}"
        raise OpenError(msg) from e
    return records


def read_json_document(path: Path, encoding: str, record_path: str | None) -> list[Record]:
    """Read a JSON document holding an object or an array of objects."""
    try:
        with path.open(encoding=encoding) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        msg = f"Failed to parse JSON '{path}': {e}"
        raise OpenError(msg) from e
    except (OSError, UnicodeDecodeError) as e:
        msg = f"Failed to read JSON file '{path}': {e}"
        raise OpenError(msg) from e

    value = resolve_record_path(data, record_path)
    where = f"path '{record_path}'" if record_path else "document root"
    return records_from_value(value, where)


def records_to_table(records: list[Record]) -> UniformTable:
    """Build a text table from records over the sorted union of their keys."""
    keys = sorted({key for record in records for key in record})
    columns = [
        (key, ColumnType.TEXT, [value_text(record.get(key)) for record in records])
        for key in keys
    ]
    return UniformTable.from_columns(columns)


class RecordAdapter(SourceAdapter[RecordSource]):
    """Adapter for JSON documents and NDJSON streams."""

    def dataset_names(self, descriptor: RecordSource) -> list[str]:
        """One dataset per file, or a single dataset for merged imports."""
        return list(descriptor.dataset_paths())

    def _read(self, descriptor: RecordSource, dataset_name: str) -> UniformTable:
        """Read the records of one dataset."""
        paths = descriptor.dataset_paths().get(dataset_name)
        if paths is None:
            msg = f"Unknown dataset '{dataset_name}' for JSON source {descriptor.path}"
            raise OpenError(msg)

        records: list[Record] = []
        for path in paths:
            if not path.exists():
                msg = f"JSON file not found: {path}"
                raise OpenError(msg)
            if descriptor.is_ndjson:
                records.extend(read_ndjson(path, descriptor.encoding, descriptor.record_path))
            else:
                records.extend(
                    read_json_document(path, descriptor.encoding, descriptor.record_path)
                )

        log.debug("Parsed records", records=len(records), files=len(paths))
        return records_to_table(records)
