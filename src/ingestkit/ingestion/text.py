"""
Delimited text ingestion.

Reads every cell as raw text with pandas, infers a schema from a sample
of leading rows and materializes the table through the coercion retry
controller.
"""

import csv
from pathlib import Path
from typing import Any

import pandas as pd

from ingestkit.errors import OpenError
from ingestkit.ingestion.base import SourceAdapter
from ingestkit.ingestion.coercion import materialize_with_coercion
from ingestkit.ingestion.inference import infer_schema, materialize
from ingestkit.normalization.columns import placeholder_name, unique_column_names
from ingestkit.sources.descriptor import TextSource
from ingestkit.table import UniformTable
from ingestkit.utils.logging import get_logger

log = get_logger(__name__)


def _read_options(descriptor: TextSource) -> dict[str, Any]:
    """Keyword arguments for ``pandas.read_csv`` from a descriptor."""
    options: dict[str, Any] = {
        "sep": descriptor.delimiter,
        "header": None,
        "dtype": str,
        "keep_default_na": False,
        "na_filter": False,
        "skip_blank_lines": True,
        "encoding": descriptor.encoding,
    }
    if descriptor.quote_char is None:
        options["quoting"] = csv.QUOTE_NONE
    else:
        options["quotechar"] = descriptor.quote_char
    if descriptor.escape_char is not None:
        options["escapechar"] = descriptor.escape_char
    return options


def read_raw_text(path: Path, descriptor: TextSource) -> pd.DataFrame:
    """
    Read a delimited file as raw text cells.

    Missing cells are empty strings. Column names come from the header row
    (made unique) or are ``column_N`` placeholders.

    Raises:
        OpenError: If the file cannot be opened or parsed.
    """
    if not path.exists():
        msg = f"Text file not found: {path}"
        raise OpenError(msg)

    log.debug("Reading delimited file", path=str(path))

    try:
        frame = pd.read_csv(path, **_read_options(descriptor))
    except pd.errors.EmptyDataError:
        return pd.DataFrame()
    except (pd.errors.ParserError, UnicodeDecodeError, OSError, ValueError) as e:
        msg = f"Failed to parse CSV file '{path}': {e}"
        raise OpenError(msg) from e

    frame = frame.fillna("")

    if descriptor.has_header:
        header = frame.iloc[0].tolist() if len(frame) > 0 else []
        frame = frame.iloc[1:].reset_index(drop=True)
        frame.columns = unique_column_names(header)
    else:
        frame.columns = [placeholder_name(i + 1) for i in range(frame.shape[1])]

    return frame


def read_raw_files(paths: list[Path], descriptor: TextSource) -> pd.DataFrame:
    """Read one or more delimited files and stack them by column name."""
    frames = [read_raw_text(path, descriptor) for path in paths]
    if len(frames) == 1:
        return frames[0]
    combined = pd.concat(frames, ignore_index=True, sort=False)
    return combined.fillna("")


class TextAdapter(SourceAdapter[TextSource]):
    """Adapter for delimited text files."""

    def dataset_names(self, descriptor: TextSource) -> list[str]:
        """One dataset per file, or a single dataset for merged imports."""
        return list(descriptor.dataset_paths())

    def _read(self, descriptor: TextSource, dataset_name: str) -> UniformTable:
        """Read and type one dataset of a delimited text source."""
        paths = descriptor.dataset_paths().get(dataset_name)
        if paths is None:
            msg = f"Unknown dataset '{dataset_name}' for text source {descriptor.path}"
            raise OpenError(msg)

        raw = read_raw_files(paths, descriptor)
        schema = infer_schema(raw, descriptor.sample_rows)
        log.debug(
            "Inferred schema from sample",
            sample_rows=min(descriptor.sample_rows, len(raw)),
            schema={k: v.value for k, v in schema.items()},
        )

        return materialize_with_coercion(
            lambda overrides: materialize(raw, schema, overrides),
            text_columns=descriptor.text_columns,
            max_attempts=descriptor.max_coercion_attempts,
        )
