"""
Source adapters turning descriptors into uniform tables.

All reading of external sources happens through this module. Each
descriptor type has exactly one adapter; ``adapter_for`` resolves it.
"""

from ingestkit.ingestion.base import SourceAdapter
from ingestkit.ingestion.columnar import ColumnarAdapter
from ingestkit.ingestion.records import RecordAdapter
from ingestkit.ingestion.relational import RelationalAdapter
from ingestkit.ingestion.spreadsheet import SpreadsheetAdapter
from ingestkit.ingestion.text import TextAdapter
from ingestkit.sources.descriptor import (
    ColumnarSource,
    RecordSource,
    RelationalSource,
    SourceDescriptor,
    SpreadsheetSource,
    TextSource,
)

ADAPTERS: dict[type[SourceDescriptor], SourceAdapter] = {
    TextSource: TextAdapter(),
    SpreadsheetSource: SpreadsheetAdapter(),
    RelationalSource: RelationalAdapter(),
    RecordSource: RecordAdapter(),
    ColumnarSource: ColumnarAdapter(),
}


def adapter_for(descriptor: SourceDescriptor) -> SourceAdapter:
    """
    Adapter responsible for a descriptor.

    Raises:
        TypeError: If no adapter is registered for the descriptor's type.
    """
    for descriptor_type in type(descriptor).__mro__:
        adapter = ADAPTERS.get(descriptor_type)
        if adapter is not None:
            return adapter
    msg = f"No adapter registered for {type(descriptor).__name__}"
    raise TypeError(msg)


__all__ = [
    "ADAPTERS",
    "ColumnarAdapter",
    "RecordAdapter",
    "RelationalAdapter",
    "SourceAdapter",
    "SpreadsheetAdapter",
    "TextAdapter",
    "adapter_for",
]
