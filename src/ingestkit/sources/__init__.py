"""
Source descriptors and their construction from file paths.
"""

from ingestkit.sources.descriptor import (
    ColumnarSource,
    RecordSource,
    RelationalSource,
    SourceDescriptor,
    SourceVariant,
    SpreadsheetSource,
    TextSource,
)
from ingestkit.sources.detect import descriptor_for_path

__all__ = [
    "ColumnarSource",
    "RecordSource",
    "RelationalSource",
    "SourceDescriptor",
    "SourceVariant",
    "SpreadsheetSource",
    "TextSource",
    "descriptor_for_path",
]
