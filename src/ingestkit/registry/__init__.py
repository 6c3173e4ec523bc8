"""
Dataset registry: data sources, datasets and their import status.
"""

from ingestkit.registry.core import DatasetRegistry
from ingestkit.registry.models import (
    LEGAL_TRANSITIONS,
    DataSource,
    Dataset,
    DatasetStatus,
    is_legal_transition,
)

__all__ = [
    "LEGAL_TRANSITIONS",
    "DataSource",
    "Dataset",
    "DatasetRegistry",
    "DatasetStatus",
    "is_legal_transition",
]
