"""
Dataset and data source entities with the dataset status state machine.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum

from ingestkit.sources.descriptor import SourceDescriptor, SourceVariant


class DatasetStatus(str, Enum):
    """Import status of a dataset."""

    PENDING = "pending"
    PROCESSING = "processing"
    IMPORTED = "imported"
    FAILED = "failed"

    @property
    def display_name(self) -> str:
        """Capitalised status name."""
        return self.value.capitalize()

    @property
    def is_terminal(self) -> bool:
        """Whether the status ends an import cycle."""
        return self in (DatasetStatus.IMPORTED, DatasetStatus.FAILED)


# Terminal states only leave through an explicit re-import.
LEGAL_TRANSITIONS: dict[DatasetStatus, frozenset[DatasetStatus]] = {
    DatasetStatus.PENDING: frozenset({DatasetStatus.PROCESSING}),
    DatasetStatus.PROCESSING: frozenset({DatasetStatus.IMPORTED, DatasetStatus.FAILED}),
    DatasetStatus.IMPORTED: frozenset({DatasetStatus.PENDING}),
    DatasetStatus.FAILED: frozenset({DatasetStatus.PENDING}),
}


def is_legal_transition(current: DatasetStatus, new: DatasetStatus) -> bool:
    """Whether a dataset may move from ``current`` to ``new``."""
    return new in LEGAL_TRANSITIONS[current]


@dataclass
class Dataset:
    """One importable unit of a data source (a file, worksheet or table)."""

    name: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    alias: str | None = None
    row_count: int = 0
    column_count: int = 0
    status: DatasetStatus = DatasetStatus.PENDING
    error_message: str | None = None
    warning: str | None = None

    @property
    def display_name(self) -> str:
        """Alias if set, else the dataset name."""
        return self.alias or self.name


@dataclass
class DataSource:
    """
    A source container and the datasets it yields.

    The aggregate counts are derived from ``datasets`` and recomputed by
    ``update_counts`` after every mutation.
    """

    id: int
    descriptor: SourceDescriptor
    datasets: list[Dataset]
    total: int = 0
    imported_count: int = 0
    failed_count: int = 0

    def __post_init__(self) -> None:
        self.update_counts()

    @property
    def name(self) -> str:
        """Display name of the source."""
        return self.descriptor.name

    @property
    def location(self) -> str:
        """Location of the source."""
        return self.descriptor.location

    @property
    def variant(self) -> SourceVariant:
        """Kind of source."""
        return self.descriptor.variant

    def dataset(self, name: str) -> Dataset | None:
        """Dataset called ``name``, if any."""
        return next((d for d in self.datasets if d.name == name), None)

    def update_counts(self) -> None:
        """Recompute the aggregate counts from the datasets."""
        self.total = len(self.datasets)
        self.imported_count = sum(d.status is DatasetStatus.IMPORTED for d in self.datasets)
        self.failed_count = sum(d.status is DatasetStatus.FAILED for d in self.datasets)
