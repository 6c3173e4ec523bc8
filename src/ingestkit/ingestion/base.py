"""
Base classes and utilities for source adapters.

Every adapter turns one descriptor (plus an optional dataset name for
sources with several datasets) into a validated uniform table.
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from ingestkit.sources.descriptor import SourceDescriptor
from ingestkit.table import UniformTable
from ingestkit.utils.logging import get_logger

log = get_logger(__name__)

D = TypeVar("D", bound=SourceDescriptor)


class SourceAdapter(ABC, Generic[D]):
    """
    Abstract base class for source adapters.

    Subclasses implement ``_read``; ``adapt`` adds logging and checks
    the result against the uniform table schema. Adapters hold no state
    and have no side effects beyond reading the source.
    """

    def dataset_names(self, descriptor: D) -> list[str]:
        """
        Names of the datasets this descriptor yields.

        Sources with a single dataset use the descriptor's name.
        """
        return [descriptor.name]

    def split(self, descriptor: D) -> list[D]:
        """
        Descriptors to register as separate data sources.

        Most sources register as one data source.
        """
        return [descriptor]

    @abstractmethod
    def _read(self, descriptor: D, dataset_name: str) -> UniformTable:
        """Read one dataset of the source. Implemented by subclasses."""
        ...

    def adapt(
        self,
        descriptor: D,
        dataset_name: str | None = None,
        *,
        validate: bool = True,
    ) -> UniformTable:
        """
        Read a dataset of the source into a uniform table.

        Args:
            descriptor: Source to read.
            dataset_name: Dataset to read; defaults to the first dataset.
            validate: Whether to check the table against its schema.

        Returns:
            The dataset as a uniform table.

        Raises:
            IngestError: If the source cannot be read.
            pandera.errors.SchemaError: If validation fails.
        """
        name = dataset_name if dataset_name is not None else self.default_dataset(descriptor)
        log.info(
            "Reading dataset",
            adapter=self.__class__.__name__,
            path=descriptor.location,
            dataset=name,
        )

        table = self._read(descriptor, name)
        log.info("Read dataset", rows=table.row_count, columns=table.column_names)

        if validate:
            table = table.validate()

        return table

    def default_dataset(self, descriptor: D) -> str:
        """Dataset read when no name is given."""
        return descriptor.name
