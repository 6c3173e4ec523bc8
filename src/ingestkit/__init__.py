"""
Ingestkit: uniform tabular ingestion for heterogeneous data sources.

This package turns delimited text, spreadsheets, SQLite databases,
JSON/NDJSON record files and Parquet files into one typed table shape,
and schedules many imports cooperatively from a host loop.
"""

from importlib.metadata import version

__version__ = version("ingestkit")

__all__ = ["__version__"]
