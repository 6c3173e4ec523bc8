"""
Column name normalization.

Guarantees the unique, non-blank column names every uniform table needs,
whatever the source put in its header.
"""

from collections.abc import Iterable

from ingestkit.utils.logging import get_logger

log = get_logger(__name__)


def placeholder_name(position: int) -> str:
    """Name for the column at 1-based ``position`` when the source has none."""
    return f"column_{position}"


def unique_column_names(raw_names: Iterable[object]) -> list[str]:
    """
    Turn header cells into unique column names.

    Names are trimmed; blank cells become ``column_N`` (1-based position).
    A repeated name gets the first free suffix ``_2``, ``_3``, ... in order
    of appearance, so ``["Name", "Name"]`` becomes ``["Name", "Name_2"]``.

    Args:
        raw_names: Header cells in column order.

    Returns:
        Column names, one per header cell.
    """
    used: set[str] = set()
    names: list[str] = []
    renamed: list[str] = []

    for idx, raw in enumerate(raw_names):
        name = "" if raw is None else str(raw).strip()
        if not name:
            name = placeholder_name(idx + 1)
        if name in used:
            base = name
            suffix = 2
            while f"{base}_{suffix}" in used:
                suffix += 1
            name = f"{base}_{suffix}"
            renamed.append(name)
        used.add(name)
        names.append(name)

    if renamed:
        log.debug("Disambiguated duplicate column names", renamed=renamed)

    return names
