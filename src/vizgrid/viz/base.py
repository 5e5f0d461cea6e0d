from __future__ import annotations

from typing import Any

import polars as pl

from vizgrid.core.typing import Rows

__all__ = ["to_values", "data_length"]


def to_values(rows: pl.DataFrame | Rows | None) -> list[dict[str, Any]]:
    """Convert row data to a list of plain dicts for inline Vega-Lite ``data.values``.

    Args:
        rows: Polars DataFrame, a sequence of mappings, or None.

    Returns:
        list[dict[str, Any]]: Row dicts (a fresh list; input is never mutated).
    """
    if rows is None:
        return []
    if isinstance(rows, pl.DataFrame):
        return rows.to_dicts()
    return [dict(r) for r in rows]


def data_length(rows: pl.DataFrame | Rows | None) -> int:
    """Number of rows, without materializing dicts for DataFrames."""
    if rows is None:
        return 0
    if isinstance(rows, pl.DataFrame):
        return rows.height
    return len(rows)
