"""
Lightweight typing aliases used across vizgrid.

This module contains no runtime logic and is zero-IO.

Examples:
    >>> from vizgrid.core.typing import JsonDict, Rows
    >>> rows: Rows = [{"region": "north", "sales": 1}]
    >>> spec: JsonDict = {"data": {"values": list(rows)}}
    >>> len(spec["data"]["values"])
    1
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

__all__ = [
    "JsonDict",
    "Row",
    "Rows",
]

# Vega-Lite fragments and renderer state snapshots.
JsonDict = dict[str, Any]

# One record of already filtered/aggregated data.
Row = Mapping[str, Any]
Rows = Sequence[Row]
