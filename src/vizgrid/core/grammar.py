"""
Canonical vizgrid grammar and helpers.

Defines the closed vocabularies shared by the compiler and the render layer: field
roles, semantic encoding types, stacking, layout and geometry modes, the cross-filter
selection kinds, and the renderer events the orchestrator listens to.

Design principles
-----------------
1) One naming standard:
   - Enum classes: PascalCase
   - Enum member names: UPPER_SNAKE (Python constants)
   - Enum serialized values: lower_snake

2) Closed selection variant:
   - Cross-filter signals are modeled by SelectionKind {BRUSH, POINT}. Code never
     compares raw signal names; it maps a renderer dataset name back to a kind with
     SelectionKind.from_store and handles both members exhaustively.

Examples
--------
>>> from vizgrid.core.grammar import SelectionKind, analytic_type_from_value, AnalyticType
>>> SelectionKind.BRUSH.signal
'__gw_brush__'
>>> SelectionKind.from_store("__gw_point___store") is SelectionKind.POINT
True
>>> SelectionKind.from_store("source_0") is None
True
>>> analytic_type_from_value("MEASURE") is AnalyticType.MEASURE
True
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from enum import Enum
from typing import Final

from .constants import BRUSH_SIGNAL_NAME, POINT_SIGNAL_NAME, STORE_SUFFIX

__all__ = [
    "AnalyticType",
    "SemanticType",
    "StackMode",
    "LayoutMode",
    "GeomType",
    "SelectionKind",
    "ViewEventType",
    # helpers/validators
    "is_lower_snake",
    "analytic_type_from_value",
    "geom_type_from_value",
    "ensure_all_enum_values_lower_snake",
]


class AnalyticType(Enum):
    """
    Analytic role of a field.

    Dimensions subdivide views (repeat or facet); measures are plotted, and when the
    grid planner finds measures on an axis each measure gets its own view.
    """

    DIMENSION = "dimension"
    MEASURE = "measure"


class SemanticType(Enum):
    """Vega-Lite encoding type used when a field is bound to a channel."""

    NOMINAL = "nominal"
    ORDINAL = "ordinal"
    QUANTITATIVE = "quantitative"
    TEMPORAL = "temporal"


class StackMode(Enum):
    """
    Stacking applied to the measure axis.

    Notes:
      Maps onto Vega-Lite ``stack``: stack -> "zero", normalize -> "normalize",
      center -> "center", none -> null.
    """

    STACK = "stack"
    NORMALIZE = "normalize"
    CENTER = "center"
    NONE = "none"

    def vega_value(self) -> str | None:
        return {
            StackMode.STACK: "zero",
            StackMode.NORMALIZE: "normalize",
            StackMode.CENTER: "center",
            StackMode.NONE: None,
        }[self]


class LayoutMode(Enum):
    """Sizing policy: ``auto`` lets the renderer size views, ``fixed`` uses explicit pixels."""

    AUTO = "auto"
    FIXED = "fixed"


class GeomType(Enum):
    """Mark geometry requested by the user; ``auto`` lets the single-view builder decide."""

    AUTO = "auto"
    BAR = "bar"
    LINE = "line"
    AREA = "area"
    TRAIL = "trail"
    POINT = "point"
    CIRCLE = "circle"
    TICK = "tick"
    RECT = "rect"
    ARC = "arc"
    TEXT = "text"
    BOXPLOT = "boxplot"


class SelectionKind(Enum):
    """
    Cross-filter selection tapped on every repeated view.

    Each member owns the renderer signal it fires on and the dataset holding its live
    selection state (``<signal>_store``).
    """

    BRUSH = "brush"
    POINT = "point"

    @property
    def signal(self) -> str:
        return BRUSH_SIGNAL_NAME if self is SelectionKind.BRUSH else POINT_SIGNAL_NAME

    @property
    def store(self) -> str:
        return f"{self.signal}{STORE_SUFFIX}"

    @classmethod
    def from_signal(cls, name: str) -> SelectionKind | None:
        for kind in cls:
            if kind.signal == name:
                return kind
        return None

    @classmethod
    def from_store(cls, name: str) -> SelectionKind | None:
        for kind in cls:
            if kind.store == name:
                return kind
        return None


class ViewEventType(Enum):
    """Renderer scenegraph events the orchestrator subscribes to."""

    CLICK = "click"
    MOUSEOVER = "mouseover"


# ============================================================================
# HELPERS
# ============================================================================

_LOWER_SNAKE_RE: Final[re.Pattern[str]] = re.compile(r"^[a-z0-9]+(?:_[a-z0-9]+)*$")


def is_lower_snake(value: str) -> bool:
    """
    Check whether a string is lower_snake.

    Examples:
      >>> is_lower_snake("dimension")
      True
      >>> is_lower_snake("Dimension")
      False
    """
    return bool(_LOWER_SNAKE_RE.match(value or ""))


def analytic_type_from_value(s: str) -> AnalyticType:
    """
    Parse a free-form analytic type token.

    Args:
      s (str): Candidate token (case-insensitive).

    Returns:
      AnalyticType: Parsed role.

    Raises:
      ValueError: If the token is not a known analytic type.
    """
    s_l = (s or "").strip().lower()
    allowed = {a.value for a in AnalyticType}
    if s_l not in allowed:
        raise ValueError(f"analytic_type must be one of {sorted(allowed)} (got {s!r})")
    return AnalyticType(s_l)


def geom_type_from_value(s: str) -> GeomType:
    """
    Parse a free-form geometry token.

    Raises:
      ValueError: If the token is not a known geometry.
    """
    s_l = (s or "").strip().lower()
    allowed = {g.value for g in GeomType}
    if s_l not in allowed:
        raise ValueError(f"geom_type must be one of {sorted(allowed)} (got {s!r})")
    return GeomType(s_l)


def ensure_all_enum_values_lower_snake(enums: Iterable[type[Enum]]) -> None:
    """
    Assert that every enum member's value is lower_snake.

    Raises:
      AssertionError: If any enum member has a non-lower_snake value.
    """
    for E in enums:
        for m in E:
            if not is_lower_snake(m.value):
                raise AssertionError(
                    f"{E.__name__}.{m.name} has non-lower_snake value: {m.value!r}"
                )
