"""
View grid planning.

Decides how many views a channel assignment needs and which fields drive them:

- An axis carrying measures repeats over those measures (one view per measure).
- An axis with only dimensions "repeats" over its last dimension alone, so it never
  adds views; that dimension is bound as the view's x/y field.
- Facet fields are every dimension but the last on an axis. The innermost of those
  (last dimension among all-but-the-last field) is bound into each view's row/column
  channel, subdividing one view into panels instead of creating separate views.
- An axis with no fields contributes exactly one view.

The plan is a pure derivation of the assignment and is recomputed on every render cycle.
"""

from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass

from vizgrid.core.constants import THROTTLE_DIVISOR
from vizgrid.core.schema import ChannelAssignment, FieldDescriptor

__all__ = ["GridPlan", "plan_grid", "throttle_interval_ms"]


@dataclass(frozen=True)
class GridPlan:
    """Derived view grid for one channel assignment.

    Attributes:
        row_fields: Fields repeated down the rows (measures, else the last dimension).
        col_fields: Fields repeated across the columns.
        row_facet_fields: All row dimensions except the last one.
        col_facet_fields: All column dimensions except the last one.
        row_facet: Innermost row facet bound into each view, if any.
        col_facet: Innermost column facet bound into each view, if any.
        x_field: Column field bound to x when the grid holds a single view.
        y_field: Row field bound to y when the grid holds a single view.
    """

    row_fields: tuple[FieldDescriptor, ...]
    col_fields: tuple[FieldDescriptor, ...]
    row_facet_fields: tuple[FieldDescriptor, ...] = ()
    col_facet_fields: tuple[FieldDescriptor, ...] = ()
    row_facet: FieldDescriptor | None = None
    col_facet: FieldDescriptor | None = None
    x_field: FieldDescriptor | None = None
    y_field: FieldDescriptor | None = None

    @property
    def row_count(self) -> int:
        return max(1, len(self.row_fields))

    @property
    def col_count(self) -> int:
        return max(1, len(self.col_fields))

    @property
    def cell_count(self) -> int:
        return self.row_count * self.col_count

    @property
    def is_repeated(self) -> bool:
        return len(self.row_fields) > 1 or len(self.col_fields) > 1

    @property
    def has_facet(self) -> bool:
        return self.row_facet is not None or self.col_facet is not None

    def cells(self) -> Iterator[tuple[int, int, int]]:
        """Yield ``(view_index, i, j)`` in row-major order."""
        index = 0
        for i in range(self.row_count):
            for j in range(self.col_count):
                yield index, i, j
                index += 1

    def row_field_at(self, i: int) -> FieldDescriptor | None:
        return self.row_fields[i] if i < len(self.row_fields) else None

    def col_field_at(self, j: int) -> FieldDescriptor | None:
        return self.col_fields[j] if j < len(self.col_fields) else None


def _repeat_fields(axis: tuple[FieldDescriptor, ...]) -> tuple[FieldDescriptor, ...]:
    measures = tuple(f for f in axis if f.is_measure)
    if measures:
        return measures
    dims = tuple(f for f in axis if f.is_dimension)
    return dims[-1:]


def _facet_fields(axis: tuple[FieldDescriptor, ...]) -> tuple[FieldDescriptor, ...]:
    dims = tuple(f for f in axis if f.is_dimension)
    return dims[:-1]


def _innermost_facet(axis: tuple[FieldDescriptor, ...]) -> FieldDescriptor | None:
    leading_dims = [f for f in axis[:-1] if f.is_dimension]
    return leading_dims[-1] if leading_dims else None


def plan_grid(assignment: ChannelAssignment) -> GridPlan:
    """Plan the view grid for a channel assignment.

    Examples:
        >>> from vizgrid.core.schema import ChannelAssignment, FieldDescriptor
        >>> m = lambda fid: FieldDescriptor(fid=fid, analytic_type="measure")
        >>> plan = plan_grid(ChannelAssignment(columns=(m("a"), m("b"), m("c"))))
        >>> (plan.row_count, plan.col_count)
        (1, 3)
    """
    rows = assignment.rows
    cols = assignment.columns
    return GridPlan(
        row_fields=_repeat_fields(rows),
        col_fields=_repeat_fields(cols),
        row_facet_fields=_facet_fields(rows),
        col_facet_fields=_facet_fields(cols),
        row_facet=_innermost_facet(rows),
        col_facet=_innermost_facet(cols),
        x_field=cols[-1] if cols else None,
        y_field=rows[-1] if rows else None,
    )


def throttle_interval_ms(
    plan: GridPlan, data_length: int, divisor: float = THROTTLE_DIVISOR
) -> int:
    """Trailing-edge throttle window for the interaction bus, in milliseconds.

    Grows with both the number of views and the number of rows each view redraws.

    Examples:
        >>> from vizgrid.core.schema import ChannelAssignment
        >>> throttle_interval_ms(plan_grid(ChannelAssignment()), 640)
        10
    """
    return math.floor(data_length / divisor * plan.row_count * plan.col_count)
