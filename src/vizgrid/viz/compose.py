"""
Composite spec compilation.

Merges per-view fragments from a single-view builder with the configuration shared by
every view of the grid: inline row data, the global click-to-select point selection,
the optional pan/zoom interval, and grid-derived sizing.

Sizing rules
- Single view, fixed layout: explicit width/height; ``autosize: fit`` only when no facet
  field is active (faceted views size their own panels).
- Repeated views, fixed layout: each view gets ``floor(total / count) - gutter`` pixels
  per axis and always ``autosize: fit``.

Repeated views additionally carry the cross-filter selections tapped by the interaction
bus: a point selection, and an x-interval brush unless the interval is already bound to
scales for pan/zoom.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import polars as pl

from vizgrid.config import RenderSettings
from vizgrid.core.constants import SCALE_BIND_NAME, SELECTION_NAME
from vizgrid.core.errors import SpecCompileError
from vizgrid.core.grammar import LayoutMode, SelectionKind
from vizgrid.core.schema import ChannelAssignment, VisualConfig
from vizgrid.core.typing import JsonDict, Rows

from .base import to_values
from .grid import GridPlan
from .single_view import SingleViewBuilder, ViewBindings, ViewFlags, build_single_view

__all__ = ["CompositeSpec", "compile_views", "shared_spec", "cross_filter_params"]


@dataclass(frozen=True)
class CompositeSpec:
    """Renderable spec for one grid cell.

    Attributes:
        view_index: Row-major cell index; the interaction bus source id.
        row: Grid row of the cell.
        col: Grid column of the cell.
        spec: Vega-Lite spec handed to the renderer.
    """

    view_index: int
    row: int
    col: int
    spec: JsonDict


def shared_spec(
    assignment: ChannelAssignment,
    config: VisualConfig,
    rows: pl.DataFrame | Rows | None,
) -> JsonDict:
    """Top-level keys shared by every view: data and global selection params."""
    params: list[JsonDict] = [
        {
            "name": SELECTION_NAME,
            "select": {"type": "point", "fields": list(assignment.bound_field_ids())},
        }
    ]
    if config.interactive_scale:
        params.append({"name": SCALE_BIND_NAME, "select": "interval", "bind": "scales"})
    return {"data": {"values": to_values(rows)}, "params": params}


def cross_filter_params(config: VisualConfig) -> list[JsonDict]:
    """Selections whose stores are relayed between repeated views."""
    params: list[JsonDict] = [
        {"name": SelectionKind.POINT.signal, "select": {"type": "point"}},
    ]
    if not config.interactive_scale:
        params.append(
            {"name": SelectionKind.BRUSH.signal, "select": {"type": "interval", "encodings": ["x"]}}
        )
    return params


def _merge(common: JsonDict, fragment: JsonDict, extra_params: list[JsonDict]) -> JsonDict:
    # Fragment keys win, except params which always come from the shared spec.
    merged = {**common, **fragment}
    merged["params"] = [*common["params"], *extra_params]
    return merged


def _build(builder: SingleViewBuilder, bindings: ViewBindings, flags: ViewFlags, cell: str) -> JsonDict:
    try:
        fragment = builder(bindings, flags)
    except Exception as exc:
        raise SpecCompileError(f"{cell}: single-view builder failed: {exc}") from exc
    if not isinstance(fragment, dict) or "mark" not in fragment:
        raise SpecCompileError(f"{cell}: builder must return a mapping with a 'mark' key")
    return fragment


def compile_views(
    plan: GridPlan,
    assignment: ChannelAssignment,
    config: VisualConfig,
    rows: pl.DataFrame | Rows | None,
    *,
    builder: SingleViewBuilder = build_single_view,
    settings: RenderSettings | None = None,
) -> list[CompositeSpec]:
    """Compile one composite spec per grid cell, in row-major order.

    Args:
        plan: Grid plan derived from ``assignment``.
        assignment: Channel assignment (read-only).
        config: Visual configuration bag.
        rows: Already filtered/aggregated rows.
        builder: Single-view spec builder.
        settings: Render settings (gutter size).

    Returns:
        list[CompositeSpec]: ``plan.cell_count`` specs.

    Raises:
        SpecCompileError: If the builder fails or returns a malformed fragment.
    """
    settings = settings or RenderSettings()
    common = shared_spec(assignment, config, rows)
    shared = assignment.shared_channels()
    fixed = config.layout_mode is LayoutMode.FIXED

    if not plan.is_repeated:
        if fixed:
            if not plan.has_facet:
                common["autosize"] = "fit"
            common["width"] = config.width
            common["height"] = config.height
        bindings = ViewBindings(
            x=plan.x_field,
            y=plan.y_field,
            row=plan.row_facet,
            column=plan.col_facet,
            details=assignment.details,
            **shared,
        )
        flags = ViewFlags(
            default_aggregated=config.default_aggregated,
            stack=config.stack,
            geom_type=config.geom_type,
        )
        fragment = _build(builder, bindings, flags, "cell (0, 0)")
        return [CompositeSpec(view_index=0, row=0, col=0, spec=_merge(common, fragment, []))]

    if fixed:
        common["width"] = math.floor(config.width / plan.col_count) - settings.gutter_px
        common["height"] = math.floor(config.height / plan.row_count) - settings.gutter_px
        common["autosize"] = "fit"

    extra = cross_filter_params(config)
    out: list[CompositeSpec] = []
    for index, i, j in plan.cells():
        has_legend = i == 0 and j == plan.col_count - 1
        bindings = ViewBindings(
            x=plan.col_field_at(j),
            y=plan.row_field_at(i),
            row=plan.row_facet,
            column=plan.col_facet,
            details=assignment.details,
            **shared,
        )
        flags = ViewFlags(
            default_aggregated=config.default_aggregated,
            stack=config.stack,
            geom_type=config.geom_type,
            hide_legend=not has_legend,
        )
        fragment = _build(builder, bindings, flags, f"cell ({i}, {j})")
        out.append(CompositeSpec(view_index=index, row=i, col=j, spec=_merge(common, fragment, extra)))
    return out
