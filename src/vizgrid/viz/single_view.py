"""
Single-view spec builder.

The compiler consumes any callable matching SingleViewBuilder: a pure function turning
one set of channel bindings plus flags into a ``{"mark": ..., "encoding": ...}``
fragment. build_single_view is the default implementation, built from Altair channel
classes so every fragment is schema-validated before it reaches the renderer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

import altair as alt

from vizgrid.core.grammar import GeomType, SemanticType, StackMode
from vizgrid.core.schema import FieldDescriptor
from vizgrid.core.typing import JsonDict

__all__ = [
    "ViewBindings",
    "ViewFlags",
    "SingleViewBuilder",
    "build_single_view",
    "resolve_geom",
]

# Marks whose measure axis accumulates and therefore honors the stack mode.
_STACKABLE: frozenset[str] = frozenset({"bar", "area", "arc"})


@dataclass(frozen=True)
class ViewBindings:
    """Per-view channel bindings; None leaves the channel unbound."""

    x: FieldDescriptor | None = None
    y: FieldDescriptor | None = None
    color: FieldDescriptor | None = None
    opacity: FieldDescriptor | None = None
    size: FieldDescriptor | None = None
    shape: FieldDescriptor | None = None
    theta: FieldDescriptor | None = None
    radius: FieldDescriptor | None = None
    row: FieldDescriptor | None = None
    column: FieldDescriptor | None = None
    details: tuple[FieldDescriptor, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ViewFlags:
    default_aggregated: bool = True
    stack: StackMode = StackMode.STACK
    geom_type: GeomType = GeomType.AUTO
    hide_legend: bool = False


class SingleViewBuilder(Protocol):
    def __call__(self, bindings: ViewBindings, flags: ViewFlags) -> JsonDict: ...


def resolve_geom(bindings: ViewBindings, geom: GeomType) -> str:
    """Pick a concrete mark for ``auto`` geometry.

    Rules, in order: theta bound -> arc; both axes measures -> point; a temporal
    dimension against a measure -> line; a dimension against a measure -> bar;
    otherwise tick.
    """
    if geom is not GeomType.AUTO:
        return geom.value
    if bindings.theta is not None:
        return "arc"
    x, y = bindings.x, bindings.y
    if x is None and y is None:
        return "point"
    if x is not None and y is not None:
        if x.is_measure and y.is_measure:
            return "point"
        dim = x if x.is_dimension else y
        other = y if dim is x else x
        if other.is_measure:
            if dim.vega_type() == SemanticType.TEMPORAL.value:
                return "line"
            return "bar"
    return "tick"


def _channel(
    cls: type[Any],
    f: FieldDescriptor,
    flags: ViewFlags,
    mark: str,
    *,
    legend: bool = True,
    stackable: bool = False,
) -> Any:
    vtype = f.vega_type()
    if cls is alt.Shape and vtype in ("quantitative", "temporal"):
        # shape scales are discrete only
        vtype = "ordinal"
    kwargs: dict[str, Any] = {"field": f.fid, "type": vtype, "title": f.label}
    if flags.default_aggregated and f.is_measure and mark != "boxplot":
        kwargs["aggregate"] = f.aggregate_op()
    if stackable and f.is_measure and mark in _STACKABLE:
        kwargs["stack"] = flags.stack.vega_value()
    if not legend:
        kwargs["legend"] = None
    return cls(**kwargs)


def build_single_view(bindings: ViewBindings, flags: ViewFlags) -> JsonDict:
    """Build the mark/encoding fragment for one view.

    Args:
        bindings: Channel bindings for this view.
        flags: Aggregation, stacking, geometry and legend flags.

    Returns:
        JsonDict: ``{"mark": ..., "encoding": ...}``; ``encoding`` is omitted when no
        channel is bound.

    Examples:
        >>> from vizgrid.core.schema import FieldDescriptor
        >>> frag = build_single_view(
        ...     ViewBindings(
        ...         x=FieldDescriptor(fid="region", analytic_type="dimension"),
        ...         y=FieldDescriptor(fid="sales", analytic_type="measure"),
        ...     ),
        ...     ViewFlags(),
        ... )
        >>> frag["mark"]["type"], frag["encoding"]["y"]["aggregate"]
        ('bar', 'sum')
    """
    mark = resolve_geom(bindings, flags.geom_type)
    show_legend = not flags.hide_legend

    enc: dict[str, Any] = {}
    if bindings.x is not None:
        enc["x"] = _channel(alt.X, bindings.x, flags, mark, stackable=True)
    if bindings.y is not None:
        enc["y"] = _channel(alt.Y, bindings.y, flags, mark, stackable=True)
    if bindings.theta is not None:
        enc["theta"] = _channel(alt.Theta, bindings.theta, flags, mark, stackable=True)
    if bindings.radius is not None:
        enc["radius"] = _channel(alt.Radius, bindings.radius, flags, mark)
    if bindings.color is not None:
        enc["color"] = _channel(alt.Color, bindings.color, flags, mark, legend=show_legend)
    if bindings.opacity is not None:
        enc["opacity"] = _channel(alt.Opacity, bindings.opacity, flags, mark, legend=show_legend)
    if bindings.size is not None:
        enc["size"] = _channel(alt.Size, bindings.size, flags, mark, legend=show_legend)
    if bindings.shape is not None:
        enc["shape"] = _channel(alt.Shape, bindings.shape, flags, mark, legend=show_legend)
    if bindings.row is not None:
        enc["row"] = alt.Row(field=bindings.row.fid, type=bindings.row.vega_type(), title=bindings.row.label)
    if bindings.column is not None:
        enc["column"] = alt.Column(
            field=bindings.column.fid, type=bindings.column.vega_type(), title=bindings.column.label
        )
    if bindings.details:
        enc["detail"] = [alt.Detail(field=f.fid, type=f.vega_type()) for f in bindings.details]

    mark_def: dict[str, Any] = {"type": mark}
    if mark != "boxplot":
        mark_def["tooltip"] = True

    # alt.Data(values=[]) keeps the top-level schema satisfied; only mark/encoding are kept.
    chart = alt.Chart(alt.Data(values=[]), mark=mark_def)
    if enc:
        chart = chart.encode(**enc)
    spec = chart.to_dict()

    fragment: JsonDict = {"mark": spec["mark"]}
    if spec.get("encoding"):
        fragment["encoding"] = spec["encoding"]
    return fragment
