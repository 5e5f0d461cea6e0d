"""
vizgrid.viz — Grid planning and composite spec compilation.

## Responsibilities
- Decide how many views a channel assignment needs and which fields repeat or facet.
- Build per-view mark/encoding fragments (Altair-backed default builder).
- Merge fragments with shared data, selection params and grid sizing.
- Pure functions only; nothing here renders or holds state.

## Public API
- grid — GridPlan, plan_grid, throttle_interval_ms.
- single_view — ViewBindings, ViewFlags, SingleViewBuilder, build_single_view.
- compose — CompositeSpec, compile_views.
- base — to_values, data_length.

## Import DAG discipline
- Depends on: vizgrid.core, vizgrid.config, polars, altair (and stdlib).
- Must not import vizgrid.render.

## Examples
```python
from vizgrid.core.schema import ChannelAssignment, FieldDescriptor, VisualConfig
from vizgrid.viz import compile_views, plan_grid

ca = ChannelAssignment(
    rows=(FieldDescriptor(fid="region", analytic_type="dimension"),),
    columns=(FieldDescriptor(fid="sales", analytic_type="measure"),),
)
specs = compile_views(plan_grid(ca), ca, VisualConfig(), [{"region": "n", "sales": 1}])
len(specs)  # 1
```
"""

from __future__ import annotations

from .compose import CompositeSpec, compile_views
from .grid import GridPlan, plan_grid, throttle_interval_ms
from .single_view import SingleViewBuilder, ViewBindings, ViewFlags, build_single_view

__all__ = [
    "CompositeSpec",
    "compile_views",
    "GridPlan",
    "plan_grid",
    "throttle_interval_ms",
    "SingleViewBuilder",
    "ViewBindings",
    "ViewFlags",
    "build_single_view",
]
