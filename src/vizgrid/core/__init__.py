"""
Core package aggregator for vizgrid contracts (grammar, schemas, constants, errors).

## Contracts (single source of truth)
- Grammar — closed enums (analytic/semantic types, stack/layout/geometry modes,
  selection kinds, view events) and normalization helpers.
- Schemas — frozen pydantic models for the field descriptor, channel assignment and
  visual configuration consumed from the field-state store.
- Constants — signal names, selection parameter names, gutter and throttle defaults.
- Errors — typed exceptions for compile, embed, wiring, export and config failures.

## Notes
- Zero-IO policy: stdlib + pydantic only; no file/network IO.
- Naming policy: enum `.value` and field names are lower_snake; camelCase keys from
  the store are accepted as aliases on input.

## Downstream usage
- vizgrid.viz — plans the view grid and compiles composite specs from `schema` models.
- vizgrid.render — taps `SelectionKind` stores and relays them on the interaction bus.

## Examples
```python
from vizgrid.core.schema import ChannelAssignment, FieldDescriptor
ca = ChannelAssignment(
    rows=(FieldDescriptor(fid="region", analytic_type="dimension"),),
    columns=(FieldDescriptor(fid="sales", analytic_type="measure"),),
)
ca.bound_field_ids()  # ('region', 'sales')
```
"""
