"""
Pydantic v2 models for the inputs vizgrid consumes from the field-state store.

Responsibilities
- Define FieldDescriptor (column identity and analytic role), ChannelAssignment
  (visual channel -> field mapping), and VisualConfig (the configuration bag).
- Normalize enum-like strings via grammar helpers and accept the camelCase keys the
  store serializes (``fieldId``/``fid``, ``analyticType``, ``aggName``, ...).
- Keep every model frozen: the core reads these inputs and never mutates them.

Style
- Zero-IO (stdlib + pydantic only).
- Google-style docstrings with Attributes, Raises, Examples, and Notes.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .constants import DEFAULT_HEIGHT, DEFAULT_WIDTH
from .grammar import (
    AnalyticType,
    GeomType,
    LayoutMode,
    SemanticType,
    StackMode,
    analytic_type_from_value,
    geom_type_from_value,
)

__all__ = [
    "FieldDescriptor",
    "ChannelAssignment",
    "VisualConfig",
]


class FieldDescriptor(BaseModel):
    """
    Immutable reference to a data column and its analytic role.

    Attributes:
        fid (str): Column identifier (accepts ``fieldId``).
        name (str | None): Display name; falls back to ``fid``.
        analytic_type (AnalyticType): ``dimension`` or ``measure``.
        semantic_type (SemanticType | None): Encoding type; when omitted measures
            encode as quantitative and dimensions as nominal.
        aggregation (str | None): Aggregate op applied when views are aggregated
            (accepts ``aggName``); measures default to ``sum``.

    Notes:
        Equality and hashing use ``fid`` only, so the same column bound with a
        different display name or aggregation is still the same field.

    Examples:
        >>> from vizgrid.core.schema import FieldDescriptor
        >>> a = FieldDescriptor(fid="sales", analytic_type="measure")
        >>> b = FieldDescriptor.model_validate({"fieldId": "sales", "analyticType": "measure", "aggName": "mean"})
        >>> a == b
        True
        >>> a.vega_type()
        'quantitative'
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    fid: str = Field(validation_alias=AliasChoices("fid", "fieldId", "field_id"))
    name: str | None = None
    analytic_type: AnalyticType = Field(
        validation_alias=AliasChoices("analytic_type", "analyticType")
    )
    semantic_type: SemanticType | None = Field(
        default=None, validation_alias=AliasChoices("semantic_type", "semanticType")
    )
    aggregation: str | None = Field(
        default=None, validation_alias=AliasChoices("aggregation", "aggName")
    )

    @field_validator("analytic_type", mode="before")
    @classmethod
    def _normalize_analytic_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            return analytic_type_from_value(v)
        return v

    @field_validator("fid")
    @classmethod
    def _non_empty_fid(cls, v: str) -> str:
        if not v:
            raise ValueError("fid must be a non-empty string")
        return v

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FieldDescriptor):
            return NotImplemented
        return self.fid == other.fid

    def __hash__(self) -> int:
        return hash(self.fid)

    @property
    def label(self) -> str:
        return self.name or self.fid

    @property
    def is_measure(self) -> bool:
        return self.analytic_type is AnalyticType.MEASURE

    @property
    def is_dimension(self) -> bool:
        return self.analytic_type is AnalyticType.DIMENSION

    def vega_type(self) -> str:
        if self.semantic_type is not None:
            return self.semantic_type.value
        if self.is_measure:
            return SemanticType.QUANTITATIVE.value
        return SemanticType.NOMINAL.value

    def aggregate_op(self) -> str:
        return self.aggregation or "sum"


def _single(v: Any) -> Any:
    # Store payloads keep every channel as a list; single channels take the first entry.
    if isinstance(v, (list, tuple)):
        return v[0] if v else None
    return v


class ChannelAssignment(BaseModel):
    """
    Read-only mapping from visual channels to fields.

    Attributes:
        rows (tuple[FieldDescriptor, ...]): Fields on the row (y) shelf, outermost first.
        columns (tuple[FieldDescriptor, ...]): Fields on the column (x) shelf.
        color, opacity, size, shape, theta, radius (FieldDescriptor | None): Shared
            single-field channels applied to every view.
        details (tuple[FieldDescriptor, ...]): Level-of-detail fields.

    Notes:
        Single-field channels also accept a one-element list, the shape the store
        serializes every channel in.

    Examples:
        >>> from vizgrid.core.schema import ChannelAssignment
        >>> ca = ChannelAssignment.model_validate({
        ...     "rows": [{"fid": "region", "analyticType": "dimension"}],
        ...     "columns": [{"fid": "sales", "analyticType": "measure"}],
        ...     "color": [],
        ... })
        >>> ca.bound_field_ids()
        ('region', 'sales')
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    rows: tuple[FieldDescriptor, ...] = ()
    columns: tuple[FieldDescriptor, ...] = ()
    color: FieldDescriptor | None = None
    opacity: FieldDescriptor | None = None
    size: FieldDescriptor | None = None
    shape: FieldDescriptor | None = None
    theta: FieldDescriptor | None = None
    radius: FieldDescriptor | None = None
    details: tuple[FieldDescriptor, ...] = ()

    @field_validator("color", "opacity", "size", "shape", "theta", "radius", mode="before")
    @classmethod
    def _first_of_list(cls, v: Any) -> Any:
        return _single(v)

    def shared_channels(self) -> dict[str, FieldDescriptor | None]:
        """Channels applied identically to every view of the grid."""
        return {
            "color": self.color,
            "opacity": self.opacity,
            "size": self.size,
            "shape": self.shape,
            "theta": self.theta,
            "radius": self.radius,
        }

    def bound_field_ids(self) -> tuple[str, ...]:
        """Every channel-bound field id, de-duplicated in channel order."""
        fields: list[FieldDescriptor | None] = [*self.rows, *self.columns]
        fields.extend(self.shared_channels().values())
        fields.extend(self.details)
        seen: set[str] = set()
        out: list[str] = []
        for f in fields:
            if f is None or f.fid in seen:
                continue
            seen.add(f.fid)
            out.append(f.fid)
        return tuple(out)


class VisualConfig(BaseModel):
    """
    Configuration bag re-read from the store on every change.

    Attributes:
        default_aggregated (bool): Rows are aggregated; measures encode an aggregate.
        stack (StackMode): Stacking on the measure axis.
        interactive_scale (bool): Add a pan/zoom interval bound to scales.
        geom_type (GeomType): Requested mark geometry.
        layout_mode (LayoutMode): ``fixed`` applies explicit pixel sizes.
        width (int): Total layout width in pixels (>= 0).
        height (int): Total layout height in pixels (>= 0).
        show_actions (bool): Forwarded to the renderer's embed options.

    Examples:
        >>> from vizgrid.core.schema import VisualConfig
        >>> VisualConfig.model_validate({"layoutMode": "fixed", "width": 600}).layout_mode.value
        'fixed'
    """

    model_config = ConfigDict(
        frozen=True, extra="ignore", alias_generator=to_camel, populate_by_name=True
    )

    default_aggregated: bool = True
    stack: StackMode = StackMode.STACK
    interactive_scale: bool = False
    geom_type: GeomType = GeomType.AUTO
    layout_mode: LayoutMode = LayoutMode.AUTO
    width: int = Field(default=DEFAULT_WIDTH, ge=0)
    height: int = Field(default=DEFAULT_HEIGHT, ge=0)
    show_actions: bool = False

    @field_validator("geom_type", mode="before")
    @classmethod
    def _normalize_geom(cls, v: Any) -> Any:
        if isinstance(v, str):
            return geom_type_from_value(v)
        return v
