import pytest

from vizgrid.core.grammar import (
    AnalyticType,
    GeomType,
    LayoutMode,
    SelectionKind,
    SemanticType,
    StackMode,
    ViewEventType,
    analytic_type_from_value,
    ensure_all_enum_values_lower_snake,
    geom_type_from_value,
)


def test_all_enum_values_are_lower_snake() -> None:
    ensure_all_enum_values_lower_snake(
        [
            AnalyticType,
            SemanticType,
            StackMode,
            LayoutMode,
            GeomType,
            SelectionKind,
            ViewEventType,
        ]
    )


def test_selection_kinds_map_signals_and_stores() -> None:
    assert SelectionKind.BRUSH.signal == "__gw_brush__"
    assert SelectionKind.POINT.signal == "__gw_point__"
    assert SelectionKind.BRUSH.store == "__gw_brush___store"
    for kind in SelectionKind:
        assert SelectionKind.from_signal(kind.signal) is kind
        assert SelectionKind.from_store(kind.store) is kind
    assert SelectionKind.from_store("geom_store") is None
    assert SelectionKind.from_signal("geom") is None


def test_token_parsers() -> None:
    assert analytic_type_from_value(" Dimension ") is AnalyticType.DIMENSION
    assert geom_type_from_value("ARC") is GeomType.ARC
    with pytest.raises(ValueError):
        analytic_type_from_value("metric")
    with pytest.raises(ValueError):
        geom_type_from_value("pie")


def test_stack_mode_vega_values() -> None:
    assert [m.vega_value() for m in StackMode] == ["zero", "normalize", "center", None]
