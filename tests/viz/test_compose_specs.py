from __future__ import annotations

import polars as pl
import pytest
from conftest import dimension, measure

from vizgrid.config import RenderSettings
from vizgrid.core.errors import SpecCompileError
from vizgrid.core.schema import ChannelAssignment, VisualConfig
from vizgrid.viz.compose import compile_views
from vizgrid.viz.grid import plan_grid
from vizgrid.viz.single_view import ViewBindings, ViewFlags

ROWS = [
    {"region": "north", "segment": "a", "sales": 10, "profit": 2, "qty": 1},
    {"region": "south", "segment": "b", "sales": 20, "profit": 5, "qty": 3},
]


def _compile(ca: ChannelAssignment, cfg: VisualConfig | None = None, rows=ROWS, **kw):
    return compile_views(plan_grid(ca), ca, cfg or VisualConfig(), rows, **kw)


def _param_names(spec: dict) -> list[str]:
    return [p["name"] for p in spec["params"]]


def test_single_view_spec_shape() -> None:
    ca = ChannelAssignment(rows=(measure("sales"),), columns=(dimension("region"),))
    specs = _compile(ca)

    assert len(specs) == 1
    s = specs[0]
    assert (s.view_index, s.row, s.col) == (0, 0, 0)
    assert s.spec["data"]["values"] == ROWS
    assert s.spec["data"]["values"] is not ROWS
    assert _param_names(s.spec) == ["geom"]
    assert s.spec["params"][0]["select"] == {"type": "point", "fields": ["sales", "region"]}
    assert s.spec["encoding"]["x"]["field"] == "region"
    assert s.spec["encoding"]["y"]["field"] == "sales"
    assert "autosize" not in s.spec
    assert "width" not in s.spec


def test_single_view_accepts_polars_rows() -> None:
    ca = ChannelAssignment(rows=(measure("sales"),), columns=(dimension("region"),))
    specs = _compile(ca, rows=pl.DataFrame(ROWS))
    assert specs[0].spec["data"]["values"] == ROWS


def test_fixed_single_view_fits_unless_faceted() -> None:
    cfg = VisualConfig(layout_mode="fixed", width=600, height=300)
    plain = _compile(ChannelAssignment(rows=(measure("sales"),), columns=(dimension("region"),)), cfg)[0]
    assert plain.spec["autosize"] == "fit"
    assert (plain.spec["width"], plain.spec["height"]) == (600, 300)

    faceted_ca = ChannelAssignment(
        rows=(dimension("segment"), measure("sales")), columns=(dimension("region"),)
    )
    faceted = _compile(faceted_ca, cfg)[0]
    assert "autosize" not in faceted.spec
    assert (faceted.spec["width"], faceted.spec["height"]) == (600, 300)
    assert faceted.spec["encoding"]["row"]["field"] == "segment"


def test_repeated_views_split_fixed_size_with_gutter() -> None:
    ca = ChannelAssignment(
        rows=(measure("sales"), measure("profit")),
        columns=(measure("qty"), measure("sales"), measure("profit")),
    )
    cfg = VisualConfig(layout_mode="fixed", width=600, height=400)
    specs = _compile(ca, cfg)

    assert len(specs) == 6
    assert [s.view_index for s in specs] == list(range(6))
    for s in specs:
        assert s.spec["width"] == 600 // 3 - 5
        assert s.spec["height"] == 400 // 2 - 5
        assert s.spec["autosize"] == "fit"

    wide_gutter = _compile(ca, cfg, settings=RenderSettings(gutter_px=10))
    assert wide_gutter[0].spec["width"] == 190


def test_repeated_views_bind_row_and_column_fields() -> None:
    ca = ChannelAssignment(
        rows=(measure("sales"), measure("profit")),
        columns=(dimension("region"),),
    )
    specs = _compile(ca)

    assert [(s.row, s.col) for s in specs] == [(0, 0), (1, 0)]
    assert specs[0].spec["encoding"]["y"]["field"] == "sales"
    assert specs[1].spec["encoding"]["y"]["field"] == "profit"
    assert all(s.spec["encoding"]["x"]["field"] == "region" for s in specs)


def test_repeated_views_hide_all_legends_but_top_right() -> None:
    ca = ChannelAssignment(
        rows=(measure("sales"), measure("profit")),
        columns=(measure("qty"), measure("sales")),
        color=dimension("segment"),
    )
    specs = _compile(ca)

    legends = {(s.row, s.col): s.spec["encoding"]["color"].get("legend", "shown") for s in specs}
    assert legends[(0, 1)] == "shown"
    assert legends[(0, 0)] is None
    assert legends[(1, 0)] is None
    assert legends[(1, 1)] is None


def test_repeated_views_carry_cross_filter_params() -> None:
    ca = ChannelAssignment(columns=(measure("sales"), measure("profit")))
    specs = _compile(ca)
    assert _param_names(specs[0].spec) == ["geom", "__gw_point__", "__gw_brush__"]
    brush = specs[0].spec["params"][2]
    assert brush["select"] == {"type": "interval", "encodings": ["x"]}

    zoomable = _compile(ca, VisualConfig(interactive_scale=True))
    assert _param_names(zoomable[0].spec) == ["geom", "grid", "__gw_point__"]
    assert zoomable[0].spec["params"][1]["bind"] == "scales"


def test_single_view_interactive_scale_param() -> None:
    ca = ChannelAssignment(rows=(measure("sales"),), columns=(dimension("region"),))
    s = _compile(ca, VisualConfig(interactive_scale=True))[0]
    assert _param_names(s.spec) == ["geom", "grid"]


def test_custom_builder_receives_bindings_and_flags() -> None:
    seen: list[tuple[ViewBindings, ViewFlags]] = []

    def builder(bindings: ViewBindings, flags: ViewFlags) -> dict:
        seen.append((bindings, flags))
        return {"mark": "tick", "params": [{"name": "ignored"}]}

    ca = ChannelAssignment(columns=(measure("sales"), measure("profit")))
    specs = _compile(ca, builder=builder)

    assert len(seen) == 2
    assert seen[0][0].x.fid == "sales"
    assert seen[1][0].x.fid == "profit"
    assert seen[0][1].hide_legend is True
    assert seen[1][1].hide_legend is False
    assert specs[0].spec["mark"] == "tick"
    assert "ignored" not in _param_names(specs[0].spec)


def test_builder_failures_raise_spec_compile_error() -> None:
    def broken(bindings: ViewBindings, flags: ViewFlags) -> dict:
        raise KeyError("no mark for you")

    def markless(bindings: ViewBindings, flags: ViewFlags) -> dict:
        return {"encoding": {}}

    ca = ChannelAssignment(columns=(dimension("region"),))
    with pytest.raises(SpecCompileError, match="cell \\(0, 0\\)"):
        _compile(ca, builder=broken)
    with pytest.raises(SpecCompileError):
        _compile(ca, builder=markless)
