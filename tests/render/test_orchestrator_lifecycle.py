from __future__ import annotations

import asyncio
import logging

from conftest import GatedRenderer, dimension, measure, settle

from vizgrid.core.schema import ChannelAssignment, VisualConfig
from vizgrid.render.orchestrator import RenderOrchestrator
from vizgrid.render.protocols import ViewAnchor

ROWS = [{"region": "n", "a": 1, "b": 2, "c": 3}]
ONE_BY_THREE = ChannelAssignment(columns=(measure("a"), measure("b"), measure("c")))
SINGLE = ChannelAssignment(rows=(measure("a"),), columns=(dimension("region"),))


def test_ready_only_after_last_cell_settles() -> None:
    async def scenario() -> None:
        renderer = GatedRenderer(gated=True)
        orch = RenderOrchestrator(renderer)
        task = asyncio.create_task(orch.render(ONE_BY_THREE, VisualConfig(), ROWS))
        await settle()

        assert not orch.readiness.is_ready
        assert len(renderer.calls) == 3  # all embeds in flight at once

        renderer.release(0)
        renderer.release(1)
        await settle()
        assert not orch.readiness.is_ready
        assert len(orch.handles) == 2

        renderer.release(2)
        assert await task is True
        assert orch.readiness.is_ready

    asyncio.run(scenario())


def test_handles_ordered_by_view_index_not_completion() -> None:
    async def scenario() -> None:
        renderer = GatedRenderer(gated=True)
        orch = RenderOrchestrator(renderer)
        task = asyncio.create_task(orch.render(ONE_BY_THREE, VisualConfig(), ROWS))
        await settle()
        for i in (2, 0, 1):
            renderer.release(i)
            await settle()
        await task

        assert [v.view_index for v in renderer.views] == [2, 0, 1]
        assert [h.view_index for h in orch.handles] == [0, 1, 2]

    asyncio.run(scenario())


def test_rejected_embed_keeps_cycle_unready(caplog) -> None:
    async def scenario() -> None:
        orch = RenderOrchestrator(GatedRenderer(fail={1}))
        with caplog.at_level(logging.WARNING, logger="vizgrid.render.orchestrator"):
            ok = await orch.render(ONE_BY_THREE, VisualConfig(), ROWS)

        assert ok is False
        assert not orch.readiness.is_ready
        assert not orch.is_complete
        assert orch.failed_views == [1]
        assert len(orch.handles) == 2
        assert [h.view_index for h in orch.handles] == [0, 2]
        assert [i.view_index for i in orch.instances] == [0, 2]
        assert orch.view_count == 3
        assert "view 1: renderer rejected view 1" in caplog.text
        assert "incomplete" in caplog.text

    asyncio.run(scenario())


def test_superseded_cycle_never_flips_readiness() -> None:
    async def scenario() -> None:
        renderer = GatedRenderer(gated=True)
        orch = RenderOrchestrator(renderer)

        first = asyncio.create_task(orch.render(ONE_BY_THREE, VisualConfig(), ROWS))
        await settle()
        second = asyncio.create_task(orch.render(SINGLE, VisualConfig(), ROWS))
        await settle()

        for i in range(3):
            renderer.release(i)
        assert await second is True
        assert await first is False

        assert orch.readiness.is_ready
        assert orch.grid_shape == (1, 1)
        assert len(orch.handles) == 1
        stale = [v for v in renderer.views if v is not orch.handles[0]]
        assert len(stale) == 3
        assert all(v.finalized for v in stale)

    asyncio.run(scenario())


def test_rerender_tears_down_previous_cycle() -> None:
    async def scenario() -> None:
        orch = RenderOrchestrator(GatedRenderer())
        await orch.render(ONE_BY_THREE, VisualConfig(), ROWS)
        old_bus = orch.bus
        old_handles = orch.handles
        old_instances = orch.instances

        await orch.render(ONE_BY_THREE, VisualConfig(), ROWS)

        assert old_bus is not None and old_bus.closed
        assert orch.bus is not old_bus
        assert all(h.finalized for h in old_handles)
        assert all(inst.closed for inst in old_instances)
        assert orch.generation == 2

        orch.close()
        assert not orch.readiness.is_ready
        assert orch.handles == []
        assert orch.grid_shape == (0, 0)

    asyncio.run(scenario())


def test_anchors_options_and_grid_shape() -> None:
    async def scenario() -> None:
        renderer = GatedRenderer()
        orch = RenderOrchestrator(renderer, theme_config={"background": "#fff"})
        ca = ChannelAssignment(rows=(measure("a"), measure("b")), columns=(dimension("region"),))
        await orch.render(ca, VisualConfig(show_actions=True), ROWS)

        assert orch.grid_shape == (2, 1)
        assert orch.anchors == [ViewAnchor(0, 0, 0), ViewAnchor(1, 1, 0)]
        assert all(o.mode == "vega-lite" for o in renderer.options)
        assert all(o.actions is True for o in renderer.options)
        assert renderer.options[0].config == {"background": "#fff"}

    asyncio.run(scenario())


def test_compile_failure_keeps_previous_views(caplog) -> None:
    def broken(bindings, flags):
        raise ValueError("bad builder")

    async def scenario() -> None:
        orch = RenderOrchestrator(GatedRenderer())
        await orch.render(SINGLE, VisualConfig(), ROWS)
        kept = orch.handles

        orch._builder = broken
        with caplog.at_level(logging.ERROR, logger="vizgrid.render.orchestrator"):
            ok = await orch.render(ONE_BY_THREE, VisualConfig(), ROWS)

        assert ok is False
        assert orch.handles == kept
        assert orch.readiness.is_ready
        assert "Spec compilation failed" in caplog.text

        fresh = RenderOrchestrator(GatedRenderer(), builder=broken)
        assert await fresh.render(SINGLE, VisualConfig(), ROWS) is False
        assert not fresh.readiness.is_ready

    asyncio.run(scenario())


def test_compile_failure_does_not_supersede_inflight_cycle() -> None:
    def broken(bindings, flags):
        raise ValueError("bad builder")

    async def scenario() -> None:
        renderer = GatedRenderer(gated=True)
        orch = RenderOrchestrator(renderer)
        first = asyncio.create_task(orch.render(ONE_BY_THREE, VisualConfig(), ROWS))
        await settle()
        renderer.release(0)
        await settle()
        assert len(orch.handles) == 1

        orch._builder = broken
        assert await orch.render(SINGLE, VisualConfig(), ROWS) is False
        assert not orch.readiness.is_ready
        assert orch.generation == 1

        renderer.release(1)
        renderer.release(2)
        assert await first is True
        assert orch.readiness.is_ready
        assert len(orch.handles) == 3
        assert not any(v.finalized for v in renderer.views)

    asyncio.run(scenario())
