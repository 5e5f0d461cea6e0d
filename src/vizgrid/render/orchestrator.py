"""
Render orchestration for one chart instance.

RenderOrchestrator turns a channel assignment into a grid of embedded views and keeps
the aggregate readiness flag honest:

1. plan and compile the grid (a compile failure stops here and keeps the current views);
2. mark unready;
3. tear down the previous cycle (instances, bus, hover channel, click relay);
4. embed every cell in parallel, wiring each handle as soon as its embed resolves;
5. once every embed has resolved, mark ready. A cell whose embed is rejected leaves
   the cycle unready; its siblings stay embedded and wired.

Each call to ``render`` starts a new generation. Embeds that resolve after a newer
generation started are discarded and never flip readiness.

Failure policy: embed rejections and wiring errors are logged and the affected cell
degrades; nothing here raises into the host application.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

import polars as pl

from vizgrid.config import RenderSettings
from vizgrid.core.errors import EmbedError, SpecCompileError
from vizgrid.core.schema import ChannelAssignment, VisualConfig
from vizgrid.core.typing import JsonDict, Rows
from vizgrid.viz.base import data_length
from vizgrid.viz.compose import compile_views
from vizgrid.viz.grid import GridPlan, plan_grid, throttle_interval_ms
from vizgrid.viz.single_view import SingleViewBuilder, build_single_view

from .bus import ClickRelay, InteractionBus
from .channels import Channel, ReadinessState
from .instance import ViewInstance, selection_kinds
from .protocols import EmbedOptions, Renderer, ViewAnchor, ViewHandle

logger = logging.getLogger(__name__)

__all__ = ["RenderOrchestrator", "GeomClickHandler"]

GeomClickHandler = Callable[[Any, Any], None]


class RenderOrchestrator:
    """Compile, embed and wire a grid of views.

    Args:
        renderer: Renderer collaborator used to embed each cell.
        builder: Single-view spec builder.
        settings: Render settings; ``RenderSettings.load()`` when omitted.
        on_geom_click: Host callback receiving ``(selected_values, click_event)``.
        theme_config: Renderer theme passed through in EmbedOptions.

    Examples:
        >>> import asyncio
        >>> from vizgrid.render.headless import HeadlessRenderer
        >>> from vizgrid.core.schema import ChannelAssignment, VisualConfig
        >>> orch = RenderOrchestrator(HeadlessRenderer(), settings=RenderSettings())
        >>> asyncio.run(orch.render(ChannelAssignment(), VisualConfig(), []))
        True
        >>> orch.grid_shape
        (1, 1)
    """

    def __init__(
        self,
        renderer: Renderer,
        *,
        builder: SingleViewBuilder = build_single_view,
        settings: RenderSettings | None = None,
        on_geom_click: GeomClickHandler | None = None,
        theme_config: JsonDict | None = None,
    ) -> None:
        self._renderer = renderer
        self._builder = builder
        self.settings = settings or RenderSettings.load()
        self._on_geom_click = on_geom_click
        self._theme_config = theme_config

        self.readiness = ReadinessState()
        self._generation = 0
        self._ready_generation = 0
        self._plan: GridPlan | None = None
        self._anchors: list[ViewAnchor] = []
        self._handles: dict[int, ViewHandle] = {}
        self._instances: dict[int, ViewInstance] = {}
        self._bus: InteractionBus | None = None
        self._hover: Channel[int] | None = None
        self._clicks: ClickRelay | None = None
        self.cross_filter_trigger_index = -1
        self.failed_views: list[int] = []

    # ------------------------------------------------------------------
    # Read-only views of the current cycle
    # ------------------------------------------------------------------

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def plan(self) -> GridPlan | None:
        return self._plan

    @property
    def is_complete(self) -> bool:
        """Whether the current generation embedded every cell and reached ready."""
        return self._generation > 0 and self._ready_generation == self._generation

    @property
    def grid_shape(self) -> tuple[int, int]:
        if self._plan is None:
            return (0, 0)
        return (self._plan.row_count, self._plan.col_count)

    @property
    def anchors(self) -> list[ViewAnchor]:
        return list(self._anchors)

    @property
    def view_count(self) -> int:
        return len(self._anchors)

    @property
    def handles(self) -> list[ViewHandle]:
        """Live handles ordered by view index (failed cells are absent)."""
        return [self._handles[i] for i in sorted(self._handles)]

    @property
    def instances(self) -> list[ViewInstance]:
        return [self._instances[i] for i in sorted(self._instances)]

    @property
    def bus(self) -> InteractionBus | None:
        return self._bus

    @property
    def hover(self) -> Channel[int] | None:
        return self._hover

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def render(
        self,
        assignment: ChannelAssignment,
        config: VisualConfig,
        rows: pl.DataFrame | Rows | None,
    ) -> bool:
        """Run one orchestration cycle.

        Compilation happens before the cycle starts, so a spec that fails to compile
        leaves any in-flight or completed cycle untouched.

        Returns:
            bool: True when this cycle completed and set readiness; False when it was
            superseded by a newer call, compilation failed, or a cell failed to embed.
        """
        plan = plan_grid(assignment)
        try:
            specs = compile_views(
                plan, assignment, config, rows, builder=self._builder, settings=self.settings
            )
        except SpecCompileError:
            logger.exception("Spec compilation failed; keeping previous views")
            if self.is_complete:
                self.readiness.set_ready()
            return False

        self._generation += 1
        generation = self._generation
        self.readiness.set_unready()

        self._teardown()
        self._plan = plan
        self._anchors = [ViewAnchor(s.view_index, s.row, s.col) for s in specs]
        self.failed_views = []
        self.cross_filter_trigger_index = -1
        self._hover = Channel("hover")
        self._hover.subscribe(self._set_trigger_index)
        self._clicks = ClickRelay(self._on_geom_click)
        if plan.is_repeated:
            interval = throttle_interval_ms(plan, data_length(rows), self.settings.throttle_divisor)
            self._bus = InteractionBus(interval)
            logger.debug(
                "Grid %dx%d, bus throttle %d ms", plan.row_count, plan.col_count, interval
            )

        options = EmbedOptions(actions=config.show_actions, config=self._theme_config)
        tasks = [
            asyncio.create_task(self._embed_cell(generation, anchor, spec.spec, options))
            for anchor, spec in zip(self._anchors, specs)
        ]
        await asyncio.gather(*tasks)

        if generation != self._generation:
            logger.debug("Render generation %d superseded by %d", generation, self._generation)
            return False
        if self.failed_views:
            logger.warning(
                "Render generation %d incomplete: view(s) %s failed to embed",
                generation,
                sorted(self.failed_views),
            )
            return False
        logger.debug("Render generation %d ready (%d views)", generation, len(self._handles))
        self._ready_generation = generation
        self.readiness.set_ready()
        return True

    async def _embed_cell(
        self, generation: int, anchor: ViewAnchor, spec: JsonDict, options: EmbedOptions
    ) -> None:
        try:
            handle = await self._renderer.embed(anchor, spec, options)
        except Exception as exc:
            err = exc if isinstance(exc, EmbedError) else EmbedError(anchor.view_index, str(exc))
            logger.error("%s", err)
            if generation == self._generation:
                self.failed_views.append(anchor.view_index)
            return

        if generation != self._generation:
            logger.debug("Discarding view %d from stale generation %d", anchor.view_index, generation)
            finalize = getattr(handle, "finalize", None)
            if callable(finalize):
                finalize()
            return

        self._handles[anchor.view_index] = handle
        instance = ViewInstance(anchor.view_index, handle, on_clear=self._clear_trigger_index)
        self._instances[anchor.view_index] = instance

        if self._bus is not None:
            try:
                instance.attach_bus(self._bus, selection_kinds(handle))
            except Exception as exc:
                logger.warning("Cross-filter wiring failed for view %d: %s", anchor.view_index, exc)

        if self._hover is not None and self._clicks is not None:
            try:
                instance.attach_events(self._hover, self._clicks)
            except Exception as exc:
                logger.warning("Event wiring failed for view %d: %s", anchor.view_index, exc)

    def _set_trigger_index(self, index: int) -> None:
        self.cross_filter_trigger_index = index

    def _clear_trigger_index(self) -> None:
        self.cross_filter_trigger_index = -1

    def _teardown(self) -> None:
        for instance in self._instances.values():
            instance.close()
        self._instances.clear()
        self._handles.clear()
        if self._bus is not None:
            self._bus.close()
            self._bus = None
        if self._hover is not None:
            self._hover.close()
            self._hover = None
        if self._clicks is not None:
            self._clicks.close()
            self._clicks = None

    def close(self) -> None:
        """Drop every view and channel; pending embeds of the current cycle are discarded."""
        self._generation += 1
        self._teardown()
        self._anchors = []
        self._plan = None
        self.readiness.set_unready()
