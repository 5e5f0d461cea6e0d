"""
Chart session: data refresh in front of the orchestrator.

ChartSession marks the chart unready, awaits the host's row loader, and re-renders.
A loader failure is logged and the previous views are kept; readiness is restored
when the previous cycle had completed so hosts awaiting ``ready()`` are not stranded.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

import polars as pl

from vizgrid.core.schema import ChannelAssignment, VisualConfig
from vizgrid.core.typing import Rows

from .facade import ViewHandleFacade
from .orchestrator import RenderOrchestrator

logger = logging.getLogger(__name__)

__all__ = ["ChartSession", "RowLoader"]

RowLoader = Callable[[], Awaitable[pl.DataFrame | Rows]]


class ChartSession:
    def __init__(self, orchestrator: RenderOrchestrator) -> None:
        self.orchestrator = orchestrator
        self.facade = ViewHandleFacade(orchestrator)
        self.loading = False

    async def refresh(
        self, load_rows: RowLoader, assignment: ChannelAssignment, config: VisualConfig
    ) -> bool:
        """Load rows and re-render; returns whether a new cycle completed."""
        was_complete = self.orchestrator.is_complete
        self.orchestrator.readiness.set_unready()
        self.loading = True
        try:
            rows = await load_rows()
        except Exception:
            logger.exception("Row loader failed; keeping previous views")
            if was_complete:
                self.orchestrator.readiness.set_ready()
            return False
        finally:
            self.loading = False
        return await self.orchestrator.render(assignment, config, rows)
