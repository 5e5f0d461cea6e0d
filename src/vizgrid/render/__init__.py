"""
vizgrid.render — Embedding, cross-view interaction and readiness.

## Responsibilities
- Embed compiled cells through a Renderer collaborator and track their handles.
- Relay selection stores between repeated views over a throttled interaction bus,
  suppressing echoes with per-view guards.
- Publish hover and click events to the host.
- Maintain the aggregate readiness flag and export snapshots of every view.

## Public API
- protocols — Renderer, ViewHandle, ViewAnchor, EmbedOptions.
- channels — Channel, ThrottledChannel, ReadinessState.
- bus — BusEntry, InteractionBus, EchoGuard, ClickRelay.
- instance — ViewInstance.
- orchestrator — RenderOrchestrator.
- facade — ViewHandleFacade.
- headless — HeadlessRenderer, HeadlessView (vl-convert backed).
- session — ChartSession.

## Import DAG discipline
- Depends on: vizgrid.core, vizgrid.config, vizgrid.viz, polars (and stdlib asyncio).
- vl_convert is imported lazily by the headless renderer only.

## Examples
```python
import asyncio
from vizgrid.render import HeadlessRenderer, RenderOrchestrator, ViewHandleFacade

orch = RenderOrchestrator(HeadlessRenderer())
facade = ViewHandleFacade(orch)
asyncio.run(orch.render(assignment, config, rows))
facade.is_ready  # True
```
"""

from __future__ import annotations

from .bus import BusEntry, ClickRelay, EchoGuard, InteractionBus
from .channels import Channel, ReadinessState, ThrottledChannel
from .facade import ViewHandleFacade
from .headless import HeadlessRenderer, HeadlessView
from .instance import ViewInstance
from .orchestrator import RenderOrchestrator
from .protocols import EmbedOptions, Renderer, ViewAnchor, ViewHandle
from .session import ChartSession

__all__ = [
    "BusEntry",
    "ClickRelay",
    "EchoGuard",
    "InteractionBus",
    "Channel",
    "ReadinessState",
    "ThrottledChannel",
    "ViewHandleFacade",
    "HeadlessRenderer",
    "HeadlessView",
    "ViewInstance",
    "RenderOrchestrator",
    "EmbedOptions",
    "Renderer",
    "ViewAnchor",
    "ViewHandle",
    "ChartSession",
]
