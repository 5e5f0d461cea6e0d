"""
Structural interfaces for the renderer collaborator.

The render layer never depends on a concrete rendering engine. It talks to anything that
embeds a spec at an anchor and returns a handle exposing signal/event listeners, a state
snapshot/restore pair, and vector/raster export.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from vizgrid.core.typing import JsonDict

__all__ = [
    "ViewAnchor",
    "EmbedOptions",
    "SignalHandler",
    "EventHandler",
    "ViewHandle",
    "Renderer",
]

SignalHandler = Callable[[str, Any], None]
EventHandler = Callable[[Any], None]


@dataclass(frozen=True)
class ViewAnchor:
    """Placeholder a renderer draws one grid cell into."""

    view_index: int
    row: int
    col: int


@dataclass(frozen=True)
class EmbedOptions:
    """Options forwarded to ``Renderer.embed``.

    Attributes:
        mode: Spec dialect; the compiler emits Vega-Lite.
        actions: Show the renderer's export/source action menu.
        config: Theme config passed through untouched.
    """

    mode: str = "vega-lite"
    actions: bool = False
    config: JsonDict | None = None


@runtime_checkable
class ViewHandle(Protocol):
    """Live handle to one embedded view.

    ``get_state()`` returns ``{"signals": {...}, "data": {...}}``; ``set_state`` writes
    the same shape back and fires listeners of the signals whose stores changed.
    ``dataset_names()`` lists the compiled datasets, including ``<selection>_store``.
    """

    def add_signal_listener(self, name: str, handler: SignalHandler) -> None: ...

    def add_event_listener(self, event_type: str, handler: EventHandler) -> None: ...

    def get_state(self) -> JsonDict: ...

    def set_state(self, state: JsonDict) -> None: ...

    def dataset_names(self) -> list[str]: ...

    async def to_svg(self) -> str: ...

    async def to_canvas(self, scale: float = 1) -> bytes: ...


class Renderer(Protocol):
    async def embed(self, anchor: ViewAnchor, spec: JsonDict, options: EmbedOptions) -> ViewHandle: ...
