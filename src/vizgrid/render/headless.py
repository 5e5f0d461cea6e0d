"""
Headless renderer backed by vl-convert.

HeadlessRenderer satisfies the Renderer protocol without a browser: each embed returns
a HeadlessView that keeps signal/data state in memory, fires listeners the way a live
view does, and produces SVG/PNG through ``vl_convert`` (optional dependency, installed
with the ``export`` extra).

``trigger_selection`` and ``dispatch_event`` stand in for user interaction, which makes
the class useful for scripted exports and for exercising the interaction bus.
"""

from __future__ import annotations

import asyncio
import importlib
from collections import defaultdict
from typing import Any

from vizgrid.core.constants import STORE_SUFFIX
from vizgrid.core.errors import EmbedError, ExportError, SignalWiringError
from vizgrid.core.typing import JsonDict

from .protocols import EmbedOptions, EventHandler, SignalHandler, ViewAnchor

__all__ = ["HeadlessRenderer", "HeadlessView"]


def _vl_convert() -> Any:
    try:
        return importlib.import_module("vl_convert")
    except ImportError as exc:
        raise ExportError(
            "SVG/PNG export requires 'vl-convert-python'. Install with: pip install vl-convert-python"
        ) from exc


class HeadlessView:
    """In-memory view handle for one compiled spec."""

    def __init__(self, anchor: ViewAnchor, spec: JsonDict, options: EmbedOptions) -> None:
        self.anchor = anchor
        self.spec = spec
        self.options = options
        self._params: list[str] = [p["name"] for p in spec.get("params", []) if "name" in p]
        self._selections: list[str] = [
            p["name"] for p in spec.get("params", []) if "name" in p and "select" in p
        ]
        self._signals: dict[str, Any] = {}
        self._data: dict[str, Any] = {}
        self._signal_listeners: defaultdict[str, list[SignalHandler]] = defaultdict(list)
        self._event_listeners: defaultdict[str, list[EventHandler]] = defaultdict(list)
        self.state_writes: list[JsonDict] = []
        self.finalized = False

    @property
    def view_index(self) -> int:
        return self.anchor.view_index

    def dataset_names(self) -> list[str]:
        return ["source_0", *(f"{name}{STORE_SUFFIX}" for name in self._selections)]

    def add_signal_listener(self, name: str, handler: SignalHandler) -> None:
        if name not in self._params:
            raise SignalWiringError(f"Unrecognized signal name: {name!r}")
        self._signal_listeners[name].append(handler)

    def add_event_listener(self, event_type: str, handler: EventHandler) -> None:
        self._event_listeners[event_type].append(handler)

    def get_state(self) -> JsonDict:
        return {"signals": dict(self._signals), "data": dict(self._data)}

    def set_state(self, state: JsonDict) -> None:
        self.state_writes.append(state)
        for store, value in state.get("data", {}).items():
            self._data[store] = value
            if store.endswith(STORE_SUFFIX):
                self._fire(store[: -len(STORE_SUFFIX)], value)
        for name, value in state.get("signals", {}).items():
            self._signals[name] = value
            self._fire(name, value)

    def _fire(self, name: str, value: Any) -> None:
        for handler in list(self._signal_listeners.get(name, ())):
            handler(name, value)

    def trigger_selection(self, name: str, store: Any, value: Any = None) -> None:
        """Simulate a user selection: update ``<name>_store`` and fire ``name`` listeners."""
        self._data[f"{name}{STORE_SUFFIX}"] = store
        signal_value = store if value is None else value
        self._signals[name] = signal_value
        self._fire(name, signal_value)

    def dispatch_event(self, event_type: str, event: Any = None) -> None:
        for handler in list(self._event_listeners.get(event_type, ())):
            handler(event)

    async def to_svg(self) -> str:
        vlc = _vl_convert()
        return await asyncio.to_thread(vlc.vegalite_to_svg, self.spec)

    async def to_canvas(self, scale: float = 1) -> bytes:
        vlc = _vl_convert()
        return await asyncio.to_thread(vlc.vegalite_to_png, self.spec, scale=scale)

    def finalize(self) -> None:
        self.finalized = True
        self._signal_listeners.clear()
        self._event_listeners.clear()


class HeadlessRenderer:
    """Renderer that embeds into HeadlessView instances and keeps every one it made."""

    def __init__(self) -> None:
        self.views: list[HeadlessView] = []

    async def embed(self, anchor: ViewAnchor, spec: JsonDict, options: EmbedOptions) -> HeadlessView:
        if options.mode != "vega-lite":
            raise EmbedError(anchor.view_index, f"unsupported mode {options.mode!r}")
        if "mark" not in spec:
            raise EmbedError(anchor.view_index, "spec has no mark")
        view = HeadlessView(anchor, spec, options)
        self.views.append(view)
        return view
