"""
Per-view wiring of one embedded handle to the instance-scoped channels.

A ViewInstance owns the subscriptions and echo guards of a single grid cell. Closing it
detaches the cell from the bus; listeners already registered on the handle become inert
because every callback checks ``closed`` first.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from vizgrid.core.constants import SELECTION_NAME
from vizgrid.core.grammar import SelectionKind, ViewEventType

from .bus import BusEntry, ClickRelay, EchoGuard, InteractionBus
from .channels import Channel, Subscription
from .protocols import ViewHandle

logger = logging.getLogger(__name__)

__all__ = ["ViewInstance", "selection_kinds"]


def selection_kinds(handle: ViewHandle) -> list[SelectionKind]:
    """Cross-filter selections whose stores the compiled view actually declares."""
    kinds: list[SelectionKind] = []
    for name in handle.dataset_names():
        kind = SelectionKind.from_store(name)
        if kind is not None and kind not in kinds:
            kinds.append(kind)
    return kinds


class ViewInstance:
    """Wire one handle into the bus, the hover channel and the click relay.

    Args:
        view_index: Row-major cell index; the bus source id.
        handle: Embedded view handle.
        on_clear: Called when this view publishes an empty selection.
    """

    def __init__(
        self,
        view_index: int,
        handle: ViewHandle,
        *,
        on_clear: Callable[[], None] | None = None,
    ) -> None:
        self.view_index = view_index
        self.handle = handle
        self._on_clear = on_clear
        self._bus: InteractionBus | None = None
        self._guards: dict[SelectionKind, EchoGuard] = {}
        self._subs: list[Subscription] = []
        self.closed = False
        self.writes = 0

    @property
    def kinds(self) -> list[SelectionKind]:
        return list(self._guards)

    def guard(self, kind: SelectionKind) -> EchoGuard | None:
        return self._guards.get(kind)

    # ------------------------------------------------------------------
    # Cross-filter
    # ------------------------------------------------------------------

    def attach_bus(self, bus: InteractionBus, kinds: Iterable[SelectionKind]) -> None:
        """Tap the given selections and subscribe to the bus.

        Raises:
            Exception: Whatever the handle raises for an unknown signal; the caller
                logs it and keeps the cell as rendered without cross-filtering.
        """
        self._bus = bus
        for kind in kinds:
            self._guards[kind] = EchoGuard()
            self.handle.add_signal_listener(kind.signal, self._signal_handler(kind))
        if self._guards:
            self._subs.append(bus.subscribe(self._on_entry))

    def _signal_handler(self, kind: SelectionKind) -> Callable[[str, Any], None]:
        def _on_signal(name: str, value: Any) -> None:
            if self.closed or self._bus is None:
                return
            if self._guards[kind].consume():
                return
            data = self.handle.get_state().get("data", {})
            entry = BusEntry(kind=kind, source=self.view_index, payload=data.get(kind.store))
            if entry.is_empty and self._on_clear is not None:
                self._on_clear()
            self._bus.publish(entry)

        return _on_signal

    def _on_entry(self, entry: BusEntry) -> None:
        if self.closed or entry.source == self.view_index or entry.is_empty:
            return
        guard = self._guards.get(entry.kind)
        if guard is None:
            return
        guard.arm()
        self.writes += 1
        self.handle.set_state({"data": {entry.kind.store: entry.payload}})

    # ------------------------------------------------------------------
    # Hover / click
    # ------------------------------------------------------------------

    def attach_events(self, hover: Channel[int], clicks: ClickRelay) -> None:
        """Report hovers and forward geometry clicks.

        Raises:
            Exception: Whatever the handle raises; the caller logs it.
        """

        def _on_mouseover(_event: Any) -> None:
            if not self.closed:
                hover.publish(self.view_index)

        def _on_click(event: Any) -> None:
            if not self.closed:
                clicks.record_click(event)

        def _on_geom(_name: str, values: Any) -> None:
            if not self.closed:
                clicks.on_selection(values)

        self.handle.add_event_listener(ViewEventType.MOUSEOVER.value, _on_mouseover)
        self.handle.add_event_listener(ViewEventType.CLICK.value, _on_click)
        self.handle.add_signal_listener(SELECTION_NAME, _on_geom)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        for sub in self._subs:
            sub.unsubscribe()
        self._subs.clear()
        finalize = getattr(self.handle, "finalize", None)
        if callable(finalize):
            finalize()
