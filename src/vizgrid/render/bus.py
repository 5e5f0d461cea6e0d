"""
Cross-view interaction bus.

One bus exists per orchestration cycle of a repeated grid. Every view publishes its
selection-store changes as BusEntry values; the bus relays them, throttled with
trailing-edge semantics, to every other view. Echo suppression is per (view, kind):
writing a received store into a view fires that view's signal listener once, and the
armed EchoGuard swallows exactly that one callback.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from vizgrid.core.grammar import SelectionKind

from .channels import Subscription, ThrottledChannel

logger = logging.getLogger(__name__)

__all__ = ["BusEntry", "InteractionBus", "GuardState", "EchoGuard", "ClickRelay", "is_empty_payload"]


def is_empty_payload(payload: Any) -> bool:
    """True for an absent payload or an empty store."""
    if payload is None:
        return True
    if isinstance(payload, (list, tuple, dict)):
        return len(payload) == 0
    return False


@dataclass(frozen=True)
class BusEntry:
    """One relayed selection change.

    Attributes:
        kind: Which selection changed.
        source: View index of the publisher.
        payload: Serialized selection store; empty when the selection was cleared.
    """

    kind: SelectionKind
    source: int
    payload: Any

    @property
    def is_empty(self) -> bool:
        return is_empty_payload(self.payload)


class InteractionBus:
    """Throttled broadcast channel shared by the views of one grid.

    Args:
        interval_ms: Throttle window (see ``vizgrid.viz.grid.throttle_interval_ms``).
    """

    def __init__(self, interval_ms: float) -> None:
        self._channel: ThrottledChannel[BusEntry] = ThrottledChannel(interval_ms, name="interaction-bus")

    @property
    def interval_ms(self) -> float:
        return self._channel.interval_ms

    @property
    def published_count(self) -> int:
        return self._channel.published_count

    @property
    def broadcast_count(self) -> int:
        return self._channel.flush_count

    @property
    def closed(self) -> bool:
        return self._channel.closed

    def publish(self, entry: BusEntry) -> None:
        self._channel.publish(entry)

    def subscribe(self, callback: Callable[[BusEntry], None]) -> Subscription:
        return self._channel.subscribe(callback)

    def close(self) -> None:
        self._channel.close()


class GuardState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"


class EchoGuard:
    """Two-state suppression flag for one (view, selection kind) pair.

    ``arm()`` before writing a received store into the view; the next signal callback
    calls ``consume()``, which returns True exactly once and resets to idle.
    """

    def __init__(self) -> None:
        self.state = GuardState.IDLE

    @property
    def armed(self) -> bool:
        return self.state is GuardState.ARMED

    def arm(self) -> None:
        self.state = GuardState.ARMED

    def consume(self) -> bool:
        if self.state is GuardState.ARMED:
            self.state = GuardState.IDLE
            return True
        return False


class ClickRelay:
    """Forward geometry clicks to the host.

    Pairs each non-empty geometry selection change with the most recent raw click event;
    selections seen before any click are not forwarded.
    """

    def __init__(self, callback: Callable[[Any, Any], None] | None) -> None:
        self._callback = callback
        self._last_click: Any = None
        self._seen_click = False
        self.closed = False

    def record_click(self, event: Any) -> None:
        if self.closed:
            return
        self._last_click = event
        self._seen_click = True

    def on_selection(self, values: Any) -> None:
        if self.closed or self._callback is None or not self._seen_click:
            return
        if is_empty_payload(values):
            return
        self._callback(values, self._last_click)

    def close(self) -> None:
        self.closed = True
        self._last_click = None
