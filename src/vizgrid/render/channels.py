"""
Instance-scoped event channels.

All channels run on a single asyncio event loop; publishing is synchronous and
subscribers run to completion before the next callback, so no locking is needed.

- Channel: plain fan-out pub/sub with Subscription handles.
- ThrottledChannel: trailing-edge throttle; at most one flush per window, carrying the
  latest value published during that window and never the first (no leading edge).
- ReadinessState: aggregate readiness flag with level- and edge-triggered waits.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Generic, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)

__all__ = ["Subscription", "Channel", "ThrottledChannel", "ReadinessState"]


class Subscription:
    """Handle returned by ``Channel.subscribe``; ``unsubscribe()`` is idempotent."""

    def __init__(self, channel: Channel[Any], callback: Callable[[Any], None]) -> None:
        self._channel = channel
        self.callback = callback
        self.closed = False

    def unsubscribe(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._channel._remove(self)


class Channel(Generic[T]):
    """Synchronous pub/sub channel owned by one orchestration cycle."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._subs: list[Subscription] = []
        self.closed = False

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        sub = Subscription(self, callback)
        if self.closed:
            sub.closed = True
            return sub
        self._subs.append(sub)
        return sub

    def _remove(self, sub: Subscription) -> None:
        if sub in self._subs:
            self._subs.remove(sub)

    @property
    def subscriber_count(self) -> int:
        return len(self._subs)

    def publish(self, value: T) -> None:
        if self.closed:
            return
        self._deliver(value)

    def _deliver(self, value: T) -> None:
        for sub in list(self._subs):
            if sub.closed:
                continue
            try:
                sub.callback(value)
            except Exception:
                logger.exception("Subscriber of channel %r failed", self.name)

    def close(self) -> None:
        self.closed = True
        for sub in self._subs:
            sub.closed = True
        self._subs.clear()


class ThrottledChannel(Channel[T]):
    """Channel whose deliveries are throttled with trailing-edge semantics.

    Args:
        interval_ms: Window length in milliseconds; 0 flushes on the next loop turn.
        name: Label used in log lines.
    """

    def __init__(self, interval_ms: float, name: str = "") -> None:
        super().__init__(name)
        self.interval_ms = max(0.0, float(interval_ms))
        self._timer: asyncio.TimerHandle | None = None
        self._latest: T | None = None
        self.published_count = 0
        self.flush_count = 0

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def publish(self, value: T) -> None:
        if self.closed:
            return
        self.published_count += 1
        self._latest = value
        if self._timer is None:
            loop = asyncio.get_running_loop()
            self._timer = loop.call_later(self.interval_ms / 1000.0, self._flush)

    def _flush(self) -> None:
        self._timer = None
        if self.closed:
            return
        value = self._latest
        self._latest = None
        self.flush_count += 1
        self._deliver(value)  # type: ignore[arg-type]

    def close(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._latest = None
        super().close()


class ReadinessState:
    """Aggregate readiness with a single writer (the orchestrator) and many readers.

    ``wait()`` is level-triggered: it returns at once when already ready.
    ``wait_next()`` is edge-triggered: it waits for the next unready -> ready transition.

    Waiters are futures created on the caller's running loop, so one state object can
    be awaited from successive event loops.
    """

    def __init__(self) -> None:
        self._ready = False
        self._level_waiters: list[asyncio.Future[bool]] = []
        self._edge_waiters: list[asyncio.Future[bool]] = []
        self.transitions: Channel[bool] = Channel("readiness")

    @property
    def is_ready(self) -> bool:
        return self._ready

    def set_ready(self) -> None:
        was_ready = self._ready
        self._ready = True
        waiters, self._level_waiters = self._level_waiters, []
        if not was_ready:
            waiters += self._edge_waiters
            self._edge_waiters = []
        for fut in waiters:
            if not fut.done():
                fut.set_result(True)
        self.transitions.publish(True)

    def set_unready(self) -> None:
        self._ready = False
        self.transitions.publish(False)

    async def wait(self) -> bool:
        if self._ready:
            return True
        return await self._park(self._level_waiters)

    async def wait_next(self) -> bool:
        return await self._park(self._edge_waiters)

    async def _park(self, waiters: list[asyncio.Future[bool]]) -> bool:
        fut: asyncio.Future[bool] = asyncio.get_running_loop().create_future()
        waiters.append(fut)
        try:
            return await fut
        finally:
            if fut in waiters:
                waiters.remove(fut)

    def listen(self, callback: Callable[[bool], None]) -> Subscription:
        return self.transitions.subscribe(callback)
