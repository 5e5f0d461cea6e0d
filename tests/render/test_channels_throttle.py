from __future__ import annotations

import asyncio
import logging

from vizgrid.render.channels import Channel, ReadinessState, ThrottledChannel


def test_channel_fanout_and_unsubscribe() -> None:
    ch: Channel[int] = Channel("t")
    a: list[int] = []
    b: list[int] = []
    sub_a = ch.subscribe(a.append)
    ch.subscribe(b.append)

    ch.publish(1)
    sub_a.unsubscribe()
    sub_a.unsubscribe()  # idempotent
    ch.publish(2)

    assert a == [1]
    assert b == [1, 2]
    assert ch.subscriber_count == 1

    ch.close()
    ch.publish(3)
    assert b == [1, 2]
    assert ch.subscribe(b.append).closed


def test_channel_subscriber_failure_is_logged_and_isolated(caplog) -> None:
    ch: Channel[int] = Channel("t")
    got: list[int] = []

    def boom(_: int) -> None:
        raise RuntimeError("subscriber bug")

    ch.subscribe(boom)
    ch.subscribe(got.append)
    with caplog.at_level(logging.ERROR, logger="vizgrid.render.channels"):
        ch.publish(7)

    assert got == [7]
    assert "Subscriber of channel 't' failed" in caplog.text


def test_throttle_is_trailing_edge_only() -> None:
    async def scenario() -> None:
        ch: ThrottledChannel[int] = ThrottledChannel(20)
        got: list[int] = []
        ch.subscribe(got.append)

        for v in (1, 2, 3):
            ch.publish(v)
        # No leading emission
        await asyncio.sleep(0)
        assert got == []
        assert ch.pending

        await asyncio.sleep(0.06)
        assert got == [3]
        assert ch.flush_count == 1
        assert ch.published_count == 3
        assert not ch.pending

        ch.publish(4)
        await asyncio.sleep(0.06)
        assert got == [3, 4]

    asyncio.run(scenario())


def test_zero_interval_flushes_on_next_turn() -> None:
    async def scenario() -> None:
        ch: ThrottledChannel[str] = ThrottledChannel(0)
        got: list[str] = []
        ch.subscribe(got.append)

        ch.publish("a")
        ch.publish("b")
        assert got == []
        await asyncio.sleep(0.01)
        assert got == ["b"]

    asyncio.run(scenario())


def test_close_cancels_pending_flush() -> None:
    async def scenario() -> None:
        ch: ThrottledChannel[int] = ThrottledChannel(10)
        got: list[int] = []
        ch.subscribe(got.append)

        ch.publish(1)
        ch.close()
        await asyncio.sleep(0.03)
        assert got == []
        assert ch.flush_count == 0

    asyncio.run(scenario())


def test_readiness_level_and_edge_waits() -> None:
    async def scenario() -> None:
        state = ReadinessState()
        seen: list[bool] = []
        state.listen(seen.append)
        assert not state.is_ready

        waiter = asyncio.create_task(state.wait())
        edge = asyncio.create_task(state.wait_next())
        await asyncio.sleep(0)
        assert not waiter.done()

        state.set_ready()
        assert await waiter is True
        assert await edge is True

        # Level-triggered: resolves at once while ready
        assert await asyncio.wait_for(state.wait(), timeout=0.1) is True

        # Edge-triggered: waits for the next unready -> ready transition
        nxt = asyncio.create_task(state.wait_next())
        await asyncio.sleep(0)
        state.set_ready()  # already ready, not an edge
        await asyncio.sleep(0)
        assert not nxt.done()
        state.set_unready()
        state.set_ready()
        assert await nxt is True

        assert seen == [True, True, False, True]

    asyncio.run(scenario())


def test_readiness_waits_work_across_event_loops() -> None:
    state = ReadinessState()

    async def cycle() -> bool:
        state.set_unready()
        waiter = asyncio.create_task(state.wait())
        await asyncio.sleep(0)
        assert not waiter.done()
        state.set_ready()
        return await waiter

    assert asyncio.run(cycle()) is True
    assert asyncio.run(cycle()) is True
    assert state._level_waiters == []
