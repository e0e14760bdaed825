"""Tests for pointer event sources."""

import asyncio

import pytest

from gesture_menu.events import (
    EventStreamClosed,
    PointerEvent,
    QueueEventSource,
    ScriptedEventSource,
    VirtualClock,
)


def ev(t, pressed=True, pid=0):
    return PointerEvent(pid, (100.0, 200.0), pressed, t)


class TestPointerEvent:
    def test_dict_roundtrip(self):
        e = PointerEvent(3, (1.5, 2.5), False, 123.0, cancelled=True)
        assert PointerEvent.from_dict(e.to_dict()) == e

    def test_cancelled_defaults_false(self):
        data = {"pointer_id": 0, "x": 1, "y": 2, "pressed": True, "timestamp": 5}
        assert PointerEvent.from_dict(data).cancelled is False


class TestVirtualClock:
    def test_advance(self):
        clock = VirtualClock(100.0)
        clock.advance(50)
        assert clock.now() == 150.0

    def test_advance_to_never_goes_back(self):
        clock = VirtualClock(100.0)
        clock.advance_to(80.0)
        assert clock.now() == 100.0
        clock.advance_to(120.0)
        assert clock.now() == 120.0


class TestScriptedEventSource:
    def test_clock_starts_at_first_event(self):
        source = ScriptedEventSource([ev(500.0), ev(300.0)])
        assert source.now() == 300.0

    def test_events_in_timestamp_order(self):
        source = ScriptedEventSource([ev(500.0, False), ev(300.0)])

        async def drain():
            return [await source.next_event(), await source.next_event()]

        first, second = asyncio.run(drain())
        assert (first.timestamp, second.timestamp) == (300.0, 500.0)
        assert source.now() == 500.0
        assert source.remaining == 0

    def test_timeout_advances_clock(self):
        source = ScriptedEventSource([ev(0.0), ev(200.0)])

        async def scenario():
            await source.next_event()
            timed_out = await source.next_event(50)
            now_after_timeout = source.now()
            event = await source.next_event(150)
            return timed_out, now_after_timeout, event

        timed_out, now_after_timeout, event = asyncio.run(scenario())
        assert timed_out is None
        assert now_after_timeout == 50.0
        assert event.timestamp == 200.0

    def test_event_exactly_at_deadline_is_delivered(self):
        source = ScriptedEventSource([ev(0.0), ev(100.0)])

        async def scenario():
            await source.next_event()
            return await source.next_event(100)

        assert asyncio.run(scenario()).timestamp == 100.0

    def test_exhausted_without_timeout_closes(self):
        source = ScriptedEventSource([ev(0.0)])

        async def scenario():
            await source.next_event()
            await source.next_event()

        with pytest.raises(EventStreamClosed):
            asyncio.run(scenario())

    def test_idle_horizon(self):
        source = ScriptedEventSource([ev(0.0)], idle_horizon_ms=100.0)

        async def scenario():
            await source.next_event()
            timeouts = 0
            while True:
                try:
                    assert await source.next_event(40) is None
                except EventStreamClosed:
                    return timeouts
                timeouts += 1

        assert asyncio.run(scenario()) == 3
        assert source.now() == 120.0

    def test_empty_script(self):
        with pytest.raises(EventStreamClosed):
            asyncio.run(ScriptedEventSource([]).next_event())


class TestQueueEventSource:
    def test_push_and_read(self):
        async def scenario():
            source = QueueEventSource()
            pushed = source.push_pointer(1, (3, 4), pressed=True)
            return pushed, await source.next_event()

        pushed, received = asyncio.run(scenario())
        assert received is pushed
        assert received.position == (3.0, 4.0)
        assert received.pointer_id == 1

    def test_timeout_returns_none(self):
        async def scenario():
            return await QueueEventSource().next_event(10)

        assert asyncio.run(scenario()) is None

    def test_close_is_sticky(self):
        async def scenario():
            source = QueueEventSource()
            source.close()
            source.close()
            for _ in range(2):
                with pytest.raises(EventStreamClosed):
                    await source.next_event()
            return source

        assert asyncio.run(scenario()).closed

    def test_events_before_close_still_delivered(self):
        async def scenario():
            source = QueueEventSource()
            source.push(ev(1.0))
            source.close()
            event = await source.next_event()
            with pytest.raises(EventStreamClosed):
                await source.next_event()
            return event

        assert asyncio.run(scenario()).timestamp == 1.0

    def test_push_after_close_raises(self):
        async def scenario():
            source = QueueEventSource()
            source.close()
            source.push(ev(1.0))

        with pytest.raises(EventStreamClosed):
            asyncio.run(scenario())

    def test_stamps_with_monotonic_clock(self):
        async def scenario():
            source = QueueEventSource()
            before = source.now()
            event = source.push_pointer(0, (0, 0), pressed=False)
            return before, event.timestamp, source.now()

        before, stamped, after = asyncio.run(scenario())
        assert before <= stamped <= after
