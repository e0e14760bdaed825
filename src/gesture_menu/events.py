"""Pointer event sources.

A source hands the controller one pointer event at a time and lets it race
"next event" against a timeout:

    event = await source.next_event(timeout_ms=50)   # None on timeout

`QueueEventSource` is fed live (e.g. from a WebSocket); `ScriptedEventSource`
replays a fixed list of events against a virtual clock so recordings and tests
run instantly and deterministically.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol


class EventStreamClosed(Exception):
    """No further pointer events will arrive from this source."""


@dataclass(frozen=True)
class PointerEvent:
    """A single pointer sample."""
    pointer_id: int
    position: tuple[float, float]
    pressed: bool
    timestamp: float  # milliseconds
    cancelled: bool = False  # pointer lost without a release

    def to_dict(self) -> dict:
        return {
            "pointer_id": self.pointer_id,
            "x": self.position[0],
            "y": self.position[1],
            "pressed": self.pressed,
            "timestamp": self.timestamp,
            "cancelled": self.cancelled,
        }

    @classmethod
    def from_dict(cls, data: dict) -> PointerEvent:
        return cls(
            pointer_id=int(data["pointer_id"]),
            position=(float(data["x"]), float(data["y"])),
            pressed=bool(data["pressed"]),
            timestamp=float(data["timestamp"]),
            cancelled=bool(data.get("cancelled", False)),
        )


class PointerEventSource(Protocol):
    def now(self) -> float:
        """Current time on the source clock, in milliseconds."""
        ...

    async def next_event(self, timeout_ms: Optional[float] = None) -> Optional[PointerEvent]:
        """Next event, None after `timeout_ms`, or raise EventStreamClosed."""
        ...


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class QueueEventSource:
    """Live event source backed by an asyncio queue.

    Usage:
        source = QueueEventSource()
        source.push_pointer(0, (120, 640), pressed=True)
        ...
        source.close()
    """

    _CLOSED = object()

    def __init__(self, maxsize: int = 0):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    def now(self) -> float:
        return monotonic_ms()

    def push(self, event: PointerEvent):
        if self._closed:
            raise EventStreamClosed("source is closed")
        self._queue.put_nowait(event)

    def push_pointer(
        self,
        pointer_id: int,
        position: tuple[float, float],
        pressed: bool,
        cancelled: bool = False,
    ) -> PointerEvent:
        """Stamp a sample with the source clock and enqueue it."""
        event = PointerEvent(
            pointer_id=pointer_id,
            position=(float(position[0]), float(position[1])),
            pressed=pressed,
            timestamp=self.now(),
            cancelled=cancelled,
        )
        self.push(event)
        return event

    def close(self):
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(self._CLOSED)

    @property
    def closed(self) -> bool:
        return self._closed

    async def next_event(self, timeout_ms: Optional[float] = None) -> Optional[PointerEvent]:
        try:
            if timeout_ms is None:
                item = await self._queue.get()
            else:
                item = await asyncio.wait_for(
                    self._queue.get(), timeout=max(timeout_ms, 0.0) / 1000.0
                )
        except asyncio.TimeoutError:
            return None

        if item is self._CLOSED:
            # Leave the marker in place for any later reader
            self._queue.put_nowait(self._CLOSED)
            raise EventStreamClosed("source is closed")
        return item


class VirtualClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: float = 0.0):
        self._now = float(start)

    def now(self) -> float:
        return self._now

    def advance(self, ms: float):
        self._now += ms

    def advance_to(self, t: float):
        self._now = max(self._now, t)


class ScriptedEventSource:
    """Replays a fixed event list against a virtual clock.

    A timeout that expires before the next scripted event advances the clock
    by the timeout and returns None, so "hold still for 450 ms" needs no real
    sleeping. Once the script is exhausted the source keeps timing out until
    `idle_horizon_ms` past the last event, then reports the stream closed.
    """

    def __init__(
        self,
        events: Iterable[PointerEvent],
        clock: Optional[VirtualClock] = None,
        idle_horizon_ms: float = 1000.0,
    ):
        self._events = sorted(events, key=lambda e: e.timestamp)
        start = self._events[0].timestamp if self._events else 0.0
        self.clock = clock or VirtualClock(start)
        self._index = 0
        last = self._events[-1].timestamp if self._events else start
        self._end_time = last + idle_horizon_ms

    def now(self) -> float:
        return self.clock.now()

    @property
    def remaining(self) -> int:
        return len(self._events) - self._index

    async def next_event(self, timeout_ms: Optional[float] = None) -> Optional[PointerEvent]:
        await asyncio.sleep(0)

        if self._index >= len(self._events):
            if timeout_ms is None or self.clock.now() >= self._end_time:
                raise EventStreamClosed("script exhausted")
            self.clock.advance(timeout_ms)
            return None

        event = self._events[self._index]
        if timeout_ms is None or event.timestamp <= self.clock.now() + timeout_ms:
            self.clock.advance_to(event.timestamp)
            self._index += 1
            return event

        self.clock.advance(timeout_ms)
        return None
