"""Pointer session recording and replay.

Record real touch sessions for:
- Reproducible controller tests without a device
- Tuning thresholds against the same input
- Demo recordings that play back deterministically
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Iterator, Optional

import numpy as np

from gesture_menu.events import PointerEvent, QueueEventSource, ScriptedEventSource


class PointerRecorder:
    """Records pointer events to a file.

    Usage:
        recorder = PointerRecorder(screen_size=(1080, 2400))
        recorder.start()
        # For every event fed to the controller:
        recorder.add_event(event)
        recorder.save("session.json")
    """

    def __init__(self, screen_size: tuple[float, float] = (1080.0, 2400.0)):
        self.screen_size = screen_size
        self._events: list[PointerEvent] = []
        self._recording = False

    def start(self):
        """Begin a new recording session."""
        self._events = []
        self._recording = True

    def stop(self) -> int:
        """Stop recording. Returns number of events captured."""
        self._recording = False
        return len(self._events)

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def event_count(self) -> int:
        return len(self._events)

    @property
    def duration(self) -> float:
        """Milliseconds between the first and last event."""
        if len(self._events) < 2:
            return 0.0
        return self._events[-1].timestamp - self._events[0].timestamp

    def add_event(self, event: PointerEvent):
        if not self._recording:
            return
        self._events.append(event)

    def save(self, path: str | Path):
        """Save recording to JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "version": 1,
            "screen_size": list(self.screen_size),
            "event_count": len(self._events),
            "duration_ms": self.duration,
            "events": [e.to_dict() for e in self._events],
        }

        with open(path, "w") as f:
            json.dump(data, f)

    def save_compact(self, path: str | Path) -> Path:
        """Save in compact numpy npz format for smaller files."""
        path = Path(path).with_suffix(".npz")
        path.parent.mkdir(parents=True, exist_ok=True)

        # Columns: pointer_id, x, y, pressed, timestamp, cancelled
        table = np.zeros((len(self._events), 6), dtype=np.float64)
        for i, e in enumerate(self._events):
            table[i] = [
                e.pointer_id, e.position[0], e.position[1],
                float(e.pressed), e.timestamp, float(e.cancelled),
            ]

        np.savez_compressed(
            path,
            events=table,
            screen_size=np.array(self.screen_size, dtype=np.float64),
        )
        return path


class PointerPlayer:
    """Replays a recorded pointer session.

    Usage:
        player = PointerPlayer.load("session.json")
        await controller.run(player.source())
    """

    def __init__(self, events: list[PointerEvent], screen_size: tuple[float, float]):
        self._events = events
        self.screen_size = screen_size

    @classmethod
    def load(cls, path: str | Path) -> PointerPlayer:
        """Load recording from JSON or npz."""
        path = Path(path)

        if path.suffix == ".npz":
            return cls._load_compact(path)

        with open(path) as f:
            data = json.load(f)

        events = [PointerEvent.from_dict(e) for e in data["events"]]
        width, height = data.get("screen_size", (1080.0, 2400.0))
        return cls(events, (float(width), float(height)))

    @classmethod
    def _load_compact(cls, path: Path) -> PointerPlayer:
        data = np.load(path, allow_pickle=False)
        table = data["events"]
        width, height = (float(v) for v in data["screen_size"])

        events = [
            PointerEvent(
                pointer_id=int(row[0]),
                position=(float(row[1]), float(row[2])),
                pressed=bool(row[3]),
                timestamp=float(row[4]),
                cancelled=bool(row[5]),
            )
            for row in table
        ]
        return cls(events, (width, height))

    @property
    def event_count(self) -> int:
        return len(self._events)

    @property
    def duration(self) -> float:
        if len(self._events) < 2:
            return 0.0
        return self._events[-1].timestamp - self._events[0].timestamp

    def events(self) -> Iterator[PointerEvent]:
        yield from self._events

    def source(self, idle_horizon_ms: float = 1000.0) -> ScriptedEventSource:
        """Deterministic source replaying the session on a virtual clock."""
        return ScriptedEventSource(self._events, idle_horizon_ms=idle_horizon_ms)

    async def play_realtime(
        self, target: QueueEventSource, speed: float = 1.0, close: bool = True
    ):
        """Feed a live source at the original timing (scaled by `speed`).

        Events are re-stamped with the target's clock so timeouts measured by
        the controller line up with the replay.
        """
        if not self._events:
            if close:
                target.close()
            return

        loop = asyncio.get_running_loop()
        start = loop.time()
        first = self._events[0].timestamp

        for event in self._events:
            target_time = (event.timestamp - first) / 1000.0 / speed
            delay = target_time - (loop.time() - start)
            if delay > 0:
                await asyncio.sleep(delay)
            target.push_pointer(
                event.pointer_id, event.position, event.pressed, cancelled=event.cancelled
            )

        if close:
            target.close()

    def get_event(self, index: int) -> Optional[PointerEvent]:
        if 0 <= index < len(self._events):
            return self._events[index]
        return None
