"""Radial gesture menu controller.

Classifies one continuous pointer interaction into a tap, a double tap, or a
long press followed by drag-to-select:

    IDLE → DOWN → LONG_PRESS → (like | share | collect | dismissed | cancelled)
               ↘ RELEASED  → (tap | double_tap | discarded)

Everything runs cooperatively on one event loop: each step awaits the next
pointer event or a timeout, never a separate thread.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

import numpy as np

from gesture_menu.config import GestureConfig
from gesture_menu.events import EventStreamClosed, PointerEvent, PointerEventSource
from gesture_menu.geometry import RadialAction, compute_center_angle, resolve_selection
from gesture_menu.haptics import HapticFeedback
from gesture_menu.metrics import MetricsCollector
from gesture_menu.state import MenuState, MenuStateStore

logger = logging.getLogger("gesture_menu.controller")


class OutcomeKind(Enum):
    TAP = "tap"
    DOUBLE_TAP = "double_tap"
    LIKE = "like"
    SHARE = "share"
    COLLECT = "collect"
    DISMISSED = "dismissed"  # long press released with nothing armed
    DISCARDED = "discarded"  # moved past slop, released before long press
    CANCELLED = "cancelled"  # tracked pointer lost


_ACTION_OUTCOMES = {
    RadialAction.LIKE: OutcomeKind.LIKE,
    RadialAction.SHARE: OutcomeKind.SHARE,
    RadialAction.COLLECT: OutcomeKind.COLLECT,
}


@dataclass
class GestureSession:
    """Transient state of the interaction currently being tracked."""
    start_position: tuple[float, float]
    down_time: float
    pointer_id: int
    moved: bool = False
    center_angle: Optional[float] = None
    cumulative_drag: np.ndarray = field(default_factory=lambda: np.zeros(2))
    selection: Optional[RadialAction] = None


@dataclass
class GestureOutcome:
    """How a finished interaction was resolved."""
    kind: OutcomeKind
    pointer_id: int
    start_position: tuple[float, float]
    down_time: float
    end_time: float
    center_angle: Optional[float] = None
    drag: Optional[tuple[float, float]] = None

    @property
    def duration_ms(self) -> float:
        return self.end_time - self.down_time

    def to_dict(self) -> dict:
        return {
            "outcome": self.kind.value,
            "pointer_id": self.pointer_id,
            "start_position": list(self.start_position),
            "down_time": self.down_time,
            "end_time": self.end_time,
            "duration_ms": round(self.duration_ms, 3),
            "center_angle": self.center_angle,
            "drag": list(self.drag) if self.drag is not None else None,
        }


class GestureMenuController:
    """Drives the radial menu from a stream of pointer events.

    Usage:
        store = MenuStateStore()
        controller = GestureMenuController(
            store, on_tap=open_quote, on_like=toggle_like, on_share=share_quote,
        )
        await controller.run(source)
    """

    def __init__(
        self,
        store: Optional[MenuStateStore] = None,
        config: Optional[GestureConfig] = None,
        haptics: Optional[HapticFeedback] = None,
        metrics: Optional[MetricsCollector] = None,
        screen_size: Optional[tuple[float, float]] = None,
        on_tap: Optional[Callable[[], None]] = None,
        on_double_tap: Optional[Callable[[], None]] = None,
        on_like: Optional[Callable[[], None]] = None,
        on_share: Optional[Callable[[], None]] = None,
        on_collect: Optional[Callable[[], None]] = None,
    ):
        self.store = store or MenuStateStore()
        self.config = config or GestureConfig()
        self.metrics = metrics
        self.haptics = haptics or HapticFeedback(metrics=metrics)
        self.screen_size = screen_size or self.config.screen_size

        self._callbacks: dict[OutcomeKind, Optional[Callable[[], None]]] = {
            OutcomeKind.TAP: on_tap,
            OutcomeKind.DOUBLE_TAP: on_double_tap,
            OutcomeKind.LIKE: on_like,
            OutcomeKind.SHARE: on_share,
            OutcomeKind.COLLECT: on_collect,
        }
        self._listeners: list[Callable[[GestureOutcome], None]] = []
        self._session: Optional[GestureSession] = None
        self._pressed: set[int] = set()
        self.last_tap_time: Optional[float] = None

    def on_outcome(self, callback: Callable[[GestureOutcome], None]):
        """Register a listener for every resolved interaction."""
        self._listeners.append(callback)

    @property
    def session(self) -> Optional[GestureSession]:
        return self._session

    async def run(self, source: PointerEventSource) -> int:
        """Process gestures until the source closes. Returns outcomes produced.

        A gesture starts only on a down transition while no other pointer is
        on the screen; a finger left resting from an earlier gesture cannot
        open a new one.
        """
        handled = 0
        self._pressed.clear()
        while True:
            try:
                event = await source.next_event(None)
            except EventStreamClosed:
                logger.debug("Event stream closed after %d gestures", handled)
                return handled

            if event is None:
                continue

            already_down = bool(self._pressed)
            self._observe(event)
            if already_down or not event.pressed or event.cancelled:
                continue

            await self.handle_gesture(source, event)
            handled += 1

    async def handle_gesture(
        self, source: PointerEventSource, down: PointerEvent
    ) -> GestureOutcome:
        """Track one interaction that began with `down` until it resolves."""
        if self._session is not None:
            raise RuntimeError("a gesture session is already active")

        session = GestureSession(
            start_position=down.position,
            down_time=down.timestamp,
            pointer_id=down.pointer_id,
        )
        self._session = session
        logger.debug("DOWN pointer=%d at %s", down.pointer_id, down.position)

        try:
            outcome = await self._track(source, session)
        finally:
            self._session = None
            self.store.reset()
            if self.metrics is not None:
                self.metrics.set_menu_visible(False)

        self._emit(outcome)
        return outcome

    async def _track(self, source: PointerEventSource, session: GestureSession) -> GestureOutcome:
        cfg = self.config
        start = np.asarray(session.start_position, dtype=np.float64)
        last_position = start

        while True:
            elapsed = source.now() - session.down_time
            if not session.moved and elapsed >= cfg.long_press_timeout_ms:
                logger.debug("LONG PRESS after %.0f ms", elapsed)
                return await self._long_press(source, session, last_position)

            if session.moved:
                timeout = cfg.poll_interval_ms
            else:
                timeout = min(cfg.poll_interval_ms, cfg.long_press_timeout_ms - elapsed)

            try:
                event = await source.next_event(timeout)
            except EventStreamClosed:
                logger.debug("Pointer %d lost before release", session.pointer_id)
                return self._outcome(OutcomeKind.CANCELLED, session, source.now())

            if event is None:
                continue

            self._observe(event)
            if event.pointer_id != session.pointer_id:
                continue

            if event.cancelled:
                return self._outcome(OutcomeKind.CANCELLED, session, event.timestamp)

            if not event.pressed:
                return self._resolve_release(session, event.timestamp)

            last_position = np.asarray(event.position, dtype=np.float64)
            distance = float(np.linalg.norm(last_position - start))
            if distance > cfg.touch_slop_px and not session.moved:
                session.moved = True
                logger.debug("Moved %.1f px past slop", distance)

    def _observe(self, event: PointerEvent):
        if event.pressed and not event.cancelled:
            self._pressed.add(event.pointer_id)
        else:
            self._pressed.discard(event.pointer_id)

    def _resolve_release(self, session: GestureSession, up_time: float) -> GestureOutcome:
        if session.moved:
            logger.debug("Moved then released, discarding")
            return self._outcome(OutcomeKind.DISCARDED, session, up_time)

        gap = None if self.last_tap_time is None else session.down_time - self.last_tap_time
        if gap is not None and 0 < gap < self.config.double_tap_timeout_ms:
            logger.debug("DOUBLE TAP (gap %.0f ms)", gap)
            self.last_tap_time = None
            kind = OutcomeKind.DOUBLE_TAP
        else:
            logger.debug("TAP")
            self.last_tap_time = session.down_time
            kind = OutcomeKind.TAP

        self._invoke(kind)
        return self._outcome(kind, session, up_time)

    async def _long_press(
        self, source: PointerEventSource, session: GestureSession, position: np.ndarray
    ) -> GestureOutcome:
        cfg = self.config
        self.haptics.pulse(cfg.long_press_pulse_ms)

        width, height = self.screen_size
        x, y = session.start_position
        session.center_angle = compute_center_angle(x, y, width, height)

        self.store.set(MenuState(
            visible=True,
            touch_position=session.start_position,
            drag_offset=(0.0, 0.0),
            selection=None,
            center_angle=session.center_angle,
        ))
        if self.metrics is not None:
            self.metrics.set_menu_visible(True)
        logger.info(
            "Menu at (%.0f, %.0f), angle=%.1f", x, y, session.center_angle
        )

        last_position = position
        while True:
            try:
                event = await source.next_event(None)
            except EventStreamClosed:
                logger.info("Pointer %d lost during drag", session.pointer_id)
                return self._outcome(OutcomeKind.CANCELLED, session, source.now())

            self._observe(event)
            if event.pointer_id != session.pointer_id:
                continue

            if event.cancelled:
                logger.info("Pointer %d cancelled during drag", session.pointer_id)
                return self._outcome(OutcomeKind.CANCELLED, session, event.timestamp)

            current = np.asarray(event.position, dtype=np.float64)
            session.cumulative_drag = session.cumulative_drag + (current - last_position)
            last_position = current

            if not event.pressed:
                return self._release_menu(session, event.timestamp)

            if float(np.linalg.norm(session.cumulative_drag)) > cfg.report_threshold_px:
                selection = resolve_selection(
                    session.cumulative_drag,
                    session.center_angle,
                    dead_zone=cfg.dead_zone_px,
                    sectors=cfg.sectors,
                )
                if selection != session.selection:
                    logger.debug(
                        "Selection changed: %s -> %s",
                        session.selection.value if session.selection else None,
                        selection.value if selection else None,
                    )
                    session.selection = selection
                    if selection is not None:
                        self.haptics.pulse(cfg.selection_pulse_ms)
                    if self.metrics is not None:
                        self.metrics.record_selection_change()

                dx, dy = session.cumulative_drag
                self.store.update(
                    drag_offset=(float(dx), float(dy)),
                    selection=session.selection,
                )

    def _release_menu(self, session: GestureSession, up_time: float) -> GestureOutcome:
        logger.debug(
            "Released, selection=%s drag=%s",
            session.selection.value if session.selection else None,
            session.cumulative_drag,
        )
        if session.selection is None:
            return self._outcome(OutcomeKind.DISMISSED, session, up_time)

        kind = _ACTION_OUTCOMES[session.selection]
        self.haptics.pulse(self.config.confirm_pulse_ms)
        self._invoke(kind)
        return self._outcome(kind, session, up_time)

    def _invoke(self, kind: OutcomeKind):
        callback = self._callbacks.get(kind)
        if callback is None:
            return
        try:
            callback()
        except Exception as e:
            logger.error("%s callback failed: %s", kind.value, e)

    def _outcome(self, kind: OutcomeKind, session: GestureSession, end_time: float) -> GestureOutcome:
        drag = None
        if session.center_angle is not None:
            dx, dy = session.cumulative_drag
            drag = (float(dx), float(dy))
        return GestureOutcome(
            kind=kind,
            pointer_id=session.pointer_id,
            start_position=session.start_position,
            down_time=session.down_time,
            end_time=end_time,
            center_angle=session.center_angle,
            drag=drag,
        )

    def _emit(self, outcome: GestureOutcome):
        if self.metrics is not None:
            self.metrics.record_outcome(outcome.kind.value, outcome.duration_ms / 1000.0)
        for listener in self._listeners:
            try:
                listener(outcome)
            except Exception as e:
                logger.error("Outcome listener error: %s", e)
