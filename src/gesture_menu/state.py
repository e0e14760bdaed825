"""Observable radial menu state shared by the controller and a renderer."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Optional

from gesture_menu.geometry import RadialAction

logger = logging.getLogger("gesture_menu.state")


@dataclass(frozen=True)
class MenuState:
    """Snapshot of what the overlay should draw."""
    visible: bool = False
    touch_position: tuple[float, float] = (0.0, 0.0)
    drag_offset: tuple[float, float] = (0.0, 0.0)
    selection: Optional[RadialAction] = None
    center_angle: float = 270.0

    def to_dict(self) -> dict:
        return {
            "visible": self.visible,
            "touch_position": list(self.touch_position),
            "drag_offset": list(self.drag_offset),
            "selection": self.selection.value if self.selection else None,
            "center_angle": self.center_angle,
        }


EMPTY_MENU = MenuState()


class MenuStateStore:
    """Single-slot observable holding the current MenuState.

    One store belongs to one screen; pass it to the controller (the only
    writer) and to whatever renders the overlay.

        store = MenuStateStore()
        unsubscribe = store.subscribe(lambda s: print(s.selection))
    """

    def __init__(self, initial: MenuState = EMPTY_MENU):
        self._value = initial
        self._subscribers: list[Callable[[MenuState], None]] = []

    @property
    def value(self) -> MenuState:
        return self._value

    @property
    def is_empty(self) -> bool:
        return not self._value.visible

    def set(self, state: MenuState):
        if state == self._value:
            return
        self._value = state
        self._notify()

    def update(self, **changes) -> MenuState:
        """Replace selected fields of the current state."""
        self.set(replace(self._value, **changes))
        return self._value

    def reset(self):
        self.set(EMPTY_MENU)

    def subscribe(self, callback: Callable[[MenuState], None]) -> Callable[[], None]:
        """Register a change listener. Returns a function that removes it."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self):
        for callback in list(self._subscribers):
            try:
                callback(self._value)
            except Exception as e:
                logger.error("Menu state subscriber error: %s", e)
