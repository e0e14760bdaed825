"""gesture-menu - Radial drag-to-select gesture menu for touch screens."""

__version__ = "0.1.0"

from gesture_menu.geometry import (
    RadialAction,
    Sector,
    SectorLayout,
    compute_center_angle,
    fan_icon_positions,
    normalize_angle,
    resolve_selection,
)
from gesture_menu.events import (
    EventStreamClosed,
    PointerEvent,
    QueueEventSource,
    ScriptedEventSource,
    VirtualClock,
)
from gesture_menu.state import MenuState, MenuStateStore
from gesture_menu.config import ConfigError, GestureConfig, load_config
from gesture_menu.haptics import CommandVibrator, HapticFeedback, NullVibrator
from gesture_menu.metrics import MetricsCollector
from gesture_menu.controller import (
    GestureMenuController,
    GestureOutcome,
    GestureSession,
    OutcomeKind,
)
from gesture_menu.recorder import PointerPlayer, PointerRecorder
from gesture_menu.hooks import HostHook, HostHooks
