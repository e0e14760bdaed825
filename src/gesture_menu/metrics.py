"""Prometheus-compatible metrics for the gesture menu.

No external dependencies — generates the text exposition format directly.

Tracked metrics:
- gesture_menu_outcomes_total (counter, by outcome kind)
- gesture_menu_selection_changes_total (counter)
- gesture_menu_haptic_failures_total (counter)
- gesture_menu_gesture_duration_seconds (histogram)
- gesture_menu_menu_visible (gauge)
- gesture_menu_active_connections (gauge)
"""

from __future__ import annotations

import threading
import time
from collections import Counter


class _Histogram:
    """Simple histogram with configurable buckets."""

    def __init__(self, buckets: list[float]):
        self.buckets = sorted(buckets)
        self.bucket_counts = [0] * len(self.buckets)
        self.count = 0
        self.sum = 0.0
        self._lock = threading.Lock()

    def observe(self, value: float):
        with self._lock:
            self.count += 1
            self.sum += value
            for i, b in enumerate(self.buckets):
                if value <= b:
                    self.bucket_counts[i] += 1
                    break

    def render(self, name: str, help_text: str) -> str:
        lines = [
            f"# HELP {name} {help_text}",
            f"# TYPE {name} histogram",
        ]
        with self._lock:
            cumulative = 0
            for i, b in enumerate(self.buckets):
                cumulative += self.bucket_counts[i]
                lines.append(f'{name}_bucket{{le="{b}"}} {cumulative}')
            lines.append(f'{name}_bucket{{le="+Inf"}} {self.count}')
            lines.append(f"{name}_sum {self.sum:.6f}")
            lines.append(f"{name}_count {self.count}")
        return "\n".join(lines)


class MetricsCollector:
    """Collects and renders gesture menu metrics."""

    def __init__(self):
        self._outcome_counts: Counter = Counter()
        self._selection_changes = 0
        self._haptic_failures = 0
        self._menu_visible = 0
        self._active_connections = 0
        self._lock = threading.Lock()

        # Gesture duration: taps are ~100ms, long-press drags run for seconds
        self._duration = _Histogram([0.1, 0.25, 0.4, 0.75, 1.0, 2.0, 5.0])

        self._start_time = time.time()

    def record_outcome(self, kind: str, duration_seconds: float):
        with self._lock:
            self._outcome_counts[kind] += 1
        self._duration.observe(duration_seconds)

    def record_selection_change(self):
        with self._lock:
            self._selection_changes += 1

    def record_haptic_failure(self):
        with self._lock:
            self._haptic_failures += 1

    def set_menu_visible(self, visible: bool):
        self._menu_visible = 1 if visible else 0

    def set_connections(self, count: int):
        self._active_connections = count

    def render(self) -> str:
        """Render all metrics in Prometheus text exposition format."""
        lines: list[str] = []

        uptime = time.time() - self._start_time
        lines.append("# HELP gesture_menu_uptime_seconds Time since collector start")
        lines.append("# TYPE gesture_menu_uptime_seconds gauge")
        lines.append(f"gesture_menu_uptime_seconds {uptime:.1f}")
        lines.append("")

        lines.append("# HELP gesture_menu_outcomes_total Finished gestures by outcome")
        lines.append("# TYPE gesture_menu_outcomes_total counter")
        with self._lock:
            for kind, count in sorted(self._outcome_counts.items()):
                lines.append(f'gesture_menu_outcomes_total{{outcome="{kind}"}} {count}')
        lines.append("")

        lines.append("# HELP gesture_menu_selection_changes_total Armed selection changes during drags")
        lines.append("# TYPE gesture_menu_selection_changes_total counter")
        lines.append(f"gesture_menu_selection_changes_total {self._selection_changes}")
        lines.append("")

        lines.append("# HELP gesture_menu_haptic_failures_total Vibrations that raised")
        lines.append("# TYPE gesture_menu_haptic_failures_total counter")
        lines.append(f"gesture_menu_haptic_failures_total {self._haptic_failures}")
        lines.append("")

        lines.append(self._duration.render(
            "gesture_menu_gesture_duration_seconds",
            "Time from pointer down to gesture resolution",
        ))
        lines.append("")

        lines.append("# HELP gesture_menu_menu_visible Whether the radial menu is showing")
        lines.append("# TYPE gesture_menu_menu_visible gauge")
        lines.append(f"gesture_menu_menu_visible {self._menu_visible}")
        lines.append("")

        lines.append("# HELP gesture_menu_active_connections Current WebSocket connections")
        lines.append("# TYPE gesture_menu_active_connections gauge")
        lines.append(f"gesture_menu_active_connections {self._active_connections}")
        lines.append("")

        return "\n".join(lines) + "\n"

    @property
    def outcome_counts(self) -> dict[str, int]:
        with self._lock:
            return dict(self._outcome_counts)

    @property
    def selection_changes(self) -> int:
        return self._selection_changes

    @property
    def haptic_failures(self) -> int:
        return self._haptic_failures
