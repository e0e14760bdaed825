"""Best-effort haptic feedback.

A failed vibration must never break gesture recognition, so every call goes
through `HapticFeedback.pulse`, which logs and swallows vibrator errors.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from typing import Optional, Protocol

logger = logging.getLogger("gesture_menu.haptics")


class Vibrator(Protocol):
    def vibrate(self, duration_ms: int) -> None:
        ...


class NullVibrator:
    """Vibrator for hosts without haptics. Records pulses for inspection."""

    def __init__(self):
        self.pulses: list[int] = []

    def vibrate(self, duration_ms: int) -> None:
        self.pulses.append(duration_ms)
        logger.debug("vibrate(%d ms) [no-op]", duration_ms)


class CommandVibrator:
    """Vibrates by spawning an external command, e.g. Termux on Android.

    The command template may reference `{duration}` (milliseconds). The process
    is not waited on; a missing binary surfaces as an OSError from `vibrate`.
    """

    def __init__(self, command: str = "termux-vibrate -d {duration}"):
        self.command = command

    def vibrate(self, duration_ms: int) -> None:
        argv = shlex.split(self.command.format(duration=int(duration_ms)))
        subprocess.Popen(
            argv,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )


class HapticFeedback:
    """Wraps a vibrator so failures are logged, counted and ignored."""

    def __init__(self, vibrator: Optional[Vibrator] = None, metrics=None):
        self.vibrator = vibrator if vibrator is not None else NullVibrator()
        self._metrics = metrics
        self.failures = 0

    def pulse(self, duration_ms: int) -> bool:
        """Fire one pulse. Returns False if the vibrator raised."""
        if duration_ms <= 0:
            return False
        try:
            self.vibrator.vibrate(duration_ms)
            return True
        except Exception as e:
            self.failures += 1
            if self._metrics is not None:
                self._metrics.record_haptic_failure()
            logger.warning("Vibration failed: %s", e)
            return False

    @classmethod
    def from_command(cls, command: Optional[str], metrics=None) -> HapticFeedback:
        """Command-driven haptics, or a no-op vibrator when `command` is empty."""
        vibrator = CommandVibrator(command) if command else NullVibrator()
        return cls(vibrator, metrics=metrics)
