"""Gesture tuning configuration.

All thresholds are in pixels or milliseconds. Values can be overridden from a
YAML file:

    long_press_timeout_ms: 450
    touch_slop_px: 24
    sectors:
      - {action: like, start: 300, end: 340}
      - {action: share, start: 340, end: 20}
      - {action: collect, start: 20, end: 60}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

import yaml

from gesture_menu.geometry import SectorLayout

logger = logging.getLogger("gesture_menu.config")


class ConfigError(ValueError):
    """Raised for unreadable or out-of-range configuration."""


@dataclass
class GestureConfig:
    long_press_timeout_ms: float = 400.0
    double_tap_timeout_ms: float = 300.0
    touch_slop_px: float = 20.0
    poll_interval_ms: float = 50.0
    report_threshold_px: float = 30.0
    dead_zone_px: float = 50.0
    menu_radius_px: float = 90.0

    long_press_pulse_ms: int = 50
    selection_pulse_ms: int = 20
    confirm_pulse_ms: int = 30

    screen_width: float = 1080.0
    screen_height: float = 2400.0

    vibrator_command: Optional[str] = None  # e.g. "termux-vibrate -d {duration}"

    sectors: SectorLayout = field(default_factory=SectorLayout)

    def __post_init__(self):
        self.validate()

    def validate(self):
        positive = (
            "long_press_timeout_ms", "double_tap_timeout_ms", "poll_interval_ms",
            "screen_width", "screen_height",
        )
        for name in positive:
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive, got {getattr(self, name)}")

        non_negative = (
            "touch_slop_px", "report_threshold_px", "dead_zone_px", "menu_radius_px",
            "long_press_pulse_ms", "selection_pulse_ms", "confirm_pulse_ms",
        )
        for name in non_negative:
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must not be negative, got {getattr(self, name)}")

        if not self.sectors.sectors:
            raise ConfigError("at least one sector is required")

    @property
    def screen_size(self) -> tuple[float, float]:
        return (self.screen_width, self.screen_height)

    def to_dict(self) -> dict:
        data = {f.name: getattr(self, f.name) for f in fields(self) if f.name != "sectors"}
        data["sectors"] = self.sectors.to_list()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> GestureConfig:
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(unknown))

        kwargs = {k: v for k, v in data.items() if k in known and k != "sectors"}
        try:
            if "sectors" in data:
                kwargs["sectors"] = SectorLayout.from_list(data["sectors"])
            return cls(**kwargs)
        except ConfigError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"invalid config: {e}") from e

    def to_yaml(self, path: str | Path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)


def load_config(path: Optional[str | Path] = None) -> GestureConfig:
    """Load configuration from YAML, or return defaults when no path is given."""
    if path is None:
        return GestureConfig()

    path = Path(path)
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping")

    config = GestureConfig.from_dict(data)
    logger.info("Loaded gesture config from %s", path)
    return config
