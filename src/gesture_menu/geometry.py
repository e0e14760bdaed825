"""Fan geometry — where the radial menu points and which icon a drag selects.

Angles use screen-space convention (Y grows downward):
0° = right, 90° = down, 180° = left, 270° = up.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

import numpy as np

# Base angle sweeps from up-right at the left edge to up-left at the right edge
LEFT_EDGE_ANGLE = 330.0
ANGLE_SWEEP = 120.0
EDGE_ZONE = 0.15
EDGE_BOOST_GAIN = 100.0
TOP_ZONE = 0.25
TOP_ADJUST = 20.0
MIN_CENTER_ANGLE = 195.0
MAX_CENTER_ANGLE = 345.0

ICON_SPREAD = 45.0


class RadialAction(Enum):
    """Actions offered by the three fan icons."""
    LIKE = "like"
    SHARE = "share"
    COLLECT = "collect"


def normalize_angle(angle: float) -> float:
    """Wrap an angle in degrees into [0, 360)."""
    wrapped = angle % 360.0
    # tiny negatives round up to exactly 360.0
    return 0.0 if wrapped >= 360.0 else wrapped


def compute_center_angle(x: float, y: float, width: float, height: float) -> float:
    """Direction the fan opens toward for a touch at (x, y).

    The fan never opens downward (the finger would cover it) and tilts away
    from the nearest horizontal edge so icons are not clipped.

    Args:
        x, y: Absolute touch position in pixels.
        width, height: Screen dimensions in pixels.

    Returns:
        Center angle in degrees, always within [195, 345].
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"screen size must be positive, got {width}x{height}")

    x_ratio = min(max(x / width, 0.0), 1.0)
    y_ratio = min(max(y / height, 0.0), 1.0)

    base = LEFT_EDGE_ANGLE - x_ratio * ANGLE_SWEEP

    if x_ratio < EDGE_ZONE:
        edge_boost = (EDGE_ZONE - x_ratio) * EDGE_BOOST_GAIN
    elif x_ratio > 1.0 - EDGE_ZONE:
        edge_boost = -(x_ratio - (1.0 - EDGE_ZONE)) * EDGE_BOOST_GAIN
    else:
        edge_boost = 0.0

    # Near the top, tilt back toward the middle of the screen
    if y_ratio < TOP_ZONE:
        top_adjust = -TOP_ADJUST if x_ratio < 0.5 else TOP_ADJUST
    else:
        top_adjust = 0.0

    angle = base + edge_boost + top_adjust
    return min(max(angle, MIN_CENTER_ANGLE), MAX_CENTER_ANGLE)


@dataclass(frozen=True)
class Sector:
    """Half-open arc [start, end) of relative angles bound to an action.

    An arc with start > end wraps through 0°.
    """
    action: RadialAction
    start: float
    end: float

    def contains(self, relative_angle: float) -> bool:
        if self.start <= self.end:
            return self.start <= relative_angle < self.end
        return relative_angle >= self.start or relative_angle < self.end

    def to_dict(self) -> dict:
        return {"action": self.action.value, "start": self.start, "end": self.end}

    @classmethod
    def from_dict(cls, data: dict) -> Sector:
        return cls(
            action=RadialAction(data["action"]),
            start=normalize_angle(float(data["start"])),
            end=normalize_angle(float(data["end"])),
        )


@dataclass(frozen=True)
class SectorLayout:
    """Selectable arcs, relative to the fan's center direction.

    Angles outside every sector (most of the circle, including dragging back
    toward the finger) select nothing.
    """
    sectors: tuple[Sector, ...] = field(default_factory=lambda: (
        Sector(RadialAction.LIKE, 300.0, 340.0),
        Sector(RadialAction.SHARE, 340.0, 20.0),
        Sector(RadialAction.COLLECT, 20.0, 60.0),
    ))

    def lookup(self, relative_angle: float) -> Optional[RadialAction]:
        for sector in self.sectors:
            if sector.contains(relative_angle):
                return sector.action
        return None

    def to_list(self) -> list[dict]:
        return [s.to_dict() for s in self.sectors]

    @classmethod
    def from_list(cls, data: list[dict]) -> SectorLayout:
        return cls(sectors=tuple(Sector.from_dict(d) for d in data))


DEFAULT_SECTORS = SectorLayout()


def resolve_selection(
    drag: Sequence[float],
    center_angle: float,
    dead_zone: float = 50.0,
    sectors: SectorLayout = DEFAULT_SECTORS,
) -> Optional[RadialAction]:
    """Map a cumulative drag vector to the action it points at.

    Args:
        drag: (dx, dy) accumulated since the long press was recognized.
        center_angle: Fan direction in degrees for this session.
        dead_zone: Minimum drag length before any action arms.
        sectors: Relative-angle arcs for each action.

    Returns:
        The selected action, or None inside the dead zone or outside every arc.
    """
    dx, dy = float(drag[0]), float(drag[1])
    if math.hypot(dx, dy) < dead_zone:
        return None

    raw_angle = normalize_angle(math.degrees(math.atan2(dy, dx)))
    relative = normalize_angle(raw_angle - center_angle)
    return sectors.lookup(relative)


def fan_icon_positions(
    center: Sequence[float], center_angle: float, radius: float
) -> dict[RadialAction, tuple[float, float]]:
    """Screen positions of the LIKE, SHARE and COLLECT icons around a touch."""
    origin = np.asarray(center, dtype=np.float64)
    positions = {}
    offsets = (-ICON_SPREAD, 0.0, ICON_SPREAD)
    for action, offset in zip(RadialAction, offsets):
        theta = math.radians(center_angle + offset)
        point = origin + radius * np.array([math.cos(theta), math.sin(theta)])
        positions[action] = (float(point[0]), float(point[1]))
    return positions
