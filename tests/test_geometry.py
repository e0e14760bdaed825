"""Tests for fan direction and drag selection geometry."""

import math

import pytest

from gesture_menu.geometry import (
    RadialAction,
    Sector,
    SectorLayout,
    compute_center_angle,
    fan_icon_positions,
    normalize_angle,
    resolve_selection,
)

W, H = 1080.0, 2400.0


def drag_at(center_angle, relative, length=100.0):
    theta = math.radians(center_angle + relative)
    return (length * math.cos(theta), length * math.sin(theta))


class TestNormalizeAngle:
    def test_negative(self):
        assert normalize_angle(-30) == 330

    def test_full_turns(self):
        assert normalize_angle(360) == 0
        assert normalize_angle(720) == 0
        assert normalize_angle(725) == 5

    def test_tiny_negative_stays_below_360(self):
        assert normalize_angle(-1e-14) == 0.0


class TestCenterAngle:
    def test_screen_center_points_straight_up(self):
        assert compute_center_angle(W / 2, H / 2, W, H) == 270.0

    def test_always_in_upper_hemisphere(self):
        for x in range(-200, 1300, 37):
            for y in range(-200, 2600, 97):
                angle = compute_center_angle(x, y, W, H)
                assert 195.0 <= angle <= 345.0

    def test_left_edge_tilts_up_right_and_clamps(self):
        # base 330 + edge boost 15 = 345
        assert compute_center_angle(0, H / 2, W, H) == pytest.approx(345.0)
        assert compute_center_angle(-500, H / 2, W, H) == pytest.approx(345.0)

    def test_near_left_edge_boost(self):
        # xRatio 0.1 → base 318, boost 5
        assert compute_center_angle(108, H / 2, W, H) == pytest.approx(323.0)

    def test_right_edge_tilts_up_left(self):
        # base 210 - 15 = 195
        assert compute_center_angle(W, H / 2, W, H) == pytest.approx(195.0)

    def test_top_left_tilts_toward_center(self):
        assert compute_center_angle(0, 0, W, H) == pytest.approx(325.0)

    def test_top_right_tilts_toward_center(self):
        assert compute_center_angle(W, 0, W, H) == pytest.approx(215.0)

    def test_top_adjust_only_above_quarter_height(self):
        mid = compute_center_angle(300, H * 0.5, W, H)
        top = compute_center_angle(300, H * 0.2, W, H)
        assert top == pytest.approx(mid - 20.0)

    def test_reference_touch(self):
        # xRatio ≈ 0.463, yRatio ≈ 0.417 → no boost, no top adjust
        angle = compute_center_angle(500, 1000, W, H)
        assert angle == pytest.approx(330.0 - 500 / 1080 * 120.0)
        assert angle == pytest.approx(274.44, abs=0.01)

    def test_decreases_left_to_right(self):
        angles = [compute_center_angle(x, H / 2, W, H) for x in range(0, 1081, 60)]
        assert all(a >= b for a, b in zip(angles, angles[1:]))

    def test_rejects_empty_screen(self):
        with pytest.raises(ValueError):
            compute_center_angle(10, 10, 0, H)


class TestResolveSelection:
    def test_dead_zone(self):
        assert resolve_selection((30, 30), 270.0) is None
        assert resolve_selection((0, -49.9), 270.0) is None

    def test_along_center_is_share(self):
        assert resolve_selection(drag_at(270.0, 0), 270.0) == RadialAction.SHARE

    def test_counter_clockwise_is_like(self):
        assert resolve_selection(drag_at(274.4, -30), 274.4) == RadialAction.LIKE

    def test_clockwise_is_collect(self):
        assert resolve_selection(drag_at(274.4, 30), 274.4) == RadialAction.COLLECT

    def test_perpendicular_is_none(self):
        assert resolve_selection(drag_at(274.4, 90), 274.4) is None

    def test_back_toward_finger_is_none(self):
        assert resolve_selection(drag_at(300.0, 180), 300.0) is None

    def test_upward_drag_on_edge_fan(self):
        # Fan at 345° (left edge); straight up is 75° counter-clockwise of center
        assert resolve_selection((0, -80), 345.0) is None
        assert resolve_selection(drag_at(345.0, -25), 345.0) == RadialAction.LIKE

    def test_custom_dead_zone(self):
        assert resolve_selection((0, -60), 270.0, dead_zone=80) is None
        assert resolve_selection((0, -60), 270.0, dead_zone=50) == RadialAction.SHARE


class TestSectors:
    def test_half_open_boundaries(self):
        layout = SectorLayout()
        assert layout.lookup(300.0) == RadialAction.LIKE
        assert layout.lookup(340.0) == RadialAction.SHARE
        assert layout.lookup(0.0) == RadialAction.SHARE
        assert layout.lookup(20.0) == RadialAction.COLLECT
        assert layout.lookup(60.0) is None
        assert layout.lookup(299.9) is None

    def test_wrapping_sector(self):
        sector = Sector(RadialAction.SHARE, 340.0, 20.0)
        assert sector.contains(350.0)
        assert sector.contains(10.0)
        assert not sector.contains(20.0)
        assert not sector.contains(180.0)

    def test_layout_from_list(self):
        layout = SectorLayout.from_list([
            {"action": "share", "start": -45, "end": 45},
        ])
        assert layout.lookup(30.0) == RadialAction.SHARE
        assert layout.lookup(330.0) == RadialAction.SHARE
        assert layout.lookup(90.0) is None

    def test_layout_to_list(self):
        data = SectorLayout().to_list()
        assert [d["action"] for d in data] == ["like", "share", "collect"]


class TestFanIcons:
    def test_positions_around_upward_fan(self):
        icons = fan_icon_positions((500, 1000), 270.0, 90.0)
        share_x, share_y = icons[RadialAction.SHARE]
        assert share_x == pytest.approx(500.0)
        assert share_y == pytest.approx(910.0)

        like_x, like_y = icons[RadialAction.LIKE]
        assert like_x == pytest.approx(500 - 90 / math.sqrt(2))
        assert like_y == pytest.approx(1000 - 90 / math.sqrt(2))

        collect_x, _ = icons[RadialAction.COLLECT]
        assert collect_x == pytest.approx(500 + 90 / math.sqrt(2))
