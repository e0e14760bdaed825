"""Tests for Prometheus metrics."""

from gesture_menu.metrics import MetricsCollector


class TestMetricsCollector:
    def test_record_outcome(self):
        m = MetricsCollector()
        m.record_outcome("tap", 0.08)
        m.record_outcome("tap", 0.09)
        m.record_outcome("share", 1.2)
        assert m.outcome_counts == {"tap": 2, "share": 1}

    def test_counters(self):
        m = MetricsCollector()
        m.record_selection_change()
        m.record_selection_change()
        m.record_haptic_failure()
        assert m.selection_changes == 2
        assert m.haptic_failures == 1

    def test_render_prometheus_format(self):
        m = MetricsCollector()
        m.record_outcome("like", 0.9)
        m.set_menu_visible(True)
        m.set_connections(3)

        output = m.render()
        assert 'gesture_menu_outcomes_total{outcome="like"} 1' in output
        assert "gesture_menu_menu_visible 1" in output
        assert "gesture_menu_active_connections 3" in output
        assert "# HELP" in output
        assert "# TYPE" in output

    def test_histogram_is_cumulative(self):
        m = MetricsCollector()
        m.record_outcome("tap", 0.05)
        m.record_outcome("tap", 0.3)
        m.record_outcome("share", 3.0)
        output = m.render()
        name = "gesture_menu_gesture_duration_seconds"
        assert f'{name}_bucket{{le="0.1"}} 1' in output
        assert f'{name}_bucket{{le="0.4"}} 2' in output
        assert f'{name}_bucket{{le="5.0"}} 3' in output
        assert f'{name}_bucket{{le="+Inf"}} 3' in output
        assert f"{name}_count 3" in output

    def test_menu_visible_toggles(self):
        m = MetricsCollector()
        m.set_menu_visible(True)
        m.set_menu_visible(False)
        assert "gesture_menu_menu_visible 0" in m.render()
