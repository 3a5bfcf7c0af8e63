import pytest

from packages.core.monitor.sustained_tracker import SustainedUsageTracker
from packages.core.monitor.types import TrackerSettings

from conftest import sample

SETTINGS = TrackerSettings(cpu_threshold=90.0, sustain_duration=10.0, tray_mode="warning-only")


@pytest.fixture
def tracker():
    return SustainedUsageTracker()


def alert_pids(result):
    return [p.pid for p in result.alerts]


def test_alerts_from_the_tick_where_duration_is_reached(tracker):
    hog = sample("hog", 42, 99.0)
    seen = []
    for t in (0, 3, 6, 9, 10, 13):
        seen.append(alert_pids(tracker.evaluate([hog], SETTINGS, now=float(t))))
    assert seen == [[], [], [], [], [42], [42]]


def test_entry_disappears_the_tick_after_dropping(tracker):
    tracker.evaluate([sample("hog", 42, 99.0)], SETTINGS, now=0.0)
    result = tracker.evaluate([sample("hog", 42, 99.0)], SETTINGS, now=12.0)
    assert alert_pids(result) == [42]

    result = tracker.evaluate([sample("hog", 42, 10.0)], SETTINGS, now=15.0)
    assert result.alerts == []
    assert tracker.get_entry(42) is None
    assert tracker.elapsed_duration(42, now=15.0) == 0.0


def test_single_dip_restarts_timer_from_zero(tracker):
    tracker.evaluate([sample("hog", 42, 99.0)], SETTINGS, now=0.0)
    tracker.evaluate([sample("hog", 42, 99.0)], SETTINGS, now=8.0)
    tracker.evaluate([sample("hog", 42, 50.0)], SETTINGS, now=9.0)
    tracker.evaluate([sample("hog", 42, 99.0)], SETTINGS, now=10.0)

    assert tracker.elapsed_duration(42, now=10.0) == 0.0
    result = tracker.evaluate([sample("hog", 42, 99.0)], SETTINGS, now=19.0)
    assert result.alerts == []
    result = tracker.evaluate([sample("hog", 42, 99.0)], SETTINGS, now=20.0)
    assert alert_pids(result) == [42]


def test_absent_pid_is_dropped(tracker):
    tracker.evaluate([sample("hog", 42, 99.0), sample("other", 7, 95.0)], SETTINGS, now=0.0)
    tracker.evaluate([sample("other", 7, 95.0)], SETTINGS, now=1.0)
    assert [e.latest_sample.pid for e in tracker.tracked_entries()] == [7]


def test_threshold_is_inclusive(tracker):
    tracker.evaluate([sample("edge", 1, 90.0)], SETTINGS, now=0.0)
    assert tracker.get_entry(1) is not None


def test_clear_alert_then_hot_tick_starts_fresh(tracker):
    tracker.evaluate([sample("hog", 42, 99.0)], SETTINGS, now=0.0)
    assert alert_pids(tracker.evaluate([sample("hog", 42, 99.0)], SETTINGS, now=11.0)) == [42]

    tracker.clear_alert(42)
    result = tracker.evaluate([sample("hog", 42, 99.0)], SETTINGS, now=12.0)

    assert result.alerts == []
    entry = tracker.get_entry(42)
    assert entry.first_above_threshold_at == 12.0
    assert entry.accumulated_duration == 0.0


def test_clear_alert_is_idempotent(tracker):
    tracker.evaluate([sample("hog", 42, 99.0)], SETTINGS, now=0.0)
    tracker.clear_alert(42)
    tracker.clear_alert(42)
    tracker.clear_alert(999)
    assert tracker.tracked_entries() == []


def test_clear_all_twice_equals_once(tracker):
    tracker.evaluate([sample("a", 1, 99.0), sample("b", 2, 99.0)], SETTINGS, now=0.0)
    tracker.clear_all()
    once = tracker.tracked_entries()
    tracker.clear_all()
    assert tracker.tracked_entries() == once == []


def test_empty_snapshot_clears_everything(tracker):
    tracker.evaluate([sample("a", 1, 99.0), sample("b", 2, 99.0)], SETTINGS, now=0.0)
    result = tracker.evaluate([], SETTINGS, now=20.0)
    assert result.alerts == []
    assert result.tray_text == ""
    assert tracker.tracked_entries() == []


def test_latest_sample_is_replaced(tracker):
    tracker.evaluate([sample("hog", 42, 95.0)], SETTINGS, now=0.0)
    result = tracker.evaluate([sample("hog-renamed", 42, 120.5)], SETTINGS, now=10.0)
    assert result.alerts[0].cpu_usage == 120.5
    assert result.alerts[0].name == "hog-renamed"


def test_accumulated_duration_is_monotonic_display_bookkeeping(tracker):
    hog = sample("hog", 42, 99.0)
    tracker.evaluate([hog], SETTINGS, now=0.0)
    tracker.evaluate([hog], SETTINGS, now=2.0)
    tracker.evaluate([hog], SETTINGS, now=7.0)
    assert tracker.get_entry(42).accumulated_duration == pytest.approx(7.0)

    # A clock step backwards never reduces the credited time.
    tracker.evaluate([hog], SETTINGS, now=5.0)
    assert tracker.get_entry(42).accumulated_duration == pytest.approx(7.0)


def test_alerting_uses_start_time_not_accumulated_duration(tracker):
    hog = sample("hog", 42, 99.0)
    tracker.evaluate([hog], SETTINGS, now=0.0)
    # One long gap between ticks still counts fully.
    assert alert_pids(tracker.evaluate([hog], SETTINGS, now=30.0)) == [42]


def test_elapsed_duration_reads_without_mutating(tracker):
    tracker.evaluate([sample("hog", 42, 99.0)], SETTINGS, now=100.0)
    assert tracker.elapsed_duration(42, now=104.5) == pytest.approx(4.5)
    assert tracker.elapsed_duration(42, now=104.5) == pytest.approx(4.5)
    assert tracker.get_entry(42).last_seen_at == 100.0
    assert tracker.elapsed_duration(7, now=104.5) == 0.0


def test_zero_sustain_duration_alerts_immediately(tracker):
    settings = TrackerSettings(cpu_threshold=90.0, sustain_duration=0.0)
    assert alert_pids(tracker.evaluate([sample("hog", 1, 99.0)], settings, now=0.0)) == [1]


def test_negative_cpu_is_accepted(tracker):
    result = tracker.evaluate([sample("odd", 1, -5.0)], SETTINGS, now=0.0)
    assert result.alerts == []
    assert tracker.tracked_entries() == []


def test_tray_text_in_always_mode_ignores_alert_state(tracker):
    settings = TrackerSettings(cpu_threshold=90.0, sustain_duration=10.0, tray_mode="always")
    result = tracker.evaluate([sample("idle_top", 1, 30.0)], settings, now=0.0)
    assert result.tray_text == "idle_top:30%"
    assert result.alerts == []


def test_tray_text_in_warning_only_mode(tracker):
    hog = sample("chrome_helper_renderer", 42, 87.6)
    settings = TrackerSettings(cpu_threshold=80.0, sustain_duration=5.0)
    assert tracker.evaluate([hog], settings, now=0.0).tray_text == ""
    assert tracker.evaluate([hog], settings, now=5.0).tray_text == "chrome_he...:87%"


def test_alert_order_follows_tracking_order(tracker):
    settings = TrackerSettings(cpu_threshold=90.0, sustain_duration=0.0)
    tracker.evaluate([sample("first", 1, 91.0)], settings, now=0.0)
    result = tracker.evaluate([sample("second", 2, 99.0), sample("first", 1, 91.0)], settings, now=1.0)
    assert alert_pids(result) == [1, 2]


def test_evaluated_callbacks_receive_result(tracker):
    received = []
    tracker.on_evaluated(received.append)
    result = tracker.evaluate([sample("hog", 42, 99.0)], SETTINGS, now=0.0)
    assert received == [result]


def test_failing_callback_does_not_break_evaluation(tracker, caplog):
    received = []

    def broken(result):
        raise RuntimeError("listener gone")

    tracker.on_evaluated(broken)
    tracker.on_evaluated(received.append)

    with caplog.at_level("ERROR"):
        result = tracker.evaluate([sample("hog", 42, 99.0)], SETTINGS, now=0.0)

    assert received == [result]
    assert tracker.get_entry(42) is not None
    assert "Evaluation callback failed" in caplog.text
