"""
Background loop that feeds process snapshots into the sustained-usage tracker
and pushes the outcome to the tray sink.

Snapshot failures skip the tick instead of evaluating an empty list, since an
empty snapshot would drop every tracked process and reset its timer.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from packages.core.tray.sink import TraySink

from .process_snapshot import ProcessSnapshotProvider
from .sustained_tracker import SustainedUsageTracker
from .types import EvaluationResult, MonitorState, TrackerSettings

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class HighCpuMonitorConfig:
    """Configuration for the high CPU monitor loop."""
    settings: TrackerSettings
    refresh_interval_seconds: float  # seconds between ticks


class HighCpuMonitor:
    """
    Polls the snapshot provider every refresh interval, evaluates the tracker
    and forwards tray text plus alert visibility to the sink.
    """

    def __init__(
        self,
        config: dict,
        provider: ProcessSnapshotProvider,
        sink: Optional[TraySink] = None,
        tracker: Optional[SustainedUsageTracker] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cfg = self._parse_config(config)
        self._provider = provider
        self._sink = sink
        self._tracker = tracker or SustainedUsageTracker()
        self._clock = clock
        self._state = MonitorState()
        self._lock = threading.Lock()

        self._result_cb: Optional[Callable[[EvaluationResult], None]] = None
        self._error_cb: Optional[Callable[[str], None]] = None

        self._thread: Optional[threading.Thread] = None
        self._stop_evt = threading.Event()
        # Serializes evaluate+publish against stop(); bumped on every stop so
        # a tick that was mid-snapshot when stopped is discarded.
        self._tick_lock = threading.Lock()
        self._generation = 0

    @staticmethod
    def _parse_config(config: dict) -> HighCpuMonitorConfig:
        """Parse config dict into HighCpuMonitorConfig."""
        return HighCpuMonitorConfig(
            settings=TrackerSettings(
                cpu_threshold=float(config.get("cpu_threshold", 95.0)),
                sustain_duration=float(config.get("sustain_duration_seconds", 10)),
                tray_mode=config.get("tray_mode", "warning-only"),
                enable_popup=bool(config.get("enable_popup", False)),
            ),
            refresh_interval_seconds=float(config.get("refresh_interval_seconds", 3)),
        )

    @property
    def tracker(self) -> SustainedUsageTracker:
        return self._tracker

    def on_result(self, cb: Callable[[EvaluationResult], None]) -> None:
        self._result_cb = cb

    def on_error(self, cb: Callable[[str], None]) -> None:
        self._error_cb = cb

    def update_config(self, config: dict) -> None:
        with self._lock:
            self._cfg = self._parse_config(config)

    def get_config(self) -> HighCpuMonitorConfig:
        with self._lock:
            return self._cfg

    def get_state(self) -> MonitorState:
        with self._lock:
            return MonitorState(
                status=self._state.status,
                alerts=list(self._state.alerts),
                tray_text=self._state.tray_text,
                tick_count=self._state.tick_count,
                last_tick_at=self._state.last_tick_at,
                last_error=self._state.last_error,
            )

    def start(self) -> None:
        with self._lock:
            if self._state.status == "RUNNING":
                return
            self._state.status = "RUNNING"
            self._state.last_error = None

        # Each run owns its event, so a previous loop still finishing a tick
        # cannot be revived by this start.
        self._stop_evt = threading.Event()
        self._thread = threading.Thread(target=self._run, args=(self._stop_evt,), name="HighCpuMonitor", daemon=True)
        self._thread.start()
        log.info("High CPU monitor started")

    def stop(self) -> None:
        self._stop_evt.set()
        with self._tick_lock:
            self._generation += 1
            with self._lock:
                self._state.status = "STOPPED"
                self._state.alerts = []
                self._state.tray_text = ""
            # Tracked durations are session-local; a restart begins from scratch.
            self._tracker.clear_all()
            self._call_sink("set_tray_text", "")
            self._call_sink("hide_alert")
        log.info("High CPU monitor stopped")

    def _emit(self, result: EvaluationResult) -> None:
        if self._result_cb:
            self._result_cb(result)

    def _emit_error(self, msg: str) -> None:
        if self._error_cb:
            self._error_cb(msg)

    def _call_sink(self, method: str, *args) -> None:
        if self._sink is None:
            return
        try:
            getattr(self._sink, method)(*args)
        except Exception:
            log.exception("Tray sink call %s failed", method)

    def _push_to_sink(self, result: EvaluationResult, settings: TrackerSettings) -> None:
        self._call_sink("set_tray_text", result.tray_text)
        if result.has_alerts and settings.enable_popup:
            self._call_sink("show_alert")
        else:
            self._call_sink("hide_alert")

    def tick(self) -> Optional[EvaluationResult]:
        """
        Run one sample/evaluate/publish cycle.

        Returns None when the snapshot could not be taken, or when stop() ran
        while the snapshot was in flight; the tracker is left untouched then.
        """
        cfg = self.get_config()
        generation = self._generation

        try:
            samples = self._provider.snapshot()
        except Exception as e:
            log.warning("Process snapshot failed, skipping tick: %s", e)
            with self._lock:
                self._state.last_error = str(e)
            self._emit_error(f"Process snapshot failed: {e}")
            return None

        with self._tick_lock:
            if generation != self._generation:
                log.debug("Monitor stopped during snapshot, dropping tick")
                return None
            now = self._clock()
            result = self._tracker.evaluate(samples, cfg.settings, now)
            self._push_to_sink(result, cfg.settings)

            with self._lock:
                self._state.alerts = list(result.alerts)
                self._state.tray_text = result.tray_text
                self._state.tick_count += 1
                self._state.last_tick_at = now

        if result.has_alerts:
            log.debug("High CPU alerts: %s", ", ".join(f"{p.name}({p.pid})" for p in result.alerts))
        self._emit(result)
        return result

    def _refresh_after_clear(self) -> None:
        tracked = {e.latest_sample.pid for e in self._tracker.tracked_entries()}
        with self._lock:
            self._state.alerts = [p for p in self._state.alerts if p.pid in tracked]
            still_alerting = bool(self._state.alerts)
        if not still_alerting:
            self._call_sink("hide_alert")

    def clear_alert(self, pid: int) -> None:
        self._tracker.clear_alert(pid)
        self._refresh_after_clear()

    def clear_all(self) -> None:
        self._tracker.clear_all()
        self._refresh_after_clear()

    def elapsed_duration(self, pid: int) -> float:
        return self._tracker.elapsed_duration(pid, self._clock())

    def _run(self, stop_evt: threading.Event) -> None:
        """Main monitoring loop."""
        while not stop_evt.is_set():
            try:
                self.tick()
                interval = self.get_config().refresh_interval_seconds
                stop_evt.wait(interval)
            except Exception as e:
                log.exception("Monitor loop error")
                self._emit_error(str(e))
                stop_evt.wait(1.0)
