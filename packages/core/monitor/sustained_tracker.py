"""
Sustained high-CPU tracker.

Per pid: Untracked -> Tracked -> Alerting (derived) -> Untracked.
A process has to stay at or above the threshold in every snapshot to keep
its timer running; a single dip or absence drops its entry.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence

from packages.core.tray.tray_text import build_tray_text

from .types import EvaluationResult, ProcessSample, TrackedEntry, TrackerSettings

log = logging.getLogger(__name__)


class SustainedUsageTracker:
    """
    Tracks processes that remain above the CPU threshold across consecutive
    snapshots and reports those that have done so for at least the sustain
    duration.

    All timestamps are caller supplied seconds on a single time base, which
    keeps evaluation deterministic. The tracker never touches the tray itself;
    callers push ``EvaluationResult.tray_text`` and the alert visibility to
    their sink.
    """

    def __init__(self) -> None:
        self._entries: Dict[int, TrackedEntry] = {}
        self._lock = threading.Lock()
        self._result_cbs: List[Callable[[EvaluationResult], None]] = []

    def on_evaluated(self, cb: Callable[[EvaluationResult], None]) -> None:
        self._result_cbs.append(cb)

    def evaluate(
        self,
        samples: Sequence[ProcessSample],
        settings: TrackerSettings,
        now: float,
    ) -> EvaluationResult:
        hot = [s for s in samples if s.cpu_usage >= settings.cpu_threshold]

        with self._lock:
            hot_pids = set()
            for sample in hot:
                hot_pids.add(sample.pid)
                entry = self._entries.get(sample.pid)
                if entry is None:
                    self._entries[sample.pid] = TrackedEntry(
                        latest_sample=sample,
                        first_above_threshold_at=now,
                        last_seen_at=now,
                    )
                    log.debug("Tracking pid %s (%s) at %.1f%%", sample.pid, sample.name, sample.cpu_usage)
                    continue
                entry.latest_sample = sample
                entry.accumulated_duration += max(0.0, now - entry.last_seen_at)
                entry.last_seen_at = now

            for pid in [pid for pid in self._entries if pid not in hot_pids]:
                dropped = self._entries.pop(pid)
                log.debug("Dropped pid %s (%s): no longer above threshold", pid, dropped.latest_sample.name)

            alerts = [
                entry.latest_sample
                for entry in self._entries.values()
                if now - entry.first_above_threshold_at >= settings.sustain_duration
            ]

        result = EvaluationResult(
            alerts=alerts,
            tray_text=build_tray_text(samples, alerts, settings.tray_mode),
            evaluated_at=now,
        )
        for cb in list(self._result_cbs):
            try:
                cb(result)
            except Exception:
                log.exception("Evaluation callback failed")
        return result

    def clear_alert(self, pid: int) -> None:
        with self._lock:
            if self._entries.pop(pid, None) is not None:
                log.info("Cleared high CPU tracking for pid %s", pid)

    def clear_all(self) -> None:
        with self._lock:
            self._entries.clear()

    def elapsed_duration(self, pid: int, now: float) -> float:
        with self._lock:
            entry = self._entries.get(pid)
            if entry is None:
                return 0.0
            return now - entry.first_above_threshold_at

    def tracked_entries(self) -> List[TrackedEntry]:
        """Copies of the current entries, in tracking order."""
        with self._lock:
            return [replace(entry) for entry in self._entries.values()]

    def get_entry(self, pid: int) -> Optional[TrackedEntry]:
        with self._lock:
            entry = self._entries.get(pid)
            return replace(entry) if entry is not None else None
