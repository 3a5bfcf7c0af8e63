from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional

MonitorStatus = Literal["STOPPED", "RUNNING"]
TrayMode = Literal["always", "warning-only"]


@dataclass(frozen=True)
class ProcessSample:
    """One process as seen in a single snapshot."""
    name: str
    pid: int
    cpu_usage: float  # percent, can exceed 100 on multi-core machines
    memory_bytes: int = 0


@dataclass
class TrackedEntry:
    latest_sample: ProcessSample
    first_above_threshold_at: float  # seconds, same time base as evaluate(now)
    last_seen_at: float
    accumulated_duration: float = 0.0  # display only, never used for alerting


@dataclass(frozen=True)
class TrackerSettings:
    cpu_threshold: float = 95.0  # percent
    sustain_duration: float = 10.0  # seconds
    tray_mode: TrayMode = "warning-only"
    enable_popup: bool = False


@dataclass(frozen=True)
class EvaluationResult:
    alerts: List[ProcessSample] = field(default_factory=list)
    tray_text: str = ""
    evaluated_at: float = 0.0

    @property
    def has_alerts(self) -> bool:
        return bool(self.alerts)


@dataclass
class MonitorState:
    """Snapshot of the monitor loop for UI polling."""
    status: MonitorStatus = "STOPPED"
    alerts: List[ProcessSample] = field(default_factory=list)
    tray_text: str = ""
    tick_count: int = 0
    last_tick_at: Optional[float] = None
    last_error: Optional[str] = None
