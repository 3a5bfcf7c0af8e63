from __future__ import annotations

import math
from typing import Sequence

from packages.core.monitor.types import ProcessSample, TrayMode

MAX_NAME_LENGTH = 12
TRUNCATED_NAME_LENGTH = 9


def format_tray_title(sample: ProcessSample) -> str:
    """Short "name:NN%" label that fits in a menu bar / tray title."""
    title = sample.name
    if len(title) > MAX_NAME_LENGTH:
        title = title[:TRUNCATED_NAME_LENGTH] + "..."
    if not math.isfinite(sample.cpu_usage):
        return f"{title}:--%"
    return f"{title}:{int(sample.cpu_usage)}%"


def build_tray_text(
    samples: Sequence[ProcessSample],
    alerts: Sequence[ProcessSample],
    tray_mode: TrayMode,
) -> str:
    if tray_mode == "always":
        # Caller ordering wins, normally top-by-CPU.
        return format_tray_title(samples[0]) if samples else ""
    if alerts:
        return format_tray_title(alerts[0])
    return ""
