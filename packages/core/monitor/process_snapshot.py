"""
Process snapshot provider backed by psutil.

psutil reports per-process CPU as the delta since the previous call on the
same Process object, so the first snapshot primes every process and waits a
short warm-up before reading real values.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import List

import psutil

from .types import ProcessSample

log = logging.getLogger(__name__)

_ATTRS = ["pid", "name", "cpu_percent", "memory_info"]


class ProcessSnapshotProvider(ABC):
    """Interface for anything that can list processes with their CPU usage."""

    @abstractmethod
    def snapshot(self) -> List[ProcessSample]:
        """Return the current processes, ordered by the provider's ranking."""
        ...


class PsutilSnapshotProvider(ProcessSnapshotProvider):
    """Top-N processes by CPU usage, highest first."""

    def __init__(self, top_n: int = 10, warmup_seconds: float = 1.0) -> None:
        self._top_n = top_n
        self._warmup_seconds = warmup_seconds
        self._primed = False

    def set_top_n(self, top_n: int) -> None:
        self._top_n = top_n

    def _prime(self) -> None:
        for _ in psutil.process_iter(["cpu_percent"]):
            pass
        self._primed = True
        if self._warmup_seconds > 0:
            time.sleep(self._warmup_seconds)

    def snapshot(self) -> List[ProcessSample]:
        if not self._primed:
            self._prime()

        samples: List[ProcessSample] = []
        for p in psutil.process_iter(_ATTRS):
            try:
                info = p.info
                mem = info.get("memory_info")
                samples.append(ProcessSample(
                    name=str(info.get("name") or ""),
                    pid=int(info.get("pid", p.pid)),
                    cpu_usage=float(info.get("cpu_percent") or 0.0),
                    memory_bytes=int(getattr(mem, "rss", 0) or 0),
                ))
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue

        samples.sort(key=lambda s: s.cpu_usage, reverse=True)
        return samples[: self._top_n]
