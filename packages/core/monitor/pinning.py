"""
Holds one process at a fixed row of the top-N table.

The pinned pid is re-inserted at its row on every refresh using the fresh
sample, and the pin is dropped once the pid leaves the snapshot.
"""

from __future__ import annotations

import logging
import threading
from typing import List, Optional, Sequence

from .types import ProcessSample

log = logging.getLogger(__name__)

DEFAULT_ROW_LIMIT = 10


class PinnedProcessArranger:
    def __init__(self, limit: int = DEFAULT_ROW_LIMIT) -> None:
        self._limit = limit
        self._lock = threading.Lock()
        self._pinned_pid: Optional[int] = None
        self._position = -1
        self._original: List[ProcessSample] = []

    @property
    def pinned_pid(self) -> Optional[int]:
        with self._lock:
            return self._pinned_pid

    @property
    def pinned_position(self) -> int:
        with self._lock:
            return self._position

    def is_pinned(self, sample: ProcessSample) -> bool:
        with self._lock:
            return self._pinned_pid == sample.pid

    def toggle_pin(self, sample: ProcessSample, index: int) -> bool:
        """Pin `sample` at row `index`, or unpin it if it is already pinned.

        Returns True when the sample ends up pinned.
        """
        with self._lock:
            if self._pinned_pid == sample.pid:
                self._pinned_pid, self._position = None, -1
                log.debug("Unpinned PID %s", sample.pid)
                return False
            self._pinned_pid, self._position = sample.pid, max(0, index)
        log.debug("Pinned PID %s at row %s", sample.pid, index)
        return True

    def clear(self) -> None:
        with self._lock:
            self._pinned_pid, self._position = None, -1

    def arrange(self, samples: Sequence[ProcessSample]) -> List[ProcessSample]:
        with self._lock:
            self._original = list(samples)
            if self._pinned_pid is None:
                return list(samples)

            pinned = next((s for s in samples if s.pid == self._pinned_pid), None)
            if pinned is None:
                log.debug("Pinned PID %s left the snapshot, unpinning", self._pinned_pid)
                self._pinned_pid, self._position = None, -1
                return list(samples)

            rows = [s for s in samples if s.pid != pinned.pid]
            rows.insert(self._position, pinned)
            return rows[: self._limit]

    def real_rank(self, sample: ProcessSample, index: int) -> int:
        """1-based CPU rank; a pinned row reports where it sorts in the last snapshot."""
        with self._lock:
            if sample.pid == self._pinned_pid:
                for rank, s in enumerate(self._original, start=1):
                    if s.pid == sample.pid:
                        return rank
        return index + 1
