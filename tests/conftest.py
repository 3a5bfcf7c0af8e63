from __future__ import annotations

from typing import Iterable, List, Sequence, Union

import pytest

from packages.core.monitor.process_snapshot import ProcessSnapshotProvider
from packages.core.monitor.types import ProcessSample


class RecordingTraySink:
    """Tray sink fake that records every call in order."""

    def __init__(self) -> None:
        self.calls: List[tuple] = []

    def set_tray_text(self, title: str) -> None:
        self.calls.append(("set_tray_text", title))

    def show_alert(self) -> None:
        self.calls.append(("show_alert",))

    def hide_alert(self) -> None:
        self.calls.append(("hide_alert",))

    @property
    def titles(self) -> List[str]:
        return [c[1] for c in self.calls if c[0] == "set_tray_text"]

    @property
    def alert_calls(self) -> List[str]:
        return [c[0] for c in self.calls if c[0] != "set_tray_text"]


class ScriptedProvider(ProcessSnapshotProvider):
    """Returns queued snapshots in order; an Exception entry is raised instead."""

    def __init__(self, snapshots: Iterable[Union[Sequence[ProcessSample], Exception]] = ()) -> None:
        self._queue = list(snapshots)

    def push(self, snapshot: Union[Sequence[ProcessSample], Exception]) -> None:
        self._queue.append(snapshot)

    def snapshot(self) -> List[ProcessSample]:
        item = self._queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return list(item)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def sample(name: str, pid: int, cpu: float) -> ProcessSample:
    return ProcessSample(name=name, pid=pid, cpu_usage=cpu)


@pytest.fixture
def sink() -> RecordingTraySink:
    return RecordingTraySink()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def isolated_appdata(tmp_path, monkeypatch):
    monkeypatch.setenv("APPDATA", str(tmp_path))
    return tmp_path
