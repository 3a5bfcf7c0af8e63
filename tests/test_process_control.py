import psutil
import pytest

from packages.core.monitor import process_control
from packages.core.monitor.process_control import (
    ProcessControlError,
    force_kill_process,
    restart_process,
    terminate_process,
)


class FakeProcess:
    instances = []

    def __init__(self, pid):
        self.pid = pid
        self.signals = []
        FakeProcess.instances.append(self)

    def name(self):
        return "busy"

    def terminate(self):
        self.signals.append("term")

    def kill(self):
        self.signals.append("kill")


@pytest.fixture(autouse=True)
def reset_instances():
    FakeProcess.instances = []


def test_terminate(monkeypatch):
    monkeypatch.setattr(process_control.psutil, "Process", FakeProcess)
    msg = terminate_process(42)
    assert FakeProcess.instances[0].signals == ["term"]
    assert "busy" in msg and "42" in msg


def test_force_kill(monkeypatch):
    monkeypatch.setattr(process_control.psutil, "Process", FakeProcess)
    force_kill_process(42)
    assert FakeProcess.instances[0].signals == ["kill"]


def test_missing_process(monkeypatch):
    def missing(pid):
        raise psutil.NoSuchProcess(pid)

    monkeypatch.setattr(process_control.psutil, "Process", missing)
    with pytest.raises(ProcessControlError, match="No process with PID 7"):
        terminate_process(7)


def test_access_denied(monkeypatch):
    class Protected(FakeProcess):
        def kill(self):
            raise psutil.AccessDenied(self.pid)

    monkeypatch.setattr(process_control.psutil, "Process", Protected)
    with pytest.raises(ProcessControlError, match="Permission denied"):
        force_kill_process(1)


class FakeCompleted:
    def __init__(self, returncode, stderr=""):
        self.returncode = returncode
        self.stderr = stderr


def test_restart_on_macos_uses_open(monkeypatch):
    calls = []

    def fake_run(cmd, **kwargs):
        calls.append(cmd)
        return FakeCompleted(0)

    monkeypatch.setattr(process_control.sys, "platform", "darwin")
    monkeypatch.setattr(process_control.subprocess, "run", fake_run)

    msg = restart_process("Safari")

    assert calls == [["open", "-a", "Safari"]]
    assert "Safari" in msg


def test_restart_on_macos_reports_open_failure(monkeypatch):
    monkeypatch.setattr(process_control.sys, "platform", "darwin")
    monkeypatch.setattr(
        process_control.subprocess,
        "run",
        lambda cmd, **kwargs: FakeCompleted(1, "Unable to find application named 'Nope'\n"),
    )
    with pytest.raises(ProcessControlError, match="Unable to find application"):
        restart_process("Nope")


def test_restart_launches_executable_from_path(monkeypatch):
    launched = []
    monkeypatch.setattr(process_control.sys, "platform", "linux")
    monkeypatch.setattr(process_control.shutil, "which", lambda name: f"/usr/bin/{name}")
    monkeypatch.setattr(
        process_control.subprocess, "Popen", lambda cmd, **kwargs: launched.append((cmd, kwargs))
    )

    restart_process("htop")

    cmd, kwargs = launched[0]
    assert cmd == ["/usr/bin/htop"]
    assert kwargs["start_new_session"] is True


def test_restart_unknown_executable(monkeypatch):
    monkeypatch.setattr(process_control.sys, "platform", "linux")
    monkeypatch.setattr(process_control.shutil, "which", lambda name: None)
    with pytest.raises(ProcessControlError, match="Cannot find an executable"):
        restart_process("ghost")


def test_restart_launch_error(monkeypatch):
    def boom(cmd, **kwargs):
        raise PermissionError("denied")

    monkeypatch.setattr(process_control.sys, "platform", "linux")
    monkeypatch.setattr(process_control.shutil, "which", lambda name: "/opt/app")
    monkeypatch.setattr(process_control.subprocess, "Popen", boom)
    with pytest.raises(ProcessControlError, match="Cannot restart app"):
        restart_process("app")


def test_restart_needs_a_name():
    with pytest.raises(ProcessControlError):
        restart_process("")
