from __future__ import annotations

import logging
import shutil
import subprocess
import sys

import psutil

log = logging.getLogger(__name__)


class ProcessControlError(Exception):
    pass


def _signal_process(pid: int, force: bool) -> str:
    try:
        proc = psutil.Process(pid)
        name = proc.name()
        if force:
            proc.kill()
        else:
            proc.terminate()
    except psutil.NoSuchProcess as e:
        raise ProcessControlError(f"No process with PID {pid}") from e
    except psutil.AccessDenied as e:
        raise ProcessControlError(f"Permission denied for PID {pid}") from e

    verb = "Force killed" if force else "Terminated"
    log.info("%s process %s (PID %s)", verb, name, pid)
    return f"{verb} process: {name} (PID: {pid})"


def terminate_process(pid: int) -> str:
    return _signal_process(pid, force=False)


def force_kill_process(pid: int) -> str:
    return _signal_process(pid, force=True)


def restart_process(process_name: str) -> str:
    """
    Launch an application by name again. This does not stop a running copy;
    pair it with terminate_process for a real restart.
    """
    if not process_name:
        raise ProcessControlError("No process name given")

    if sys.platform == "darwin":
        try:
            out = subprocess.run(["open", "-a", process_name], capture_output=True, text=True, timeout=10)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ProcessControlError(f"Cannot restart {process_name}: {e}") from e
        if out.returncode != 0:
            raise ProcessControlError(f"Restart failed: {out.stderr.strip() or out.returncode}")
    else:
        exe = shutil.which(process_name)
        if exe is None:
            raise ProcessControlError(f"Cannot find an executable for {process_name}")
        try:
            subprocess.Popen(
                [exe],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            raise ProcessControlError(f"Cannot restart {process_name}: {e}") from e

    log.info("Relaunched %s", process_name)
    return f"Restarting application: {process_name}"
