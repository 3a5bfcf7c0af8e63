from __future__ import annotations

import os
import sys
from pathlib import Path

APP_NAME = "HighCpuMonitor"


def _platform_data_root() -> Path:
    # APPDATA wins everywhere so tests and portable installs can redirect it.
    appdata = os.environ.get("APPDATA")
    if appdata:
        return Path(appdata)
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support"
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg)
    return Path.home() / ".config"


def app_data_dir() -> Path:
    return _platform_data_root() / APP_NAME


def config_path() -> Path:
    return app_data_dir() / "config.json"


def log_path() -> Path:
    return app_data_dir() / "logs" / "monitor.log"


def ensure_app_dirs() -> None:
    log_path().parent.mkdir(parents=True, exist_ok=True)
