from pathlib import Path

from packages.shared import paths


def test_appdata_takes_precedence(monkeypatch, tmp_path):
    monkeypatch.setenv("APPDATA", str(tmp_path))
    assert paths.app_data_dir() == tmp_path / "HighCpuMonitor"
    assert paths.config_path() == tmp_path / "HighCpuMonitor" / "config.json"


def test_xdg_config_home_on_linux(monkeypatch, tmp_path):
    monkeypatch.delenv("APPDATA", raising=False)
    monkeypatch.setattr(paths.sys, "platform", "linux")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert paths.app_data_dir() == tmp_path / "HighCpuMonitor"


def test_macos_application_support(monkeypatch, tmp_path):
    monkeypatch.delenv("APPDATA", raising=False)
    monkeypatch.setattr(paths.sys, "platform", "darwin")
    monkeypatch.setattr(paths.Path, "home", classmethod(lambda cls: Path(tmp_path)))
    assert paths.app_data_dir() == tmp_path / "Library" / "Application Support" / "HighCpuMonitor"


def test_ensure_app_dirs_creates_log_dir(isolated_appdata):
    paths.ensure_app_dirs()
    assert paths.log_path().parent.is_dir()
