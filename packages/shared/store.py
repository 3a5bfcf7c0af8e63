from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from packages.shared.config import AppConfig
from packages.shared.paths import config_path, ensure_app_dirs

log = logging.getLogger(__name__)


class ConfigStore:
    def __init__(self, path: Optional[Path] = None) -> None:
        if path is None:
            ensure_app_dirs()
            path = config_path()
        self._path = Path(path)

    def load(self, fallback: Optional[AppConfig] = None) -> AppConfig:
        """
        Load config from disk.

        A missing file is created with defaults. An unreadable or invalid file
        yields ``fallback`` (the last known good config) or defaults, and the
        file is rewritten so the next start is clean.
        """
        if not self._path.exists():
            cfg = AppConfig()
            self.save(cfg)
            return cfg

        try:
            raw = self._path.read_text(encoding="utf-8")
            data: Any = json.loads(raw)
            return AppConfig.model_validate(data)
        except (OSError, ValueError, ValidationError) as e:
            log.warning("Config at %s is unusable (%s), falling back", self._path, e)
            cfg = fallback.model_copy() if fallback is not None else AppConfig()
            self.save(cfg)
            return cfg

    def save(self, cfg: AppConfig) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(cfg.model_dump_json(indent=2), encoding="utf-8")
        except OSError:
            log.exception("Failed to save config to %s", self._path)

    def reset(self) -> AppConfig:
        cfg = AppConfig()
        self.save(cfg)
        return cfg

    def path(self) -> str:
        return str(self._path)
