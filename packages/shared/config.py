from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from packages.core.monitor.types import TrackerSettings


class AppConfig(BaseModel):
    cpu_threshold: float = Field(default=95.0, ge=0)
    sustain_duration_seconds: int = Field(default=10, ge=0)
    tray_mode: Literal["always", "warning-only"] = "warning-only"
    enable_popup: bool = False
    auto_refresh: bool = True
    refresh_interval_seconds: int = Field(default=3, ge=1)
    top_process_count: int = Field(default=10, ge=1)

    def to_monitor_config(self) -> dict:
        return {
            "cpu_threshold": self.cpu_threshold,
            "sustain_duration_seconds": self.sustain_duration_seconds,
            "tray_mode": self.tray_mode,
            "enable_popup": self.enable_popup,
            "refresh_interval_seconds": self.refresh_interval_seconds,
        }

    def to_tracker_settings(self) -> TrackerSettings:
        return TrackerSettings(
            cpu_threshold=self.cpu_threshold,
            sustain_duration=float(self.sustain_duration_seconds),
            tray_mode=self.tray_mode,
            enable_popup=self.enable_popup,
        )
