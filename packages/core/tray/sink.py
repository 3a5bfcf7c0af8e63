from __future__ import annotations

import logging
from typing import Protocol

log = logging.getLogger(__name__)


class TraySink(Protocol):
    def set_tray_text(self, title: str) -> None:
        ...

    def show_alert(self) -> None:
        ...

    def hide_alert(self) -> None:
        ...


class LoggingTraySink:
    """Headless sink: writes tray updates to the log, only on change."""

    def __init__(self) -> None:
        self._last_title: str = ""
        self._alert_visible = False

    def set_tray_text(self, title: str) -> None:
        if title != self._last_title:
            log.info("Tray: %s", title or "<cleared>")
            self._last_title = title

    def show_alert(self) -> None:
        if not self._alert_visible:
            log.warning("High CPU alert raised")
            self._alert_visible = True

    def hide_alert(self) -> None:
        if self._alert_visible:
            log.info("High CPU alert cleared")
            self._alert_visible = False
