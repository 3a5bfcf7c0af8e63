"""
System tray adapter and high CPU alert popup.

The monitor publishes from its worker thread, so QtTraySink only emits
signals; the connected slots run on the GUI thread.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from PySide6.QtCore import QObject, Qt, Signal
from PySide6.QtGui import QAction, QGuiApplication
from PySide6.QtWidgets import (
    QApplication,
    QHBoxLayout,
    QLabel,
    QMenu,
    QStyle,
    QSystemTrayIcon,
    QVBoxLayout,
    QWidget,
)

from packages.core.monitor.types import ProcessSample

from .components import SecondaryButton

log = logging.getLogger(__name__)

POPUP_WIDTH = 420
POPUP_HEIGHT = 200
POPUP_MARGIN = 8


class AlertPopup(QWidget):
    """Frameless always-on-top window listing processes stuck at high CPU."""

    def __init__(self, on_clear: Callable[[int], None], parent=None) -> None:
        super().__init__(parent, Qt.Tool | Qt.FramelessWindowHint | Qt.WindowStaysOnTopHint)
        self.setObjectName("AlertPopup")
        self.setAttribute(Qt.WA_ShowWithoutActivating)
        self.setFixedSize(POPUP_WIDTH, POPUP_HEIGHT)
        self._on_clear = on_clear

        self._layout = QVBoxLayout(self)
        self._layout.setContentsMargins(16, 16, 16, 16)
        title = QLabel("High CPU usage")
        title.setObjectName("SectionLabel")
        self._layout.addWidget(title)
        self._rows = QVBoxLayout()
        self._layout.addLayout(self._rows)
        self._layout.addStretch()

    def set_alerts(self, alerts: List[ProcessSample]) -> None:
        while self._rows.count():
            item = self._rows.takeAt(0)
            if item.layout():
                while item.layout().count():
                    child = item.layout().takeAt(0)
                    if child.widget():
                        child.widget().deleteLater()
            elif item.widget():
                item.widget().deleteLater()

        for sample in alerts[:4]:
            row = QHBoxLayout()
            label = QLabel(f"{sample.name} (PID {sample.pid}) - {sample.cpu_usage:.1f}%")
            row.addWidget(label, 1)
            btn = SecondaryButton("Dismiss")
            btn.clicked.connect(lambda _=False, pid=sample.pid: self._on_clear(pid))
            row.addWidget(btn)
            self._rows.addLayout(row)

    def show_near_tray(self) -> None:
        if self.isVisible():
            return
        screen = QGuiApplication.primaryScreen()
        if screen is not None:
            geo = screen.availableGeometry()
            x = geo.right() - POPUP_WIDTH - POPUP_MARGIN
            y = geo.top() + POPUP_MARGIN + 10
            self.move(max(geo.left() + POPUP_MARGIN, x), y)
        self.show()


class QtTraySink(QObject):
    """TraySink backed by QSystemTrayIcon plus the alert popup."""

    _title_changed = Signal(str)
    _alert_visibility_changed = Signal(bool)

    def __init__(
        self,
        popup: AlertPopup,
        on_show_window: Callable[[], None],
        on_quit: Callable[[], None],
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._popup = popup

        self._tray = QSystemTrayIcon(self)
        self._tray.setIcon(QApplication.style().standardIcon(QStyle.SP_ComputerIcon))
        self._tray.setToolTip("High CPU Monitor")

        menu = QMenu()
        self._title_action = QAction("No high CPU process", menu)
        self._title_action.setEnabled(False)
        menu.addAction(self._title_action)
        menu.addSeparator()
        show_action = QAction("Show window", menu)
        show_action.triggered.connect(on_show_window)
        menu.addAction(show_action)
        quit_action = QAction("Quit", menu)
        quit_action.triggered.connect(on_quit)
        menu.addAction(quit_action)
        self._menu = menu
        self._tray.setContextMenu(menu)
        self._tray.activated.connect(self._on_activated(on_show_window))
        self._tray.show()

        self._title_changed.connect(self._apply_title)
        self._alert_visibility_changed.connect(self._apply_alert_visibility)

    @staticmethod
    def _on_activated(on_show_window: Callable[[], None]):
        def handler(reason) -> None:
            if reason == QSystemTrayIcon.Trigger:
                on_show_window()
        return handler

    def set_tray_text(self, title: str) -> None:
        self._title_changed.emit(title)

    def show_alert(self) -> None:
        self._alert_visibility_changed.emit(True)

    def hide_alert(self) -> None:
        self._alert_visibility_changed.emit(False)

    def hide_icon(self) -> None:
        self._tray.hide()

    def _apply_title(self, title: str) -> None:
        self._tray.setToolTip(title or "High CPU Monitor")
        self._title_action.setText(title or "No high CPU process")

    def _apply_alert_visibility(self, visible: bool) -> None:
        log.debug("Alert popup %s", "shown" if visible else "hidden")
        if visible:
            self._popup.show_near_tray()
        else:
            self._popup.hide()
