"""
Main window: live top-CPU process table, sustained high CPU alerts and
settings. Closing the window hides it; the app keeps running in the tray.
"""

from __future__ import annotations

import logging
import time
from typing import List

from pydantic import ValidationError
from PySide6.QtCore import QObject, Qt, QTimer, Signal
from PySide6.QtGui import QColor
from PySide6.QtWidgets import (
    QAbstractItemView,
    QApplication,
    QCheckBox,
    QComboBox,
    QDoubleSpinBox,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QSpinBox,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from packages.core.monitor.high_cpu_monitor import HighCpuMonitor
from packages.core.monitor.process_control import (
    ProcessControlError,
    force_kill_process,
    restart_process,
    terminate_process,
)
from packages.core.monitor.pinning import PinnedProcessArranger
from packages.core.monitor.process_snapshot import ProcessSnapshotProvider
from packages.core.monitor.types import EvaluationResult, ProcessSample
from packages.shared.config import AppConfig
from packages.shared.store import ConfigStore

from .components import Card, DangerButton, PrimaryButton, SecondaryButton, StatusPill
from .theme import Theme, cpu_color
from .tray import AlertPopup, QtTraySink

log = logging.getLogger(__name__)

TRAY_MODES = [("Warnings only", "warning-only"), ("Always", "always")]


class _MonitorBridge(QObject):
    """Carries monitor callbacks from the worker thread to the GUI thread."""
    result = Signal(object)
    error = Signal(str)


class _SnapshotRecorder(ProcessSnapshotProvider):
    """Keeps the last snapshot around so the process table can show it."""

    def __init__(self, inner: ProcessSnapshotProvider) -> None:
        self._inner = inner
        self.last: List[ProcessSample] = []

    def snapshot(self) -> List[ProcessSample]:
        samples = self._inner.snapshot()
        self.last = list(samples)
        return samples

    def set_top_n(self, top_n: int) -> None:
        if hasattr(self._inner, "set_top_n"):
            self._inner.set_top_n(top_n)


class MainWindow(QMainWindow):
    def __init__(self, store: ConfigStore, provider: ProcessSnapshotProvider) -> None:
        super().__init__()
        self.setWindowTitle("High CPU Monitor")
        self.resize(960, 720)
        self.setMinimumSize(760, 560)
        self._quitting = False
        self._alerted_pids: set[int] = set()

        self.theme = Theme("dark")

        self.store = store
        self.cfg: AppConfig = self.store.load()

        self.provider = _SnapshotRecorder(provider)
        self.pins = PinnedProcessArranger()
        self._rows: List[ProcessSample] = []
        self.popup = AlertPopup(on_clear=self._clear_alert)
        self.sink = QtTraySink(self.popup, on_show_window=self._show_from_tray, on_quit=self.quit_app)

        self.monitor = HighCpuMonitor(
            config=self.cfg.to_monitor_config(),
            provider=self.provider,
            sink=self.sink,
        )
        self._bridge = _MonitorBridge()
        self._bridge.result.connect(self._on_result)
        self._bridge.error.connect(self._on_monitor_error)
        self.monitor.on_result(self._bridge.result.emit)
        self.monitor.on_error(self._bridge.error.emit)

        self._build_ui()
        self.setStyleSheet(self.theme.get_stylesheet())
        self.popup.setStyleSheet(self.theme.get_stylesheet())
        self._load_to_ui()

        # Elapsed times in the alert list tick even between monitor results.
        self._status_timer = QTimer(self)
        self._status_timer.timeout.connect(self._render_alerts)
        self._status_timer.start(1000)

        if self.cfg.auto_refresh:
            self._start_monitoring()

    def _build_ui(self) -> None:
        root = QWidget()
        self.setCentralWidget(root)
        main_layout = QVBoxLayout(root)
        main_layout.setContentsMargins(24, 24, 24, 24)
        main_layout.setSpacing(16)

        title = QLabel("High CPU Monitor")
        title.setObjectName("TitleLabel")
        main_layout.addWidget(title)

        self._build_status_bar(main_layout)

        content = QHBoxLayout()
        content.setSpacing(16)
        content.addWidget(self._build_process_card(), 3)
        content.addWidget(self._build_alert_card(), 2)
        main_layout.addLayout(content, 1)

        bottom = QHBoxLayout()
        bottom.setSpacing(16)
        bottom.addWidget(self._build_settings_card(), 3)
        bottom.addWidget(self._build_activity_card(), 2)
        main_layout.addLayout(bottom)

    def _build_status_bar(self, parent_layout: QVBoxLayout) -> None:
        row = QHBoxLayout()
        row.setSpacing(12)

        self.status_pill = StatusPill("STOPPED")
        row.addWidget(self.status_pill)
        self.alert_pill = StatusPill("No alerts")
        row.addWidget(self.alert_pill)
        row.addStretch()

        self.btn_start = PrimaryButton("Start Monitoring")
        self.btn_start.clicked.connect(self._start_monitoring)
        row.addWidget(self.btn_start)

        self.btn_stop = SecondaryButton("Stop")
        self.btn_stop.setEnabled(False)
        self.btn_stop.clicked.connect(self._stop_monitoring)
        row.addWidget(self.btn_stop)

        parent_layout.addLayout(row)

    def _build_process_card(self) -> Card:
        card = Card()
        label = QLabel("Top processes")
        label.setObjectName("SectionLabel")
        card.layout.addWidget(label)

        self.process_table = QTableWidget(0, 5)
        self.process_table.setHorizontalHeaderLabels(["#", "Name", "PID", "CPU", "Memory"])
        self.process_table.horizontalHeader().setSectionResizeMode(1, QHeaderView.Stretch)
        self.process_table.verticalHeader().setVisible(False)
        self.process_table.setSelectionBehavior(QAbstractItemView.SelectRows)
        self.process_table.setSelectionMode(QAbstractItemView.SingleSelection)
        self.process_table.setEditTriggers(QAbstractItemView.NoEditTriggers)
        card.layout.addWidget(self.process_table, 1)

        actions = QHBoxLayout()
        actions.addStretch()
        self.btn_pin = SecondaryButton("Pin")
        self.btn_pin.clicked.connect(self._toggle_pin_selected)
        actions.addWidget(self.btn_pin)
        btn_restart = SecondaryButton("Restart")
        btn_restart.clicked.connect(self._restart_selected)
        actions.addWidget(btn_restart)
        btn_term = DangerButton("Terminate")
        btn_term.clicked.connect(lambda: self._signal_selected(force=False))
        actions.addWidget(btn_term)
        btn_kill = DangerButton("Force kill")
        btn_kill.clicked.connect(lambda: self._signal_selected(force=True))
        actions.addWidget(btn_kill)
        card.layout.addLayout(actions)
        return card

    def _build_alert_card(self) -> Card:
        card = Card()
        label = QLabel("Sustained high CPU")
        label.setObjectName("SectionLabel")
        card.layout.addWidget(label)

        hint = QLabel("Processes above the threshold for the whole duration.")
        hint.setObjectName("HintLabel")
        hint.setWordWrap(True)
        card.layout.addWidget(hint)

        self.alert_list = QListWidget()
        card.layout.addWidget(self.alert_list, 1)

        actions = QHBoxLayout()
        btn_clear = SecondaryButton("Dismiss")
        btn_clear.clicked.connect(self._clear_selected_alert)
        actions.addWidget(btn_clear)
        btn_clear_all = SecondaryButton("Dismiss all")
        btn_clear_all.clicked.connect(self._clear_all_alerts)
        actions.addWidget(btn_clear_all)
        card.layout.addLayout(actions)
        return card

    def _build_settings_card(self) -> Card:
        card = Card()
        label = QLabel("Settings")
        label.setObjectName("SectionLabel")
        card.layout.addWidget(label)

        row = QHBoxLayout()
        row.addWidget(QLabel("CPU threshold (%):"))
        self.spin_threshold = QDoubleSpinBox()
        self.spin_threshold.setRange(1, 6400)
        self.spin_threshold.setDecimals(0)
        self.spin_threshold.setSingleStep(5)
        row.addWidget(self.spin_threshold)
        row.addWidget(QLabel("Duration (s):"))
        self.spin_duration = QSpinBox()
        self.spin_duration.setRange(1, 3600)
        row.addWidget(self.spin_duration)
        row.addStretch()
        card.layout.addLayout(row)

        row = QHBoxLayout()
        row.addWidget(QLabel("Tray display:"))
        self.combo_tray_mode = QComboBox()
        for text, value in TRAY_MODES:
            self.combo_tray_mode.addItem(text, value)
        row.addWidget(self.combo_tray_mode)
        self.chk_popup = QCheckBox("Show popup on alert")
        row.addWidget(self.chk_popup)
        row.addStretch()
        card.layout.addLayout(row)

        row = QHBoxLayout()
        self.chk_auto_refresh = QCheckBox("Start monitoring on launch")
        row.addWidget(self.chk_auto_refresh)
        row.addWidget(QLabel("Refresh (s):"))
        self.spin_refresh = QSpinBox()
        self.spin_refresh.setRange(1, 60)
        row.addWidget(self.spin_refresh)
        row.addWidget(QLabel("Processes shown:"))
        self.spin_top_n = QSpinBox()
        self.spin_top_n.setRange(1, 50)
        row.addWidget(self.spin_top_n)
        row.addStretch()
        card.layout.addLayout(row)

        buttons = QHBoxLayout()
        btn_save = SecondaryButton("Save Settings")
        btn_save.clicked.connect(self._save_config)
        buttons.addWidget(btn_save)
        btn_reset = SecondaryButton("Reset to defaults")
        btn_reset.clicked.connect(self._reset_config)
        buttons.addWidget(btn_reset)
        buttons.addStretch()
        card.layout.addLayout(buttons)
        return card

    def _build_activity_card(self) -> Card:
        card = Card()
        label = QLabel("Activity")
        label.setObjectName("SectionLabel")
        card.layout.addWidget(label)
        self.events = QListWidget()
        card.layout.addWidget(self.events, 1)
        return card

    def _load_to_ui(self) -> None:
        self.spin_threshold.setValue(self.cfg.cpu_threshold)
        self.spin_duration.setValue(self.cfg.sustain_duration_seconds)
        idx = self.combo_tray_mode.findData(self.cfg.tray_mode)
        self.combo_tray_mode.setCurrentIndex(max(idx, 0))
        self.chk_popup.setChecked(self.cfg.enable_popup)
        self.chk_auto_refresh.setChecked(self.cfg.auto_refresh)
        self.spin_refresh.setValue(self.cfg.refresh_interval_seconds)
        self.spin_top_n.setValue(self.cfg.top_process_count)
        self.provider.set_top_n(self.cfg.top_process_count)

    def _append_event(self, line: str) -> None:
        stamp = time.strftime("%H:%M:%S", time.localtime())
        self.events.insertItem(0, QListWidgetItem(f"{stamp}  {line}"))

    def _render_processes(self, samples: List[ProcessSample]) -> None:
        rows = self.pins.arrange(samples)
        self._rows = rows
        self.process_table.setRowCount(len(rows))
        for row, sample in enumerate(rows):
            rank = str(self.pins.real_rank(sample, row))
            cpu_item = QTableWidgetItem(f"{sample.cpu_usage:.1f}%")
            cpu_item.setForeground(QColor(cpu_color(sample.cpu_usage)))
            values = [
                QTableWidgetItem(f"{rank} \N{PUSHPIN}" if self.pins.is_pinned(sample) else rank),
                QTableWidgetItem(sample.name),
                QTableWidgetItem(str(sample.pid)),
                cpu_item,
                QTableWidgetItem(f"{sample.memory_bytes / (1024 * 1024):.0f} MB"),
            ]
            for col, item in enumerate(values):
                self.process_table.setItem(row, col, item)

    def _render_alerts(self) -> None:
        state = self.monitor.get_state()
        self.alert_list.clear()
        for sample in state.alerts:
            elapsed = self.monitor.elapsed_duration(sample.pid)
            item = QListWidgetItem(f"{sample.name} (PID {sample.pid})  {sample.cpu_usage:.1f}%  for {elapsed:.0f}s")
            item.setData(Qt.UserRole, sample.pid)
            self.alert_list.addItem(item)

        if state.alerts:
            self.alert_pill.setText(f"{len(state.alerts)} alert(s)")
            self.alert_pill.set_variant("alert")
        else:
            self.alert_pill.setText("No alerts")
            self.alert_pill.set_variant("idle")

    def _refresh_status(self) -> None:
        running = self.monitor.get_state().status == "RUNNING"
        self.status_pill.setText("RUNNING" if running else "STOPPED")
        self.status_pill.set_variant("active" if running else "idle")
        self.btn_start.setEnabled(not running)
        self.btn_stop.setEnabled(running)

    def _start_monitoring(self) -> None:
        self.monitor.update_config(self.cfg.to_monitor_config())
        self.monitor.start()
        self._refresh_status()
        self._append_event("Monitoring started.")

    def _stop_monitoring(self) -> None:
        self.monitor.stop()
        self._refresh_status()
        self._render_alerts()
        self._append_event("Monitoring stopped.")

    def _on_result(self, result: EvaluationResult) -> None:
        self._render_processes(self.provider.last)
        self._render_alerts()
        self.popup.set_alerts(result.alerts)
        for sample in result.alerts:
            if sample.pid not in self._alerted_pids:
                self._append_event(f"HIGH CPU: {sample.name} (PID {sample.pid}) at {sample.cpu_usage:.1f}%")
        self._alerted_pids = {p.pid for p in result.alerts}

    def _on_monitor_error(self, msg: str) -> None:
        self._append_event(f"ERROR: {msg}")
        log.error("Monitor error: %s", msg)

    def _clear_alert(self, pid: int) -> None:
        self.monitor.clear_alert(pid)
        self._render_alerts()
        self.popup.set_alerts(self.monitor.get_state().alerts)
        self._append_event(f"Dismissed alert for PID {pid}.")

    def _clear_selected_alert(self) -> None:
        item = self.alert_list.currentItem()
        if item is not None:
            self._clear_alert(int(item.data(Qt.UserRole)))

    def _clear_all_alerts(self) -> None:
        self.monitor.clear_all()
        self._render_alerts()
        self.popup.set_alerts([])
        self._append_event("Dismissed all alerts.")

    def _selected_sample(self):
        row = self.process_table.currentRow()
        if 0 <= row < len(self._rows):
            return row, self._rows[row]
        return row, None

    def _toggle_pin_selected(self) -> None:
        row, sample = self._selected_sample()
        if sample is None:
            return
        pinned = self.pins.toggle_pin(sample, row)
        self.btn_pin.setText("Unpin" if pinned else "Pin")
        self._append_event(f"{'Pinned' if pinned else 'Unpinned'} {sample.name} (PID {sample.pid}).")
        self._render_processes(self.provider.last)

    def _restart_selected(self) -> None:
        _, sample = self._selected_sample()
        if sample is None:
            return
        try:
            msg = restart_process(sample.name)
        except ProcessControlError as e:
            msg = f"Failed: {e}"
        self._append_event(msg)

    def _signal_selected(self, force: bool) -> None:
        _, sample = self._selected_sample()
        if sample is None:
            return
        pid = sample.pid
        try:
            msg = force_kill_process(pid) if force else terminate_process(pid)
        except ProcessControlError as e:
            msg = f"Failed: {e}"
        self._append_event(msg)

    def _save_config(self) -> None:
        try:
            cfg = AppConfig(
                cpu_threshold=float(self.spin_threshold.value()),
                sustain_duration_seconds=int(self.spin_duration.value()),
                tray_mode=self.combo_tray_mode.currentData(),
                enable_popup=self.chk_popup.isChecked(),
                auto_refresh=self.chk_auto_refresh.isChecked(),
                refresh_interval_seconds=int(self.spin_refresh.value()),
                top_process_count=int(self.spin_top_n.value()),
            )
        except ValidationError as e:
            # Keep running on the last good config.
            self._append_event(f"Invalid settings: {e.error_count()} error(s), not saved.")
            log.warning("Rejected settings: %s", e)
            return

        self.cfg = cfg
        self.store.save(self.cfg)
        self._apply_config()
        self._append_event("Settings saved.")

    def _reset_config(self) -> None:
        self.cfg = self.store.reset()
        self._load_to_ui()
        self._apply_config()
        self._append_event("Settings reset to defaults.")

    def _apply_config(self) -> None:
        self.provider.set_top_n(self.cfg.top_process_count)
        self.monitor.update_config(self.cfg.to_monitor_config())

    def _show_from_tray(self) -> None:
        self.showNormal()
        self.raise_()
        self.activateWindow()

    def quit_app(self) -> None:
        self._quitting = True
        self.monitor.stop()
        self.sink.hide_icon()
        self.popup.close()
        QApplication.quit()

    def closeEvent(self, event) -> None:
        if self._quitting:
            event.accept()
            return
        # Closing only hides the window; the monitor keeps feeding the tray.
        event.ignore()
        self.hide()
