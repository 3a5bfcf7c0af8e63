import signal
import sys
from PySide6.QtWidgets import QApplication

from packages.shared.paths import ensure_app_dirs
from packages.shared.store import ConfigStore
from packages.core.logging_ import setup_logging
from packages.core.monitor.process_snapshot import PsutilSnapshotProvider
from .ui.window import MainWindow


def main() -> None:
    ensure_app_dirs()
    setup_logging()

    app = QApplication(sys.argv)
    # The tray icon keeps the app alive after the window is hidden.
    app.setQuitOnLastWindowClosed(False)

    win = MainWindow(store=ConfigStore(), provider=PsutilSnapshotProvider())
    win.show()

    def signal_handler(sig, frame):
        print("\nReceived interrupt signal (Ctrl+C), shutting down...")
        win.quit_app()

    if hasattr(signal, 'SIGINT'):
        signal.signal(signal.SIGINT, signal_handler)

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
