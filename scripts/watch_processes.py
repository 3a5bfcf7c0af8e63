"""
Console watcher for sustained high CPU usage.
Runs the same monitor loop as the desktop app without any UI; tray updates
and alerts go to the log.

Expected behavior:
- Prints the processes currently above the threshold every refresh interval
- Logs "High CPU alert raised" once a process stays above the threshold
  for the configured duration
"""

import argparse
import os
import sys
import time
import logging

# Add parent directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from packages.core.monitor.high_cpu_monitor import HighCpuMonitor
from packages.core.monitor.process_snapshot import PsutilSnapshotProvider
from packages.core.tray.sink import LoggingTraySink
from packages.shared.config import AppConfig

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s'
)


def parse_args(argv=None) -> argparse.Namespace:
    defaults = AppConfig()
    parser = argparse.ArgumentParser(description="Watch for processes stuck at high CPU usage.")
    parser.add_argument("--threshold", type=float, default=defaults.cpu_threshold, help="CPU percent threshold")
    parser.add_argument("--duration", type=int, default=defaults.sustain_duration_seconds, help="seconds above threshold before alerting")
    parser.add_argument("--interval", type=int, default=defaults.refresh_interval_seconds, help="seconds between snapshots")
    parser.add_argument("--top", type=int, default=defaults.top_process_count, help="number of processes to sample")
    parser.add_argument("--always", action="store_true", help="show the top process in the tray text even without alerts")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    cfg = AppConfig(
        cpu_threshold=args.threshold,
        sustain_duration_seconds=args.duration,
        refresh_interval_seconds=args.interval,
        top_process_count=args.top,
        tray_mode="always" if args.always else "warning-only",
        enable_popup=True,
    )

    monitor = HighCpuMonitor(
        config=cfg.to_monitor_config(),
        provider=PsutilSnapshotProvider(top_n=cfg.top_process_count),
        sink=LoggingTraySink(),
    )

    print("=" * 60)
    print(f"Watching for CPU >= {cfg.cpu_threshold:.0f}% for {cfg.sustain_duration_seconds}s (Ctrl+C to stop)")
    print("=" * 60)

    try:
        while True:
            result = monitor.tick()
            if result is not None:
                for entry in monitor.tracker.tracked_entries():
                    s = entry.latest_sample
                    elapsed = monitor.elapsed_duration(s.pid)
                    print(f"  {s.name[:24]:24s} pid={s.pid:<7d} cpu={s.cpu_usage:6.1f}%  above for {elapsed:5.1f}s")
            time.sleep(cfg.refresh_interval_seconds)
    except KeyboardInterrupt:
        print("\nStopped.")
        return 0


if __name__ == "__main__":
    sys.exit(main())
