#!/usr/bin/env python3
"""
Monitor Daemon - tracks Claude Code sessions running in tmux.

Each loop iteration:
- lists tmux panes and keeps the ones hosting Claude Code
- classifies each pane's state from its recent output
- reconciles the result into the session registry (SQLite + event log)

A control socket answers ping so clients can check the daemon is alive.

Startup acquires the PID lock, opens storage, then binds the socket. Shutdown
runs in the reverse order from a single `finally` block: close the socket,
close storage, release the lock.

Pure business logic is extracted to monitor_daemon_core.py for testability.
"""

import os
import signal
import sys
import time
from pathlib import Path
from typing import List, Optional

from .config import DaemonConfig
from .control_server import ControlServer
from .discovery import discover
from .exceptions import (
    ClaudeAdminError,
    ConfigError,
    DaemonAlreadyRunningError,
    StorageError,
    TmuxError,
    TmuxNotRunningError,
)
from .implementations import RealTmux
from .logging_config import get_structured_logger, setup_daemon_logging
from .models import SessionState
from .monitor_daemon_core import (
    calculate_interval,
    count_states,
    format_state_summary,
    should_log_summary,
)
from .pid_utils import acquire_daemon_lock, release_daemon_lock
from .protocols import TmuxInterface
from .session_registry import ReconcileReport, SessionRegistry
from .settings import ensure_data_dir


class MonitorDaemon:
    """Poll loop plus the resources it owns (lock, storage, socket)."""

    def __init__(self, config: DaemonConfig, tmux: Optional[TmuxInterface] = None):
        self.config = config
        self.tmux = tmux or RealTmux(socket_name=config.tmux_socket)
        self.log = get_structured_logger("daemon")

        self.registry: Optional[SessionRegistry] = None
        self.control: Optional[ControlServer] = None
        self._lock_held = False
        self._shutdown = False

        self.loop_count = 0
        self.current_interval = config.interval_idle
        self._states: List[SessionState] = []
        self._last_counts = None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Acquire the lock, open storage and bind the control socket.

        Anything acquired before a failure is released again.

        Raises:
            DaemonAlreadyRunningError: another daemon holds the PID file
            SocketInUseError: the socket belongs to a live daemon
            ControlSocketError: the socket path is unusable
            StorageError: the database could not be opened
            ConfigError: the data directory is unusable or the PID file cannot be written
        """
        ensure_data_dir(self.config.data_dir)

        try:
            acquired, existing_pid = acquire_daemon_lock(self.config.pid_file)
        except OSError as e:
            raise ConfigError(f"cannot write PID file {self.config.pid_file}: {e}") from e
        if not acquired:
            raise DaemonAlreadyRunningError(existing_pid)
        self._lock_held = True

        try:
            self.registry = SessionRegistry(self.config.db_path)
            self.control = ControlServer(self.config.socket_path)
            self.control.bind()
            self.control.start()
        except Exception:
            self.shutdown()
            raise

        self.log.info(
            "daemon started",
            pid=os.getpid(),
            db=str(self.config.db_path),
            socket=str(self.config.socket_path),
        )

    def shutdown(self) -> None:
        """Release resources: socket, then storage, then the PID lock."""
        if self.control is not None:
            try:
                self.control.close()
            except OSError as e:
                self.log.error("failed to close control socket", error=str(e))
            self.control = None

        if self.registry is not None:
            self.registry.close()
            self.registry = None

        if self._lock_held:
            release_daemon_lock(self.config.pid_file)
            self._lock_held = False

    def request_shutdown(self) -> None:
        self._shutdown = True

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown

    # -------------------------------------------------------------------------
    # Loop
    # -------------------------------------------------------------------------

    def poll_once(self, now: Optional[int] = None) -> Optional[ReconcileReport]:
        """Run one discover -> classify -> reconcile pass.

        Returns:
            The reconcile report, or None if the cycle was skipped
        """
        if self.registry is None:
            raise StorageError("registry is not open")

        try:
            observations = discover(self.tmux, self.config.capture_lines)
        except TmuxNotRunningError:
            self.log.debug("tmux not running")
            observations = []
        except (TmuxError, OSError) as e:
            self.log.warning("tmux error, skipping cycle", error=str(e))
            return None

        try:
            report = self.registry.reconcile(observations, now)
        except StorageError as e:
            self.log.error("storage error, skipping cycle", error=str(e))
            return None

        self._states = [s.state for s in report.tracked]
        return report

    def calculate_interval(self) -> int:
        return calculate_interval(
            self._states,
            self.config.interval_fast,
            self.config.interval_slow,
            self.config.interval_idle,
        )

    def _log_summary(self, report: Optional[ReconcileReport], interval: int) -> None:
        counts = count_states(self._states)
        if report is not None and report.has_changes:
            self.log.info(
                f"Loop #{self.loop_count}: {report.summary()}",
                interval=interval,
            )
        if should_log_summary(self._last_counts, counts):
            self.log.info(
                f"Sessions: {format_state_summary(counts)}",
                interval=interval,
            )
            self._last_counts = counts

    def _interruptible_sleep(self, total_seconds: int) -> None:
        """Sleep in one-second steps so a shutdown signal is noticed quickly."""
        elapsed = 0.0
        while elapsed < total_seconds and not self._shutdown:
            step = min(1.0, total_seconds - elapsed)
            time.sleep(step)
            elapsed += step

    def run(self) -> None:
        """Main daemon loop. Returns after a shutdown signal."""
        self.start()

        def handle_shutdown(signum, frame):
            self.log.info("shutdown signal received", signal=signum)
            self._shutdown = True

        signal.signal(signal.SIGTERM, handle_shutdown)
        signal.signal(signal.SIGINT, handle_shutdown)

        try:
            while not self._shutdown:
                self.loop_count += 1
                report = self.poll_once()

                interval = self.calculate_interval()
                self.current_interval = interval
                self._log_summary(report, interval)

                self._interruptible_sleep(interval)
        except Exception as e:
            self.log.exception("monitor daemon error", error=str(e))
            raise
        finally:
            self.log.info("daemon shutting down")
            self.shutdown()


def run_daemon(config: DaemonConfig, tmux: Optional[TmuxInterface] = None, console: bool = True) -> int:
    """Set up logging and run the daemon in the foreground.

    Returns:
        Process exit status (1 on a fatal startup error)
    """
    setup_daemon_logging(
        log_file=config.log_file,
        json_log_file=config.json_log_file,
        level=config.log_level,
        console=console,
    )
    log = get_structured_logger("daemon")

    daemon = MonitorDaemon(config, tmux=tmux)
    try:
        daemon.run()
    except ClaudeAdminError as e:
        log.error(str(e))
        return 1
    return 0


def main() -> int:
    """Entrypoint for `python -m claude_admin.monitor_daemon`."""
    import argparse

    parser = argparse.ArgumentParser(description="claude-admin monitor daemon")
    parser.add_argument("--interval", "-i", type=int, default=None,
                        help="Pin the fast poll interval (seconds)")
    parser.add_argument("--log-level", default=None,
                        help="trace, debug, info, warn or error")
    parser.add_argument("--db-path", type=Path, default=None)
    parser.add_argument("--socket-path", type=Path, default=None)
    parser.add_argument("--pid-file", type=Path, default=None)
    parser.add_argument("--log-file", type=Path, default=None)
    args = parser.parse_args()

    try:
        config = DaemonConfig.resolve(
            log_level=args.log_level,
            interval=args.interval,
            db_path=args.db_path,
            socket_path=args.socket_path,
            pid_file=args.pid_file,
            log_file=args.log_file,
        )
    except ClaudeAdminError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return run_daemon(config)


if __name__ == "__main__":
    sys.exit(main())
