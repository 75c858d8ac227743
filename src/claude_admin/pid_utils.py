"""
PID file management for the daemon.

The PID file is the single-instance guard: a daemon writes its PID on start
and removes it on shutdown. A PID file whose process has exited is stale and
reclaimed by the next start.
"""

import fcntl
import os
import signal
import time
from pathlib import Path
from typing import Optional, Tuple


def is_pid_alive(pid: int) -> bool:
    """Check whether a process with this PID exists."""
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists but owned by another user
        return True
    except OSError:
        return False
    return True


def _read_pid(pid_file: Path) -> Optional[int]:
    try:
        return int(Path(pid_file).read_text().strip())
    except (OSError, ValueError):
        return None


def is_process_running(pid_file: Path) -> bool:
    """Check if the process recorded in a PID file is running."""
    return get_process_pid(pid_file) is not None


def get_process_pid(pid_file: Path) -> Optional[int]:
    """Get the PID from a PID file if that process is still running."""
    pid = _read_pid(pid_file)
    if pid is None or not is_pid_alive(pid):
        return None
    return pid


def write_pid_file(pid_file: Path, pid: Optional[int] = None) -> None:
    """Write a PID (default: current process) to a file."""
    pid_file = Path(pid_file)
    pid_file.parent.mkdir(parents=True, exist_ok=True)
    pid_file.write_text(str(pid if pid is not None else os.getpid()))


def remove_pid_file(pid_file: Path) -> None:
    """Remove a PID file if it exists."""
    try:
        Path(pid_file).unlink()
    except FileNotFoundError:
        pass


def acquire_daemon_lock(pid_file: Path) -> Tuple[bool, Optional[int]]:
    """Atomically check for a running daemon and claim the PID file.

    An exclusive fcntl lock on a sibling .lock file serializes the
    check-and-write so two daemons starting together cannot both win.

    Returns:
        (acquired, existing_pid): existing_pid is the running daemon's PID
        when acquisition failed because one is alive, None otherwise.
    """
    pid_file = Path(pid_file)
    pid_file.parent.mkdir(parents=True, exist_ok=True)
    lock_file = pid_file.with_suffix(pid_file.suffix + ".lock")

    fd = os.open(str(lock_file), os.O_WRONLY | os.O_CREAT, 0o600)
    try:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError:
            # Another process is between check and write right now
            return False, None

        try:
            existing = _read_pid(pid_file)
            if existing is not None and existing != os.getpid() and is_pid_alive(existing):
                return False, existing

            if existing is not None:
                remove_pid_file(pid_file)
            write_pid_file(pid_file)
            return True, None
        finally:
            fcntl.flock(fd, fcntl.LOCK_UN)
    finally:
        os.close(fd)


def release_daemon_lock(pid_file: Path) -> None:
    """Remove the PID file if it still belongs to this process.

    The .lock file stays: every starter must flock the same inode.
    """
    pid_file = Path(pid_file)
    if _read_pid(pid_file) == os.getpid():
        remove_pid_file(pid_file)


def stop_process(pid_file: Path, timeout: float = 5.0) -> bool:
    """Stop the process recorded in a PID file.

    Sends SIGTERM, waits up to `timeout` seconds, then SIGKILL.

    Returns:
        True if a running process was signalled, False if none was running
        (a stale or unreadable PID file is removed).
    """
    pid_file = Path(pid_file)
    if not pid_file.exists():
        return False

    pid = _read_pid(pid_file)
    if pid is None or not is_pid_alive(pid):
        remove_pid_file(pid_file)
        return False

    try:
        os.kill(pid, signal.SIGTERM)
    except ProcessLookupError:
        remove_pid_file(pid_file)
        return False

    deadline = time.time() + timeout
    while time.time() < deadline:
        if not is_pid_alive(pid):
            remove_pid_file(pid_file)
            return True
        time.sleep(0.1)

    try:
        os.kill(pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    remove_pid_file(pid_file)
    return True
