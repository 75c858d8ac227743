"""
Paths and daemon defaults for claude-admin.

Everything lives under ~/.claude-admin by default. Set CLAUDE_ADMIN_DIR to
move the whole data directory (used by tests for isolation).
"""

import os
from dataclasses import dataclass
from pathlib import Path

from .exceptions import ConfigError


DATA_DIR_ENV = "CLAUDE_ADMIN_DIR"
TMUX_SOCKET_ENV = "CLAUDE_ADMIN_TMUX_SOCKET"


def get_data_dir() -> Path:
    """Return the data directory, honouring CLAUDE_ADMIN_DIR."""
    env_dir = os.environ.get(DATA_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser()
    try:
        home = Path.home()
    except RuntimeError as e:
        raise ConfigError("failed to determine home directory") from e
    return home / ".claude-admin"


def expand_tilde(path: str) -> Path:
    """Expand a leading ~ in a user-supplied path."""
    return Path(path).expanduser()


@dataclass(frozen=True)
class Paths:
    """File locations derived from a data directory."""

    data_dir: Path

    @property
    def db(self) -> Path:
        return self.data_dir / "sessions.db"

    @property
    def socket(self) -> Path:
        return self.data_dir / "daemon.sock"

    @property
    def pid_file(self) -> Path:
        return self.data_dir / "daemon.pid"

    @property
    def log_file(self) -> Path:
        return self.data_dir / "daemon.log"

    @property
    def json_log_file(self) -> Path:
        return self.data_dir / "daemon.json.log"

    @property
    def config_file(self) -> Path:
        return self.data_dir / "config.yaml"


def get_paths() -> Paths:
    return Paths(get_data_dir())


@dataclass(frozen=True)
class DaemonSettings:
    """Polling defaults.

    interval_fast is used while any session is working, interval_slow while
    sessions exist but all are waiting or idle, interval_idle when nothing
    is tracked.
    """

    interval_fast: int = 2
    interval_slow: int = 5
    interval_idle: int = 15
    capture_lines: int = 50
    socket_timeout: float = 2.0


DAEMON = DaemonSettings()


def ensure_data_dir(data_dir: Path) -> Path:
    """Create the data directory and check it is writable.

    Raises:
        ConfigError: if the directory cannot be created or written to
    """
    try:
        data_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigError(f"failed to create data directory {data_dir}: {e}") from e
    if not os.access(data_dir, os.W_OK):
        raise ConfigError(f"data directory is not writable: {data_dir}")
    return data_dir
