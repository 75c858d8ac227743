"""
User configuration for claude-admin.

Optional YAML file at ~/.claude-admin/config.yaml:

    log_level: info         # trace, debug, info, warn, error
    poll_interval: 2        # pins the fast polling interval (seconds)
    capture_lines: 50       # lines of pane scrollback to classify
    tmux_socket: null       # tmux -L socket name (default server if unset)

Command-line options override the file; the file overrides the defaults in
settings.py.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .exceptions import ConfigError
from .settings import DAEMON, Paths, expand_tilde, get_paths


# Override for tests; None means <data dir>/config.yaml
CONFIG_PATH: Optional[Path] = None

LOG_LEVELS = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def _config_path() -> Path:
    return CONFIG_PATH if CONFIG_PATH is not None else get_paths().config_file


def load_config() -> Dict[str, Any]:
    """Load the config file.

    Returns:
        Config dict, or {} if the file is missing, invalid, or not a mapping
    """
    path = _config_path()
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (yaml.YAMLError, OSError):
        return {}
    if not isinstance(data, dict):
        return {}
    return data


def save_config(data: Dict[str, Any]) -> None:
    """Write the config dict as YAML, creating parent directories."""
    path = _config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)


def parse_log_level(value: str) -> int:
    """Map a level name to a logging level.

    Raises:
        ConfigError: for unknown level names
    """
    level = LOG_LEVELS.get(str(value).strip().lower())
    if level is None:
        raise ConfigError(f"invalid log level: {value}")
    return level


def get_log_level(override: Optional[str] = None) -> int:
    """Resolve the log level: override > config file > info."""
    if override:
        return parse_log_level(override)
    configured = load_config().get("log_level")
    if configured:
        return parse_log_level(configured)
    return logging.INFO


def _positive_int(value: Any, key: str) -> Optional[int]:
    if value is None:
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be an integer, got {value!r}") from None
    if number <= 0:
        raise ConfigError(f"{key} must be positive, got {number}")
    return number


@dataclass(frozen=True)
class DaemonConfig:
    """Fully resolved daemon configuration."""

    db_path: Path
    socket_path: Path
    pid_file: Path
    log_file: Path
    json_log_file: Path
    log_level: int
    interval_fast: int
    interval_slow: int
    interval_idle: int
    capture_lines: int
    tmux_socket: Optional[str] = None

    @property
    def data_dir(self) -> Path:
        return self.db_path.parent

    @classmethod
    def resolve(
        cls,
        log_level: Optional[str] = None,
        interval: Optional[int] = None,
        db_path: Optional[Path] = None,
        socket_path: Optional[Path] = None,
        pid_file: Optional[Path] = None,
        log_file: Optional[Path] = None,
        paths: Optional[Paths] = None,
    ) -> "DaemonConfig":
        """Merge CLI overrides, the config file, and defaults.

        Raises:
            ConfigError: for invalid values in either source
        """
        paths = paths or get_paths()
        file_config = load_config()

        fast = _positive_int(interval, "interval") or _positive_int(
            file_config.get("poll_interval"), "poll_interval"
        )
        capture_lines = _positive_int(file_config.get("capture_lines"), "capture_lines")

        resolved_log_file = expand_tilde(str(log_file)) if log_file else paths.log_file

        return cls(
            db_path=expand_tilde(str(db_path)) if db_path else paths.db,
            socket_path=expand_tilde(str(socket_path)) if socket_path else paths.socket,
            pid_file=expand_tilde(str(pid_file)) if pid_file else paths.pid_file,
            log_file=resolved_log_file,
            json_log_file=resolved_log_file.with_suffix(".json.log"),
            log_level=get_log_level(log_level),
            interval_fast=fast or DAEMON.interval_fast,
            interval_slow=max(fast or 0, DAEMON.interval_slow),
            interval_idle=max(fast or 0, DAEMON.interval_idle),
            capture_lines=capture_lines or DAEMON.capture_lines,
            tmux_socket=file_config.get("tmux_socket") or None,
        )
