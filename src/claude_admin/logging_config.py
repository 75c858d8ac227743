"""
Centralized logging configuration for claude-admin.

All loggers live under the "claude_admin" namespace. The daemon writes a
human-readable log and a JSON-lines log side by side; the CLI only surfaces
warnings.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from rich.logging import RichHandler

from .settings import get_paths


ROOT_LOGGER = "claude_admin"

HUMAN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Attributes every LogRecord carries; anything else came from `extra`
_RESERVED_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
}


def get_logger(name: str) -> logging.Logger:
    """Get a logger in the claude_admin namespace."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


class JsonLineFormatter(logging.Formatter):
    """Format each record as a single JSON object.

    Structured fields attached via StructuredLogger (record.fields) are
    merged into the top level of the object.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        fields = getattr(record, "fields", None)
        if isinstance(fields, dict):
            for key, value in fields.items():
                entry.setdefault(key, value)
        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and key != "fields":
                entry.setdefault(key, value)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    console: bool = True,
    rich_console: bool = True,
    json_log_file: Optional[Path] = None,
) -> logging.Logger:
    """Configure the claude_admin root logger.

    Existing handlers are removed first so repeated calls don't duplicate
    output.

    Args:
        level: Logging level for the namespace
        log_file: Optional human-readable log file
        console: Whether to log to the console
        rich_console: Use Rich for console output (plain stream otherwise)
        json_log_file: Optional JSON-lines log file

    Returns:
        The configured root logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.handlers.clear()
    logger.propagate = False

    if console:
        if rich_console:
            handler: logging.Handler = RichHandler(
                show_path=False,
                rich_tracebacks=True,
                markup=False,
            )
            handler.setFormatter(logging.Formatter("%(message)s"))
        else:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(HUMAN_FORMAT))
        handler.setLevel(level)
        logger.addHandler(handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(HUMAN_FORMAT))
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    if json_log_file:
        json_log_file = Path(json_log_file)
        json_log_file.parent.mkdir(parents=True, exist_ok=True)
        json_handler = logging.FileHandler(json_log_file)
        json_handler.setFormatter(JsonLineFormatter())
        json_handler.setLevel(level)
        logger.addHandler(json_handler)

    return logger


def setup_daemon_logging(
    log_file: Optional[Path] = None,
    json_log_file: Optional[Path] = None,
    level: int = logging.INFO,
    console: bool = True,
) -> logging.Logger:
    """Configure logging for the daemon process.

    Defaults to daemon.log and daemon.json.log in the data directory.
    """
    if log_file is None:
        log_file = get_paths().log_file
    if json_log_file is None:
        json_log_file = Path(log_file).with_suffix(".json.log")

    setup_logging(
        level=level,
        log_file=log_file,
        console=console,
        rich_console=True,
        json_log_file=json_log_file,
    )
    return get_logger("daemon")


def setup_cli_logging() -> logging.Logger:
    """Configure logging for CLI commands (warnings and above)."""
    setup_logging(level=logging.WARNING, console=True, rich_console=True)
    return get_logger("cli")


class StructuredLogger:
    """Logger wrapper that carries key=value context.

    Context is appended to the message text and also attached to the record
    as `fields` so the JSON log keeps it structured.

    Usage:
        log = get_structured_logger("registry").with_context(pane_id="%7")
        log.info("session discovered", state="working")
    """

    def __init__(self, logger: logging.Logger, context: Optional[Dict[str, Any]] = None):
        self._logger = logger
        self._context: Dict[str, Any] = dict(context or {})

    def with_context(self, **kwargs: Any) -> "StructuredLogger":
        """Return a new logger with additional context."""
        merged = dict(self._context)
        merged.update(kwargs)
        return StructuredLogger(self._logger, merged)

    def _fields(self, kwargs: Dict[str, Any]) -> Dict[str, Any]:
        fields = dict(self._context)
        fields.update(kwargs)
        return fields

    @staticmethod
    def _format(msg: str, fields: Dict[str, Any]) -> str:
        if not fields:
            return msg
        suffix = " ".join(f"{k}={v}" for k, v in fields.items())
        return f"{msg} {suffix}"

    def _log(self, method: str, msg: str, kwargs: Dict[str, Any]) -> None:
        fields = self._fields(kwargs)
        log_fn = getattr(self._logger, method)
        if fields:
            log_fn(self._format(msg, fields), extra={"fields": fields})
        else:
            log_fn(msg)

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._log("debug", msg, kwargs)

    def info(self, msg: str, **kwargs: Any) -> None:
        self._log("info", msg, kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        self._log("warning", msg, kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        self._log("error", msg, kwargs)

    def exception(self, msg: str, **kwargs: Any) -> None:
        self._log("exception", msg, kwargs)


def get_structured_logger(name: str) -> StructuredLogger:
    return StructuredLogger(get_logger(name))
