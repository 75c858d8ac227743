"""
Exception hierarchy for claude-admin.

Errors are grouped by how the daemon reacts to them:
- tmux errors are contained to a single poll cycle
- storage errors fail the specific read or write
- protocol errors fail a single IPC exchange
- resource and config errors are fatal at startup
"""

from typing import Optional


class ClaudeAdminError(Exception):
    """Base class for all claude-admin errors."""


# =============================================================================
# tmux
# =============================================================================


class TmuxError(ClaudeAdminError):
    """Base class for tmux adapter errors."""


class TmuxNotRunningError(TmuxError):
    """No tmux server (or no session) is running.

    Benign: callers treat this as "no panes found".
    """

    def __init__(self, message: str = "tmux not running"):
        super().__init__(message)


class PaneNotFoundError(TmuxError):
    """The requested pane no longer exists."""

    def __init__(self, pane_id: str):
        self.pane_id = pane_id
        super().__init__(f"pane not found: {pane_id}")


class TmuxCommandError(TmuxError):
    """tmux exited non-zero for an unexpected reason."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"tmux command failed: {detail}")


class TmuxNotFoundError(TmuxCommandError):
    """The tmux executable is not installed or not on PATH."""

    def __init__(self, detail: str = "tmux executable not found"):
        super().__init__(detail)


class TmuxParseError(TmuxError):
    """tmux output did not have the expected shape."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"failed to parse tmux output: {detail}")


# =============================================================================
# Storage
# =============================================================================


class StorageError(ClaudeAdminError):
    """The session database could not be read or written."""


class InvalidStateError(StorageError):
    """A stored enum value is not one of the known variants."""

    def __init__(self, value: str, kind: str = "session state"):
        self.value = value
        self.kind = kind
        super().__init__(f"invalid {kind} in database: {value!r}")


class DuplicatePaneError(StorageError):
    """A session is already registered for this pane."""

    def __init__(self, pane_id: str):
        self.pane_id = pane_id
        super().__init__(f"a session is already registered for pane {pane_id}")


# =============================================================================
# IPC
# =============================================================================


class ProtocolError(ClaudeAdminError):
    """A control socket message could not be decoded."""


class ControlSocketError(ClaudeAdminError):
    """The control socket path could not be bound."""

    def __init__(self, path: str, detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"cannot bind control socket {path}: {detail}")


class SocketInUseError(ClaudeAdminError):
    """The control socket is held by a running daemon."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"socket already in use by running daemon: {path}")


# =============================================================================
# Startup
# =============================================================================


class DaemonAlreadyRunningError(ClaudeAdminError):
    """Another daemon instance holds the PID lock."""

    def __init__(self, pid: Optional[int] = None):
        self.pid = pid
        if pid is not None:
            super().__init__(f"daemon already running with PID {pid}")
        else:
            super().__init__("could not acquire daemon lock (another daemon may be starting)")


class ConfigError(ClaudeAdminError):
    """Configuration is invalid or the data directory is unusable."""
