"""
Real implementation of TmuxInterface.

Commands go through libtmux's command runner (Server.cmd), which spawns the
tmux binary and hands back stdout/stderr as lists of lines.
"""

import os
from typing import List, Optional

import libtmux
from libtmux.exc import TmuxCommandNotFound

from .exceptions import TmuxCommandError, TmuxNotFoundError
from .models import TmuxPane
from .settings import TMUX_SOCKET_ENV
from .tmux_utils import PANE_FORMAT, parse_pane_list, translate_tmux_error


class RealTmux:
    """Production implementation of TmuxInterface using libtmux."""

    def __init__(self, socket_name: Optional[str] = None):
        """Initialize with optional socket name for test isolation.

        If no socket_name is provided, checks CLAUDE_ADMIN_TMUX_SOCKET.
        """
        self._socket_name = socket_name or os.environ.get(TMUX_SOCKET_ENV)
        self._server: Optional[libtmux.Server] = None

    @property
    def server(self) -> libtmux.Server:
        """Lazy-load the tmux server connection."""
        if self._server is None:
            if self._socket_name:
                self._server = libtmux.Server(socket_name=self._socket_name)
            else:
                self._server = libtmux.Server()
        return self._server

    def _run(self, *args: str, pane_id: Optional[str] = None) -> List[str]:
        try:
            result = self.server.cmd(*args)
        except TmuxCommandNotFound:
            raise TmuxNotFoundError() from None
        except OSError as e:
            # Spawning tmux itself failed
            raise TmuxCommandError(str(e)) from e

        if result.returncode != 0:
            raise translate_tmux_error("\n".join(result.stderr), pane_id=pane_id)
        return list(result.stdout)

    def list_panes(self) -> List[TmuxPane]:
        lines = self._run("list-panes", "-a", "-F", PANE_FORMAT)
        return parse_pane_list(lines)

    def capture_recent_text(self, pane_id: str, line_count: int) -> str:
        if line_count <= 0:
            return ""
        lines = self._run(
            "capture-pane", "-p", "-t", pane_id, "-S", f"-{line_count}",
            pane_id=pane_id,
        )
        return "\n".join(lines)

    def get_pane_process(self, pane_id: str) -> str:
        lines = self._run(
            "display-message", "-p", "-t", pane_id, "#{pane_current_command}",
            pane_id=pane_id,
        )
        return lines[0].strip() if lines else ""
