"""
Protocol definitions for external dependencies.

The daemon only talks to tmux through TmuxInterface so tests can swap the
real adapter for MockTmux.
"""

from typing import List, Protocol, runtime_checkable

from .models import TmuxPane


@runtime_checkable
class TmuxInterface(Protocol):
    """Interface for the tmux queries the daemon needs"""

    def list_panes(self) -> List[TmuxPane]:
        """List every pane across all sessions.

        Raises:
            TmuxNotRunningError: no server or no sessions
            TmuxCommandError: tmux failed for another reason
            TmuxParseError: the listing was malformed
        """
        ...

    def capture_recent_text(self, pane_id: str, line_count: int) -> str:
        """Capture the last `line_count` lines of a pane's scrollback.

        Returns "" for line_count == 0 without calling tmux.

        Raises:
            PaneNotFoundError: the pane no longer exists
            TmuxCommandError: tmux failed for another reason
        """
        ...

    def get_pane_process(self, pane_id: str) -> str:
        """Name of the pane's foreground command (#{pane_current_command}).

        Raises:
            PaneNotFoundError: the pane no longer exists
            TmuxCommandError: tmux failed for another reason
        """
        ...
