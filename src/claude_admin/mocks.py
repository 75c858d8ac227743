"""
Mock implementations of protocol interfaces for testing.

MockTmux keeps panes, their foreground commands and their text in memory.
Errors can be injected to exercise the daemon's error handling without a
tmux server.
"""

from typing import Dict, List, Optional

from .exceptions import PaneNotFoundError, TmuxError, TmuxNotRunningError
from .models import TmuxPane


class MockTmux:
    """Mock implementation of TmuxInterface for testing"""

    def __init__(self):
        self.panes: Dict[str, TmuxPane] = {}
        self.processes: Dict[str, str] = {}
        self.contents: Dict[str, str] = {}
        self.running = True
        self.list_error: Optional[TmuxError] = None
        self.capture_errors: Dict[str, TmuxError] = {}
        self.capture_calls: List[str] = []

    def add_pane(
        self,
        pane_id: str,
        session_name: str = "main",
        window_index: int = 0,
        pane_index: int = 0,
        working_dir: str = "/tmp",
        process: str = "claude",
        content: str = "",
    ) -> TmuxPane:
        pane = TmuxPane(
            session_name=session_name,
            window_index=window_index,
            pane_index=pane_index,
            pane_id=pane_id,
            working_dir=working_dir,
        )
        self.panes[pane_id] = pane
        self.processes[pane_id] = process
        self.contents[pane_id] = content
        return pane

    def remove_pane(self, pane_id: str) -> None:
        self.panes.pop(pane_id, None)
        self.processes.pop(pane_id, None)
        self.contents.pop(pane_id, None)

    def set_pane_content(self, pane_id: str, content: str) -> None:
        self.contents[pane_id] = content

    def set_pane_process(self, pane_id: str, process: str) -> None:
        self.processes[pane_id] = process

    def list_panes(self) -> List[TmuxPane]:
        if self.list_error is not None:
            raise self.list_error
        if not self.running:
            raise TmuxNotRunningError()
        return list(self.panes.values())

    def capture_recent_text(self, pane_id: str, line_count: int) -> str:
        if line_count <= 0:
            return ""
        self.capture_calls.append(pane_id)
        if pane_id in self.capture_errors:
            raise self.capture_errors[pane_id]
        if pane_id not in self.panes:
            raise PaneNotFoundError(pane_id)
        lines = self.contents.get(pane_id, "").split("\n")
        return "\n".join(lines[-line_count:])

    def get_pane_process(self, pane_id: str) -> str:
        if pane_id not in self.panes:
            raise PaneNotFoundError(pane_id)
        return self.processes.get(pane_id, "")
