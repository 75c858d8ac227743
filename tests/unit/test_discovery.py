"""
Tests for pane discovery against MockTmux.
"""

import pytest

from claude_admin.discovery import discover, list_panes_or_empty, scan_pane, scan_panes
from claude_admin.exceptions import PaneNotFoundError, TmuxCommandError
from claude_admin.mocks import MockTmux
from claude_admin.models import DetectionMethod, SessionState
from tests.fixtures import CONTENT_DONE, CONTENT_NEEDS_APPROVAL, CONTENT_SHELL, CONTENT_WORKING


@pytest.fixture
def tmux():
    return MockTmux()


class TestListPanesOrEmpty:

    def test_not_running_means_no_panes(self, tmux):
        tmux.running = False
        assert list_panes_or_empty(tmux) == []

    def test_other_errors_propagate(self, tmux):
        tmux.list_error = TmuxCommandError("server exploded")
        with pytest.raises(TmuxCommandError):
            list_panes_or_empty(tmux)


class TestScanPane:

    def test_claude_process(self, tmux):
        pane = tmux.add_pane("%7", process="claude", content=CONTENT_WORKING)
        scan = scan_pane(tmux, pane, 50)
        assert scan.tracked
        assert scan.detection_method == DetectionMethod.PROCESS_NAME
        assert scan.state == SessionState.WORKING

    def test_version_named_process(self, tmux):
        pane = tmux.add_pane("%7", process="2.1.20", content=CONTENT_DONE)
        scan = scan_pane(tmux, pane, 50)
        assert scan.detection_method == DetectionMethod.PROCESS_NAME
        assert scan.state == SessionState.DONE

    def test_shell_is_not_captured(self, tmux):
        pane = tmux.add_pane("%1", process="bash", content=CONTENT_SHELL)
        scan = scan_pane(tmux, pane, 50)
        assert not scan.tracked
        assert scan.state is None
        assert tmux.capture_calls == []

    def test_runtime_with_signature(self, tmux):
        pane = tmux.add_pane("%2", process="node", content="⏺ Hello\nApprove?")
        scan = scan_pane(tmux, pane, 50)
        assert scan.detection_method == DetectionMethod.PANE_CONTENT
        assert scan.state == SessionState.NEEDS_INPUT

    def test_runtime_without_signature(self, tmux):
        pane = tmux.add_pane("%2", process="node", content="webpack compiled successfully")
        scan = scan_pane(tmux, pane, 50)
        assert not scan.tracked
        assert tmux.capture_calls == ["%2"]

    def test_untracked_to_observation_raises(self, tmux):
        pane = tmux.add_pane("%1", process="vim")
        with pytest.raises(ValueError):
            scan_pane(tmux, pane, 50).to_observation()


class TestDiscover:

    def test_returns_only_tracked_panes(self, tmux):
        tmux.add_pane("%1", process="zsh", content=CONTENT_SHELL)
        tmux.add_pane("%2", process="claude", content=CONTENT_NEEDS_APPROVAL)
        tmux.add_pane("%3", process="node", content="Claude Code v2\nTool: Bash")

        observations = discover(tmux, 50)

        assert [o.pane.pane_id for o in observations] == ["%2", "%3"]
        assert observations[0].state == SessionState.NEEDS_INPUT
        assert observations[1].detection_method == DetectionMethod.PANE_CONTENT
        assert observations[1].state == SessionState.WORKING

    def test_no_server(self, tmux):
        tmux.running = False
        assert discover(tmux, 50) == []

    def test_no_panes(self, tmux):
        assert discover(tmux, 50) == []

    def test_vanished_pane_dropped(self, tmux):
        tmux.add_pane("%1", process="claude", content=CONTENT_WORKING)
        tmux.add_pane("%2", process="claude", content=CONTENT_WORKING)
        tmux.capture_errors["%1"] = PaneNotFoundError("%1")

        observations = discover(tmux, 50)

        assert [o.pane.pane_id for o in observations] == ["%2"]

    def test_capture_failure_propagates(self, tmux):
        tmux.add_pane("%1", process="claude")
        tmux.capture_errors["%1"] = TmuxCommandError("capture failed")
        with pytest.raises(TmuxCommandError):
            discover(tmux, 50)

    def test_capture_line_count_limits_text(self, tmux):
        # Only the last line is captured, so the old activity is out of view
        tmux.add_pane("%1", process="claude", content="Tool: Bash\nRunning tests\nall good.")
        observations = discover(tmux, 1)
        assert observations[0].state == SessionState.IDLE

    def test_scan_panes_includes_untracked(self, tmux):
        tmux.add_pane("%1", process="zsh")
        tmux.add_pane("%2", process="claude")
        scans = scan_panes(tmux, 50)
        assert [s.tracked for s in scans] == [False, True]
        assert scans[1].state == SessionState.IDLE

    def test_pane_starts_claude_later(self, tmux):
        tmux.add_pane("%1", process="zsh", content=CONTENT_SHELL)
        assert discover(tmux, 50) == []

        tmux.set_pane_process("%1", "claude")
        tmux.set_pane_content("%1", CONTENT_WORKING)
        observations = discover(tmux, 50)

        assert [o.state for o in observations] == [SessionState.WORKING]
