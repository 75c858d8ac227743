"""Tests for implementations module."""

from unittest.mock import MagicMock, patch

import pytest
from libtmux.exc import TmuxCommandNotFound

from claude_admin.exceptions import (
    PaneNotFoundError,
    TmuxCommandError,
    TmuxNotFoundError,
    TmuxNotRunningError,
    TmuxParseError,
)
from claude_admin.implementations import RealTmux
from claude_admin.mocks import MockTmux
from claude_admin.protocols import TmuxInterface
from claude_admin.tmux_utils import PANE_FORMAT


def _result(stdout=None, stderr=None, returncode=0):
    result = MagicMock()
    result.stdout = stdout or []
    result.stderr = stderr or []
    result.returncode = returncode
    return result


@pytest.fixture
def tmux():
    real = RealTmux(socket_name="test-socket")
    real._server = MagicMock()
    return real


class TestRealTmuxInit:

    def test_implements_protocol(self):
        assert isinstance(RealTmux(), TmuxInterface)

    def test_socket_name_from_env(self, monkeypatch):
        monkeypatch.setenv("CLAUDE_ADMIN_TMUX_SOCKET", "isolated")
        assert RealTmux()._socket_name == "isolated"

    def test_explicit_socket_name_wins(self, monkeypatch):
        monkeypatch.setenv("CLAUDE_ADMIN_TMUX_SOCKET", "isolated")
        assert RealTmux(socket_name="explicit")._socket_name == "explicit"

    def test_server_created_lazily_with_socket(self):
        with patch("claude_admin.implementations.libtmux.Server") as mock_server:
            tmux = RealTmux(socket_name="sock")
            mock_server.assert_not_called()
            assert tmux.server is mock_server.return_value
            mock_server.assert_called_once_with(socket_name="sock")

    def test_server_default_socket(self):
        with patch("claude_admin.implementations.libtmux.Server") as mock_server:
            RealTmux().server
            mock_server.assert_called_once_with()


class TestListPanes:

    def test_runs_list_panes_with_format(self, tmux):
        tmux._server.cmd.return_value = _result(stdout=["main\t0\t0\t%7\t/home/user"])

        panes = tmux.list_panes()

        tmux._server.cmd.assert_called_once_with("list-panes", "-a", "-F", PANE_FORMAT)
        assert len(panes) == 1
        assert panes[0].pane_id == "%7"
        assert panes[0].working_dir == "/home/user"

    def test_no_server(self, tmux):
        tmux._server.cmd.return_value = _result(
            stderr=["no server running on /tmp/tmux-1000/test-socket"], returncode=1
        )
        with pytest.raises(TmuxNotRunningError):
            tmux.list_panes()

    def test_other_failure(self, tmux):
        tmux._server.cmd.return_value = _result(stderr=["protocol version mismatch"], returncode=1)
        with pytest.raises(TmuxCommandError, match="protocol version mismatch"):
            tmux.list_panes()

    def test_malformed_output(self, tmux):
        tmux._server.cmd.return_value = _result(stdout=["main\t0"])
        with pytest.raises(TmuxParseError):
            tmux.list_panes()

    def test_tmux_binary_missing(self, tmux):
        tmux._server.cmd.side_effect = TmuxCommandNotFound()
        with pytest.raises(TmuxNotFoundError):
            tmux.list_panes()

    def test_missing_binary_is_command_error(self, tmux):
        tmux._server.cmd.side_effect = TmuxCommandNotFound()
        with pytest.raises(TmuxCommandError):
            tmux.list_panes()

    def test_spawn_failure_is_command_error(self, tmux):
        tmux._server.cmd.side_effect = BlockingIOError(11, "Resource temporarily unavailable")
        with pytest.raises(TmuxCommandError, match="Resource temporarily unavailable") as exc:
            tmux.list_panes()
        assert isinstance(exc.value.__cause__, BlockingIOError)


class TestCaptureRecentText:

    def test_zero_lines_skips_tmux(self, tmux):
        assert tmux.capture_recent_text("%7", 0) == ""
        tmux._server.cmd.assert_not_called()

    def test_captures_scrollback(self, tmux):
        tmux._server.cmd.return_value = _result(stdout=["line one", "line two"])

        text = tmux.capture_recent_text("%7", 50)

        tmux._server.cmd.assert_called_once_with("capture-pane", "-p", "-t", "%7", "-S", "-50")
        assert text == "line one\nline two"

    def test_pane_gone(self, tmux):
        tmux._server.cmd.return_value = _result(stderr=["can't find pane: %7"], returncode=1)
        with pytest.raises(PaneNotFoundError) as exc:
            tmux.capture_recent_text("%7", 10)
        assert exc.value.pane_id == "%7"


    def test_permission_denied_is_command_error(self, tmux):
        tmux._server.cmd.side_effect = PermissionError(13, "Permission denied")
        with pytest.raises(TmuxCommandError):
            tmux.capture_recent_text("%7", 10)


class TestGetPaneProcess:

    def test_returns_current_command(self, tmux):
        tmux._server.cmd.return_value = _result(stdout=["claude"])

        assert tmux.get_pane_process("%7") == "claude"
        tmux._server.cmd.assert_called_once_with(
            "display-message", "-p", "-t", "%7", "#{pane_current_command}"
        )

    def test_empty_output(self, tmux):
        tmux._server.cmd.return_value = _result(stdout=[])
        assert tmux.get_pane_process("%7") == ""

    def test_pane_gone(self, tmux):
        tmux._server.cmd.return_value = _result(stderr=["can't find pane: %7"], returncode=1)
        with pytest.raises(PaneNotFoundError):
            tmux.get_pane_process("%7")


class TestMockTmux:
    """MockTmux must behave like the real adapter for the daemon's purposes."""

    def test_implements_protocol(self):
        assert isinstance(MockTmux(), TmuxInterface)

    def test_list_panes(self):
        mock = MockTmux()
        mock.add_pane("%1")
        mock.add_pane("%2", session_name="work")
        assert [p.pane_id for p in mock.list_panes()] == ["%1", "%2"]

    def test_not_running(self):
        mock = MockTmux()
        mock.running = False
        with pytest.raises(TmuxNotRunningError):
            mock.list_panes()

    def test_capture_respects_line_count(self):
        mock = MockTmux()
        mock.add_pane("%1", content="a\nb\nc\nd")
        assert mock.capture_recent_text("%1", 2) == "c\nd"
        assert mock.capture_recent_text("%1", 0) == ""

    def test_capture_missing_pane(self):
        with pytest.raises(PaneNotFoundError):
            MockTmux().capture_recent_text("%404", 5)

    def test_injected_capture_error(self):
        mock = MockTmux()
        mock.add_pane("%1")
        mock.capture_errors["%1"] = TmuxCommandError("boom")
        with pytest.raises(TmuxCommandError):
            mock.capture_recent_text("%1", 5)

    def test_remove_pane(self):
        mock = MockTmux()
        mock.add_pane("%1", process="claude")
        mock.remove_pane("%1")
        assert mock.list_panes() == []
        with pytest.raises(PaneNotFoundError):
            mock.get_pane_process("%1")
