"""
Unit test configuration for claude-admin.

Every unit test gets its own data directory so nothing touches the user's
~/.claude-admin, and the claude_admin logger is reset afterwards.
"""

import logging

import pytest


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path, monkeypatch):
    """Point CLAUDE_ADMIN_DIR at a per-test temp directory."""
    data_dir = tmp_path / "claude-admin-data"
    monkeypatch.setenv("CLAUDE_ADMIN_DIR", str(data_dir))
    monkeypatch.delenv("CLAUDE_ADMIN_TMUX_SOCKET", raising=False)
    monkeypatch.delenv("TMUX_PANE", raising=False)
    yield data_dir


@pytest.fixture(autouse=True)
def reset_logging():
    """Remove handlers installed by setup_logging during a test."""
    yield
    logger = logging.getLogger("claude_admin")
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
