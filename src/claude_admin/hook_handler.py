"""Hook receiver for Claude Code hook events.

A single command (`claude-admin hook-handler`) handles every hook event.
It reads the hook JSON from stdin, finds the tracked session for the pane
the hook fired in ($TMUX_PANE), and records a hook_received event.

Example registration in Claude Code settings (same command for each event):
    UserPromptSubmit  -> claude-admin hook-handler
    PostToolUse       -> claude-admin hook-handler
    Stop              -> claude-admin hook-handler
    Notification      -> claude-admin hook-handler

Hooks must never disturb the assistant: every failure path is a silent
exit with status 0.
"""

import json
import os
import sys
from pathlib import Path
from typing import Optional, TextIO

from .exceptions import StorageError
from .models import HookReceived
from .session_registry import SessionRegistry
from .settings import get_paths


PANE_ENV = "TMUX_PANE"


def record_hook_event(
    registry: SessionRegistry,
    pane_id: str,
    event: str,
    tool_name: str | None = None,
) -> int | None:
    """Attach a hook_received event to the session for `pane_id`.

    Returns:
        The new event id, or None if no session tracks that pane
    """
    session = registry.get_session_by_pane(pane_id)
    if session is None:
        return None
    payload = {"tool_name": tool_name} if tool_name is not None else None
    return registry.record_event(session.id, HookReceived(event), payload)


def handle_hook_event(stdin: Optional[TextIO] = None, db_path: Optional[Path] = None) -> int | None:
    """Main entry point: read stdin JSON and record it against the pane's session.

    Silent return if $TMUX_PANE is missing, stdin is empty/invalid, the
    database doesn't exist yet, or no session tracks the pane.
    """
    pane_id = os.environ.get(PANE_ENV)
    if not pane_id:
        return None

    stream = stdin if stdin is not None else sys.stdin
    try:
        stdin_data = stream.read()
        if not stdin_data.strip():
            return None
        data = json.loads(stdin_data)
    except (json.JSONDecodeError, OSError):
        return None

    if not isinstance(data, dict):
        return None
    event = data.get("hook_event_name")
    if not event:
        return None
    tool_name = data.get("tool_name")

    db_path = db_path or get_paths().db
    if not db_path.exists():
        return None

    try:
        with SessionRegistry(db_path) as registry:
            return record_hook_event(registry, pane_id, str(event), tool_name=tool_name)
    except StorageError:
        return None
