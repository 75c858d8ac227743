"""
Test fixtures and factories for claude-admin unit tests.

Factory functions build panes, sessions and observations with sensible
defaults, and the CONTENT_* constants are realistic pane captures.
"""

from typing import Optional
from uuid import uuid4

from claude_admin.models import (
    DetectionMethod,
    Observation,
    Session,
    SessionState,
    TmuxPane,
)


def make_pane(
    pane_id: str = "%7",
    session_name: str = "main",
    window_index: int = 0,
    pane_index: int = 0,
    working_dir: str = "/home/user/project",
) -> TmuxPane:
    return TmuxPane(
        session_name=session_name,
        window_index=window_index,
        pane_index=pane_index,
        pane_id=pane_id,
        working_dir=working_dir,
    )


def make_observation(
    pane_id: str = "%7",
    state: SessionState = SessionState.WORKING,
    method: DetectionMethod = DetectionMethod.PROCESS_NAME,
    **pane_kwargs,
) -> Observation:
    return Observation(make_pane(pane_id=pane_id, **pane_kwargs), state, method)


def make_session(
    id: Optional[str] = None,
    pane_id: str = "%7",
    session_name: str = "main",
    window_index: int = 0,
    pane_index: int = 0,
    working_dir: str = "/home/user/project",
    state: SessionState = SessionState.IDLE,
    detection_method: DetectionMethod = DetectionMethod.PROCESS_NAME,
    created_at: int = 1_700_000_000,
    last_activity: Optional[int] = None,
    updated_at: Optional[int] = None,
) -> Session:
    return Session(
        id=id or uuid4().hex,
        pane_id=pane_id,
        session_name=session_name,
        window_index=window_index,
        pane_index=pane_index,
        working_dir=working_dir,
        state=state,
        detection_method=detection_method,
        last_activity=last_activity if last_activity is not None else created_at,
        created_at=created_at,
        updated_at=updated_at if updated_at is not None else created_at,
    )


# Realistic pane captures

CONTENT_WORKING = """\
> add a --json flag to the sessions command

⏺ I'll add that flag. Let me look at the command first.

Tool: Read
Reading src/claude_admin/cli/monitoring.py...
"""

CONTENT_NEEDS_APPROVAL = """\
I'll make the following changes:
- Update config.rs
- Add new module

Approve?
"""

CONTENT_DONE = """\
Tool: Bash
Running cargo test...
test result: ok. 12 passed
Session ended
"""

CONTENT_WELCOME = """\
╭──────────────────────────────────────────────────────────╮
│                                                          │
│   Welcome to Claude Code!                                │
│                                                          │
│   What would you like to do?                             │
│                                                          │
╰──────────────────────────────────────────────────────────╯
>"""

CONTENT_SHELL = """\
user@host:~/project$ ls
Cargo.toml  src  tests
user@host:~/project$ """

CONTENT_PLAIN = """\
Some random text that doesn't match any pattern.
Just ordinary output here.
Nothing special."""
