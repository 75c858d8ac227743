"""
Shared CLI state: Typer apps, console, options, and utilities.
"""

from datetime import datetime
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console

from ..models import SessionState

# Main app
app = typer.Typer(
    name="claude-admin",
    help="Track Claude Code sessions running in tmux",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Daemon subcommand group
daemon_app = typer.Typer(
    name="daemon",
    help="Manage the session tracking daemon",
    no_args_is_help=False,
    invoke_without_command=True,
)
app.add_typer(daemon_app, name="daemon")

# Console for rich output
console = Console()

# Shared path overrides
DbPathOption = Annotated[
    Optional[Path],
    typer.Option("--db-path", help="Session database path"),
]

SocketPathOption = Annotated[
    Optional[Path],
    typer.Option("--socket-path", help="Control socket path"),
]

PidFileOption = Annotated[
    Optional[Path],
    typer.Option("--pid-file", help="Daemon PID file path"),
]


STATE_STYLES = {
    SessionState.IDLE: "dim",
    SessionState.WORKING: "green",
    SessionState.NEEDS_INPUT: "yellow",
    SessionState.DONE: "blue",
}


def format_state(state: SessionState) -> str:
    """Rich markup for a state label."""
    style = STATE_STYLES.get(state, "")
    return f"[{style}]{state.value}[/{style}]" if style else state.value


def format_timestamp(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M:%S")


def format_ago(timestamp: int, now: Optional[float] = None) -> str:
    """Format a timestamp as '5s ago', '3m ago', '2h ago' or '1d ago'."""
    now = datetime.now().timestamp() if now is None else now
    seconds = max(0, int(now - timestamp))
    if seconds < 60:
        return f"{seconds}s ago"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    return f"{seconds // 86400}d ago"
