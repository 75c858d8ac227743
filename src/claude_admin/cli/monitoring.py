"""
Monitoring commands: ping, sessions, events, scan, hook_handler_cmd.
"""

import json
import time
from typing import Annotated, Optional

import typer
from rich import print as rprint
from rich.table import Table

from ..control_server import Ping, Pong, send_message
from ..exceptions import ClaudeAdminError, ProtocolError
from ..settings import DAEMON, get_paths
from ._shared import (
    DbPathOption,
    SocketPathOption,
    app,
    console,
    format_ago,
    format_state,
    format_timestamp,
)


@app.command("hook-handler", hidden=True)
def hook_handler_cmd():
    """Handle Claude Code hook events (internal).

    Called by Claude Code hooks, not by users directly.
    Reads event JSON from stdin and records it against the pane's session.
    """
    from ..hook_handler import handle_hook_event

    handle_hook_event()


@app.command("ping")
def ping_cmd(
    socket_path: SocketPathOption = None,
    timeout: Annotated[
        float, typer.Option("--timeout", "-t", help="Seconds to wait for the reply")
    ] = DAEMON.socket_timeout,
):
    """Check the daemon answers on its control socket."""
    socket_path = socket_path or get_paths().socket

    start = time.monotonic()
    try:
        reply = send_message(socket_path, Ping(), timeout=timeout)
    except (OSError, ProtocolError) as e:
        rprint(f"[red]✗[/red] No response from {socket_path}: {e}")
        raise typer.Exit(1)
    elapsed_ms = (time.monotonic() - start) * 1000

    if not isinstance(reply, Pong):
        rprint(f"[red]✗[/red] Unexpected reply: {reply.to_dict()}")
        raise typer.Exit(1)
    rprint(f"[green]✓[/green] pong ({elapsed_ms:.1f} ms)")


def _open_registry(db_path):
    from ..session_registry import SessionRegistry

    db_path = db_path or get_paths().db
    if not db_path.exists():
        return None
    try:
        return SessionRegistry(db_path)
    except ClaudeAdminError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command("sessions")
def sessions_cmd(
    db_path: DbPathOption = None,
    as_json: Annotated[
        bool, typer.Option("--json", help="Output JSON instead of a table")
    ] = False,
):
    """List tracked sessions."""
    registry = _open_registry(db_path)
    if registry is None:
        if as_json:
            print("[]")
        else:
            rprint("[dim]No sessions (database not created yet)[/dim]")
        return

    with registry:
        try:
            sessions = registry.list_sessions()
        except ClaudeAdminError as e:
            rprint(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)

    if as_json:
        print(json.dumps([s.to_dict() for s in sessions], indent=2))
        return

    if not sessions:
        rprint("[dim]No sessions[/dim]")
        return

    table = Table(title=f"Sessions ({len(sessions)})")
    table.add_column("Target", style="cyan")
    table.add_column("Pane")
    table.add_column("State")
    table.add_column("Via", style="dim")
    table.add_column("Last activity")
    table.add_column("Working dir", style="dim")
    for session in sessions:
        table.add_row(
            session.target,
            session.pane_id,
            format_state(session.state),
            session.detection_method.value,
            format_ago(session.last_activity),
            session.working_dir,
        )
    console.print(table)


@app.command("events")
def events_cmd(
    session_id: Annotated[
        Optional[str], typer.Option("--session", "-s", help="Only events for this session id")
    ] = None,
    limit: Annotated[
        int, typer.Option("--limit", "-n", help="Maximum number of events")
    ] = 20,
    db_path: DbPathOption = None,
    as_json: Annotated[
        bool, typer.Option("--json", help="Output JSON instead of a table")
    ] = False,
):
    """Show recent events, newest first."""
    registry = _open_registry(db_path)
    if registry is None:
        if as_json:
            print("[]")
        else:
            rprint("[dim]No events (database not created yet)[/dim]")
        return

    with registry:
        try:
            if session_id:
                events = registry.get_events(session_id, limit)
            else:
                events = registry.get_recent_events(limit)
        except ClaudeAdminError as e:
            rprint(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)

    if as_json:
        print(json.dumps([e.to_dict() for e in events], indent=2))
        return

    if not events:
        rprint("[dim]No events[/dim]")
        return

    table = Table(title=f"Events ({len(events)})")
    table.add_column("Time")
    table.add_column("Session", style="cyan")
    table.add_column("Event")
    table.add_column("Payload", style="dim")
    for event in events:
        table.add_row(
            format_timestamp(event.timestamp),
            event.session_id[:8],
            event.describe(),
            json.dumps(event.payload) if event.payload else "",
        )
    console.print(table)


@app.command("scan")
def scan_cmd(
    lines: Annotated[
        int, typer.Option("--lines", "-n", help="Lines of output to show per tracked pane")
    ] = 5,
):
    """Scan every tmux pane and show which ones host Claude Code."""
    from ..config import load_config
    from ..discovery import scan_panes
    from ..exceptions import TmuxError
    from ..implementations import RealTmux

    tmux = RealTmux(socket_name=load_config().get("tmux_socket"))
    try:
        tmux.list_panes()
    except TmuxError as e:
        rprint(f"[yellow]{e}[/yellow]")
        return

    try:
        scans = scan_panes(tmux, DAEMON.capture_lines)
    except TmuxError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title="tmux panes")
    table.add_column("Target", style="cyan")
    table.add_column("Pane")
    table.add_column("Process")
    table.add_column("Tracked")
    table.add_column("State")
    table.add_column("Working dir", style="dim")
    for scan in scans:
        table.add_row(
            scan.pane.target,
            scan.pane.pane_id,
            scan.process,
            scan.detection_method.value if scan.tracked else "",
            format_state(scan.state) if scan.state else "",
            scan.pane.working_dir,
        )
    console.print(table)

    tracked = [s for s in scans if s.tracked]
    rprint(f"\nClaude sessions found: {len(tracked)}")
    for i, scan in enumerate(tracked, 1):
        rprint(f"\n  {i}. {scan.pane.target} ({scan.pane.pane_id})")
        rprint(f"     [dim]Working dir: {scan.pane.working_dir}[/dim]")
        tail = [line for line in scan.content.strip().splitlines() if line.strip()][-lines:]
        if lines > 0 and tail:
            rprint("     Last output:")
            for line in tail:
                console.print(f"       | {line}", markup=False, highlight=False)
