"""
Daemon commands: start, stop, status, watch.
"""

import subprocess
import time
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich import print as rprint

from ..config import DaemonConfig
from ..control_server import ping
from ..exceptions import ClaudeAdminError
from ..pid_utils import get_process_pid, stop_process
from ..settings import get_paths
from ._shared import DbPathOption, PidFileOption, SocketPathOption, daemon_app


@daemon_app.callback(invoke_without_command=True)
def daemon_default(ctx: typer.Context):
    """Show daemon status (default when no subcommand given)."""
    if ctx.invoked_subcommand is None:
        _daemon_status(None, None)


@daemon_app.command("start")
def daemon_start(
    interval: Annotated[
        Optional[int], typer.Option("--interval", "-i", help="Pin the fast polling interval (seconds)")
    ] = None,
    log_level: Annotated[
        Optional[str], typer.Option("--log-level", "-l", help="trace, debug, info, warn or error")
    ] = None,
    db_path: DbPathOption = None,
    socket_path: SocketPathOption = None,
    pid_file: PidFileOption = None,
    log_file: Annotated[
        Optional[Path], typer.Option("--log-file", help="Human-readable log file")
    ] = None,
):
    """Start the daemon in the foreground.

    The daemon discovers Claude Code panes in tmux, classifies each one as
    idle, working, needs_input or done, and records changes in the session
    database.
    """
    from ..monitor_daemon import run_daemon

    try:
        config = DaemonConfig.resolve(
            log_level=log_level,
            interval=interval,
            db_path=db_path,
            socket_path=socket_path,
            pid_file=pid_file,
            log_file=log_file,
        )
    except ClaudeAdminError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    pid = get_process_pid(config.pid_file)
    if pid is not None:
        rprint(f"[yellow]Daemon already running[/yellow] (PID {pid})")
        raise typer.Exit(1)

    rprint(f"[dim]Starting daemon (fast interval {config.interval_fast}s)...[/dim]")
    raise typer.Exit(run_daemon(config))


@daemon_app.command("stop")
def daemon_stop(pid_file: PidFileOption = None):
    """Stop the running daemon."""
    pid_file = pid_file or get_paths().pid_file
    pid = get_process_pid(pid_file)
    if pid is None:
        rprint("[dim]Daemon is not running[/dim]")
        return

    if stop_process(pid_file):
        rprint(f"[green]✓[/green] Daemon stopped (was PID {pid})")
    else:
        rprint("[red]Failed to stop daemon[/red]")
        raise typer.Exit(1)


@daemon_app.command("status")
def daemon_status_cmd(pid_file: PidFileOption = None, socket_path: SocketPathOption = None):
    """Show daemon status."""
    _daemon_status(pid_file, socket_path)


def _daemon_status(pid_file: Optional[Path], socket_path: Optional[Path]) -> None:
    paths = get_paths()
    pid_file = pid_file or paths.pid_file
    socket_path = socket_path or paths.socket

    pid = get_process_pid(pid_file)
    if pid is None:
        rprint("[dim]Daemon:[/dim] ○ stopped")
        return

    rprint(f"[green]Daemon:[/green] ● running (PID {pid})")
    start = time.monotonic()
    if ping(socket_path):
        elapsed_ms = (time.monotonic() - start) * 1000
        rprint(f"  Socket: {socket_path} [green]responding[/green] ({elapsed_ms:.1f} ms)")
    else:
        rprint(f"  Socket: {socket_path} [red]not responding[/red]")


@daemon_app.command("watch")
def daemon_watch(
    log_file: Annotated[
        Optional[Path], typer.Option("--log-file", help="Log file to follow")
    ] = None,
):
    """Watch daemon logs in real-time."""
    log_file = log_file or get_paths().log_file

    if not log_file.exists():
        rprint(f"[red]Log file not found:[/red] {log_file}")
        rprint("[dim]The daemon may not have run yet.[/dim]")
        raise typer.Exit(1)

    rprint(f"[dim]Watching {log_file} (Ctrl-C to stop)[/dim]")
    print("-" * 60)

    try:
        subprocess.run(["tail", "-f", str(log_file)])
    except KeyboardInterrupt:
        print("\nStopped watching.")
