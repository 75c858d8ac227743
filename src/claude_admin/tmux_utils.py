"""
Shared tmux helpers: the pane listing format, its parser, and translation of
tmux's stderr into typed errors.

Kept free of any process spawning so both the real adapter and tests can use
them directly.
"""

from typing import Iterable, List, Optional, Union

from .exceptions import (
    PaneNotFoundError,
    TmuxCommandError,
    TmuxError,
    TmuxNotRunningError,
    TmuxParseError,
)
from .models import TmuxPane


PANE_FIELDS = (
    "session_name",
    "window_index",
    "pane_index",
    "pane_id",
    "pane_current_path",
)

# Tab separated: session names and paths may contain spaces, colons and dots
PANE_FORMAT = "\t".join(f"#{{{name}}}" for name in PANE_FIELDS)

NOT_RUNNING_MARKERS = ("no server running", "no sessions", "error connecting to")
PANE_MISSING_MARKERS = ("can't find pane", "no such")


def _parse_index(name: str, raw: str) -> int:
    # Unsigned ASCII decimal only; int() is looser
    if not (raw.isascii() and raw.isdigit()):
        raise TmuxParseError(f"invalid {name} '{raw}'")
    return int(raw)


def parse_pane_line(line: str) -> TmuxPane:
    """Parse one record of `list-panes -F PANE_FORMAT` output.

    Raises:
        TmuxParseError: wrong field count or non-numeric index
    """
    parts = line.split("\t")
    if len(parts) != len(PANE_FIELDS):
        raise TmuxParseError(f"expected {len(PANE_FIELDS)} fields, got {len(parts)}: '{line}'")

    session_name, window_raw, pane_raw, pane_id, working_dir = parts
    window_index = _parse_index("window_index", window_raw)
    pane_index = _parse_index("pane_index", pane_raw)

    return TmuxPane(
        session_name=session_name,
        window_index=window_index,
        pane_index=pane_index,
        pane_id=pane_id,
        working_dir=working_dir,
    )


def parse_pane_list(output: Union[str, Iterable[str]]) -> List[TmuxPane]:
    """Parse a full pane listing, skipping blank lines.

    One malformed record fails the whole listing.
    """
    lines = output.splitlines() if isinstance(output, str) else output
    panes = []
    for line in lines:
        if not line.strip():
            continue
        panes.append(parse_pane_line(line))
    return panes


def translate_tmux_error(stderr: str, pane_id: Optional[str] = None) -> TmuxError:
    """Map tmux's stderr text to the matching error type."""
    message = stderr.strip()
    lowered = message.lower()
    if any(marker in lowered for marker in NOT_RUNNING_MARKERS):
        return TmuxNotRunningError()
    if pane_id is not None and any(marker in lowered for marker in PANE_MISSING_MARKERS):
        return PaneNotFoundError(pane_id)
    return TmuxCommandError(message or "unknown error")
