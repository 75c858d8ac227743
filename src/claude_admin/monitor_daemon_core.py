"""
Pure business logic for the monitor daemon.

These functions contain no I/O and are fully unit-testable.
They are used by MonitorDaemon but can be tested independently.
"""

from typing import Dict, Iterable, Optional

from .models import SessionState


def count_states(states: Iterable[SessionState]) -> Dict[SessionState, int]:
    """Count sessions per state.

    Pure function - no side effects, fully testable.

    Returns:
        Dict with an entry for every SessionState (zero when absent)
    """
    counts = {state: 0 for state in SessionState}
    for state in states:
        counts[state] += 1
    return counts


def calculate_interval(
    states: Iterable[SessionState],
    interval_fast: int,
    interval_slow: int,
    interval_idle: int,
) -> int:
    """Pick the next poll interval.

    Pure function - no side effects, fully testable.

    Args:
        states: Current state of every tracked session
        interval_fast: Used while any session is working
        interval_slow: Used when sessions exist but none is working
        interval_idle: Used when nothing is tracked

    Returns:
        Interval in seconds
    """
    states = list(states)
    if not states:
        return interval_idle
    if SessionState.WORKING in states:
        return interval_fast
    return interval_slow


def format_state_summary(counts: Dict[SessionState, int]) -> str:
    """Render state counts for the status log line, e.g. "2 working, 1 idle".

    Pure function - no side effects, fully testable.
    """
    parts = [f"{count} {state.value}" for state, count in counts.items() if count]
    return ", ".join(parts) if parts else "no sessions"


def should_log_summary(
    previous: Optional[Dict[SessionState, int]],
    current: Dict[SessionState, int],
) -> bool:
    """Only log the summary when the distribution of states changed.

    Pure function - no side effects, fully testable.
    """
    return previous is None or previous != current
