"""
Status detection for Claude Code panes.

`classify` turns captured pane text into a SessionState with an ordered
cascade, first match wins:

    1. termination phrase in the tail window            -> DONE
    2. input marker in the tail window, or the last
       line ends like a prompt and nothing is active    -> NEEDS_INPUT
    3. activity marker in the recent window             -> WORKING
    4. welcome phrase in the recent window              -> NEEDS_INPUT
    5. otherwise                                        -> IDLE

Activity anywhere in the recent window suppresses the prompt-suffix rule,
because tool output and code often end lines in ":" or ">".

`detect_method` decides whether a pane hosts Claude Code at all.
"""

from typing import Optional

from .models import DetectionMethod, SessionState
from .status_patterns import (
    StatusPatterns,
    ends_with_prompt,
    get_patterns,
    is_version_like,
    last_non_empty_line,
    matches_any,
    recent_lines,
    strip_ansi,
    tail_lines,
)


def classify(full_text: str, patterns: Optional[StatusPatterns] = None) -> SessionState:
    """Classify captured pane text. Pure and deterministic."""
    patterns = patterns or get_patterns()

    lines = strip_ansi(full_text).splitlines()
    if not any(line.strip() for line in lines):
        return SessionState.IDLE

    tail = "\n".join(tail_lines(lines))
    recent = "\n".join(recent_lines(lines))
    active = matches_any(recent, patterns.activity_markers)

    if matches_any(tail, patterns.termination_phrases):
        return SessionState.DONE

    if matches_any(tail, patterns.input_markers):
        return SessionState.NEEDS_INPUT

    last_line = last_non_empty_line(lines)
    if not active and last_line is not None and ends_with_prompt(last_line, patterns):
        return SessionState.NEEDS_INPUT

    if active:
        return SessionState.WORKING

    if matches_any(recent, patterns.welcome_phrases):
        return SessionState.NEEDS_INPUT

    return SessionState.IDLE


def is_tracked_process(process_name: str, patterns: Optional[StatusPatterns] = None) -> bool:
    """Check if a process name alone identifies Claude Code."""
    patterns = patterns or get_patterns()
    return matches_any(process_name, patterns.tracked_process_names, case_sensitive=False) or (
        is_version_like(process_name)
    )


def is_runtime_process(process_name: str, patterns: Optional[StatusPatterns] = None) -> bool:
    """Check if a process is a generic runtime that might host Claude Code."""
    patterns = patterns or get_patterns()
    return process_name.strip().lower() in patterns.runtime_process_names


def needs_content_check(process_name: str, patterns: Optional[StatusPatterns] = None) -> bool:
    """True when the process name is inconclusive and the pane text decides."""
    return not is_tracked_process(process_name, patterns) and is_runtime_process(
        process_name, patterns
    )


def detect_method(
    process_name: str,
    content: Optional[str] = None,
    patterns: Optional[StatusPatterns] = None,
) -> Optional[DetectionMethod]:
    """Decide whether a pane hosts Claude Code, and how we know.

    Args:
        process_name: The pane's foreground command
        content: Captured pane text, consulted only for generic runtimes

    Returns:
        PROCESS_NAME, PANE_CONTENT, or None when the pane is not tracked
    """
    patterns = patterns or get_patterns()

    if is_tracked_process(process_name, patterns):
        return DetectionMethod.PROCESS_NAME

    if needs_content_check(process_name, patterns) and content:
        if matches_any(strip_ansi(content), patterns.content_signatures):
            return DetectionMethod.PANE_CONTENT

    return None
