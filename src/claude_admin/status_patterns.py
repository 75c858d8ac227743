"""
Centralized status detection patterns.

This module contains the pattern lists used by the status detector to decide
a session's state and whether a pane hosts Claude Code at all. Keeping them
here makes them testable in isolation from the classification cascade.

All phrase and marker matching is case-sensitive: "Reading" is a tool
activity line, "reading" in prose is not.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

# Regex to match ANSI escape sequences (colors, cursor movement, OSC titles)
ANSI_ESCAPE_PATTERN = re.compile(r'\x1b(?:\[[0-9;?]*[a-zA-Z]|\][^\x07\x1b]*(?:\x07|\x1b\\))')

# Window sizes, in lines
TAIL_WINDOW = 3
RECENT_WINDOW = 20

# Claude Code reports its version as the process name, e.g. "2.1.20"
VERSION_PROCESS_PATTERN = re.compile(r'^\d+(?:\.\d+)+')


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences from text.

    Captured pane text may carry color codes; pattern matching needs plain
    text.
    """
    return ANSI_ESCAPE_PATTERN.sub('', text)


@dataclass
class StatusPatterns:
    """All patterns used for status detection."""

    # Session has finished - HIGHEST priority
    # Matched against the tail window only, so an old "Session ended"
    # followed by a new session's output does not count.
    termination_phrases: List[str] = field(default_factory=lambda: [
        "Session ended",
        "Goodbye",
        "exited with code",
        "connection closed",
    ])

    # Interactive prompts waiting on the user
    # Matched against the tail window.
    input_markers: List[str] = field(default_factory=lambda: [
        "Approve?",
        "Continue?",
        "Proceed?",
        "(y/n)",
        "[Y/n]",
        "[y/N]",
        "Enter to continue",
        "Press Enter",
    ])

    # Tool invocation and verb-phrase activity markers
    # Matched against the recent window.
    activity_markers: List[str] = field(default_factory=lambda: [
        "Tool:",
        "Reading",
        "Writing",
        "Searching",
        "Running",
        "Analyzing",
        "Thinking",
        "Processing",
    ])

    # Last non-empty line ending in one of these looks like a prompt
    prompt_suffixes: List[str] = field(default_factory=lambda: [
        ">",
        "?",
        ":",
        "$",
        "❯",  # Claude Code's prompt character (U+276F)
        "›",
    ])

    # Claude's greeting screen
    welcome_phrases: List[str] = field(default_factory=lambda: [
        "What would you like to do?",
        "How can I help",
    ])

    # Process names that identify Claude Code directly (lowercase substring)
    tracked_process_names: List[str] = field(default_factory=lambda: [
        "claude",
    ])

    # Generic runtimes that may or may not be running Claude Code
    runtime_process_names: List[str] = field(default_factory=lambda: [
        "node",
        "deno",
        "bun",
    ])

    # Text that shows a runtime pane is Claude Code's interface
    content_signatures: List[str] = field(default_factory=lambda: [
        "Claude Code",
        "╭─",
        "⏺",
        "✻",
        "Tool:",
        "esc to interrupt",
    ])


# Default patterns instance
DEFAULT_PATTERNS = StatusPatterns()


def get_patterns() -> StatusPatterns:
    return DEFAULT_PATTERNS


def matches_any(text: str, patterns: List[str], case_sensitive: bool = True) -> bool:
    """Check if text contains any of the patterns.

    Args:
        text: Text to search in
        patterns: Substrings to look for
        case_sensitive: Whether matching is case-sensitive

    Returns:
        True if any pattern is found in text
    """
    if not case_sensitive:
        text = text.lower()
        return any(p.lower() in text for p in patterns)
    return any(p in text for p in patterns)


def tail_lines(lines: List[str], count: int = TAIL_WINDOW) -> List[str]:
    """Last `count` lines that are non-empty after trimming."""
    non_empty = [line for line in lines if line.strip()]
    return non_empty[-count:] if count > 0 else []


def recent_lines(lines: List[str], count: int = RECENT_WINDOW) -> List[str]:
    """Last `count` lines, blank ones included, in original order."""
    return lines[-count:] if count > 0 else []


def last_non_empty_line(lines: List[str]) -> Optional[str]:
    for line in reversed(lines):
        if line.strip():
            return line.strip()
    return None


def ends_with_prompt(line: str, patterns: Optional[StatusPatterns] = None) -> bool:
    """Check if a trimmed line ends in a prompt-like character."""
    patterns = patterns or DEFAULT_PATTERNS
    return any(line.endswith(suffix) for suffix in patterns.prompt_suffixes)


def is_version_like(name: str) -> bool:
    """Check if a process name looks like a version string ("2.1.20")."""
    return bool(VERSION_PROCESS_PATTERN.match(name.strip()))
