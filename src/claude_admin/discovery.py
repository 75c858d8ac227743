"""
Pane discovery: list tmux panes, keep the ones hosting Claude Code, and
classify each one.

A pane that disappears between the listing and its capture is dropped from
the pass. A tmux server that is not running means there are no panes.
Every other tmux error propagates so the caller can skip the cycle.
"""

from dataclasses import dataclass
from typing import List, Optional

from .exceptions import PaneNotFoundError, TmuxNotRunningError
from .logging_config import get_structured_logger
from .models import DetectionMethod, Observation, SessionState, TmuxPane
from .protocols import TmuxInterface
from .settings import DAEMON
from .status_detector import classify, detect_method, is_runtime_process, is_tracked_process


log = get_structured_logger("discovery")


@dataclass
class PaneScan:
    """Everything learned about one pane during a pass."""

    pane: TmuxPane
    process: str
    detection_method: Optional[DetectionMethod] = None
    state: Optional[SessionState] = None
    content: str = ""

    @property
    def tracked(self) -> bool:
        return self.detection_method is not None

    def to_observation(self) -> Observation:
        if self.detection_method is None or self.state is None:
            raise ValueError(f"pane {self.pane.pane_id} is not tracked")
        return Observation(self.pane, self.state, self.detection_method)


def list_panes_or_empty(tmux: TmuxInterface) -> List[TmuxPane]:
    try:
        return tmux.list_panes()
    except TmuxNotRunningError:
        log.debug("tmux not running, no panes")
        return []


def scan_pane(tmux: TmuxInterface, pane: TmuxPane, capture_lines: int) -> PaneScan:
    """Inspect a single pane.

    Raises:
        PaneNotFoundError: the pane closed while being inspected
    """
    process = tmux.get_pane_process(pane.pane_id)
    scan = PaneScan(pane=pane, process=process)

    if not (is_tracked_process(process) or is_runtime_process(process)):
        return scan

    scan.content = tmux.capture_recent_text(pane.pane_id, capture_lines)
    scan.detection_method = detect_method(process, scan.content)
    if scan.detection_method is not None:
        scan.state = classify(scan.content)
    return scan


def scan_panes(tmux: TmuxInterface, capture_lines: int = DAEMON.capture_lines) -> List[PaneScan]:
    """Inspect every pane, tracked or not."""
    scans = []
    for pane in list_panes_or_empty(tmux):
        try:
            scans.append(scan_pane(tmux, pane, capture_lines))
        except PaneNotFoundError:
            log.debug("pane vanished during scan", pane_id=pane.pane_id)
    return scans


def discover(tmux: TmuxInterface, capture_lines: int = DAEMON.capture_lines) -> List[Observation]:
    """One discovery pass: observations for every pane hosting Claude Code."""
    observations = []
    for scan in scan_panes(tmux, capture_lines):
        if not scan.tracked:
            continue
        log.debug(
            "pane classified",
            pane_id=scan.pane.pane_id,
            process=scan.process,
            method=scan.detection_method.value,
            state=scan.state.value,
        )
        observations.append(scan.to_observation())
    return observations
