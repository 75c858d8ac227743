"""
Data model for tracked sessions.

SessionState, DetectionMethod and the EventType variants are closed sets:
decoding an unknown value is an error, never a silent default.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional, Union

from .exceptions import InvalidStateError, StorageError


class SessionState(str, Enum):
    """Activity state of a session, in classification priority order."""

    IDLE = "idle"
    WORKING = "working"
    NEEDS_INPUT = "needs_input"
    DONE = "done"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str) -> "SessionState":
        try:
            return cls(value)
        except ValueError:
            raise InvalidStateError(value, "session state") from None


class DetectionMethod(str, Enum):
    """How a pane was recognized as hosting Claude Code."""

    PROCESS_NAME = "process_name"
    PANE_CONTENT = "pane_content"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str) -> "DetectionMethod":
        try:
            return cls(value)
        except ValueError:
            raise InvalidStateError(value, "detection method") from None


@dataclass(frozen=True)
class TmuxPane:
    """A pane as reported by `tmux list-panes`. Rediscovered every poll."""

    session_name: str
    window_index: int
    pane_index: int
    pane_id: str
    working_dir: str

    @property
    def target(self) -> str:
        """Human-readable `session:window.pane` address (not stable)."""
        return f"{self.session_name}:{self.window_index}.{self.pane_index}"


class Observation(NamedTuple):
    """One tracked pane seen during a discovery pass."""

    pane: TmuxPane
    state: SessionState
    detection_method: DetectionMethod


@dataclass
class Session:
    """A tracked Claude Code session, one per live pane."""

    id: str
    pane_id: str
    session_name: str
    window_index: int
    pane_index: int
    working_dir: str
    state: SessionState
    detection_method: DetectionMethod
    last_activity: int
    created_at: int
    updated_at: int

    @property
    def target(self) -> str:
        return f"{self.session_name}:{self.window_index}.{self.pane_index}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "pane_id": self.pane_id,
            "session_name": self.session_name,
            "window_index": self.window_index,
            "pane_index": self.pane_index,
            "working_dir": self.working_dir,
            "state": self.state.value,
            "detection_method": self.detection_method.value,
            "last_activity": self.last_activity,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


# =============================================================================
# Event types
# =============================================================================


@dataclass(frozen=True)
class SessionDiscovered:
    type_name = "session_discovered"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type_name}


@dataclass(frozen=True)
class SessionRemoved:
    type_name = "session_removed"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type_name}


@dataclass(frozen=True)
class StateChanged:
    from_state: SessionState
    to_state: SessionState

    type_name = "state_changed"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type_name,
            "from": self.from_state.value,
            "to": self.to_state.value,
        }


@dataclass(frozen=True)
class HookReceived:
    hook_type: str

    type_name = "hook_received"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type_name, "hook_type": self.hook_type}


EventType = Union[SessionDiscovered, SessionRemoved, StateChanged, HookReceived]


def event_type_from_dict(data: Any) -> EventType:
    """Decode an event type from its tagged dict form.

    Raises:
        StorageError: if the tag is unknown or a variant field is missing
        InvalidStateError: if a state_changed endpoint is not a valid state
    """
    if not isinstance(data, dict):
        raise StorageError(f"event type must be an object, got {type(data).__name__}")

    tag = data.get("type")
    if tag == SessionDiscovered.type_name:
        return SessionDiscovered()
    if tag == SessionRemoved.type_name:
        return SessionRemoved()
    if tag == StateChanged.type_name:
        if "from" not in data or "to" not in data:
            raise StorageError("state_changed event is missing 'from' or 'to'")
        return StateChanged(SessionState.parse(data["from"]), SessionState.parse(data["to"]))
    if tag == HookReceived.type_name:
        hook_type = data.get("hook_type")
        if not isinstance(hook_type, str):
            raise StorageError("hook_received event is missing 'hook_type'")
        return HookReceived(hook_type)
    raise StorageError(f"unknown event type: {tag!r}")


def encode_event_type(event_type: EventType) -> str:
    return json.dumps(event_type.to_dict())


def decode_event_type(text: str) -> EventType:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise StorageError(f"corrupt event type encoding: {e}") from e
    return event_type_from_dict(data)


@dataclass
class Event:
    """An immutable audit record attached to a session id."""

    id: int
    session_id: str
    event_type: EventType
    timestamp: int
    payload: Optional[Dict[str, Any]] = field(default=None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "event_type": self.event_type.to_dict(),
            "payload": self.payload,
            "timestamp": self.timestamp,
        }

    def describe(self) -> str:
        """Short one-line summary for CLI listings."""
        et = self.event_type
        if isinstance(et, StateChanged):
            return f"{et.from_state.value} → {et.to_state.value}"
        if isinstance(et, HookReceived):
            return f"hook {et.hook_type}"
        return et.type_name.replace("_", " ")
