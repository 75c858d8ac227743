"""
SQLite-backed registry of tracked sessions and their event log.

The registry owns one connection, shared by the poll loop and the control
server's handler threads. Every statement runs under the registry's lock,
and each session mutation commits together with the event describing it.

Other processes (CLI, hook handler) open their own registry on the same
file; WAL mode lets them read while the daemon writes.
"""

import json
import sqlite3
import threading
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .exceptions import DuplicatePaneError, StorageError
from .logging_config import get_structured_logger
from .models import (
    DetectionMethod,
    Event,
    EventType,
    Observation,
    Session,
    SessionDiscovered,
    SessionRemoved,
    SessionState,
    StateChanged,
    decode_event_type,
    encode_event_type,
)


log = get_structured_logger("registry")

BUSY_TIMEOUT_MS = 5000

SCHEMA = """
CREATE TABLE IF NOT EXISTS sessions (
    id TEXT PRIMARY KEY,
    pane_id TEXT NOT NULL UNIQUE,
    session_name TEXT NOT NULL,
    window_index INTEGER NOT NULL,
    pane_index INTEGER NOT NULL,
    working_dir TEXT NOT NULL,
    state TEXT NOT NULL DEFAULT 'idle',
    detection_method TEXT NOT NULL,
    last_activity INTEGER NOT NULL,
    created_at INTEGER NOT NULL,
    updated_at INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS events (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id TEXT NOT NULL,
    event_type TEXT NOT NULL,
    payload TEXT,
    timestamp INTEGER NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_sessions_pane_id ON sessions(pane_id);
CREATE INDEX IF NOT EXISTS idx_sessions_state ON sessions(state);
CREATE INDEX IF NOT EXISTS idx_events_session_id ON events(session_id);
CREATE INDEX IF NOT EXISTS idx_events_timestamp ON events(timestamp);
"""

SESSION_COLUMNS = (
    "id, pane_id, session_name, window_index, pane_index, working_dir, "
    "state, detection_method, last_activity, created_at, updated_at"
)

EVENT_COLUMNS = "id, session_id, event_type, payload, timestamp"


def _now() -> int:
    return int(time.time())


def new_session_id() -> str:
    return uuid.uuid4().hex


@dataclass
class ReconcileReport:
    """What one reconciliation pass changed."""

    discovered: List[Session] = field(default_factory=list)
    changed: List[Tuple[Session, SessionState, SessionState]] = field(default_factory=list)
    unchanged: List[Session] = field(default_factory=list)
    removed: List[Session] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.discovered or self.changed or self.removed)

    @property
    def tracked(self) -> List[Session]:
        """Sessions alive after the pass."""
        return self.discovered + [s for s, _, _ in self.changed] + self.unchanged

    def summary(self) -> str:
        return (
            f"{len(self.discovered)} discovered, {len(self.changed)} changed, "
            f"{len(self.unchanged)} unchanged, {len(self.removed)} removed"
        )


class SessionRegistry:
    """Durable store for sessions and events."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._lock = threading.RLock()
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"failed to create database directory: {e}") from e

        try:
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._conn.execute(f"PRAGMA busy_timeout = {BUSY_TIMEOUT_MS}")
            self._conn.execute("PRAGMA journal_mode = WAL")
            self._conn.executescript(SCHEMA)
            version = self._conn.execute("SELECT sqlite_version()").fetchone()[0]
        except sqlite3.Error as e:
            raise StorageError(f"failed to open database {self.db_path}: {e}") from e

        log.debug("database initialized", path=str(self.db_path), sqlite_version=version)

    # -------------------------------------------------------------------------
    # Plumbing
    # -------------------------------------------------------------------------

    def __enter__(self) -> "SessionRegistry":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    @property
    def closed(self) -> bool:
        return self._conn is None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError("database is closed")
        return self._conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Run statements under the lock and commit them together."""
        with self._lock:
            conn = self._connection()
            try:
                with conn:
                    yield conn
            except sqlite3.Error as e:
                raise StorageError(f"database error: {e}") from e

    def _query(self, sql: str, params: Iterable[Any] = ()) -> List[tuple]:
        with self._lock:
            try:
                return self._connection().execute(sql, tuple(params)).fetchall()
            except sqlite3.Error as e:
                raise StorageError(f"database error: {e}") from e

    def journal_mode(self) -> str:
        return self._query("PRAGMA journal_mode")[0][0]

    # -------------------------------------------------------------------------
    # Sessions
    # -------------------------------------------------------------------------

    @staticmethod
    def _row_to_session(row: tuple) -> Session:
        return Session(
            id=row[0],
            pane_id=row[1],
            session_name=row[2],
            window_index=row[3],
            pane_index=row[4],
            working_dir=row[5],
            state=SessionState.parse(row[6]),
            detection_method=DetectionMethod.parse(row[7]),
            last_activity=row[8],
            created_at=row[9],
            updated_at=row[10],
        )

    @staticmethod
    def _insert_session(conn: sqlite3.Connection, session: Session) -> None:
        try:
            conn.execute(
                f"INSERT INTO sessions ({SESSION_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    session.id,
                    session.pane_id,
                    session.session_name,
                    session.window_index,
                    session.pane_index,
                    session.working_dir,
                    session.state.value,
                    session.detection_method.value,
                    session.last_activity,
                    session.created_at,
                    session.updated_at,
                ),
            )
        except sqlite3.IntegrityError as e:
            if "pane_id" in str(e):
                raise DuplicatePaneError(session.pane_id) from e
            raise StorageError(f"failed to insert session {session.id}: {e}") from e

    @staticmethod
    def _update_session(conn: sqlite3.Connection, session: Session) -> None:
        try:
            conn.execute(
                """
                UPDATE sessions SET
                    pane_id = ?, session_name = ?, window_index = ?,
                    pane_index = ?, working_dir = ?, state = ?,
                    detection_method = ?, last_activity = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    session.pane_id,
                    session.session_name,
                    session.window_index,
                    session.pane_index,
                    session.working_dir,
                    session.state.value,
                    session.detection_method.value,
                    session.last_activity,
                    session.updated_at,
                    session.id,
                ),
            )
        except sqlite3.IntegrityError as e:
            raise DuplicatePaneError(session.pane_id) from e

    def create_session(self, session: Session) -> None:
        """Insert a session.

        Raises:
            DuplicatePaneError: a session already exists for session.pane_id
        """
        with self._transaction() as conn:
            self._insert_session(conn, session)

    def update_session(self, session: Session) -> None:
        """Overwrite every mutable column of an existing session."""
        with self._transaction() as conn:
            self._update_session(conn, session)

    def update_session_state(
        self, session_id: str, state: SessionState, timestamp: Optional[int] = None
    ) -> None:
        timestamp = _now() if timestamp is None else timestamp
        with self._transaction() as conn:
            conn.execute(
                "UPDATE sessions SET state = ?, last_activity = ?, updated_at = ? WHERE id = ?",
                (state.value, timestamp, timestamp, session_id),
            )

    def get_session(self, session_id: str) -> Optional[Session]:
        rows = self._query(f"SELECT {SESSION_COLUMNS} FROM sessions WHERE id = ?", (session_id,))
        return self._row_to_session(rows[0]) if rows else None

    def get_session_by_pane(self, pane_id: str) -> Optional[Session]:
        rows = self._query(f"SELECT {SESSION_COLUMNS} FROM sessions WHERE pane_id = ?", (pane_id,))
        return self._row_to_session(rows[0]) if rows else None

    def list_sessions(self) -> List[Session]:
        """All sessions, newest-created first."""
        rows = self._query(
            f"SELECT {SESSION_COLUMNS} FROM sessions ORDER BY created_at DESC, id ASC"
        )
        return [self._row_to_session(row) for row in rows]

    def delete_session(self, session_id: str) -> bool:
        """Delete a session. Returns whether a row existed."""
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
            return cursor.rowcount > 0

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    @staticmethod
    def _insert_event(
        conn: sqlite3.Connection,
        session_id: str,
        event_type: EventType,
        payload: Optional[Dict[str, Any]],
        timestamp: int,
    ) -> int:
        cursor = conn.execute(
            "INSERT INTO events (session_id, event_type, payload, timestamp) VALUES (?, ?, ?, ?)",
            (
                session_id,
                encode_event_type(event_type),
                json.dumps(payload) if payload is not None else None,
                timestamp,
            ),
        )
        return cursor.lastrowid

    @staticmethod
    def _row_to_event(row: tuple) -> Event:
        payload = None
        if row[3] is not None:
            try:
                payload = json.loads(row[3])
            except json.JSONDecodeError as e:
                raise StorageError(f"corrupt event payload for event {row[0]}: {e}") from e
        return Event(
            id=row[0],
            session_id=row[1],
            event_type=decode_event_type(row[2]),
            payload=payload,
            timestamp=row[4],
        )

    def record_event(
        self,
        session_id: str,
        event_type: EventType,
        payload: Optional[Dict[str, Any]] = None,
        timestamp: Optional[int] = None,
    ) -> int:
        """Append an event. Returns the new event id."""
        timestamp = _now() if timestamp is None else timestamp
        with self._transaction() as conn:
            return self._insert_event(conn, session_id, event_type, payload, timestamp)

    def get_events(self, session_id: str, limit: int = 50) -> List[Event]:
        """Events for one session, newest first."""
        rows = self._query(
            f"SELECT {EVENT_COLUMNS} FROM events WHERE session_id = ? "
            "ORDER BY timestamp DESC, id DESC LIMIT ?",
            (session_id, max(limit, 0)),
        )
        return [self._row_to_event(row) for row in rows]

    def get_recent_events(self, limit: int = 50) -> List[Event]:
        """Events across all sessions, newest first."""
        rows = self._query(
            f"SELECT {EVENT_COLUMNS} FROM events ORDER BY timestamp DESC, id DESC LIMIT ?",
            (max(limit, 0),),
        )
        return [self._row_to_event(row) for row in rows]

    # -------------------------------------------------------------------------
    # Reconciliation
    # -------------------------------------------------------------------------

    def reconcile(
        self, observations: Iterable[Observation], now: Optional[int] = None
    ) -> ReconcileReport:
        """Bring stored sessions in line with one discovery pass.

        New panes are created, changed states are updated with a
        state_changed event, and sessions whose pane was not observed are
        deleted with a session_removed event. If the same pane id appears
        twice, the last observation wins.
        """
        now = _now() if now is None else now
        report = ReconcileReport()

        latest: Dict[str, Observation] = {}
        for obs in observations:
            latest[obs.pane.pane_id] = obs

        with self._lock:
            existing = {s.pane_id: s for s in self.list_sessions()}

            for pane_id, obs in latest.items():
                pane = obs.pane
                session = existing.get(pane_id)

                if session is None:
                    session = Session(
                        id=new_session_id(),
                        pane_id=pane_id,
                        session_name=pane.session_name,
                        window_index=pane.window_index,
                        pane_index=pane.pane_index,
                        working_dir=pane.working_dir,
                        state=obs.state,
                        detection_method=obs.detection_method,
                        last_activity=now,
                        created_at=now,
                        updated_at=now,
                    )
                    with self._transaction() as conn:
                        self._insert_session(conn, session)
                        self._insert_event(conn, session.id, SessionDiscovered(), None, now)
                    report.discovered.append(session)
                    log.info(
                        "session discovered",
                        session_id=session.id,
                        pane_id=pane_id,
                        target=pane.target,
                        state=obs.state.value,
                        method=obs.detection_method.value,
                    )
                    continue

                updated = replace(
                    session,
                    session_name=pane.session_name,
                    window_index=pane.window_index,
                    pane_index=pane.pane_index,
                    working_dir=pane.working_dir,
                    state=obs.state,
                    last_activity=now,
                    updated_at=now,
                )

                if session.state != obs.state:
                    with self._transaction() as conn:
                        self._update_session(conn, updated)
                        self._insert_event(
                            conn, session.id, StateChanged(session.state, obs.state), None, now
                        )
                    report.changed.append((updated, session.state, obs.state))
                    log.info(
                        "state changed",
                        session_id=session.id,
                        pane_id=pane_id,
                        from_state=session.state.value,
                        to_state=obs.state.value,
                    )
                else:
                    with self._transaction() as conn:
                        self._update_session(conn, updated)
                    report.unchanged.append(updated)

            for pane_id, session in existing.items():
                if pane_id in latest:
                    continue
                with self._transaction() as conn:
                    conn.execute("DELETE FROM sessions WHERE id = ?", (session.id,))
                    self._insert_event(conn, session.id, SessionRemoved(), None, now)
                report.removed.append(session)
                log.info("session removed", session_id=session.id, pane_id=pane_id)

        return report
