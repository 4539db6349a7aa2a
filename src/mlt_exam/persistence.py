"""Snapshot persistence for in-progress attempts and finished report history."""
import json
import logging
import sqlite3
import time
from datetime import datetime
from typing import Optional

from mlt_exam.attempt import Attempt
from mlt_exam.db import get_connection
from mlt_exam.errors import InvalidOperation, PersistenceFailure
from mlt_exam.models import AttemptReport, AttemptStatus
from mlt_exam.timer import is_expired

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Holds at most one attempt snapshot for one user.

    Implementations raise PersistenceFailure on any storage error.
    """

    def save(self, snapshot: dict) -> None:
        raise NotImplementedError

    def load(self) -> Optional[dict]:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class MemorySnapshotStore(SnapshotStore):
    def __init__(self):
        self._data: Optional[str] = None

    def save(self, snapshot: dict) -> None:
        self._data = json.dumps(snapshot)

    def load(self) -> Optional[dict]:
        return json.loads(self._data) if self._data is not None else None

    def clear(self) -> None:
        self._data = None


class SqliteSnapshotStore(SnapshotStore):
    def __init__(self, db_path: str, user_id: str):
        self.db_path = db_path
        self.user_id = user_id

    def save(self, snapshot: dict) -> None:
        try:
            conn = get_connection(self.db_path)
            try:
                conn.execute(
                    """INSERT INTO attempt_snapshots (user_id, attempt_id, snapshot, saved_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(user_id) DO UPDATE SET
                        attempt_id=excluded.attempt_id, snapshot=excluded.snapshot, saved_at=excluded.saved_at""",
                    (self.user_id, snapshot["id"], json.dumps(snapshot), datetime.now().isoformat()),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Could not save snapshot for {self.user_id}: {e}") from e

    def load(self) -> Optional[dict]:
        try:
            conn = get_connection(self.db_path)
            try:
                row = conn.execute(
                    "SELECT snapshot FROM attempt_snapshots WHERE user_id = ?", (self.user_id,)
                ).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Could not load snapshot for {self.user_id}: {e}") from e
        if row is None:
            return None
        try:
            return json.loads(row["snapshot"])
        except json.JSONDecodeError as e:
            raise PersistenceFailure(f"Corrupt snapshot for {self.user_id}: {e}") from e

    def clear(self) -> None:
        try:
            conn = get_connection(self.db_path)
            try:
                conn.execute("DELETE FROM attempt_snapshots WHERE user_id = ?", (self.user_id,))
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Could not clear snapshot for {self.user_id}: {e}") from e


def resume_attempt(store: SnapshotStore, duration_seconds: float, now: float,
                   clock=time.time) -> Optional[Attempt]:
    """Restore the user's live attempt, if any.

    Returns None when nothing resumable is stored. An attempt whose deadline
    passed while the process was away comes back already finished at the
    deadline instant and its snapshot is cleared.
    """
    data = store.load()
    if data is None:
        return None
    if data.get("status") != AttemptStatus.IN_PROGRESS.value or data.get("started_at") is None:
        logger.info("Discarding stored attempt with status %s", data.get("status"))
        store.clear()
        return None
    try:
        attempt = Attempt.from_snapshot(data, clock=clock)
    except (InvalidOperation, KeyError, TypeError, ValueError) as e:
        logger.warning("Discarding unreadable attempt snapshot: %s", e)
        store.clear()
        return None
    if is_expired(attempt.started_at, duration_seconds, now):
        attempt.finish(now=attempt.started_at + duration_seconds)
        store.clear()
        logger.info("Attempt %s expired while suspended", attempt.id)
    return attempt


def save_report(db_path: str, user_id: str, report: AttemptReport) -> None:
    try:
        conn = get_connection(db_path)
        try:
            conn.execute(
                """INSERT OR REPLACE INTO attempt_reports
                (user_id, attempt_id, score_pct, passed, report, finished_at)
                VALUES (?, ?, ?, ?, ?, ?)""",
                (user_id, report.attempt_id, report.score_pct, int(report.passed),
                 json.dumps(report.to_dict()), datetime.now().isoformat()),
            )
            conn.commit()
        finally:
            conn.close()
    except sqlite3.Error as e:
        raise PersistenceFailure(f"Could not save report {report.attempt_id}: {e}") from e


def get_reports(db_path: str, user_id: str, limit: int = 20) -> list[AttemptReport]:
    """Finished reports for a user, newest first."""
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT report FROM attempt_reports WHERE user_id = ? ORDER BY id DESC LIMIT ?",
        (user_id, limit),
    ).fetchall()
    conn.close()
    return [AttemptReport.from_dict(json.loads(r["report"])) for r in rows]
