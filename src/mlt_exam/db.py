"""Database initialization and connection management."""
import sqlite3
from pathlib import Path

from mlt_exam.config import DEFAULT_DB_PATH

SCHEMA = """
CREATE TABLE IF NOT EXISTS questions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    stem TEXT NOT NULL,
    options TEXT NOT NULL,          -- JSON list
    correct_index INTEGER NOT NULL,
    explanation TEXT,
    domain TEXT NOT NULL,
    subtopic TEXT,
    difficulty TEXT DEFAULT 'Medium',
    tags TEXT DEFAULT '[]',
    refs TEXT DEFAULT '[]',
    source TEXT DEFAULT 'seeded',
    active INTEGER DEFAULT 1,
    updated_at TEXT
);

CREATE TABLE IF NOT EXISTS attempt_snapshots (
    user_id TEXT PRIMARY KEY,
    attempt_id TEXT NOT NULL,
    snapshot TEXT NOT NULL,
    saved_at TEXT
);

CREATE TABLE IF NOT EXISTS attempt_reports (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    attempt_id TEXT NOT NULL UNIQUE,
    score_pct REAL NOT NULL,
    passed INTEGER NOT NULL,
    report TEXT NOT NULL,
    finished_at TEXT
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory and foreign keys enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()
