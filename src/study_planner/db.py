"""Database initialization, connection management and row mapping."""
import sqlite3
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from study_planner.models import (
    Course, FocusSession, QuestionAttempt, StudyUnit, Task, TaskStatus, TaskType,
)

DEFAULT_DB_PATH = str(Path.home() / ".study_planner" / "planner.db")

SCHEMA = """
CREATE TABLE IF NOT EXISTS courses (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    exam_date TEXT,
    target_score INTEGER
);

CREATE TABLE IF NOT EXISTS course_units (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    course_id INTEGER NOT NULL REFERENCES courses(id) ON DELETE CASCADE,
    unit_number INTEGER NOT NULL,
    name TEXT NOT NULL,
    mastery_score INTEGER DEFAULT 0,
    last_studied_at TEXT,
    UNIQUE(course_id, unit_number)
);

CREATE TABLE IF NOT EXISTS tasks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    description TEXT,
    task_type TEXT NOT NULL,
    estimated_minutes INTEGER DEFAULT 30,
    due_date TEXT,
    course_unit_id INTEGER REFERENCES course_units(id) ON DELETE SET NULL,
    course_id INTEGER REFERENCES courses(id) ON DELETE SET NULL,
    status TEXT DEFAULT 'todo',
    completed_at TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS question_attempts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    course_unit_id INTEGER NOT NULL REFERENCES course_units(id) ON DELETE CASCADE,
    task_id INTEGER REFERENCES tasks(id) ON DELETE SET NULL,
    question_type TEXT DEFAULT 'practice',
    is_correct INTEGER NOT NULL,
    attempted_at TEXT
);

CREATE TABLE IF NOT EXISTS error_log_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    course_unit_id INTEGER NOT NULL REFERENCES course_units(id) ON DELETE CASCADE,
    question_attempt_id INTEGER REFERENCES question_attempts(id) ON DELETE CASCADE,
    notes TEXT,
    remediated_at TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS focus_sessions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    task_id INTEGER REFERENCES tasks(id) ON DELETE SET NULL,
    duration_minutes INTEGER NOT NULL,
    ended_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS planner_runs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    plan_date TEXT NOT NULL,
    plan_data TEXT NOT NULL,
    total_minutes INTEGER,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS user_settings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT NOT NULL UNIQUE,
    value TEXT
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


def parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(value[:10])


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


def row_to_course(row: sqlite3.Row) -> Course:
    """Map a courses row. Raises ValueError on an unparsable exam date."""
    return Course(
        id=row["id"],
        name=row["name"],
        exam_date=parse_date(row["exam_date"]),
        target_score=row["target_score"],
    )


def row_to_unit(row: sqlite3.Row) -> StudyUnit:
    return StudyUnit(
        id=row["id"],
        course_id=row["course_id"],
        unit_number=row["unit_number"],
        name=row["name"],
        mastery_score=row["mastery_score"] or 0,
        last_studied_at=parse_datetime(row["last_studied_at"]),
    )


def row_to_task(row: sqlite3.Row) -> Task:
    return Task(
        id=row["id"],
        title=row["title"],
        task_type=TaskType(row["task_type"]),
        estimated_minutes=row["estimated_minutes"] or 0,
        due_date=parse_date(row["due_date"]),
        unit_id=row["course_unit_id"],
        course_id=row["course_id"],
        status=TaskStatus(row["status"]),
        completed_at=parse_datetime(row["completed_at"]),
    )


def row_to_attempt(row: sqlite3.Row) -> QuestionAttempt:
    return QuestionAttempt(
        id=row["id"],
        unit_id=row["course_unit_id"],
        is_correct=bool(row["is_correct"]),
        attempted_at=parse_datetime(row["attempted_at"]),
    )


def row_to_session(row: sqlite3.Row) -> FocusSession:
    return FocusSession(
        id=row["id"],
        duration_minutes=row["duration_minutes"],
        ended_at=parse_datetime(row["ended_at"]),
        task_id=row["task_id"],
    )
