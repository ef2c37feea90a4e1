"""Focus session logging and study velocity."""
from datetime import datetime, timedelta
from typing import Iterable, Optional

from study_planner.db import get_connection, row_to_session
from study_planner.models import FocusSession

VELOCITY_WINDOW_DAYS = 30


def log_focus_session(
    db_path: str, duration_minutes: int, task_id: int = None, ended_at: datetime = None,
) -> int:
    if duration_minutes <= 0:
        raise ValueError("Session duration must be positive")
    ended_at = ended_at or datetime.now()
    conn = get_connection(db_path)
    cursor = conn.execute(
        "INSERT INTO focus_sessions (task_id, duration_minutes, ended_at) VALUES (?, ?, ?)",
        (task_id, duration_minutes, ended_at.isoformat()),
    )
    conn.commit()
    session_id = cursor.lastrowid
    conn.close()
    return session_id


def get_recent_sessions(db_path: str, now: datetime = None) -> list[FocusSession]:
    """Sessions that ended within the velocity window."""
    now = now or datetime.now()
    since = (now - timedelta(days=VELOCITY_WINDOW_DAYS)).isoformat()
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM focus_sessions WHERE ended_at >= ? ORDER BY ended_at", (since,)
    ).fetchall()
    conn.close()
    return [row_to_session(r) for r in rows]


def calc_recent_daily_minutes(durations: Iterable[int]) -> Optional[float]:
    """Average minutes per study day, None without history.

    Each session counts as one day, capped at the window length.
    """
    durations = list(durations)
    if not durations:
        return None
    return sum(durations) / min(VELOCITY_WINDOW_DAYS, len(durations))


def get_recent_daily_minutes(db_path: str, now: datetime = None) -> Optional[float]:
    sessions = get_recent_sessions(db_path, now)
    return calc_recent_daily_minutes(s.duration_minutes for s in sessions)
