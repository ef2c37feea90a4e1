"""Practice attempts, error log and automatic review tasks."""
from datetime import datetime, timedelta
from typing import Iterable

from loguru import logger

from study_planner.db import get_connection, parse_datetime
from study_planner.mastery import update_unit_mastery
from study_planner.models import TaskType
from study_planner.tasks import add_task

ERROR_THRESHOLD = 3
ERROR_WINDOW_DAYS = 7
REVIEW_TASK_MINUTES = 45


def needs_remediation(error_times: Iterable[datetime], now: datetime) -> bool:
    """True when enough unremediated errors fall inside the window."""
    cutoff = now - timedelta(days=ERROR_WINDOW_DAYS)
    return sum(1 for t in error_times if t >= cutoff) >= ERROR_THRESHOLD


def log_question_attempt(
    db_path: str,
    unit_id: int,
    is_correct: bool,
    task_id: int = None,
    question_type: str = "practice",
    now: datetime = None,
) -> int:
    """Record an attempt, log errors, maybe create a review task, refresh mastery."""
    now = now or datetime.now()
    conn = get_connection(db_path)
    cursor = conn.execute(
        """INSERT INTO question_attempts (course_unit_id, task_id, question_type, is_correct, attempted_at)
        VALUES (?, ?, ?, ?, ?)""",
        (unit_id, task_id, question_type, int(is_correct), now.isoformat()),
    )
    attempt_id = cursor.lastrowid
    if not is_correct:
        conn.execute(
            "INSERT INTO error_log_items (course_unit_id, question_attempt_id, notes, created_at) VALUES (?, ?, ?, ?)",
            (unit_id, attempt_id, f"Incorrect answer on {question_type.upper()}", now.isoformat()),
        )
    conn.commit()
    conn.close()

    if not is_correct:
        check_and_create_remediation_task(db_path, unit_id, now)
    update_unit_mastery(db_path, unit_id, now)
    return attempt_id


def _unremediated_error_times(db_path: str, unit_id: int) -> list[datetime]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT created_at FROM error_log_items WHERE course_unit_id = ? AND remediated_at IS NULL",
        (unit_id,),
    ).fetchall()
    conn.close()
    return [parse_datetime(r["created_at"]) for r in rows]


def check_and_create_remediation_task(db_path: str, unit_id: int, now: datetime = None) -> int | None:
    """Create a review task for a struggling unit. Returns its id, or None."""
    now = now or datetime.now()
    errors = _unremediated_error_times(db_path, unit_id)
    if not needs_remediation(errors, now):
        return None

    conn = get_connection(db_path)
    unit = conn.execute("SELECT name FROM course_units WHERE id = ?", (unit_id,)).fetchone()
    if unit is None:
        conn.close()
        return None
    existing = conn.execute(
        """SELECT id FROM tasks
        WHERE course_unit_id = ? AND task_type = ? AND title = ?
            AND status IN ('todo', 'in_progress')""",
        (unit_id, TaskType.EXAM_BUILD.value, f"Review: {unit['name']}"),
    ).fetchone()
    conn.close()
    if existing:
        return None

    recent = sum(1 for t in errors if t >= now - timedelta(days=ERROR_WINDOW_DAYS))
    task_id = add_task(
        db_path,
        title=f"Review: {unit['name']}",
        task_type=TaskType.EXAM_BUILD,
        estimated_minutes=REVIEW_TASK_MINUTES,
        unit_id=unit_id,
        description=f"Remediation task ({recent} errors detected). Focus on weak areas.",
    )
    logger.info(f"Created remediation task {task_id} for unit: {unit['name']}")
    return task_id


def mark_errors_remediated(db_path: str, unit_id: int, now: datetime = None) -> int:
    now = now or datetime.now()
    conn = get_connection(db_path)
    cursor = conn.execute(
        "UPDATE error_log_items SET remediated_at = ? WHERE course_unit_id = ? AND remediated_at IS NULL",
        (now.isoformat(), unit_id),
    )
    conn.commit()
    conn.close()
    return cursor.rowcount


def get_unit_error_stats(db_path: str, unit_id: int, now: datetime = None) -> dict:
    now = now or datetime.now()
    conn = get_connection(db_path)
    total = conn.execute(
        "SELECT COUNT(*) FROM error_log_items WHERE course_unit_id = ?", (unit_id,)
    ).fetchone()[0]
    conn.close()
    open_errors = _unremediated_error_times(db_path, unit_id)
    cutoff = now - timedelta(days=ERROR_WINDOW_DAYS)
    recent = sum(1 for t in open_errors if t >= cutoff)
    return {
        "total_errors": total,
        "unremediated_errors": len(open_errors),
        "recent_errors": recent,
        "needs_remediation": recent >= ERROR_THRESHOLD,
    }


def get_weak_units(db_path: str, threshold: int = 50) -> list[dict]:
    """Units with mastery below threshold (weakest first)."""
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT u.id, u.name, u.unit_number, u.mastery_score, c.id as course_id, c.name as course_name
        FROM course_units u JOIN courses c ON u.course_id = c.id
        WHERE COALESCE(u.mastery_score, 0) < ?
        ORDER BY COALESCE(u.mastery_score, 0) ASC, c.id, u.unit_number""",
        (threshold,),
    ).fetchall()
    conn.close()
    return [
        {
            "unit_id": r["id"],
            "unit_name": r["name"],
            "unit_number": r["unit_number"],
            "course_id": r["course_id"],
            "course_name": r["course_name"],
            "mastery": r["mastery_score"] or 0,
        }
        for r in rows
    ]
