"""Unit and course mastery scoring."""
from datetime import datetime
from typing import Iterable

from loguru import logger

from study_planner.db import get_connection, row_to_attempt, row_to_task
from study_planner.models import QuestionAttempt, Task

TASK_WEIGHT = 0.4
ACCURACY_WEIGHT = 0.6


def compute_unit_mastery(tasks: Iterable[Task], attempts: Iterable[QuestionAttempt]) -> int:
    """Mastery 0-100 from task completion (40%) and question accuracy (60%).

    When only one signal exists it is used on its own, unweighted.
    Both empty gives 0.
    """
    tasks = list(tasks)
    attempts = list(attempts)
    if not tasks and not attempts:
        return 0

    completion = sum(1 for t in tasks if t.completed) / len(tasks) * 100 if tasks else 0.0
    accuracy = sum(1 for a in attempts if a.is_correct) / len(attempts) * 100 if attempts else 0.0

    if tasks and attempts:
        mastery = completion * TASK_WEIGHT + accuracy * ACCURACY_WEIGHT
    elif tasks:
        mastery = completion
    else:
        mastery = accuracy
    return round(min(100, max(0, mastery)))


def load_unit_signals(db_path: str, unit_id: int) -> tuple[list[Task], list[QuestionAttempt]]:
    conn = get_connection(db_path)
    task_rows = conn.execute("SELECT * FROM tasks WHERE course_unit_id = ?", (unit_id,)).fetchall()
    attempt_rows = conn.execute(
        "SELECT * FROM question_attempts WHERE course_unit_id = ?", (unit_id,)
    ).fetchall()
    conn.close()
    return [row_to_task(r) for r in task_rows], [row_to_attempt(r) for r in attempt_rows]


def update_unit_mastery(db_path: str, unit_id: int, now: datetime = None) -> int:
    """Recompute a unit's mastery, store it, and mark the unit as studied now."""
    now = now or datetime.now()
    tasks, attempts = load_unit_signals(db_path, unit_id)
    mastery = compute_unit_mastery(tasks, attempts)
    conn = get_connection(db_path)
    conn.execute(
        "UPDATE course_units SET mastery_score = ?, last_studied_at = ? WHERE id = ?",
        (mastery, now.isoformat(), unit_id),
    )
    conn.commit()
    conn.close()
    logger.debug(f"Unit {unit_id} mastery -> {mastery} ({len(tasks)} tasks, {len(attempts)} attempts)")
    return mastery


def calc_course_mastery(db_path: str, course_id: int) -> int:
    """Average unit mastery for a course, 0 if it has no units."""
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT mastery_score FROM course_units WHERE course_id = ?", (course_id,)
    ).fetchall()
    conn.close()
    if not rows:
        return 0
    return round(sum(r["mastery_score"] or 0 for r in rows) / len(rows))
