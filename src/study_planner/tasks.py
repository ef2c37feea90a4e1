"""Courses, units and tasks."""
from datetime import date, datetime
from typing import Optional

from loguru import logger

from study_planner.db import get_connection, row_to_course, row_to_task, row_to_unit
from study_planner.mastery import update_unit_mastery
from study_planner.models import Course, StudyUnit, Task, TaskStatus, TaskType


def add_course(db_path: str, name: str, exam_date: date = None, target_score: int = None) -> int:
    conn = get_connection(db_path)
    cursor = conn.execute(
        "INSERT INTO courses (name, exam_date, target_score) VALUES (?, ?, ?)",
        (name, exam_date.isoformat() if exam_date else None, target_score),
    )
    conn.commit()
    course_id = cursor.lastrowid
    conn.close()
    return course_id


def add_unit(db_path: str, course_id: int, unit_number: int, name: str) -> int:
    conn = get_connection(db_path)
    cursor = conn.execute(
        "INSERT INTO course_units (course_id, unit_number, name) VALUES (?, ?, ?)",
        (course_id, unit_number, name),
    )
    conn.commit()
    unit_id = cursor.lastrowid
    conn.close()
    return unit_id


def add_task(
    db_path: str,
    title: str,
    task_type: TaskType,
    estimated_minutes: int = 30,
    due_date: date = None,
    unit_id: int = None,
    course_id: int = None,
    description: str = None,
) -> int:
    """Create a task. A task linked to a unit inherits the unit's course."""
    conn = get_connection(db_path)
    if unit_id is not None and course_id is None:
        row = conn.execute("SELECT course_id FROM course_units WHERE id = ?", (unit_id,)).fetchone()
        course_id = row["course_id"] if row else None
    cursor = conn.execute(
        """INSERT INTO tasks (title, description, task_type, estimated_minutes, due_date,
            course_unit_id, course_id, status, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            title, description, TaskType(task_type).value, estimated_minutes,
            due_date.isoformat() if due_date else None, unit_id, course_id,
            TaskStatus.TODO.value, datetime.now().isoformat(),
        ),
    )
    conn.commit()
    task_id = cursor.lastrowid
    conn.close()
    return task_id


def get_task(db_path: str, task_id: int) -> Optional[Task]:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
    conn.close()
    return row_to_task(row) if row else None


def complete_task(db_path: str, task_id: int, now: datetime = None) -> bool:
    """Mark a task completed and refresh its unit's mastery. False if unknown."""
    now = now or datetime.now()
    task = get_task(db_path, task_id)
    if task is None:
        return False
    conn = get_connection(db_path)
    conn.execute(
        "UPDATE tasks SET status = ?, completed_at = ? WHERE id = ?",
        (TaskStatus.COMPLETED.value, now.isoformat(), task_id),
    )
    conn.commit()
    conn.close()
    if task.unit_id is not None:
        update_unit_mastery(db_path, task.unit_id, now)
    logger.info(f"Completed task {task_id}: {task.title}")
    return True


def delete_task(db_path: str, task_id: int) -> None:
    conn = get_connection(db_path)
    conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
    conn.commit()
    conn.close()


def get_incomplete_tasks(db_path: str) -> list[Task]:
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT * FROM tasks WHERE status IN ('todo', 'in_progress')
        ORDER BY due_date IS NULL, due_date, id"""
    ).fetchall()
    conn.close()
    return [row_to_task(r) for r in rows]


def get_units(db_path: str, course_id: int = None) -> list[StudyUnit]:
    conn = get_connection(db_path)
    if course_id is None:
        rows = conn.execute("SELECT * FROM course_units ORDER BY course_id, unit_number").fetchall()
    else:
        rows = conn.execute(
            "SELECT * FROM course_units WHERE course_id = ? ORDER BY unit_number", (course_id,)
        ).fetchall()
    conn.close()
    return [row_to_unit(r) for r in rows]


def get_courses(db_path: str) -> list[Course]:
    """All courses with a readable exam date. Unparsable dates are logged and skipped."""
    conn = get_connection(db_path)
    rows = conn.execute("SELECT * FROM courses ORDER BY id").fetchall()
    conn.close()
    courses = []
    for row in rows:
        try:
            courses.append(row_to_course(row))
        except ValueError:
            logger.warning(f"Skipping course {row['id']}: bad exam date {row['exam_date']!r}")
    return courses
