"""Bulk import of courses, units and tasks from JSON or YAML files.

Document shape::

    courses:
      - name: AP Calculus AB
        exam_date: 2026-05-05
        units:
          - {number: 1, name: Limits and Continuity}
    tasks:
      - title: Problem set 1.2
        type: assignment_work
        minutes: 40
        due_date: 2026-03-10
        course: AP Calculus AB
        unit: 1
"""
import json
from datetime import date, datetime
from pathlib import Path

import yaml
from loguru import logger

from study_planner.db import get_connection
from study_planner.errors import ImportFormatError
from study_planner.models import TaskStatus, TaskType


def read_document(file_path: str) -> dict:
    path = Path(file_path)
    suffix = path.suffix.lower()
    if suffix == ".json":
        data = json.loads(path.read_text())
    elif suffix in (".yaml", ".yml"):
        data = yaml.safe_load(path.read_text())
    else:
        raise ImportFormatError(f"Unsupported file type: {suffix or path.name}")
    if not isinstance(data, dict):
        raise ImportFormatError("Import document must be a mapping")
    return data


def _as_date(value) -> date | None:
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as e:
        raise ImportFormatError(f"Invalid date: {value!r}") from e


def _entry(entry, required: tuple, kind: str) -> dict:
    if not isinstance(entry, dict):
        raise ImportFormatError(f"{kind} entry must be a mapping: {entry!r}")
    missing = [key for key in required if entry.get(key) in (None, "")]
    if missing:
        raise ImportFormatError(f"{kind} entry missing {', '.join(missing)}: {entry!r}")
    return entry


def _as_int(value, what: str) -> int:
    if isinstance(value, bool):
        raise ImportFormatError(f"Invalid {what}: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ImportFormatError(f"Invalid {what}: {value!r}") from e


def _unit_id(conn, course_id: int, unit_number: int) -> int | None:
    row = conn.execute(
        "SELECT id FROM course_units WHERE course_id = ? AND unit_number = ?", (course_id, unit_number)
    ).fetchone()
    return row["id"] if row else None


def _import_courses(conn, courses: list, course_ids: dict, counts: dict) -> None:
    for course in courses:
        course = _entry(course, ("name",), "Course")
        name = course["name"]
        if name not in course_ids:
            exam_date = _as_date(course.get("exam_date"))
            cursor = conn.execute(
                "INSERT INTO courses (name, exam_date, target_score) VALUES (?, ?, ?)",
                (name, exam_date.isoformat() if exam_date else None, course.get("target_score")),
            )
            course_ids[name] = cursor.lastrowid
            counts["courses"] += 1
        for unit in course.get("units") or []:
            unit = _entry(unit, ("number", "name"), "Unit")
            number = _as_int(unit["number"], "unit number")
            if _unit_id(conn, course_ids[name], number) is None:
                conn.execute(
                    "INSERT INTO course_units (course_id, unit_number, name) VALUES (?, ?, ?)",
                    (course_ids[name], number, unit["name"]),
                )
                counts["units"] += 1


def _import_tasks(conn, tasks: list, course_ids: dict, counts: dict) -> None:
    for task in tasks:
        task = _entry(task, ("title",), "Task")
        try:
            task_type = TaskType(task.get("type", TaskType.ASSIGNMENT_WORK.value))
        except ValueError as e:
            raise ImportFormatError(f"Unknown task type: {task.get('type')!r}") from e
        course_id = unit_id = None
        if task.get("course"):
            if task["course"] not in course_ids:
                raise ImportFormatError(f"Task {task['title']!r} references unknown course {task['course']!r}")
            course_id = course_ids[task["course"]]
            if task.get("unit") is not None:
                unit_id = _unit_id(conn, course_id, _as_int(task["unit"], "unit number"))
                if unit_id is None:
                    raise ImportFormatError(
                        f"Task {task['title']!r} references unknown unit {task['unit']} of {task['course']!r}"
                    )
        due_date = _as_date(task.get("due_date"))
        conn.execute(
            """INSERT INTO tasks (title, task_type, estimated_minutes, due_date,
                course_unit_id, course_id, status, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                task["title"], task_type.value, _as_int(task.get("minutes", 30), "minutes"),
                due_date.isoformat() if due_date else None, unit_id, course_id,
                TaskStatus.TODO.value, datetime.now().isoformat(),
            ),
        )
        counts["tasks"] += 1


def import_data(db_path: str, data: dict) -> dict:
    """Create the courses, units and tasks described by `data`. Courses are matched by name.

    The whole document is written in one transaction: any bad entry raises
    ImportFormatError and nothing is saved.
    """
    counts = {"courses": 0, "units": 0, "tasks": 0}
    conn = get_connection(db_path)
    try:
        course_ids = {r["name"]: r["id"] for r in conn.execute("SELECT id, name FROM courses").fetchall()}
        _import_courses(conn, data.get("courses") or [], course_ids, counts)
        _import_tasks(conn, data.get("tasks") or [], course_ids, counts)
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
    logger.info(f"Imported {counts['courses']} courses, {counts['units']} units, {counts['tasks']} tasks")
    return counts


def import_file(db_path: str, file_path: str) -> dict:
    return import_data(db_path, read_document(file_path))
