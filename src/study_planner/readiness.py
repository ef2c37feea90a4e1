"""Exam readiness scoring per course.

Readiness blends four 0-100 signals:

- coverage: share of units at or above the proficiency threshold
- accuracy: share of practice questions answered correctly
- recency: share of units studied within the recency window
- pacing: whether remaining work fits before the exam at the current velocity
"""
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from loguru import logger

from study_planner.dates import days_until
from study_planner.db import get_connection, row_to_attempt, row_to_course, row_to_unit
from study_planner.errors import CourseNotFoundError, PlannerError, ReadinessError
from study_planner.models import QuestionAttempt, ReadinessScore, StudyUnit
from study_planner.sessions import get_recent_daily_minutes

PROFICIENCY_THRESHOLD = 50
RECENCY_WINDOW_DAYS = 14
DEFAULT_DAILY_MINUTES = 60.0

WEIGHTS = {
    "coverage": 0.25,
    "accuracy": 0.35,
    "recency": 0.20,
    "pacing": 0.20,
}

# (max ratio of required days to days left, pacing score)
PACING_STEPS = [
    (0.5, 100),
    (0.75, 75),
    (1.0, 50),
    (1.5, 25),
]
PACING_FLOOR = 10


def get_readiness_label(score: float) -> str:
    if score >= 80:
        return "Exam Ready"
    elif score >= 60:
        return "On Track"
    elif score >= 40:
        return "Developing"
    return "Needs Attention"


def get_readiness_color(score: float) -> str:
    if score >= 80:
        return "green"
    elif score >= 60:
        return "blue"
    elif score >= 40:
        return "yellow"
    return "red"


def _coverage(units: list[StudyUnit]) -> float:
    if not units:
        return 0.0
    proficient = sum(1 for u in units if (u.mastery_score or 0) >= PROFICIENCY_THRESHOLD)
    return proficient / len(units) * 100


def _accuracy(attempts: list[QuestionAttempt]) -> float:
    # No attempts reads the same as 0% accuracy.
    if not attempts:
        return 0.0
    return sum(1 for a in attempts if a.is_correct) / len(attempts) * 100


def _recency(units: list[StudyUnit], now: datetime) -> float:
    if not units:
        return 0.0
    cutoff = now - timedelta(days=RECENCY_WINDOW_DAYS)
    recent = sum(1 for u in units if u.last_studied_at is not None and u.last_studied_at >= cutoff)
    return recent / len(units) * 100


def calc_pacing(exam_date: date, remaining_minutes: int, daily_minutes: Optional[float], now: datetime) -> int:
    """Step score for whether the remaining work fits before the exam."""
    if not daily_minutes or daily_minutes <= 0:
        daily_minutes = DEFAULT_DAILY_MINUTES
    required_days = remaining_minutes / daily_minutes
    days_left = max(0, days_until(now, exam_date))

    if days_left == 0:
        return 100 if remaining_minutes == 0 else 0

    ratio = required_days / days_left
    for limit, score in PACING_STEPS:
        if ratio <= limit:
            return score
    return PACING_FLOOR


def compute_readiness(
    exam_date: Optional[date],
    units: Iterable[StudyUnit],
    attempts: Iterable[QuestionAttempt],
    remaining_minutes: int,
    recent_daily_minutes: Optional[float],
    now: datetime = None,
) -> ReadinessScore:
    """Score one course's readiness from already-loaded data.

    Attempts on units outside `units` are ignored. Raises ReadinessError
    when the course has no exam date.
    """
    if exam_date is None:
        raise ReadinessError("Course has no exam date")
    now = now or datetime.now()
    units = list(units)
    unit_ids = {u.id for u in units}
    attempts = [a for a in attempts if a.unit_id in unit_ids]

    coverage = _coverage(units)
    accuracy = _accuracy(attempts)
    recency = _recency(units, now)
    pacing = calc_pacing(exam_date, remaining_minutes, recent_daily_minutes, now)

    total = round(
        coverage * WEIGHTS["coverage"]
        + accuracy * WEIGHTS["accuracy"]
        + recency * WEIGHTS["recency"]
        + pacing * WEIGHTS["pacing"]
    )
    return ReadinessScore(
        total=min(100, max(0, total)),
        coverage=round(coverage),
        accuracy=round(accuracy),
        recency=round(recency),
        pacing=pacing,
    )


def calc_course_readiness(db_path: str, course_id: int, now: datetime = None) -> ReadinessScore:
    now = now or datetime.now()
    conn = get_connection(db_path)
    course_row = conn.execute("SELECT * FROM courses WHERE id = ?", (course_id,)).fetchone()
    if course_row is None:
        conn.close()
        raise CourseNotFoundError(course_id)
    unit_rows = conn.execute(
        "SELECT * FROM course_units WHERE course_id = ? ORDER BY unit_number", (course_id,)
    ).fetchall()
    attempt_rows = conn.execute(
        """SELECT a.* FROM question_attempts a
        JOIN course_units u ON a.course_unit_id = u.id
        WHERE u.course_id = ?""",
        (course_id,),
    ).fetchall()
    remaining = conn.execute(
        """SELECT COALESCE(SUM(estimated_minutes), 0) FROM tasks
        WHERE course_id = ? AND status IN ('todo', 'in_progress')""",
        (course_id,),
    ).fetchone()[0]
    conn.close()

    try:
        course = row_to_course(course_row)
    except ValueError as e:
        raise ReadinessError(f"Invalid exam date for course {course_id}: {course_row['exam_date']!r}") from e

    return compute_readiness(
        course.exam_date,
        [row_to_unit(r) for r in unit_rows],
        [row_to_attempt(r) for r in attempt_rows],
        remaining,
        get_recent_daily_minutes(db_path, now),
        now,
    )


def calc_all_readiness(
    db_path: str, now: datetime = None
) -> tuple[dict[int, ReadinessScore], dict[int, str]]:
    """Score every course. A failing course is logged and reported, never fatal."""
    now = now or datetime.now()
    conn = get_connection(db_path)
    course_ids = [r["id"] for r in conn.execute("SELECT id FROM courses ORDER BY id").fetchall()]
    conn.close()

    scores: dict[int, ReadinessScore] = {}
    failures: dict[int, str] = {}
    for course_id in course_ids:
        try:
            scores[course_id] = calc_course_readiness(db_path, course_id, now)
        except PlannerError as e:
            logger.error(f"Error calculating readiness for course {course_id}: {e}")
            failures[course_id] = str(e)
    return scores, failures
