"""Task priority scoring.

Each task gets four sub-scores, combined with fixed weights:

- urgency (40%): exponential decay on days until due
- importance (35%): task type base, boosted as the course exam nears
- weakness bonus (15%): low unit mastery earns a bonus
- recency bonus (10%): spaced repetition, favouring units not studied lately
"""
import math
from datetime import datetime
from typing import Iterable, Mapping

from study_planner.dates import days_since, days_until
from study_planner.models import Course, ScoredTask, StudyUnit, Task, TaskType

WEIGHTS = {
    "urgency": 0.40,
    "importance": 0.35,
    "weakness": 0.15,
    "recency": 0.10,
}

UNDATED_URGENCY = 10.0
URGENCY_DECAY_DAYS = 7

BASE_IMPORTANCE = {
    TaskType.ASSIGNMENT_WORK: 70,
    TaskType.EXAM_BUILD: 50,
    TaskType.TIMED_PRACTICE: 30,
}
EXAM_BOOST_MAX = 30
EXAM_BOOST_WINDOW_DAYS = 30

NO_UNIT_RECENCY = 15
NEVER_STUDIED_RECENCY = 25


def calc_urgency(task: Task, now: datetime) -> float:
    """100 at or past the due date: ~37 at 7 days, ~14 at 14, ~5 at 21."""
    if task.due_date is None:
        return UNDATED_URGENCY
    days = max(0, days_until(now, task.due_date))
    urgency = 100 * math.exp(-days / URGENCY_DECAY_DAYS)
    return min(100.0, max(0.0, urgency))


def calc_importance(
    task: Task, units: Mapping[int, StudyUnit], courses: Mapping[int, Course], now: datetime,
) -> float:
    importance = float(BASE_IMPORTANCE[task.task_type])
    unit = units.get(task.unit_id) if task.unit_id is not None else None
    course = courses.get(unit.course_id) if unit else None
    if course and course.exam_date:
        days = days_until(now, course.exam_date)
        if 0 < days <= EXAM_BOOST_WINDOW_DAYS:
            importance += EXAM_BOOST_MAX * (1 - days / EXAM_BOOST_WINDOW_DAYS)
    return min(100.0, max(0.0, importance))


def calc_weakness_bonus(task: Task, units: Mapping[int, StudyUnit]) -> float:
    if task.unit_id is None:
        return 0.0
    unit = units.get(task.unit_id)
    if unit is None:
        return 0.0
    mastery = unit.mastery_score or 0
    if mastery < 30:
        return 50.0
    elif mastery < 50:
        return 30.0
    elif mastery < 70:
        return 15.0
    return 0.0


def calc_recency_bonus(task: Task, units: Mapping[int, StudyUnit], now: datetime) -> float:
    """Spacing bonus for the task's unit, 25 when it was never studied.

    Between two and six days the bonus ramps linearly from 10 to 20, so each
    day adds 2.5. Those endpoints fix the slope.
    """
    if task.unit_id is None:
        return float(NO_UNIT_RECENCY)
    unit = units.get(task.unit_id)
    if unit is None:
        return float(NO_UNIT_RECENCY)
    if unit.last_studied_at is None:
        return float(NEVER_STUDIED_RECENCY)

    days = days_since(now, unit.last_studied_at)
    if days < 2:
        return 0.0
    elif days < 7:
        return 10 + (days - 2) * 2.5
    return 25.0


def score_task(
    task: Task,
    units: Mapping[int, StudyUnit],
    courses: Mapping[int, Course],
    now: datetime,
) -> ScoredTask:
    """Score one task. Unknown unit/course ids contribute no bonus."""
    urgency = round(calc_urgency(task, now), 2)
    importance = round(calc_importance(task, units, courses, now), 2)
    weakness = round(calc_weakness_bonus(task, units), 2)
    recency = round(calc_recency_bonus(task, units, now), 2)

    total = (
        urgency * WEIGHTS["urgency"]
        + importance * WEIGHTS["importance"]
        + weakness * WEIGHTS["weakness"]
        + recency * WEIGHTS["recency"]
    )
    return ScoredTask(
        task=task,
        urgency_score=urgency,
        importance_score=importance,
        weakness_bonus=weakness,
        recency_bonus=recency,
        total_score=round(min(100.0, max(0.0, total)), 2),
    )


def score_tasks(
    tasks: Iterable[Task],
    units: Mapping[int, StudyUnit],
    courses: Mapping[int, Course],
    now: datetime = None,
) -> list[ScoredTask]:
    """Score all tasks, highest total first. Ties keep their input order."""
    now = now or datetime.now()
    scored = [score_task(t, units, courses, now) for t in tasks]
    return sorted(scored, key=lambda s: s.total_score, reverse=True)
