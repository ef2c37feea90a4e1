import math
import random
from datetime import datetime, timedelta

import pytest

from study_planner.models import Course, StudyUnit, Task, TaskType
from study_planner.scoring import (
    calc_importance, calc_recency_bonus, calc_urgency, calc_weakness_bonus, score_task, score_tasks,
)

NOW = datetime(2026, 3, 1, 9, 0)
TODAY = NOW.date()


def make_task(task_id=1, task_type=TaskType.ASSIGNMENT_WORK, due=None, unit_id=None, minutes=30):
    return Task(id=task_id, title=f"Task {task_id}", task_type=task_type,
                estimated_minutes=minutes, due_date=due, unit_id=unit_id)


def unit_with(mastery=0, last_studied=None, course_id=1):
    return {1: StudyUnit(id=1, course_id=course_id, unit_number=1, name="Limits",
                         mastery_score=mastery, last_studied_at=last_studied)}


# urgency

def test_urgency_no_due_date_is_ten():
    assert calc_urgency(make_task(), NOW) == 10


def test_urgency_due_today_is_max():
    assert calc_urgency(make_task(due=TODAY), NOW) == 100


def test_urgency_overdue_is_capped():
    assert calc_urgency(make_task(due=TODAY - timedelta(days=10)), NOW) == 100


def test_urgency_exponential_decay():
    week = calc_urgency(make_task(due=TODAY + timedelta(days=7)), NOW)
    assert week == pytest.approx(100 * math.exp(-1))
    assert abs(week - 37) <= 1
    assert round(calc_urgency(make_task(due=TODAY + timedelta(days=14)), NOW)) == 14
    assert round(calc_urgency(make_task(due=TODAY + timedelta(days=21)), NOW)) == 5


def test_urgency_partial_day_rounds_up():
    # Due tomorrow at midnight is 15 hours away: counts as one day.
    assert calc_urgency(make_task(due=TODAY + timedelta(days=1)), NOW) == pytest.approx(100 * math.exp(-1 / 7))


# importance

def test_importance_base_by_type():
    assert calc_importance(make_task(task_type=TaskType.ASSIGNMENT_WORK), {}, {}, NOW) == 70
    assert calc_importance(make_task(task_type=TaskType.EXAM_BUILD), {}, {}, NOW) == 50
    assert calc_importance(make_task(task_type=TaskType.TIMED_PRACTICE), {}, {}, NOW) == 30


def test_importance_exam_boost_is_linear():
    units = unit_with()
    courses = {1: Course(id=1, name="AP Calc", exam_date=TODAY + timedelta(days=10))}
    task = make_task(task_type=TaskType.EXAM_BUILD, unit_id=1)
    assert calc_importance(task, units, courses, NOW) == pytest.approx(50 + 30 * (1 - 10 / 30))


def test_importance_no_boost_outside_window():
    units = unit_with()
    far = {1: Course(id=1, name="AP Calc", exam_date=TODAY + timedelta(days=45))}
    past = {1: Course(id=1, name="AP Calc", exam_date=TODAY - timedelta(days=2))}
    task = make_task(unit_id=1)
    assert calc_importance(task, units, far, NOW) == 70
    assert calc_importance(task, units, past, NOW) == 70


def test_importance_never_exceeds_100():
    units = unit_with()
    courses = {1: Course(id=1, name="AP Calc", exam_date=TODAY + timedelta(days=1))}
    assert calc_importance(make_task(unit_id=1), units, courses, NOW) <= 100


def test_importance_missing_references_get_no_boost():
    courses = {1: Course(id=1, name="AP Calc", exam_date=TODAY + timedelta(days=5))}
    assert calc_importance(make_task(unit_id=99), {}, courses, NOW) == 70
    assert calc_importance(make_task(unit_id=1), unit_with(course_id=42), courses, NOW) == 70


def test_importance_course_without_exam_date():
    courses = {1: Course(id=1, name="AP Calc")}
    assert calc_importance(make_task(unit_id=1), unit_with(), courses, NOW) == 70


# weakness

@pytest.mark.parametrize("mastery, bonus", [
    (0, 50), (29, 50), (30, 30), (49, 30), (50, 15), (69, 15), (70, 0), (100, 0),
])
def test_weakness_bonus_steps(mastery, bonus):
    assert calc_weakness_bonus(make_task(unit_id=1), unit_with(mastery=mastery)) == bonus


def test_weakness_bonus_without_unit():
    assert calc_weakness_bonus(make_task(), {}) == 0
    assert calc_weakness_bonus(make_task(unit_id=5), {}) == 0


# recency

@pytest.mark.parametrize("days, bonus", [
    (0, 0), (1, 0), (2, 10), (3, 12.5), (4, 15), (5, 17.5), (6, 20), (7, 25), (30, 25),
])
def test_recency_bonus_spaced_repetition(days, bonus):
    units = unit_with(last_studied=NOW - timedelta(days=days))
    assert calc_recency_bonus(make_task(unit_id=1), units, NOW) == bonus


def test_recency_bonus_never_studied():
    assert calc_recency_bonus(make_task(unit_id=1), unit_with(), NOW) == 25


def test_recency_bonus_neutral_without_unit():
    assert calc_recency_bonus(make_task(), {}, NOW) == 15
    assert calc_recency_bonus(make_task(unit_id=5), {}, NOW) == 15


# totals

def test_score_task_weighted_total():
    scored = score_task(make_task(), {}, {}, NOW)
    assert scored.urgency_score == 10
    assert scored.importance_score == 70
    assert scored.weakness_bonus == 0
    assert scored.recency_bonus == 15
    assert scored.total_score == pytest.approx(30.0)


def test_score_task_rounds_sub_scores_then_total():
    task = make_task(due=TODAY + timedelta(days=7), unit_id=1)
    scored = score_task(task, unit_with(mastery=40), {}, NOW)
    assert scored.urgency_score == 36.79
    expected = round(36.79 * 0.40 + 70 * 0.35 + 30 * 0.15 + 25 * 0.10, 2)
    assert scored.total_score == expected


def test_score_task_keeps_task():
    task = make_task(task_id=9)
    assert score_task(task, {}, {}, NOW).task is task


def test_score_tasks_sorted_descending():
    tasks = [
        make_task(1, TaskType.TIMED_PRACTICE),
        make_task(2, due=TODAY),
        make_task(3, TaskType.EXAM_BUILD, due=TODAY + timedelta(days=3)),
    ]
    scored = score_tasks(tasks, {}, {}, NOW)
    assert [s.id for s in scored] == [2, 3, 1]


def test_score_tasks_ties_keep_input_order():
    tasks = [make_task(i) for i in (5, 3, 8, 1)]
    scored = score_tasks(tasks, {}, {}, NOW)
    assert [s.id for s in scored] == [5, 3, 8, 1]


def test_score_tasks_empty():
    assert score_tasks([], {}, {}, NOW) == []


def test_score_tasks_is_sorted_permutation():
    rng = random.Random(7)
    types = list(TaskType)
    units = {
        i: StudyUnit(id=i, course_id=1, unit_number=i, name=f"U{i}",
                     mastery_score=rng.randint(0, 100),
                     last_studied_at=NOW - timedelta(days=rng.randint(0, 20)) if i % 3 else None)
        for i in range(1, 6)
    }
    courses = {1: Course(id=1, name="AP Bio", exam_date=TODAY + timedelta(days=12))}
    tasks = [
        make_task(i, rng.choice(types),
                  due=TODAY + timedelta(days=rng.randint(-3, 30)) if rng.random() < 0.7 else None,
                  unit_id=rng.choice([None, 1, 2, 3, 4, 5, 77]))
        for i in range(60)
    ]
    scored = score_tasks(tasks, units, courses, NOW)
    totals = [s.total_score for s in scored]
    assert totals == sorted(totals, reverse=True)
    assert sorted(s.id for s in scored) == list(range(60))
    for s in scored:
        assert 0 <= s.total_score <= 100
        assert 0 <= s.weakness_bonus <= 50
        assert 0 <= s.recency_bonus <= 25
