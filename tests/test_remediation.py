from datetime import datetime, timedelta

from study_planner.db import get_connection
from study_planner.models import TaskType
from study_planner.remediation import (
    check_and_create_remediation_task, get_unit_error_stats, get_weak_units, log_question_attempt,
    mark_errors_remediated, needs_remediation,
)
from study_planner.tasks import add_course, add_task, add_unit, complete_task, get_incomplete_tasks, get_units

NOW = datetime(2026, 3, 1, 9, 0)


def setup_unit(db_path, name="Limits"):
    course_id = add_course(db_path, "AP Calc")
    return add_unit(db_path, course_id, 1, name)


def review_tasks(db_path):
    return [t for t in get_incomplete_tasks(db_path) if t.title.startswith("Review:")]


def test_needs_remediation_threshold():
    recent = [NOW - timedelta(days=d) for d in (0, 1, 6)]
    assert needs_remediation(recent, NOW)
    assert not needs_remediation(recent[:2], NOW)
    assert not needs_remediation([NOW - timedelta(days=8)] * 5, NOW)


def test_wrong_answers_create_review_task(ready_db):
    unit_id = setup_unit(ready_db)
    log_question_attempt(ready_db, unit_id, False, now=NOW)
    log_question_attempt(ready_db, unit_id, False, now=NOW)
    assert review_tasks(ready_db) == []
    log_question_attempt(ready_db, unit_id, False, now=NOW)

    tasks = review_tasks(ready_db)
    assert len(tasks) == 1
    assert tasks[0].title == "Review: Limits"
    assert tasks[0].task_type == TaskType.EXAM_BUILD
    assert tasks[0].estimated_minutes == 45
    assert tasks[0].unit_id == unit_id


def test_no_duplicate_review_task(ready_db):
    unit_id = setup_unit(ready_db)
    for _ in range(5):
        log_question_attempt(ready_db, unit_id, False, now=NOW)
    assert len(review_tasks(ready_db)) == 1
    assert check_and_create_remediation_task(ready_db, unit_id, NOW) is None


def test_wildcard_unit_name_does_not_block_review(ready_db):
    unit_id = setup_unit(ready_db, name="Rate_Law")
    add_task(ready_db, "Review: Rate-Law drills", TaskType.EXAM_BUILD, unit_id=unit_id)
    for _ in range(3):
        log_question_attempt(ready_db, unit_id, False, now=NOW)
    titles = [t.title for t in review_tasks(ready_db)]
    assert "Review: Rate_Law" in titles


def test_completed_review_allows_a_new_one(ready_db):
    unit_id = setup_unit(ready_db)
    for _ in range(3):
        log_question_attempt(ready_db, unit_id, False, now=NOW)
    complete_task(ready_db, review_tasks(ready_db)[0].id, NOW)
    assert check_and_create_remediation_task(ready_db, unit_id, NOW) is not None


def test_old_errors_do_not_trigger_review(ready_db):
    unit_id = setup_unit(ready_db)
    log_question_attempt(ready_db, unit_id, False, now=NOW - timedelta(days=9))
    log_question_attempt(ready_db, unit_id, False, now=NOW - timedelta(days=8))
    log_question_attempt(ready_db, unit_id, False, now=NOW)
    assert review_tasks(ready_db) == []


def test_remediated_errors_do_not_count(ready_db):
    unit_id = setup_unit(ready_db)
    log_question_attempt(ready_db, unit_id, False, now=NOW)
    log_question_attempt(ready_db, unit_id, False, now=NOW)
    assert mark_errors_remediated(ready_db, unit_id, NOW) == 2
    log_question_attempt(ready_db, unit_id, False, now=NOW)
    assert review_tasks(ready_db) == []


def test_attempts_update_mastery(ready_db):
    unit_id = setup_unit(ready_db)
    log_question_attempt(ready_db, unit_id, True, now=NOW)
    log_question_attempt(ready_db, unit_id, False, now=NOW)
    unit = get_units(ready_db)[0]
    assert unit.mastery_score == 50
    assert unit.last_studied_at == NOW


def test_correct_answers_are_not_logged_as_errors(ready_db):
    unit_id = setup_unit(ready_db)
    log_question_attempt(ready_db, unit_id, True, now=NOW)
    conn = get_connection(ready_db)
    assert conn.execute("SELECT COUNT(*) FROM error_log_items").fetchone()[0] == 0
    assert conn.execute("SELECT COUNT(*) FROM question_attempts").fetchone()[0] == 1
    conn.close()


def test_unit_error_stats(ready_db):
    unit_id = setup_unit(ready_db)
    log_question_attempt(ready_db, unit_id, False, now=NOW - timedelta(days=10))
    log_question_attempt(ready_db, unit_id, False, now=NOW)
    stats = get_unit_error_stats(ready_db, unit_id, NOW)
    assert stats == {
        "total_errors": 2,
        "unremediated_errors": 2,
        "recent_errors": 1,
        "needs_remediation": False,
    }
    mark_errors_remediated(ready_db, unit_id, NOW)
    assert get_unit_error_stats(ready_db, unit_id, NOW)["unremediated_errors"] == 0


def test_get_weak_units(ready_db):
    course_id = add_course(ready_db, "AP Calc")
    strong = add_unit(ready_db, course_id, 1, "Limits")
    weak = add_unit(ready_db, course_id, 2, "Derivatives")
    weakest = add_unit(ready_db, course_id, 3, "Integrals")
    conn = get_connection(ready_db)
    conn.execute("UPDATE course_units SET mastery_score = 90 WHERE id = ?", (strong,))
    conn.execute("UPDATE course_units SET mastery_score = 40 WHERE id = ?", (weak,))
    conn.execute("UPDATE course_units SET mastery_score = 10 WHERE id = ?", (weakest,))
    conn.commit()
    conn.close()
    result = get_weak_units(ready_db)
    assert [w["unit_id"] for w in result] == [weakest, weak]
    assert result[0]["course_name"] == "AP Calc"
