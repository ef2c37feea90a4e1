"""Daily plan generation, snapshots and reconstruction."""
import json
import sqlite3
from datetime import date, datetime
from typing import Optional

from loguru import logger

from study_planner.db import get_connection, row_to_task
from study_planner.models import DailyPlan, Lane, LaneName, ScoredTask
from study_planner.scheduler import schedule_tasks
from study_planner.scoring import score_tasks
from study_planner.settings import get_target_study_minutes
from study_planner.tasks import get_courses, get_incomplete_tasks, get_units


def plan_to_snapshot(plan: DailyPlan) -> dict:
    """Stable dict form of a plan: lane name, ordered task ids with scores, minutes."""
    return {
        "lanes": [
            {
                "name": lane.name.value,
                "tasks": [
                    {
                        "id": t.id,
                        "total_score": t.total_score,
                        "urgency_score": t.urgency_score,
                        "importance_score": t.importance_score,
                        "weakness_bonus": t.weakness_bonus,
                        "recency_bonus": t.recency_bonus,
                    }
                    for t in lane.tasks
                ],
                "total_minutes": lane.total_minutes,
                "target_minutes": lane.target_minutes,
            }
            for lane in plan.lanes
        ],
        "total_minutes": plan.total_minutes,
        "generated_at": plan.generated_at.isoformat(),
    }


def save_plan(db_path: str, plan: DailyPlan) -> int:
    snapshot = plan_to_snapshot(plan)
    conn = get_connection(db_path)
    cursor = conn.execute(
        "INSERT INTO planner_runs (plan_date, plan_data, total_minutes, created_at) VALUES (?, ?, ?, ?)",
        (
            plan.generated_at.date().isoformat(),
            json.dumps(snapshot),
            plan.total_minutes,
            plan.generated_at.isoformat(),
        ),
    )
    conn.commit()
    run_id = cursor.lastrowid
    conn.close()
    return run_id


def generate_daily_plan(db_path: str, now: datetime = None) -> DailyPlan:
    """Score all incomplete tasks, allocate them to lanes and save a snapshot.

    A snapshot that fails to save is logged; the plan is still returned.
    """
    now = now or datetime.now()
    target = get_target_study_minutes(db_path)
    tasks = get_incomplete_tasks(db_path)
    units = {u.id: u for u in get_units(db_path)}
    courses = {c.id: c for c in get_courses(db_path)}

    scored = score_tasks(tasks, units, courses, now)
    plan = schedule_tasks(scored, target, now)

    try:
        run_id = save_plan(db_path, plan)
        logger.info(f"Saved planner run {run_id} for {now.date()} ({plan.total_minutes} min)")
    except sqlite3.Error as e:
        logger.error(f"Error saving planner run: {e}")
    return plan


def plan_from_snapshot(snapshot: dict, tasks_by_id: dict) -> DailyPlan:
    """Rebuild a plan. Tasks missing from `tasks_by_id` are dropped."""
    lanes = []
    for lane_data in snapshot["lanes"]:
        lane = Lane(LaneName(lane_data["name"]), lane_data.get("target_minutes", 0))
        for entry in lane_data["tasks"]:
            task = tasks_by_id.get(entry["id"])
            if task is None:
                continue
            lane.tasks.append(ScoredTask(
                task=task,
                urgency_score=entry["urgency_score"],
                importance_score=entry["importance_score"],
                weakness_bonus=entry["weakness_bonus"],
                recency_bonus=entry["recency_bonus"],
                total_score=entry["total_score"],
            ))
            lane.total_minutes += task.estimated_minutes
        lanes.append(lane)
    return DailyPlan(
        lanes=lanes,
        total_minutes=sum(lane.total_minutes for lane in lanes),
        generated_at=datetime.fromisoformat(snapshot["generated_at"]),
    )


def get_todays_plan(db_path: str, today: date = None) -> Optional[DailyPlan]:
    """Latest saved plan for the day, or None."""
    today = today or date.today()
    conn = get_connection(db_path)
    run = conn.execute(
        """SELECT plan_data FROM planner_runs WHERE plan_date = ?
        ORDER BY created_at DESC, id DESC LIMIT 1""",
        (today.isoformat(),),
    ).fetchone()
    if run is None:
        conn.close()
        return None
    snapshot = json.loads(run["plan_data"])
    task_ids = [entry["id"] for lane in snapshot["lanes"] for entry in lane["tasks"]]
    rows = []
    if task_ids:
        placeholders = ",".join("?" for _ in task_ids)
        rows = conn.execute(f"SELECT * FROM tasks WHERE id IN ({placeholders})", task_ids).fetchall()
    conn.close()
    return plan_from_snapshot(snapshot, {r["id"]: row_to_task(r) for r in rows})
