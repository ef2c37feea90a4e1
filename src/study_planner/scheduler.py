"""Allocate scored tasks into the three daily lanes."""
from datetime import datetime
from typing import Iterable, Sequence

from loguru import logger

from study_planner.models import DailyPlan, Lane, LaneName, ScoredTask, TaskType

LANE_SHARES = {
    LaneName.DUE_SOON: 0.65,
    LaneName.EXAM_BUILD: 0.25,
    LaneName.TIMED_PRACTICE: 0.10,
}
MAX_TASKS_PER_LANE = 5
BUDGET_TOLERANCE = 1.2
OVERFLOW_URGENCY = 50


def calc_time_budgets(target_minutes_per_day: int) -> dict[LaneName, int]:
    return {name: round(target_minutes_per_day * share) for name, share in LANE_SHARES.items()}


def _fits(lane: Lane, task: ScoredTask) -> bool:
    return lane.total_minutes + task.estimated_minutes <= lane.target_minutes * BUDGET_TOLERANCE


def _fill_lane(lane: Lane, candidates: Iterable[ScoredTask]) -> list[ScoredTask]:
    """First-fit admission in candidate order. Returns the tasks admitted."""
    admitted = []
    for task in candidates:
        if len(lane.tasks) >= MAX_TASKS_PER_LANE:
            break
        if _fits(lane, task):
            lane.tasks.append(task)
            lane.total_minutes += task.estimated_minutes
            admitted.append(task)
    return admitted


def _pool(scored_tasks: Sequence[ScoredTask], task_type: TaskType) -> tuple[ScoredTask, ...]:
    return tuple(t for t in scored_tasks if t.task_type == task_type)


def schedule_tasks(
    scored_tasks: Sequence[ScoredTask], target_minutes_per_day: int, now: datetime = None,
) -> DailyPlan:
    """Build a daily plan from tasks already sorted by priority.

    Lanes hold at most five tasks and may run 20% over budget. Tasks that
    don't fit are skipped, there is no backtracking.
    """
    budgets = calc_time_budgets(target_minutes_per_day)
    due_soon = Lane(LaneName.DUE_SOON, budgets[LaneName.DUE_SOON])
    exam_build = Lane(LaneName.EXAM_BUILD, budgets[LaneName.EXAM_BUILD])
    timed_practice = Lane(LaneName.TIMED_PRACTICE, budgets[LaneName.TIMED_PRACTICE])

    assignment_pool = _pool(scored_tasks, TaskType.ASSIGNMENT_WORK)
    exam_pool = _pool(scored_tasks, TaskType.EXAM_BUILD)
    practice_pool = _pool(scored_tasks, TaskType.TIMED_PRACTICE)

    _fill_lane(due_soon, assignment_pool)

    claimed: set[int] = set()
    open_slots = MAX_TASKS_PER_LANE - len(due_soon.tasks)
    if open_slots > 0:
        urgent = [t for t in exam_pool if t.urgency_score > OVERFLOW_URGENCY][:open_slots]
        claimed.update(t.id for t in _fill_lane(due_soon, urgent))

    # Remediation need outranks composite priority here.
    remaining_exam = sorted(
        (t for t in exam_pool if t.id not in claimed),
        key=lambda t: t.weakness_bonus,
        reverse=True,
    )
    _fill_lane(exam_build, remaining_exam)
    _fill_lane(timed_practice, practice_pool)

    lanes = [due_soon, exam_build, timed_practice]
    plan = DailyPlan(
        lanes=lanes,
        total_minutes=sum(lane.total_minutes for lane in lanes),
        generated_at=now or datetime.now(),
    )
    placed = sum(len(lane.tasks) for lane in lanes)
    logger.debug(f"Scheduled {placed}/{len(scored_tasks)} tasks, {plan.total_minutes} min")
    return plan


def validate_plan(plan: DailyPlan) -> list[str]:
    """Advisory warnings about a plan. Never changes the plan."""
    warnings = []
    target_total = sum(lane.target_minutes for lane in plan.lanes)

    if plan.total_minutes < target_total * 0.5:
        warnings.append(
            "Plan is significantly under your daily study goal. "
            "Consider creating more tasks or adjusting your target time."
        )
    if plan.total_minutes > target_total * 1.5:
        warnings.append(
            "Plan exceeds your daily study goal by 50%+. "
            "Consider reducing task estimates or adjusting your target time."
        )

    suggestions = {
        LaneName.DUE_SOON: "assignment",
        LaneName.EXAM_BUILD: "exam build",
        LaneName.TIMED_PRACTICE: "timed practice",
    }
    for lane in plan.lanes:
        if not lane.tasks:
            warnings.append(
                f"{lane.display_name} lane is empty. Consider creating {suggestions[lane.name]} tasks."
            )
    return warnings
