"""Data classes for the planner domain model."""
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional


class TaskType(str, Enum):
    ASSIGNMENT_WORK = "assignment_work"
    EXAM_BUILD = "exam_build"
    TIMED_PRACTICE = "timed_practice"


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class LaneName(str, Enum):
    DUE_SOON = "due_soon"
    EXAM_BUILD = "exam_build"
    TIMED_PRACTICE = "timed_practice"

    @property
    def display_name(self) -> str:
        return _LANE_DISPLAY_NAMES[self]


_LANE_DISPLAY_NAMES = {
    LaneName.DUE_SOON: "Due Soon",
    LaneName.EXAM_BUILD: "Exam Build",
    LaneName.TIMED_PRACTICE: "Timed Practice",
}


@dataclass
class Course:
    id: int
    name: str
    exam_date: Optional[date] = None
    target_score: Optional[int] = None


@dataclass
class StudyUnit:
    id: int
    course_id: int
    unit_number: int
    name: str
    mastery_score: int = 0
    last_studied_at: Optional[datetime] = None


@dataclass
class Task:
    id: int
    title: str
    task_type: TaskType
    estimated_minutes: int = 30
    due_date: Optional[date] = None
    unit_id: Optional[int] = None
    course_id: Optional[int] = None
    status: TaskStatus = TaskStatus.TODO
    completed_at: Optional[datetime] = None

    @property
    def completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED


@dataclass
class QuestionAttempt:
    id: int
    unit_id: int
    is_correct: bool
    attempted_at: Optional[datetime] = None


@dataclass
class FocusSession:
    id: int
    duration_minutes: int
    ended_at: datetime
    task_id: Optional[int] = None


@dataclass(frozen=True)
class ScoredTask:
    """A task with its priority breakdown. Derived, never stored as truth."""
    task: Task
    urgency_score: float
    importance_score: float
    weakness_bonus: float
    recency_bonus: float
    total_score: float

    @property
    def id(self) -> int:
        return self.task.id

    @property
    def task_type(self) -> TaskType:
        return self.task.task_type

    @property
    def estimated_minutes(self) -> int:
        return self.task.estimated_minutes


@dataclass
class Lane:
    name: LaneName
    target_minutes: int
    tasks: list[ScoredTask] = field(default_factory=list)
    total_minutes: int = 0

    @property
    def display_name(self) -> str:
        return self.name.display_name


@dataclass
class DailyPlan:
    lanes: list[Lane]
    total_minutes: int
    generated_at: datetime

    def lane(self, name: LaneName) -> Lane:
        for lane in self.lanes:
            if lane.name == name:
                return lane
        raise KeyError(name)


@dataclass(frozen=True)
class ReadinessScore:
    total: int
    coverage: int
    accuracy: int
    recency: int
    pacing: int
