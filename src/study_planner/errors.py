"""Planner exceptions."""


class PlannerError(Exception):
    """Base class for planner errors."""


class CourseNotFoundError(PlannerError):
    def __init__(self, course_id: int):
        super().__init__(f"Course not found: {course_id}")
        self.course_id = course_id


class ReadinessError(PlannerError):
    """Readiness could not be computed for a course (e.g. no usable exam date)."""


class ImportFormatError(PlannerError):
    """An import document is malformed or references unknown records."""
