"""Day arithmetic shared by the scorers."""
import math
from datetime import date, datetime, time

SECONDS_PER_DAY = 24 * 60 * 60


def days_from(now: datetime, target: date | datetime) -> float:
    """Fractional days from `now` until `target` (negative when past).

    A plain date is taken as midnight at the start of that day.
    """
    if not isinstance(target, datetime):
        target = datetime.combine(target, time.min)
    return (target - now).total_seconds() / SECONDS_PER_DAY


def days_until(now: datetime, target: date | datetime) -> int:
    """Whole days until `target`, rounded up."""
    return math.ceil(days_from(now, target))


def days_since(now: datetime, moment: datetime) -> int:
    """Whole days elapsed since `moment`, rounded down."""
    return math.floor(-days_from(now, moment))
