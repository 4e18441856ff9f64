"""
Time-dependent urgency scoring.

Taskwarrior's own urgency is computed at export time. The planner exports it
with the due and age coefficients zeroed and adds those two terms back here,
evaluated at the instant a slot is being filled, so a task grows more urgent
as the plan moves towards its due date.

Score formula:
    urgency = base + due * urgency.due.coefficient + age * urgency.age.coefficient
"""

from datetime import datetime, timedelta

from dayplan.core.config import UrgencyConfig
from dayplan.core.models import Task


ONE_DAY = timedelta(days=1)

# Undated tasks are treated as due no sooner than this
UNDATED_ENTRY_OFFSET = timedelta(weeks=4)
UNDATED_NOW_OFFSET = timedelta(weeks=1)

DUE_RAMP_START_DAYS = -14.0
DUE_RAMP_END_DAYS = 7.0
DUE_MIN = 0.2
DUE_MAX = 1.0


def target_instant(task: Task, now: datetime) -> datetime:
    """
    Resolve the instant a task should be finished by.

    Uses the earlier of due and target dates. Tasks with neither get a
    synthetic date at least a week from now.
    """
    if task.due is not None and task.target is not None:
        return min(task.due, task.target)
    if task.due is not None:
        return task.due
    if task.target is not None:
        return task.target
    return max(task.entry + UNDATED_ENTRY_OFFSET, now + UNDATED_NOW_OFFSET)


def due_component(task: Task, now: datetime) -> float:
    """
    Calculate due-date pressure (0.2-1.0).

    Scoring:
        - 7 or more days overdue: 1.0
        - Between 14 days early and 7 days overdue: linear from 0.2 to 1.0
        - More than 14 days early: 0.2

    Args:
        task: Task to score
        now: Instant the score is evaluated at

    Returns:
        Due component between 0.2 and 1.0
    """
    days_overdue = (now - target_instant(task, now)) / ONE_DAY

    if days_overdue >= DUE_RAMP_END_DAYS:
        return DUE_MAX
    elif days_overdue >= DUE_RAMP_START_DAYS:
        span = DUE_RAMP_END_DAYS - DUE_RAMP_START_DAYS
        return DUE_MIN + (days_overdue - DUE_RAMP_START_DAYS) * (DUE_MAX - DUE_MIN) / span
    else:
        return DUE_MIN


def age_component(task: Task, now: datetime, config: UrgencyConfig) -> float:
    """Linear ramp from 0 to 1 over urgency.age.max days; 1.0 past it or when the window is 0."""
    age = (now - task.entry) / ONE_DAY

    if config.urgency_age_max == 0 or age > config.urgency_age_max:
        return 1.0
    return age / config.urgency_age_max


def urgency_at(task: Task, now: datetime, config: UrgencyConfig) -> float:
    """Urgency of a task at a given instant."""
    return (
        task.base_urgency
        + due_component(task, now) * config.urgency_due_coefficient
        + age_component(task, now, config) * config.urgency_age_coefficient
    )
