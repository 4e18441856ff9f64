"""
Scheduling module for the day planner.

Provides the commitment timeline, urgency scoring, the task pool and the
greedy scheduling loop that ties them together.
"""

from .urgency import (
    urgency_at,
    due_component,
    age_component,
    target_instant,
)
from .task_pool import (
    TaskPool,
    DEFAULT_ESTIMATE,
    available_at,
    is_meta,
)
from .timeline import Timeline, simplify
from .scheduler import Scheduler, BREAK_DURATION, META_SLOT

__all__ = [
    # Urgency
    'urgency_at',
    'due_component',
    'age_component',
    'target_instant',
    # Task pool
    'TaskPool',
    'DEFAULT_ESTIMATE',
    'available_at',
    'is_meta',
    # Timeline
    'Timeline',
    'simplify',
    # Scheduler
    'Scheduler',
    'BREAK_DURATION',
    'META_SLOT',
]
