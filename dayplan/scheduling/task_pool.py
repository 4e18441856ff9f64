"""
Task pool for the scheduler.

Tracks how much work remains for each registered task and picks the most
urgent task that can be worked on at a given instant.

Selection contract:
    A task is eligible when it has remaining time, its wait date (if any)
    has passed, and none of its dependencies are still outstanding. Among
    eligible tasks the highest urgency wins; ties go to the task entered
    first, then to the lexicographically smaller id.
"""

import logging
from datetime import datetime, timedelta
from typing import AbstractSet, Dict, Iterator, Optional, Set

from dayplan.core.config import UrgencyConfig
from dayplan.core.models import Task, TimedTask
from dayplan.scheduling.urgency import urgency_at

logger = logging.getLogger(__name__)


DEFAULT_ESTIMATE = timedelta(minutes=10)
ZERO = timedelta(0)


def available_at(task: Task, when: datetime) -> bool:
    """Check if a task's wait date has passed"""
    return task.wait is None or task.wait <= when


def is_meta(task: Task) -> bool:
    """Tasks with dependencies stand for a parent item rather than literal work"""
    return bool(task.depends)


class TaskPool:
    """
    Remaining-work bookkeeping for one planning run.

    `outstanding_ids` always equals the ids whose remaining time is above
    zero. It is only ever changed by `register` and `consume`.
    """

    def __init__(self, config: Optional[UrgencyConfig] = None):
        """
        Initialize task pool.

        Args:
            config: Urgency coefficients (defaults to Taskwarrior's defaults)
        """
        self.config = config or UrgencyConfig()
        self._tasks: Dict[str, TimedTask] = {}
        self._outstanding: Set[str] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    def __iter__(self) -> Iterator[TimedTask]:
        return iter(self._tasks.values())

    @property
    def outstanding_ids(self) -> AbstractSet[str]:
        """Read-only view of the ids that still have work remaining"""
        return frozenset(self._outstanding)

    def get(self, task_id: str) -> Optional[TimedTask]:
        return self._tasks.get(task_id)

    def remaining(self, task_id: str) -> timedelta:
        """Remaining time for a task (zero for unknown ids)"""
        timed = self._tasks.get(task_id)
        return timed.remaining_time if timed else ZERO

    def register(self, task: Task) -> TimedTask:
        """
        Add a task to the pool, replacing any task with the same id.

        Tasks without an estimate (or with a zero one) get DEFAULT_ESTIMATE.
        """
        timed = TimedTask(task=task, remaining_time=task.estimate or DEFAULT_ESTIMATE)
        self._tasks[task.id] = timed
        self._outstanding.add(task.id)
        logger.debug(f"Registered task {task.id} ({task.description!r}) for {timed.remaining_time}")
        return timed

    def is_eligible(
        self,
        timed: TimedTask,
        when: datetime,
        outstanding_ids: Optional[AbstractSet[str]] = None,
    ) -> bool:
        """Check if a task can be worked on at `when`"""
        if outstanding_ids is None:
            outstanding_ids = self._outstanding
        return (
            timed.remaining_time > ZERO
            and available_at(timed.task, when)
            and outstanding_ids.isdisjoint(timed.task.depends)
        )

    def best_task_at(
        self,
        when: datetime,
        outstanding_ids: Optional[AbstractSet[str]] = None,
    ) -> Optional[TimedTask]:
        """
        Pick the most urgent eligible task at `when`.

        Args:
            when: Instant the slot being filled starts at
            outstanding_ids: Ids treated as unresolved dependencies
                (defaults to the pool's own outstanding set)

        Returns:
            The winning TimedTask, or None if nothing is eligible
        """
        best: Optional[TimedTask] = None
        best_key = None

        for timed in self._tasks.values():
            if not self.is_eligible(timed, when, outstanding_ids):
                continue

            key = (-urgency_at(timed.task, when, self.config), timed.task.entry, timed.id)
            if best_key is None or key < best_key:
                best, best_key = timed, key

        return best

    def consume(self, timed: TimedTask, amount: timedelta) -> None:
        """Deduct scheduled time from a task, retiring it once nothing is left"""
        timed.remaining_time = max(ZERO, timed.remaining_time - amount)
        if timed.remaining_time == ZERO:
            self._outstanding.discard(timed.id)
