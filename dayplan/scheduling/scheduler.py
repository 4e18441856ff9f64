"""
Greedy day scheduler.

Walks the timeline from the start of the horizon, and fills every gap between
fixed commitments with the most urgent eligible task. Gaps too short to work
in become breaks. Scheduling stops when the horizon is used up or when no
task is eligible for the current gap.
"""

import logging
from datetime import datetime, time, timedelta
from typing import Iterable, List, Optional

from dayplan.core.config import UrgencyConfig
from dayplan.core.models import BREAK, Commitment, Task, TaskSlot
from dayplan.scheduling.task_pool import TaskPool, is_meta
from dayplan.scheduling.timeline import Timeline

logger = logging.getLogger(__name__)


BREAK_DURATION = timedelta(minutes=5)
META_SLOT = timedelta(minutes=10)
ZERO = timedelta(0)


class Scheduler:
    """
    All state for one planning run.

    Built fresh for every run: seed the timeline, block external busy times,
    register tasks, then call `schedule()` once.
    """

    def __init__(
        self,
        horizon_start: datetime,
        horizon_end: datetime,
        work_days: Iterable[int],
        work_start: time,
        work_end: time,
        config: Optional[UrgencyConfig] = None,
    ):
        """
        Initialize scheduler.

        Args:
            horizon_start: Start of the planning window (its zone is used for days)
            horizon_end: End of the planning window
            work_days: Weekday numbers (Monday is 0) that have work hours
            work_start: Time of day work starts
            work_end: Time of day work ends
            config: Urgency coefficients
        """
        self.horizon_start = horizon_start
        self.horizon_end = horizon_end
        self.config = config or UrgencyConfig()
        self.pool = TaskPool(self.config)
        self.timeline = Timeline.for_work_hours(
            horizon_start, horizon_end, work_days, work_start, work_end
        )

    @classmethod
    def for_horizon(
        cls,
        start: datetime,
        days_out: int,
        work_days: Iterable[int],
        work_start: time,
        work_end: time,
        config: Optional[UrgencyConfig] = None,
    ) -> 'Scheduler':
        """Create a scheduler planning `days_out` days from `start`"""
        return cls(start, start + timedelta(days=days_out), work_days, work_start, work_end, config)

    @property
    def commitments(self) -> List[Commitment]:
        return self.timeline.commitments

    def block(self, start: datetime, end: datetime) -> None:
        """Mark an external busy interval"""
        self.timeline.block(start, end)

    def register(self, task: Task) -> None:
        """Make a task available for scheduling"""
        self.pool.register(task)

    def schedule(self) -> List[Commitment]:
        """
        Fill the horizon with tasks and breaks.

        `index` always points at the first commitment starting after `now`;
        everything before it is final.

        A gap that opens before `horizon_end` is filled up to the next
        commitment, so the last slots may end after `horizon_end`. Only
        once all commitments are used up does `horizon_end` bound a gap.

        Returns:
            The final commitment list, in chronological order
        """
        self.timeline.simplify()

        commitments = list(self.timeline.commitments)
        now = self.horizon_start
        index = 0
        placements = 0

        while True:
            # Skip past every commitment that has already started
            while index < len(commitments) and commitments[index].start <= now:
                now = max(now, commitments[index].end)
                index += 1

            if now >= self.horizon_end:
                logger.info("Horizon exhausted")
                break

            if index < len(commitments):
                next_fixed = commitments[index].start
            else:
                next_fixed = self.horizon_end
            gap = next_fixed - now

            exhausted = False
            while gap > ZERO:
                if gap <= BREAK_DURATION:
                    commitments.insert(index, Commitment(start=now, end=now + gap, kind=BREAK))
                    index += 1
                    now += gap
                    gap = ZERO
                    continue

                timed = self.pool.best_task_at(now)
                if timed is None:
                    exhausted = True
                    break

                meta = is_meta(timed.task)
                if meta:
                    duration = min(gap, META_SLOT)
                else:
                    duration = min(timed.remaining_time, gap)

                commitments.insert(index, Commitment(
                    start=now,
                    end=now + duration,
                    kind=TaskSlot(id=timed.id, name=timed.task.description, is_meta=meta),
                ))
                logger.debug(f"Placed {timed.task.description!r} at {now} for {duration}")
                index += 1
                now += duration
                gap -= duration
                placements += 1

                # A meta task is resolved by a single check-in, whatever the slot length
                self.pool.consume(timed, timed.remaining_time if meta else duration)

            if exhausted:
                logger.info(f"No eligible task at {now}, stopping")
                break

        self.timeline.commitments = commitments
        logger.info(f"Scheduled {placements} task slots across {len(commitments)} commitments")
        return commitments
