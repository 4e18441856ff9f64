"""
Unit tests for the scheduling loop.
Tests end-to-end plans, breaks, meta tasks, dependencies and termination.
"""

import pytest
from datetime import datetime, time, timedelta, timezone

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent.parent))

from dayplan.core.config import UrgencyConfig
from dayplan.core.models import BLOCKED, BREAK, Blocked, Break, Commitment, Task, TaskSlot
from dayplan.scheduling.scheduler import BREAK_DURATION, META_SLOT, Scheduler


# Monday
DAY = datetime(2026, 10, 19, 0, 0, tzinfo=timezone.utc)
WORK_START = DAY.replace(hour=9)
WORK_END = DAY.replace(hour=17)
WEEKDAYS = [0, 1, 2, 3, 4]

FLAT_URGENCY = UrgencyConfig(urgency_due_coefficient=0.0, urgency_age_coefficient=0.0)


def make_task(task_id: str, minutes: int = 10, **kwargs) -> Task:
    defaults = {
        "id": task_id,
        "description": f"Task {task_id}",
        "entry": DAY - timedelta(days=1),
        "estimate": timedelta(minutes=minutes),
    }
    defaults.update(kwargs)
    return Task(**defaults)


def make_scheduler(days: int = 1, config: UrgencyConfig = FLAT_URGENCY, start: datetime = DAY) -> Scheduler:
    return Scheduler(
        start,
        DAY + timedelta(days=days),
        WEEKDAYS,
        time(9, 0),
        time(17, 0),
        config,
    )


def task_slots(commitments):
    return [c for c in commitments if isinstance(c.kind, TaskSlot)]


class TestScenarios:
    """End-to-end planning scenarios."""

    def test_single_task_workday(self):
        """One task fills its estimate at work start, then scheduling stops."""
        scheduler = make_scheduler(config=UrgencyConfig())
        scheduler.register(make_task("a", minutes=20, base_urgency=5.0))

        plan = scheduler.schedule()

        assert plan == [
            Commitment(DAY, WORK_START, BLOCKED),
            Commitment(WORK_START, WORK_START + timedelta(minutes=20), TaskSlot("a", "Task a", False)),
            Commitment(WORK_END, DAY + timedelta(days=1), BLOCKED),
        ]

    def test_busy_time_pushes_first_task_back(self):
        scheduler = make_scheduler()
        scheduler.block(WORK_START, WORK_START + timedelta(minutes=30))
        scheduler.register(make_task("a", minutes=20, base_urgency=5.0))

        plan = scheduler.schedule()

        assert plan[0] == Commitment(DAY, WORK_START + timedelta(minutes=30), BLOCKED)
        assert plan[1].start == WORK_START + timedelta(minutes=30)
        assert plan[1].kind.id == "a"

    def test_no_tasks_leaves_only_blocks(self):
        scheduler = make_scheduler()
        plan = scheduler.schedule()
        assert all(isinstance(c.kind, Blocked) for c in plan)
        assert len(plan) == 2

    def test_tasks_fill_in_urgency_order(self):
        scheduler = make_scheduler()
        scheduler.register(make_task("low", minutes=30, base_urgency=1.0))
        scheduler.register(make_task("high", minutes=30, base_urgency=9.0))

        slots = task_slots(scheduler.schedule())

        assert [s.kind.id for s in slots] == ["high", "low"]
        assert slots[0].start == WORK_START
        assert slots[1].start == WORK_START + timedelta(minutes=30)

    def test_schedule_stores_plan_on_scheduler(self):
        scheduler = make_scheduler()
        scheduler.register(make_task("a"))
        plan = scheduler.schedule()
        assert scheduler.commitments == plan


class TestGapFilling:
    """Tests for splitting tasks across gaps and inserting breaks."""

    def test_long_task_is_split_around_meeting(self):
        scheduler = make_scheduler()
        scheduler.block(WORK_START + timedelta(hours=1), WORK_START + timedelta(hours=2))
        scheduler.register(make_task("a", minutes=90))

        slots = task_slots(scheduler.schedule())

        assert [(s.start, s.duration) for s in slots] == [
            (WORK_START, timedelta(hours=1)),
            (WORK_START + timedelta(hours=2), timedelta(minutes=30)),
        ]
        assert scheduler.pool.remaining("a") == timedelta(0)

    def test_short_gap_becomes_break(self):
        scheduler = make_scheduler()
        # 63 minutes of work time before a meeting: 60 of work, 3 of break
        scheduler.block(WORK_START + timedelta(minutes=63), WORK_START + timedelta(hours=2))
        scheduler.register(make_task("a", minutes=60))
        scheduler.register(make_task("b", minutes=60, base_urgency=-1.0))

        plan = scheduler.schedule()
        breaks = [c for c in plan if isinstance(c.kind, Break)]

        assert breaks[0] == Commitment(
            WORK_START + timedelta(minutes=60), WORK_START + timedelta(minutes=63), BREAK
        )

    def test_gap_of_exactly_break_duration_is_a_break(self):
        scheduler = make_scheduler()
        scheduler.block(WORK_START + BREAK_DURATION, WORK_END)
        scheduler.register(make_task("a"))

        plan = scheduler.schedule()

        assert Commitment(WORK_START, WORK_START + BREAK_DURATION, BREAK) in plan
        assert task_slots(plan) == []

    def test_breaks_are_placed_even_with_no_tasks(self):
        scheduler = make_scheduler()
        scheduler.block(WORK_START + timedelta(minutes=2), WORK_END)
        plan = scheduler.schedule()
        assert Commitment(WORK_START, WORK_START + timedelta(minutes=2), BREAK) in plan

    def test_only_waiting_tasks_ends_the_plan(self):
        scheduler = make_scheduler(days=2)
        scheduler.register(make_task("a", wait=DAY + timedelta(days=1, hours=10)))

        # Nothing is eligible at the first work slot, so scheduling stops
        assert task_slots(scheduler.schedule()) == []

    def test_horizon_mid_day_starts_at_horizon(self):
        start = DAY.replace(hour=11, minute=7)
        scheduler = make_scheduler(start=start)
        scheduler.register(make_task("a", minutes=20))

        slots = task_slots(scheduler.schedule())

        assert slots[0].start == start

    def test_last_gap_runs_to_next_commitment(self):
        """A gap opening before the horizon end is filled up to the end of work."""
        horizon_end = DAY.replace(hour=14)
        scheduler = Scheduler(DAY, horizon_end, WEEKDAYS, time(9), time(17), FLAT_URGENCY)
        for task_id in "abcdef":
            scheduler.register(make_task(task_id, minutes=90))

        slots = task_slots(scheduler.schedule())

        assert slots[-1].end == WORK_END
        assert sum((slot.duration for slot in slots), timedelta()) == WORK_END - WORK_START
        assert scheduler.pool.remaining("f") == timedelta(minutes=60)


class TestDependencies:
    """Tests for meta tasks and dependency ordering."""

    def test_dependency_is_scheduled_first(self):
        scheduler = make_scheduler()
        scheduler.register(make_task("parent", base_urgency=9.0, depends=frozenset({"child"})))
        scheduler.register(make_task("child", minutes=30, base_urgency=1.0))

        slots = task_slots(scheduler.schedule())

        assert [s.kind.id for s in slots] == ["child", "parent"]
        assert slots[1].start == slots[0].end

    def test_meta_task_gets_short_slot_and_is_fully_consumed(self):
        scheduler = make_scheduler()
        scheduler.register(make_task("parent", minutes=240, depends=frozenset({"done-already"})))

        slots = task_slots(scheduler.schedule())

        assert len(slots) == 1
        assert slots[0].kind.is_meta
        assert slots[0].duration == META_SLOT
        assert scheduler.pool.remaining("parent") == timedelta(0)

    def test_meta_task_in_short_gap_is_still_resolved(self):
        scheduler = make_scheduler()
        scheduler.block(WORK_START + timedelta(minutes=7), WORK_END)
        scheduler.register(make_task("parent", minutes=60, depends=frozenset({"x"})))

        slots = task_slots(scheduler.schedule())

        assert slots[0].duration == timedelta(minutes=7)
        assert scheduler.pool.remaining("parent") == timedelta(0)
        assert "parent" not in scheduler.pool.outstanding_ids


class TestTermination:
    """Tests that scheduling always ends."""

    def test_many_tasks_over_a_week(self):
        scheduler = make_scheduler(days=7, config=UrgencyConfig())
        for i in range(200):
            scheduler.register(make_task(f"t{i:03d}", minutes=7 + i % 50, base_urgency=i % 5))

        plan = scheduler.schedule()

        starts = [c.start for c in plan]
        assert starts == sorted(starts)
        for before, after in zip(plan, plan[1:]):
            assert before.end <= after.start

    def test_plan_never_overlaps_busy_times(self):
        scheduler = make_scheduler(days=2)
        meetings = [
            (WORK_START + timedelta(hours=1), WORK_START + timedelta(hours=2)),
            (WORK_START + timedelta(hours=1, minutes=30), WORK_START + timedelta(hours=3)),
            (WORK_START + timedelta(days=1, hours=4), WORK_START + timedelta(days=1, hours=5)),
        ]
        for start, end in meetings:
            scheduler.block(start, end)
        for i in range(40):
            scheduler.register(make_task(f"t{i:02d}", minutes=25))

        plan = scheduler.schedule()

        for slot in task_slots(plan):
            for start, end in meetings:
                assert slot.end <= start or slot.start >= end
