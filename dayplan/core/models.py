"""
Data models for the day planner.

Defines the task records imported from Taskwarrior, the mutable wrapper the
scheduler uses to track remaining work, and the commitments that make up a
plan.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Union
import re

from .errors import TaskParseError


# Taskwarrior exports every date in UTC using this compact form
TASKWARRIOR_DATE_FORMAT = "%Y%m%dT%H%M%SZ"

# ISO 8601 durations as written by Taskwarrior for duration UDAs (PT1H30M, P2D, ...)
ISO_DURATION_PATTERN = re.compile(
    r'^P(?:(?P<years>\d+)Y)?(?:(?P<months>\d+)M)?(?:(?P<weeks>\d+)W)?(?:(?P<days>\d+)D)?'
    r'(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+(?:\.\d+)?)S)?)?$'
)


class TaskStatus(Enum):
    """Taskwarrior task status"""
    PENDING = "pending"
    COMPLETED = "completed"
    DELETED = "deleted"
    RECURRING = "recurring"
    WAITING = "waiting"


def parse_taskwarrior_date(value: Optional[str]) -> Optional[datetime]:
    """Parse a Taskwarrior export date (YYYYMMDDTHHMMSSZ) into an aware UTC datetime."""
    if value is None:
        return None
    try:
        return datetime.strptime(value, TASKWARRIOR_DATE_FORMAT).replace(tzinfo=timezone.utc)
    except (ValueError, TypeError):
        raise TaskParseError(f"expected a date in the format YYYYMMDDTHHMMSSZ, got {value!r}")


def parse_iso_duration(value: Optional[str]) -> Optional[timedelta]:
    """
    Parse an ISO 8601 duration into a timedelta.

    Years and months use Taskwarrior's own approximations (365 and 30 days).
    Result is truncated to whole seconds.

    Args:
        value: Duration string such as "PT45M" or "P1DT2H"

    Returns:
        timedelta, or None if value is None
    """
    if value is None:
        return None

    match = ISO_DURATION_PATTERN.match(value) if isinstance(value, str) else None
    if match is None or value in ("P", "PT") or value.endswith("T"):
        raise TaskParseError(f"expected an ISO 8601 duration, got {value!r}")

    parts = {name: float(amount) for name, amount in match.groupdict().items() if amount}
    delta = timedelta(
        days=parts.get("years", 0) * 365 + parts.get("months", 0) * 30
        + parts.get("weeks", 0) * 7 + parts.get("days", 0),
        hours=parts.get("hours", 0),
        minutes=parts.get("minutes", 0),
        seconds=parts.get("seconds", 0),
    )
    return timedelta(seconds=int(delta.total_seconds()))


def _parse_depends(value: Any) -> FrozenSet[str]:
    """Older Taskwarrior releases export depends as a comma-separated string."""
    if not value:
        return frozenset()
    if isinstance(value, str):
        return frozenset(uuid.strip() for uuid in value.split(",") if uuid.strip())
    if isinstance(value, list):
        return frozenset(str(uuid) for uuid in value)
    raise TaskParseError(f"unexpected depends value: {value!r}")


@dataclass
class Task:
    """
    Task data model, as exported by Taskwarrior.

    `id` is the task uuid, which is also what dependencies refer to.
    `number` is the short working-set id Taskwarrior shows to users.
    """
    id: str
    description: str
    entry: datetime
    base_urgency: float = 0.0
    status: TaskStatus = TaskStatus.PENDING
    number: Optional[int] = None
    project: Optional[str] = None
    modified: Optional[datetime] = None
    wait: Optional[datetime] = None
    due: Optional[datetime] = None
    target: Optional[datetime] = None
    estimate: Optional[timedelta] = None
    depends: FrozenSet[str] = field(default_factory=frozenset)

    REQUIRED_FIELDS = ("uuid", "description", "status", "urgency", "entry")

    @classmethod
    def from_export(cls, data: Dict[str, Any]) -> 'Task':
        """Create Task from one record of `task export` output"""
        if not isinstance(data, dict):
            raise TaskParseError(f"task record is not an object: {data!r}")

        missing = [name for name in cls.REQUIRED_FIELDS if name not in data]
        if missing:
            raise TaskParseError(f"task record is missing {', '.join(missing)}: {data!r}")

        try:
            status = TaskStatus(data["status"])
        except ValueError:
            raise TaskParseError(f"unknown task status: {data['status']!r}")

        try:
            base_urgency = float(data["urgency"])
        except (TypeError, ValueError):
            raise TaskParseError(f"urgency is not a number: {data['urgency']!r}")

        number = data.get("id")
        return cls(
            id=str(data["uuid"]),
            description=data["description"],
            entry=parse_taskwarrior_date(data["entry"]),
            base_urgency=base_urgency,
            status=status,
            # Taskwarrior reports id 0 for tasks outside the working set
            number=number if number else None,
            project=data.get("project"),
            modified=parse_taskwarrior_date(data.get("modified")),
            wait=parse_taskwarrior_date(data.get("wait")),
            due=parse_taskwarrior_date(data.get("due")),
            target=parse_taskwarrior_date(data.get("target")),
            estimate=parse_iso_duration(data.get("estimate")),
            depends=_parse_depends(data.get("depends")),
        )

    def is_pending(self) -> bool:
        return self.status is TaskStatus.PENDING


@dataclass
class TimedTask:
    """A task plus the work time the scheduler has yet to place for it."""
    task: Task
    remaining_time: timedelta

    @property
    def id(self) -> str:
        return self.task.id


@dataclass(frozen=True)
class Blocked:
    """Time that is not available for work (off hours, meetings)."""
    pass


@dataclass(frozen=True)
class Break:
    """A short rest filling a gap too small to work in."""
    pass


@dataclass(frozen=True)
class TaskSlot:
    """Time allotted to work on a specific task."""
    id: str
    name: str
    is_meta: bool = False


CommitmentKind = Union[Blocked, Break, TaskSlot]

BLOCKED = Blocked()
BREAK = Break()


@dataclass(frozen=True)
class Commitment:
    """One half-open [start, end) interval on the timeline."""
    start: datetime
    end: datetime
    kind: CommitmentKind

    @property
    def duration(self) -> timedelta:
        return self.end - self.start
