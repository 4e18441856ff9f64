"""
Commitment timeline.

An ordered list of commitments over a planning horizon. The timeline starts
out with the hours outside the work day blocked, external busy times are
added with `block()`, and `simplify()` merges same-kind commitments that
touch or overlap.
"""

import bisect
import logging
from datetime import date, datetime, time, timedelta
from typing import Iterable, Iterator, List, Optional

from dayplan.core.models import BLOCKED, Commitment

logger = logging.getLogger(__name__)


def simplify(commitments: List[Commitment]) -> List[Commitment]:
    """
    Merge same-kind commitments that touch or overlap.

    Single left-to-right pass: only neighbours are compared, so the input
    must already be sorted by start. Commitments of different kinds are never
    merged and gaps between commitments are left alone.

    Args:
        commitments: Commitments sorted by start

    Returns:
        A new, merged list
    """
    if not commitments:
        return []

    merged: List[Commitment] = []
    current = commitments[0]

    for following in commitments[1:]:
        touches = current.end >= following.start and current.start <= following.end
        if current.kind == following.kind and touches:
            current = Commitment(
                start=min(current.start, following.start),
                end=max(current.end, following.end),
                kind=current.kind,
            )
        else:
            merged.append(current)
            current = following

    merged.append(current)
    return merged


def _midnight(day: date, zone) -> datetime:
    return datetime.combine(day, time(0), tzinfo=zone)


class Timeline:
    """
    Commitments over a [horizon_start, horizon_end) window.

    Commitments are kept in ascending start order. Until `simplify()` runs,
    neighbouring commitments may overlap.
    """

    def __init__(
        self,
        horizon_start: datetime,
        horizon_end: datetime,
        commitments: Optional[Iterable[Commitment]] = None,
    ):
        self.horizon_start = horizon_start
        self.horizon_end = horizon_end
        self.commitments: List[Commitment] = sorted(commitments or [], key=lambda c: c.start)

    @classmethod
    def for_work_hours(
        cls,
        horizon_start: datetime,
        horizon_end: datetime,
        work_days: Iterable[int],
        work_start: time,
        work_end: time,
    ) -> 'Timeline':
        """
        Build a timeline with everything outside work hours blocked.

        For each calendar day touching the horizon, work days get one block
        from midnight to work start and one from work end to the next
        midnight; other days are blocked entirely. Days are computed in the
        horizon start's zone.

        Args:
            horizon_start: Start of the planning window
            horizon_end: End of the planning window
            work_days: Weekday numbers (Monday is 0) that have work hours
            work_start: Time of day work starts
            work_end: Time of day work ends
        """
        zone = horizon_start.tzinfo
        work_days = set(work_days)
        commitments = []

        day = horizon_start.date()
        while _midnight(day, zone) < horizon_end:
            midnight = _midnight(day, zone)
            next_midnight = _midnight(day + timedelta(days=1), zone)

            if day.weekday() in work_days:
                commitments.append(Commitment(
                    start=midnight,
                    end=datetime.combine(day, work_start, tzinfo=zone),
                    kind=BLOCKED,
                ))
                commitments.append(Commitment(
                    start=datetime.combine(day, work_end, tzinfo=zone),
                    end=next_midnight,
                    kind=BLOCKED,
                ))
            else:
                commitments.append(Commitment(start=midnight, end=next_midnight, kind=BLOCKED))

            day += timedelta(days=1)

        logger.debug(f"Seeded timeline with {len(commitments)} off-hours blocks")
        return cls(horizon_start, horizon_end, commitments)

    def __iter__(self) -> Iterator[Commitment]:
        return iter(self.commitments)

    def __len__(self) -> int:
        return len(self.commitments)

    def __getitem__(self, index: int) -> Commitment:
        return self.commitments[index]

    def block(self, start: datetime, end: datetime) -> None:
        """
        Add an externally sourced busy interval.

        Intervals entirely outside the horizon, and empty or inverted ones,
        are ignored. The interval is not clipped or merged here; it is
        inserted before the first commitment starting at or after it.
        """
        if end <= start:
            logger.debug(f"Ignoring empty busy interval {start} - {end}")
            return
        if end <= self.horizon_start or start >= self.horizon_end:
            logger.debug(f"Ignoring busy interval outside the horizon: {start} - {end}")
            return

        starts = [commitment.start for commitment in self.commitments]
        index = bisect.bisect_left(starts, start)
        self.commitments.insert(index, Commitment(start=start, end=end, kind=BLOCKED))

    def simplify(self) -> None:
        """Merge touching or overlapping same-kind commitments in place"""
        before = len(self.commitments)
        self.commitments = simplify(self.commitments)
        logger.debug(f"Simplified timeline from {before} to {len(self.commitments)} commitments")
