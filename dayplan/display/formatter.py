"""
Rich formatter for the day plan.

Renders one line per commitment, in chronological order. Fixed blocks and
breaks are shown as bracketed banners, task slots as dated lines.
"""

from datetime import timedelta
from typing import Iterable, List, Optional

from rich.console import Console
from rich.text import Text

from dayplan.core.models import Blocked, Break, Commitment, TaskSlot


DURATION_WIDTH = 6

META_MARKER = "META — "

# Styles per commitment kind
KIND_STYLES = {
    Blocked: "dim",
    Break: "cyan",
    TaskSlot: "bold",
}


def format_duration(duration: timedelta) -> str:
    """Format duration as 45m, 2h or 1h30m."""
    minutes = int(duration.total_seconds()) // 60
    if minutes < 60:
        return f"{minutes}m"
    hours = minutes // 60
    mins = minutes % 60
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h{mins}m"


def format_commitment(commitment: Commitment) -> str:
    """Plain-text line for a single commitment."""
    kind = commitment.kind
    start = commitment.start
    duration = format_duration(commitment.duration)

    if isinstance(kind, Blocked):
        return f"[ {start.strftime('%a %H:%M')} blocked for {duration} ]"
    elif isinstance(kind, Break):
        return f"[ {start.strftime('%a %H:%M')} break for {duration} ]"
    elif isinstance(kind, TaskSlot):
        marker = META_MARKER if kind.is_meta else ""
        return (
            f"{start.strftime('%Y-%m-%d')} {start.strftime('%H:%M')} "
            f"{duration:>{DURATION_WIDTH}}  {marker}{kind.name}"
        )
    raise TypeError(f"unknown commitment kind: {kind!r}")


class PlanFormatter:
    """
    Rich-based formatter for a finished plan.
    """

    def __init__(self, console: Optional[Console] = None):
        """
        Initialize formatter.

        Args:
            console: Rich Console instance (creates default if not provided)
        """
        self.console = console or Console()

    def render_lines(self, commitments: Iterable[Commitment]) -> List[str]:
        """Plain-text lines for every commitment."""
        return [format_commitment(commitment) for commitment in commitments]

    def render(self, commitments: Iterable[Commitment]) -> List[Text]:
        """Styled lines for every commitment."""
        return [
            Text(format_commitment(commitment), style=KIND_STYLES[type(commitment.kind)])
            for commitment in commitments
        ]

    def print_plan(self, commitments: Iterable[Commitment], plain: bool = False) -> None:
        """
        Print the plan to the console.

        Args:
            commitments: Final commitment list
            plain: Print without styling
        """
        commitments = list(commitments)
        if not commitments:
            self.console.print("[dim]Nothing to schedule.[/dim]")
            return

        if plain:
            for line in self.render_lines(commitments):
                self.console.print(line, markup=False, highlight=False)
            return

        for line in self.render(commitments):
            self.console.print(line, highlight=False)
