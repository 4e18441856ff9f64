#!/usr/bin/env python3
"""
Day Planner - Command Line Interface
Builds a time-ordered plan for the coming days from Taskwarrior tasks and
calendar busy times
"""

import logging
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent))

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from dayplan.core import Config, PlannerError
from dayplan.display import PlanFormatter
from dayplan.fetch import build_scheduler, fetch_inputs
from dayplan.integrations.taskwarrior import TaskwarriorClient

# Initialize CLI app and console
app = typer.Typer(help="Day Planner - schedule your tasks around your calendar")

console = Console()
err_console = Console(stderr=True)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(verbose: bool) -> None:
    """Log to stderr; INFO and up with --verbose, warnings otherwise."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )


def load_settings(
    config_dir: Optional[Path],
    days_out: Optional[int] = None,
    taskwarrior_binary: Optional[str] = None,
    calendar: Optional[str] = None,
) -> Config:
    """Load the settings file and apply command-line overrides for this run."""
    settings = Config(config_dir)
    if days_out is not None:
        settings.override("days_out", days_out)
    if taskwarrior_binary is not None:
        settings.override("taskwarrior_binary", taskwarrior_binary)
    if calendar is not None:
        settings.override("calendar_provider", calendar)
    return settings


def fail(message: str) -> None:
    """Print a single diagnostic line and exit non-zero."""
    err_console.print(f"[red]✗[/red] {escape(message)}")
    raise typer.Exit(1)


@app.command()
def plan(
    days_out: Optional[int] = typer.Option(None, "--days-out", "-d", help="Number of days to plan (default: 7)"),
    taskwarrior_binary: Optional[str] = typer.Option(None, "--taskwarrior-binary", help="The `task` binary to use"),
    calendar: Optional[str] = typer.Option(None, "--calendar", "-c", help="Calendar provider (caldotcom, google, none)"),
    config_dir: Optional[Path] = typer.Option(None, "--config-dir", help="Settings directory"),
    plain: bool = typer.Option(False, "--plain", help="Print without colors"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress to stderr"),
):
    """
    Build and print the plan

    Fetches busy times and pending tasks, then fills every free slot in work
    hours with the most urgent task that can be worked on.

    Example:
      planner plan --days-out 3 --calendar none
    """
    configure_logging(verbose)

    try:
        settings = load_settings(config_dir, days_out, taskwarrior_binary, calendar)
        start = datetime.now(settings.get_timezone()).replace(microsecond=0)
        end = start + timedelta(days=settings.get_days_out())

        inputs = fetch_inputs(settings, start, end)
        scheduler = build_scheduler(settings, inputs, start)
        commitments = scheduler.schedule()

    except PlannerError as e:
        fail(str(e))

    PlanFormatter(console).print_plan(commitments, plain=plain)


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """Day Planner - schedule your tasks around your calendar"""
    # `planner` on its own builds the plan with the saved settings
    if ctx.invoked_subcommand is None:
        plan(
            days_out=None,
            taskwarrior_binary=None,
            calendar=None,
            config_dir=None,
            plain=False,
            verbose=False,
        )


@app.command("show-config")
def show_config(
    config_dir: Optional[Path] = typer.Option(None, "--config-dir", help="Settings directory"),
    urgency: bool = typer.Option(False, "--urgency", "-u", help="Also read urgency coefficients from Taskwarrior"),
):
    """
    Show the resolved planner settings

    Example:
      planner show-config --urgency
    """
    try:
        settings = load_settings(config_dir)

        table = Table(title="Settings", show_header=False)
        table.add_column("Key", style="bold")
        table.add_column("Value")
        table.add_row("settings file", str(settings.settings_file))
        for key, value in sorted(settings.settings.items()):
            table.add_row(key, escape(str(value)))

        if urgency:
            urgency_config = TaskwarriorClient(settings.get("taskwarrior_binary")).fetch_config()
            table.add_row("urgency.due.coefficient", str(urgency_config.urgency_due_coefficient))
            table.add_row("urgency.age.coefficient", str(urgency_config.urgency_age_coefficient))
            table.add_row("urgency.age.max", str(urgency_config.urgency_age_max))

    except PlannerError as e:
        fail(str(e))

    console.print(table)


if __name__ == "__main__":
    app()
