"""
Input gathering for a planning run.

Fetches calendar busy times and Taskwarrior tasks in parallel, then assembles
a Scheduler from them. Both fetches must succeed; the first failure aborts
the run.
"""

import logging
import os
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Tuple

from dayplan.core.config import Config, UrgencyConfig
from dayplan.core.errors import ConfigError, FetchError, TaskParseError
from dayplan.core.models import Task
from dayplan.integrations.caldotcom import CalDotComClient
from dayplan.integrations.taskwarrior import TaskwarriorClient
from dayplan.scheduling.scheduler import Scheduler

logger = logging.getLogger(__name__)


# The scheduler recomputes due and age urgency per slot, and handles
# dependencies itself, so Taskwarrior must leave these terms out.
EXPORT_URGENCY_OVERRIDES = {
    "due": 0.0,
    "age": 0.0,
    "blocked": 0.0,
    "blocking": 0.0,
}


@dataclass
class PlannerInputs:
    """Everything fetched from outside before scheduling starts."""
    urgency_config: UrgencyConfig
    busy_times: List[Tuple[datetime, datetime]] = field(default_factory=list)
    tasks: List[Task] = field(default_factory=list)


def fetch_busy_times(settings: Config, start: datetime, end: datetime) -> List[Tuple[datetime, datetime]]:
    """Busy intervals from the configured calendar provider."""
    provider = settings.get_calendar_provider()

    if provider == "none":
        logger.info("No calendar provider configured, skipping busy times")
        return []

    if provider == "caldotcom":
        token_env = settings.get("caldotcom_token_env")
        token = os.environ.get(token_env)
        if not token:
            raise ConfigError(f"Cal.com token not set; export {token_env}")
        return CalDotComClient(token).busy_times(start, end, settings.get_timezone_name())

    # Lazy import (google libraries take a while to load)
    from dayplan.integrations.google_calendar import GoogleCalendarClient

    client = GoogleCalendarClient(settings.get("google_credentials_dir"))
    if not client.authenticate():
        raise FetchError("calendar", "Google Calendar authentication failed")
    return client.busy_times(start, end, settings.get("google_calendar_ids"))


def fetch_tasks(settings: Config) -> Tuple[UrgencyConfig, List[Task]]:
    """Urgency config and exported tasks from Taskwarrior."""
    client = TaskwarriorClient(settings.get("taskwarrior_binary"))
    urgency_config = client.fetch_config()

    builder = client.export()
    for key, value in EXPORT_URGENCY_OVERRIDES.items():
        builder.with_urgency_coefficient(key, value)
    for task_filter in settings.get("task_filters"):
        builder.with_filter(task_filter)

    try:
        tasks = builder.call()
    except TaskParseError as e:
        raise FetchError("tasks", str(e), e) from e

    return urgency_config, tasks


def fetch_inputs(settings: Config, start: datetime, end: datetime) -> PlannerInputs:
    """
    Fetch calendar and task data concurrently.

    Args:
        settings: Planner settings
        start: Start of the planning horizon
        end: End of the planning horizon

    Returns:
        PlannerInputs with busy times, urgency config and tasks

    Raises:
        FetchError: If either fetch fails
        ConfigError: If settings needed for a fetch are missing or invalid
    """
    executor = ThreadPoolExecutor(max_workers=2)
    try:
        calendar_future = executor.submit(fetch_busy_times, settings, start, end)
        tasks_future = executor.submit(fetch_tasks, settings)

        done, _ = wait([calendar_future, tasks_future], return_when=FIRST_EXCEPTION)
        for future in done:
            error = future.exception()
            if error is not None:
                raise error

        busy_times = calendar_future.result()
        urgency_config, tasks = tasks_future.result()
    finally:
        # On failure, return without waiting for the other fetch to finish
        executor.shutdown(wait=False, cancel_futures=True)

    logger.info(f"Fetched {len(busy_times)} busy times and {len(tasks)} tasks")
    return PlannerInputs(urgency_config=urgency_config, busy_times=busy_times, tasks=tasks)


def build_scheduler(settings: Config, inputs: PlannerInputs, start: datetime) -> Scheduler:
    """
    Create a scheduler ready to run.

    Seeds off-hours from the settings, blocks every busy time and registers
    pending tasks only.
    """
    work_start, work_end = settings.get_work_hours()
    scheduler = Scheduler.for_horizon(
        start,
        settings.get_days_out(),
        settings.get_work_days(),
        work_start,
        work_end,
        inputs.urgency_config,
    )

    for busy_start, busy_end in inputs.busy_times:
        scheduler.block(busy_start, busy_end)

    pending = [task for task in inputs.tasks if task.is_pending()]
    for task in pending:
        scheduler.register(task)

    logger.info(f"Registered {len(pending)} of {len(inputs.tasks)} tasks")
    return scheduler
