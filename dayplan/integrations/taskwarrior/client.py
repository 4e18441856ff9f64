"""
Taskwarrior client for the day planner.

Shells out to the `task` binary to export pending tasks as JSON and to read
the urgency coefficients from Taskwarrior's configuration.

Usage:
    client = TaskwarriorClient("task")
    config = client.fetch_config()
    tasks = (
        client.export()
        .with_urgency_coefficient("due", 0.0)
        .with_filter("status:pending")
        .call()
    )
"""

import json
import logging
import subprocess
from typing import Dict, List, Optional

from dayplan.core.config import UrgencyConfig
from dayplan.core.errors import FetchError
from dayplan.core.models import Task

logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT = 30  # seconds


def run_taskwarrior(binary: str, args: List[str], timeout: float = DEFAULT_TIMEOUT) -> str:
    """
    Run the task binary and return its stdout.

    Raises:
        FetchError: If the binary is missing, times out or exits non-zero
    """
    command = [binary, *args]
    logger.debug(f"Running {' '.join(command)}")

    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            timeout=timeout
        )
    except FileNotFoundError as e:
        raise FetchError("tasks", f"taskwarrior binary not found: {binary}", e) from e
    except subprocess.TimeoutExpired as e:
        raise FetchError("tasks", f"{binary} timed out after {timeout}s", e) from e

    if result.returncode != 0:
        error_msg = result.stderr.strip() or f"exit status {result.returncode}"
        raise FetchError("tasks", f"{binary} {' '.join(args)} failed: {error_msg}")

    return result.stdout


class ExportBuilder:
    """Builds and runs one `task export` invocation."""

    def __init__(self, binary: str, timeout: float = DEFAULT_TIMEOUT):
        self.binary = binary
        self.timeout = timeout
        self.urgency_coefficients: Dict[str, float] = {}
        self.filters: List[str] = []

    def with_urgency_coefficient(self, key: str, value: float) -> 'ExportBuilder':
        """Override urgency.<key>.coefficient for this export only"""
        self.urgency_coefficients[key] = value
        return self

    def with_filter(self, task_filter: str) -> 'ExportBuilder':
        self.filters.append(task_filter)
        return self

    def arguments(self) -> List[str]:
        """Command-line arguments, without the binary"""
        args = [
            f"rc.urgency.{key}.coefficient={value}"
            for key, value in self.urgency_coefficients.items()
        ]
        args.extend(self.filters)
        args.append("export")
        return args

    def call(self) -> List[Task]:
        """
        Run the export and parse it.

        Returns:
            Tasks in export order

        Raises:
            FetchError: If the command fails or its output is not a JSON array
            TaskParseError: If a record cannot be turned into a Task
        """
        output = run_taskwarrior(self.binary, self.arguments(), self.timeout)

        try:
            records = json.loads(output)
        except json.JSONDecodeError as e:
            raise FetchError("tasks", f"could not deserialize tasks: {e}", e) from e

        if not isinstance(records, list):
            raise FetchError("tasks", "could not deserialize tasks: expected a JSON array")

        tasks = [Task.from_export(record) for record in records]
        logger.info(f"Exported {len(tasks)} tasks")
        return tasks


class TaskwarriorClient:
    """
    Taskwarrior command-line client.
    """

    def __init__(self, binary: str = "task", timeout: Optional[float] = None):
        """
        Initialize the client.

        Args:
            binary: Path or name of the `task` executable
            timeout: Per-command timeout in seconds
        """
        self.binary = binary
        self.timeout = timeout or DEFAULT_TIMEOUT

    def export(self) -> ExportBuilder:
        return ExportBuilder(self.binary, self.timeout)

    def fetch_config(self) -> UrgencyConfig:
        """
        Read the urgency coefficients from Taskwarrior's configuration.

        Raises:
            FetchError: If `task _show` fails
            ConfigParseError: If a coefficient is not a number
        """
        output = run_taskwarrior(self.binary, ["_show"], self.timeout)
        config = UrgencyConfig.parse(output)
        logger.info(f"Loaded urgency config: {config}")
        return config
