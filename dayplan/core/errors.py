"""
Error types for the day planner.

Anything raised from here is fatal to a planning run: the CLI reports it as a
single diagnostic line and exits non-zero. The scheduling loop itself never
raises these.
"""

from typing import Optional


class PlannerError(Exception):
    """Base class for all fatal planner errors."""
    pass


class ConfigError(PlannerError):
    """Raised when planner settings hold a value that cannot be used."""
    pass


class ConfigParseError(ConfigError):
    """Raised when an urgency coefficient is not a number."""
    def __init__(self, key: str, value: str):
        self.key = key
        self.value = value
        super().__init__(f"could not parse {key}: {value!r} is not a number")


class TaskParseError(PlannerError):
    """Raised when a task export record is missing fields or malformed."""
    pass


class FetchError(PlannerError):
    """Raised when an upstream fetch (calendar or task store) fails."""
    def __init__(self, source: str, message: str, cause: Optional[BaseException] = None):
        self.source = source
        self.message = message
        self.cause = cause
        super().__init__(f"could not fetch {source}: {message}")
