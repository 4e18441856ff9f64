"""
Core module for the day planner
Contains configuration, error and model definitions
"""

from .config import Config, UrgencyConfig
from .errors import PlannerError, ConfigError, ConfigParseError, FetchError, TaskParseError
from .models import (
    Task,
    TaskStatus,
    TimedTask,
    Commitment,
    CommitmentKind,
    Blocked,
    Break,
    TaskSlot,
    BLOCKED,
    BREAK,
)

__all__ = [
    'Config', 'UrgencyConfig',
    'PlannerError', 'ConfigError', 'ConfigParseError', 'FetchError', 'TaskParseError',
    'Task', 'TaskStatus', 'TimedTask',
    'Commitment', 'CommitmentKind', 'Blocked', 'Break', 'TaskSlot', 'BLOCKED', 'BREAK',
]
