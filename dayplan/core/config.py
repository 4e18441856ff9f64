"""
Configuration management for the day planner.

Two kinds of configuration live here:
- UrgencyConfig: the urgency coefficients read from Taskwarrior's own
  `key=value` settings
- Config: the planner's settings file (work hours, horizon, data sources)
"""

import json
import logging
import os
from dataclasses import dataclass
from datetime import time, tzinfo
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from dateutil import tz

from .errors import ConfigError, ConfigParseError

logger = logging.getLogger(__name__)


WEEKDAYS = ["mon", "tue", "wed", "thu", "fri", "sat", "sun"]

CALENDAR_PROVIDERS = ("caldotcom", "google", "none")


@dataclass
class UrgencyConfig:
    """Urgency coefficients used when rescoring tasks at a given instant."""
    urgency_due_coefficient: float = 1.0
    urgency_age_coefficient: float = 1.0
    urgency_age_max: float = 365.0

    KEYS = {
        "urgency.due.coefficient": "urgency_due_coefficient",
        "urgency.age.coefficient": "urgency_age_coefficient",
        "urgency.age.max": "urgency_age_max",
    }

    @classmethod
    def parse(cls, text: str) -> 'UrgencyConfig':
        """
        Parse `key=value` lines into an UrgencyConfig.

        Lines without '=' and keys other than the urgency coefficients are
        ignored.

        Raises:
            ConfigParseError: If a coefficient value is not a number
        """
        config = cls()

        for line in text.splitlines():
            if "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            attribute = cls.KEYS.get(key)
            if attribute is None:
                continue

            try:
                setattr(config, attribute, float(value.strip()))
            except ValueError:
                raise ConfigParseError(key, value.strip())

        return config


def default_config_dir() -> Path:
    """Settings directory, overridable through DAYPLAN_CONFIG_DIR"""
    override = os.environ.get("DAYPLAN_CONFIG_DIR")
    if override:
        return Path(override)
    return Path.home() / ".config" / "dayplan"


class Config:
    """Configuration manager for the planner settings file"""

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Initialize configuration manager

        Args:
            config_dir: Path to configuration directory (defaults to ~/.config/dayplan)
        """
        if config_dir is None:
            config_dir = default_config_dir()

        self.config_dir = Path(config_dir)
        self.config_dir.mkdir(parents=True, exist_ok=True)

        self.settings_file = self.config_dir / "settings.json"
        self.settings = self._load_json(self.settings_file, self._default_settings())

    def _load_json(self, file_path: Path, default: Dict[str, Any]) -> Dict[str, Any]:
        """Load JSON file over the defaults, creating it if it doesn't exist"""
        if file_path.exists():
            try:
                with open(file_path, 'r') as f:
                    loaded = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigError(f"invalid settings file {file_path}: {e}")
            merged = dict(default)
            merged.update(loaded)
            return merged
        else:
            # Create file with defaults
            self._save_json(file_path, default)
            return default

    def _save_json(self, file_path: Path, data: Dict[str, Any]) -> None:
        """Save data to JSON file"""
        with open(file_path, 'w') as f:
            json.dump(data, f, indent=2)

    def _default_settings(self) -> Dict[str, Any]:
        """Default planner settings"""
        return {
            "timezone": "local",
            "days_out": 7,
            "work_days": ["mon", "tue", "wed", "thu", "fri"],
            "work_start": "09:00",
            "work_end": "17:30",
            "taskwarrior_binary": "task",
            "task_filters": ["status:pending"],
            "calendar_provider": "caldotcom",
            "caldotcom_token_env": "CALDOTCOM_TOKEN",
            "google_credentials_dir": str(self.config_dir / "google_credentials"),
            "google_calendar_ids": ["primary"],
        }

    def get(self, key: str, default: Any = None) -> Any:
        """Get a setting, or default if it is not set"""
        return self.settings.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a setting and save to disk"""
        self.settings[key] = value
        self._save_json(self.settings_file, self.settings)

    def override(self, key: str, value: Any) -> None:
        """Set a setting for this run only, without saving"""
        self.settings[key] = value

    def get_timezone(self) -> tzinfo:
        """Zone the planning horizon is built in"""
        name = self.settings["timezone"]
        if name == "local":
            return tz.tzlocal()
        zone = tz.gettz(name)
        if zone is None:
            raise ConfigError(f"unknown timezone: {name}")
        return zone

    def get_timezone_name(self) -> str:
        """IANA name of the planning zone, for APIs that want one"""
        name = self.settings["timezone"]
        if name != "local":
            return name
        name = os.environ.get("TZ")
        if not name:
            logger.warning("timezone is \"local\" and $TZ is not set; using UTC as the zone name. "
                           "Set timezone to an IANA name such as Europe/Berlin in settings.json")
            return "UTC"
        return name

    def get_work_days(self) -> List[int]:
        """Work days as weekday numbers (Monday is 0)"""
        days = []
        for day in self.settings["work_days"]:
            key = str(day).strip().lower()[:3]
            if key not in WEEKDAYS:
                raise ConfigError(f"unknown work day: {day}")
            days.append(WEEKDAYS.index(key))
        return days

    def get_work_hours(self) -> Tuple[time, time]:
        """Start and end of the work day"""
        return (
            self._parse_time_of_day(self.settings["work_start"], "work_start"),
            self._parse_time_of_day(self.settings["work_end"], "work_end"),
        )

    def get_days_out(self) -> int:
        days_out = self.settings["days_out"]
        if not isinstance(days_out, int) or days_out < 1:
            raise ConfigError(f"days_out must be a positive integer, got {days_out!r}")
        return days_out

    def get_calendar_provider(self) -> str:
        provider = self.settings["calendar_provider"]
        if provider not in CALENDAR_PROVIDERS:
            raise ConfigError(
                f"unknown calendar provider {provider!r} (expected one of {', '.join(CALENDAR_PROVIDERS)})"
            )
        return provider

    @staticmethod
    def _parse_time_of_day(value: str, name: str) -> time:
        """Parse HH:MM"""
        try:
            hours, minutes = str(value).split(":")
            return time(int(hours), int(minutes))
        except ValueError:
            raise ConfigError(f"{name} must be HH:MM, got {value!r}")
