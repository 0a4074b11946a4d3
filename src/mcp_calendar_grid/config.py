"""YAML configuration loading for the calendar grid engine."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

import yaml

from .engine.availability import AvailabilityChecker
from .engine.conflicts import ConflictDetector
from .engine.grid import GridBuilder
from .engine.navigator import Navigator
from .engine.timebasis import TimeBasis, parse_utc_offset, parse_weekday, validate_hour_range
from .session import AuthoritativeSource, ConflictCheckSession

logger = logging.getLogger("mcp-calendar-grid")

CONFIG_PATH = os.environ.get("CALENDAR_GRID_CONFIG", "/config/calendar_grid.yaml")

VALID_KEYS = {"utc_offset", "week_starts_on", "start_hour", "end_hour", "allow_adjacent", "debounce_ms"}


@dataclass
class EngineSettings:
    """Construction-time inputs of the engine."""

    utc_offset: str = "+09:00"  # JST
    week_starts_on: int = 6  # Sunday
    start_hour: int = 8
    end_hour: int = 18
    allow_adjacent: bool = True
    debounce_ms: int = 300

    def basis(self) -> TimeBasis:
        return TimeBasis.from_string(self.utc_offset)

    def navigator(self) -> Navigator:
        return Navigator(self.basis())

    def grid_builder(self) -> GridBuilder:
        return GridBuilder(self.basis(), self.week_starts_on, self.start_hour, self.end_hour)

    def conflict_detector(self) -> ConflictDetector:
        return ConflictDetector(self.basis(), self.allow_adjacent)

    def availability_checker(self) -> AvailabilityChecker:
        return AvailabilityChecker()

    def check_session(self, authoritative: AuthoritativeSource | None = None) -> ConflictCheckSession:
        return ConflictCheckSession(
            self.conflict_detector(),
            self.availability_checker(),
            debounce_seconds=self.debounce_ms / 1000,
            authoritative=authoritative,
        )


def _require_int(key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Engine setting '{key}' must be an integer, got {value!r}")
    return value


def parse_settings(raw: dict[str, Any]) -> EngineSettings:
    """Validate an ``engine:`` mapping. Unset keys keep their defaults."""
    unknown = set(raw) - VALID_KEYS
    if unknown:
        raise ValueError(f"Unknown engine setting(s): {sorted(unknown)}. Must be one of: {sorted(VALID_KEYS)}")

    settings = EngineSettings()

    if "utc_offset" in raw:
        offset = str(raw["utc_offset"]).strip()
        parse_utc_offset(offset)
        settings.utc_offset = offset

    if "week_starts_on" in raw:
        settings.week_starts_on = parse_weekday(raw["week_starts_on"])

    if "start_hour" in raw:
        settings.start_hour = _require_int("start_hour", raw["start_hour"])
    if "end_hour" in raw:
        settings.end_hour = _require_int("end_hour", raw["end_hour"])
    try:
        validate_hour_range(settings.start_hour, settings.end_hour)
    except ValueError as e:
        raise ValueError(f"Engine hour range: {e}") from e

    if "allow_adjacent" in raw:
        if not isinstance(raw["allow_adjacent"], bool):
            raise ValueError(f"Engine setting 'allow_adjacent' must be true or false, got {raw['allow_adjacent']!r}")
        settings.allow_adjacent = raw["allow_adjacent"]

    if "debounce_ms" in raw:
        debounce = _require_int("debounce_ms", raw["debounce_ms"])
        if debounce < 0:
            raise ValueError(f"Engine setting 'debounce_ms' must not be negative, got {debounce}")
        settings.debounce_ms = debounce

    return settings


def load_config() -> EngineSettings:
    """Load and validate calendar_grid.yaml.

    A missing file or missing ``engine`` key yields the defaults.
    """
    path = CONFIG_PATH
    if not os.path.isfile(path):
        logger.warning("Config file not found: %s (using defaults)", path)
        return EngineSettings()

    with open(path, "r") as f:
        raw = yaml.safe_load(f)

    if not raw or "engine" not in raw:
        logger.warning("No 'engine' key in config file (using defaults)")
        return EngineSettings()

    if not isinstance(raw["engine"], dict):
        raise ValueError("'engine' must be a mapping")

    return parse_settings(raw["engine"])
