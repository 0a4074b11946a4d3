"""Error taxonomy for the calendar engine."""

from __future__ import annotations

from typing import Any


class CalendarEngineError(ValueError):
    """Base class for caller contract violations detected by the engine.

    Errors carry a machine-readable ``kind`` plus the offending values.
    Turning them into user-facing text is the caller's job.
    """

    kind = "engine_error"


class InvalidInterval(CalendarEngineError):
    """An interval whose end is not after its start (or is not tz-aware)."""

    kind = "invalid_interval"

    def __init__(self, start: Any, end: Any, reason: str = "end must be after start"):
        self.start = start
        self.end = end
        self.reason = reason
        super().__init__(f"Invalid interval {start!r} -> {end!r}: {reason}")


class InvalidViewParameters(CalendarEngineError):
    """Out-of-range year, month or hour-range values passed to a grid builder."""

    kind = "invalid_view_parameters"

    def __init__(self, parameter: str, value: Any, reason: str):
        self.parameter = parameter
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {parameter}={value!r}: {reason}")
