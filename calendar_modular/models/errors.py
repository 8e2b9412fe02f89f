# File: calendar_modular/models/errors.py
"""
Validation errors raised by the block model constructors.
"""


class ScheduleValidationError(ValueError):
    """Base class for records that must never enter the block model."""


class InvalidInterval(ScheduleValidationError):
    """Start is not strictly before end."""


class InvalidRecurrencePattern(ScheduleValidationError):
    """Empty or unrecognized day-of-week pattern."""
