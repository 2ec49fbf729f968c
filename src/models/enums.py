"""
Enumerations for dashboard configuration.

This module contains enums used across dashboard models:
- TabInputType: Value type of a per-tab custom input
"""

from enum import Enum


class TabInputType(str, Enum):
    """
    Value type of a tab input.

    Input values are always stored as strings; the type controls how the
    value is validated and which editor the dashboard renders.

    Values:
        TEXT: Free text
        NUMBER: Integer or decimal number
        DATE: Calendar date in YYYY-MM-DD format
    """

    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
