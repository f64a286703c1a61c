"""
Errors
======

All exceptions raised on purpose by alarmdash derive from `AlarmDashError`.

- `DataLoadError` is terminal for one data source (topology, alarms or
  brigades). The dashboard collects these and switches to a failed state.
- Malformed *cells* are never errors: bad numbers become None and bad
  timestamps become NaT (see `timeparse`).
"""

from __future__ import annotations
from typing import Optional


class AlarmDashError(Exception):
    """Base class for alarmdash errors."""


class DataLoadError(AlarmDashError):
    """One of the three data sources could not be loaded."""

    def __init__(self, message: str, source: Optional[str] = None, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.source = source
        self.path = path

    def __str__(self) -> str:
        if self.source:
            return f"[{self.source}] {self.message}"
        return self.message


class MissingColumnError(DataLoadError, KeyError):
    """A required column is not present in a loaded table."""


class DashboardNotReady(AlarmDashError):
    """The selection was changed before the data finished loading (or after it failed)."""
