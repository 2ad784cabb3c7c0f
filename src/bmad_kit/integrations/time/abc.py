"""Clock abstraction for testing.

Installation timestamps come from this interface so tests can pin them
and manifest output stays reproducible.
"""

from abc import ABC, abstractmethod
from datetime import datetime


class Time(ABC):
    """Abstract clock operations for dependency injection."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current time as a timezone-aware datetime."""
        ...
