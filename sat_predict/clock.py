"""
Clock sources for the no-argument prediction calls.

The wall clock is the only ambient input of the package. ``Satellite`` reads
it through one of these objects so tests can pin "now" to a fixed instant.
"""

from datetime import datetime, timedelta, timezone

from sat_predict.time_utils import as_utc


class SystemClock:
    """Current UTC wall-clock time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """A clock that always reports the same instant until advanced."""

    def __init__(self, instant: datetime):
        self._instant = as_utc(instant)

    def now(self) -> datetime:
        return self._instant

    def advance(self, delta: timedelta) -> None:
        self._instant = self._instant + delta
