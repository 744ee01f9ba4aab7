"""Daily reminder window arithmetic."""

from dataclasses import dataclass
from datetime import time

from hydranag.engine.errors import InvalidWindow
from hydranag.utils.time_utils import format_time, seconds_of_day


@dataclass(frozen=True)
class TimeWindow:
    """A [start, end) span of wall-clock time within a single day.

    Windows never wrap past midnight: a window whose end is not after its
    start is malformed rather than an overnight window.
    """

    start: time
    end: time

    def is_well_formed(self) -> bool:
        return self.start < self.end

    def duration_minutes(self) -> int:
        """Whole minutes between start and end.

        Raises:
            InvalidWindow: if end <= start
        """
        if not self.is_well_formed():
            raise InvalidWindow(
                f"Window end {format_time(self.end)} must be after start {format_time(self.start)}"
            )
        return (seconds_of_day(self.end) - seconds_of_day(self.start)) // 60

    def contains(self, t: time) -> bool:
        return self.start <= t < self.end

    def __str__(self) -> str:
        return f"{format_time(self.start)}-{format_time(self.end)}"
