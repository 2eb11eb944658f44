"""Human readable occurrence times."""
from datetime import date, datetime, tzinfo
from typing import Iterable, Optional, Union
from zoneinfo import ZoneInfo

from processor.models import Occurrence

EVENT_TIME_ZONE = 'America/Los_Angeles'
UNKNOWN_TIME = 'Unknown'

DayLike = Union[date, datetime]


class TimeFormatter:
    """
    Formats occurrence times as shown in event lists.

    Aware timestamps are shown in the event's own time zone so that people
    browsing from elsewhere see local event times; naive ones are used as is.
    """

    def __init__(self, tz: Union[str, tzinfo] = EVENT_TIME_ZONE):
        self.tz = ZoneInfo(tz) if isinstance(tz, str) else tz

    def to_local(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value
        return value.astimezone(self.tz)

    def local_date(self, value: DayLike) -> date:
        if isinstance(value, datetime):
            return self.to_local(value).date()
        return value

    def same_day(self, a: DayLike, b: DayLike) -> bool:
        """True if both fall on the same local year, month and day of month."""
        return self.local_date(a) == self.local_date(b)

    def format_time(self, value: datetime) -> str:
        """7pm, 7:30pm, Midnight or Noon."""
        value = self.to_local(value)
        ampm = 'pm' if value.hour >= 12 else 'am'
        hour = value.hour % 12
        if value.minute != 0:
            return f"{hour or 12}:{value.minute:02d}{ampm}"
        if hour == 0:
            return 'Noon' if ampm == 'pm' else 'Midnight'
        return f"{hour}{ampm}"

    def duration(self, start: datetime, end: datetime) -> str:
        """Minutes below an hour, otherwise whole hours (truncated)."""
        seconds = abs((end - start).total_seconds())
        minutes = int(seconds // 60)
        if minutes < 60:
            return f"{minutes}mins"
        return f"{int(seconds // 3600)}hrs"

    def time_string(self, occurrences: Iterable[Occurrence],
                    day: Optional[DayLike] = None, long: bool = False) -> str:
        """
        Describe the first occurrence on day, or the first one at all.

        Args:
            occurrences: Occurrences of one event, in upstream order
            day: Only consider occurrences starting or ending on this day
            long: Include the end time

        Returns:
            "7pm (2hrs)" or "7pm-9pm (2hrs)", or UNKNOWN_TIME if no
            occurrence matches
        """
        for occurrence in occurrences:
            start = occurrence.start
            end = occurrence.end
            if day is None or self.same_day(start, day) or self.same_day(end, day):
                span = self.duration(start, end)
                if long:
                    return f"{self.format_time(start)}-{self.format_time(end)} ({span})"
                return f"{self.format_time(start)} ({span})"
        return UNKNOWN_TIME
