from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from coursekit.core.errors import ConfigurationError

# day_of_week follows the 0=Sunday .. 6=Saturday convention used by the
# meetup catalogue; Python's datetime.weekday() is 0=Monday.
MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True, slots=True)
class WeeklySchedule:
    day_of_week: int
    hour: int
    minute: int
    timezone: str

    def __post_init__(self) -> None:
        if not 0 <= self.day_of_week <= 6:
            raise ConfigurationError(f"day_of_week must be 0-6 (got {self.day_of_week})")
        if not 0 <= self.hour <= 23:
            raise ConfigurationError(f"hour must be 0-23 (got {self.hour})")
        if not 0 <= self.minute <= 59:
            raise ConfigurationError(f"minute must be 0-59 (got {self.minute})")
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ConfigurationError(f"unknown timezone {self.timezone!r}") from None

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def python_weekday(self) -> int:
        return (self.day_of_week - 1) % 7


@dataclass(frozen=True, slots=True)
class Meetup:
    """A recurring weekly live session."""

    id: str
    title: str
    description: str
    schedule: WeeklySchedule
    duration_minutes: int
    meeting_link: str
    host_name: str
    host_email: str

    def __post_init__(self) -> None:
        if self.duration_minutes <= 0:
            raise ConfigurationError(
                f"meetup {self.id}: duration_minutes must be positive"
            )
        end = self.schedule.hour * 60 + self.schedule.minute + self.duration_minutes
        if end > MINUTES_PER_DAY:
            raise ConfigurationError(
                f"meetup {self.id}: window must end by local midnight"
            )


@dataclass(frozen=True, slots=True)
class UpcomingMeetup:
    """A meetup paired with its next start for one learner.

    meeting_link is only filled in while the session is live.
    """

    meetup: Meetup
    next_occurrence: datetime
    is_live: bool
    is_signed_up: bool
    meeting_link: str | None
