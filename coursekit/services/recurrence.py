"""Weekly recurrence: next start and "is it live right now".

Every function takes ``now`` as an argument.  There is no clock in here,
so a test can pin any instant (including the hour a DST change happens)
without patching anything.

DST
----
"Saturday 10:00 America/Chicago" is a wall-clock promise.  The next-week
candidate is built from the *calendar date* plus 7 days at the scheduled
hour and minute, then resolved to an offset, never as start + 168 hours.
Across the November change the two starts are 169 hours apart and both
read 10:00 locally.

A wall time that does not exist (02:30 on a spring-forward night) is
resolved by a round trip through UTC, which lands it one hour later.

All comparisons are made in UTC.  Two aware datetimes sharing a tzinfo
compare by wall clock, which gives the wrong answer inside a DST fold.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta

from coursekit.models.meetup import WeeklySchedule


@dataclass(frozen=True, slots=True)
class UpcomingOccurrence:
    next_occurrence: datetime
    is_live: bool


def _require_aware(now: datetime) -> None:
    if now.tzinfo is None or now.utcoffset() is None:
        raise ValueError("now must be a timezone-aware datetime")


def _start_on(schedule: WeeklySchedule, day: date) -> datetime:
    wall = datetime.combine(day, time(schedule.hour, schedule.minute), tzinfo=schedule.tz)
    return wall.astimezone(UTC).astimezone(schedule.tz)


def next_occurrence(schedule: WeeklySchedule, now: datetime) -> datetime:
    """First start strictly after ``now``, in the schedule's timezone."""
    _require_aware(now)
    now_utc = now.astimezone(UTC)
    local_today = now.astimezone(schedule.tz).date()

    days_ahead = (schedule.python_weekday - local_today.weekday()) % 7
    candidate = _start_on(schedule, local_today + timedelta(days=days_ahead))
    if candidate.astimezone(UTC) <= now_utc:
        candidate = _start_on(schedule, local_today + timedelta(days=days_ahead + 7))
    return candidate


def is_currently_live(schedule: WeeklySchedule, duration_minutes: int, now: datetime) -> bool:
    """True iff local ``now`` is on the scheduled day and in [start, start + duration)."""
    _require_aware(now)
    if duration_minutes <= 0:
        raise ValueError(f"duration_minutes must be positive (got {duration_minutes})")

    local_now = now.astimezone(schedule.tz)
    if local_now.weekday() != schedule.python_weekday:
        return False

    start = _start_on(schedule, local_now.date()).astimezone(UTC)
    end = start + timedelta(minutes=duration_minutes)
    return start <= now.astimezone(UTC) < end


def list_upcoming(schedule: WeeklySchedule, duration_minutes: int, now: datetime) -> UpcomingOccurrence:
    return UpcomingOccurrence(
        next_occurrence=next_occurrence(schedule, now),
        is_live=is_currently_live(schedule, duration_minutes, now),
    )
