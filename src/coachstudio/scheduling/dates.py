"""Calendar helpers: weekday numbering and anchoring times of day to dates."""

from datetime import date, datetime, time, timedelta, tzinfo


def day_of_week(day: date) -> int:
    """Return the weekday of `day` with 0=Sunday and 6=Saturday.

    Python's `date.weekday()` counts from Monday; the studio counts from Sunday.
    """
    return (day.weekday() + 1) % 7


def anchor(day: date, at: time, tz: tzinfo) -> datetime:
    """Combine a calendar date and a time of day into an aware datetime."""
    return datetime.combine(day, at.replace(tzinfo=None), tzinfo=tz)


def day_bounds(day: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """Return the half-open [midnight, next midnight) range of `day` in `tz`."""
    return anchor(day, time(0, 0), tz), anchor(day + timedelta(days=1), time(0, 0), tz)


def next_weekday_on_or_after(day: date, weekday: int) -> date:
    """First date on or after `day` falling on `weekday` (0=Sunday)."""
    return day + timedelta(days=(weekday - day_of_week(day)) % 7)


def iter_days(start: date, end: date):
    """Yield every date from `start` to `end`, both inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")
