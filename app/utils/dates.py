import calendar
from datetime import date, datetime, time, timedelta, timezone
from typing import Tuple, Union

DateLike = Union[datetime, date, str]


def to_datetime(value: DateLike) -> datetime:
    """
    Normalise a stored or submitted date to a naive UTC datetime.
    Accepts datetimes, dates and ISO-8601 strings (a trailing "Z" is allowed).
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    elif not isinstance(value, datetime):
        value = datetime.combine(value, time.min)

    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def days_between(start: DateLike, end: DateLike) -> float:
    return (to_datetime(end) - to_datetime(start)).total_seconds() / 86400


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    """First instant and last instant of a calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1)
    end = datetime.combine(date(year, month, last_day), time.max)
    return start, end


def current_month_bounds(now: datetime) -> Tuple[datetime, datetime]:
    return month_bounds(now.year, now.month)


def add_months(value: datetime, months: int) -> datetime:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def period_range(period: str, now: datetime) -> Tuple[datetime, datetime]:
    """
    Resolve a named dashboard period (today, week, month, year, last30days,
    last90days, lastYear). Unknown names fall back to the current month.
    """
    start_of_today = datetime.combine(now.date(), time.min)
    if period == "today":
        return start_of_today, datetime.combine(now.date(), time.max)
    if period == "week":
        # weeks start on Sunday
        week_start = start_of_today - timedelta(days=(now.weekday() + 1) % 7)
        return week_start, datetime.combine((week_start + timedelta(days=6)).date(), time.max)
    if period == "year":
        return datetime(now.year, 1, 1), datetime.combine(date(now.year, 12, 31), time.max)
    if period == "last30days":
        return now - timedelta(days=30), now
    if period == "last90days":
        return now - timedelta(days=90), now
    if period == "lastYear":
        return add_months(now, -12), now
    return current_month_bounds(now)
