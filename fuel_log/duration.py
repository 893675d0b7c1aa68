"""
Shift duration arithmetic.

Times are ``HH:MM`` in 24-hour form. They are not validated here; callers
hand in values that already passed the API serializers.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterable, NamedTuple, Optional, Union

from .domain import WorkLog

NOT_COMPUTABLE = "—"

DateLike = Union[date, str]


class Duration(NamedTuple):
    minutes: int
    label: str


def _as_date(day: DateLike) -> date:
    if isinstance(day, datetime):
        return day.date()
    if isinstance(day, date):
        return day
    return date.fromisoformat(day)


def combine_date_and_time(day: DateLike, clock: Optional[str]) -> Optional[datetime]:
    if not clock:
        return None
    hh, mm = [int(x) for x in clock.split(":", 1)]
    return datetime.combine(_as_date(day), time(hh, mm))


def format_minutes(minutes: int) -> str:
    hours, rest = divmod(minutes, 60)
    return f"{hours}h {rest:02d}m"


def compute_duration(day: DateLike, start: Optional[str], end: Optional[str]) -> Duration:
    """
    Elapsed minutes between ``start`` and ``end`` on ``day``.

    An end time earlier than the start time is read as finishing on the
    following day. Either time missing gives ``Duration(0, "—")``.
    """
    start_dt = combine_date_and_time(day, start)
    end_dt = combine_date_and_time(day, end)
    if start_dt is None or end_dt is None:
        return Duration(0, NOT_COMPUTABLE)

    if end_dt < start_dt:
        end_dt = end_dt + timedelta(days=1)
    minutes = int((end_dt - start_dt).total_seconds() // 60)
    return Duration(minutes, format_minutes(minutes))


def log_duration(log: WorkLog) -> Duration:
    return compute_duration(log.date, log.start_time, log.end_time)


def total_minutes(logs: Iterable[WorkLog]) -> int:
    return sum(log_duration(log).minutes for log in logs)
