"""Date manipulation utilities"""

from datetime import date, datetime, timedelta
from typing import List, Union

DAYS_PER_WEEK = 7


def _as_date(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def weeks_between(start: date, end: Union[date, datetime]) -> int:
    """Whole weeks elapsed from start to end (negative when end is before start)"""
    return (_as_date(end) - start).days // DAYS_PER_WEEK


def add_weeks(from_date: date, weeks: int) -> date:
    """Shift a date by a number of weeks"""
    return from_date + timedelta(weeks=weeks)


def generate_week_starts(start: date, total_weeks: int) -> List[date]:
    """Nominal due date of each scheduled week, week 1 first"""
    return [add_weeks(start, i) for i in range(total_weeks)]
