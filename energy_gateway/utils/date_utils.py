"""Date manipulation utilities"""

from datetime import date, datetime, time, timedelta, timezone
from typing import List
from dateutil.relativedelta import relativedelta


def utc_now() -> datetime:
    """Current UTC time as a naive datetime (the storage convention)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def subtract_months(moment: datetime, months: int) -> datetime:
    """Shift back by calendar months, clamping to the last day of shorter months"""
    return moment - relativedelta(months=months)


def month_key(moment: datetime | date) -> str:
    """Bucket key for a month, e.g. "2024-01" """
    return moment.strftime("%Y-%m")


def month_name(moment: datetime | date) -> str:
    """Human label for a month, e.g. "January 2024" """
    return moment.strftime("%B %Y")


def generate_month_range(now: datetime, months: int) -> List[date]:
    """First day of each of the last `months` calendar months, oldest first, ending with now's month"""
    current = date(now.year, now.month, 1)
    return [current - relativedelta(months=offset) for offset in range(months - 1, -1, -1)]


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def end_of_day_exclusive(day: date) -> datetime:
    """Midnight after `day`, for half-open whole-day ranges"""
    return datetime.combine(day + timedelta(days=1), time.min)


def to_naive_utc(moment: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are taken as UTC already"""
    if moment.tzinfo is not None:
        return moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment
