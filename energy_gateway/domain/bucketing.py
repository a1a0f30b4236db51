"""Grouping of records under categorical or monthly keys"""

from datetime import datetime
from typing import Callable, Dict, Hashable, Iterable, List, TypeVar
from energy_gateway.utils.date_utils import generate_month_range, month_key

T = TypeVar("T")


def bucket(records: Iterable[T], key_fn: Callable[[T], Hashable]) -> Dict[Hashable, List[T]]:
    """
    Partition records by key.

    Keys keep the insertion order of their first occurrence and every record
    lands in exactly one bucket.
    """
    buckets: Dict[Hashable, List[T]] = {}
    for record in records:
        buckets.setdefault(key_fn(record), []).append(record)
    return buckets


def by_category(record) -> str:
    return record.category


def by_month(record) -> str:
    return month_key(record.timestamp)


def monthly_buckets(records: Iterable[T], now: datetime, months: int) -> Dict[str, List[T]]:
    """
    Exactly `months` consecutive month buckets ending with now's month, oldest first.

    Months without records get an empty list. Records outside the walked
    range are dropped.
    """
    present = bucket(records, by_month)
    return {
        month_key(start): present.get(month_key(start), [])
        for start in generate_month_range(now, months)
    }
