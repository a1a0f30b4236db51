"""Unit tests for record bucketing"""

from collections import Counter
from datetime import datetime
from energy_gateway.domain.bucketing import bucket, by_category, by_month, monthly_buckets
from energy_gateway.domain.models import Record


def _record(category: str, timestamp: datetime, amount: float = 10) -> Record:
    return Record(amount=amount, category=category, timestamp=timestamp, status="completed")


def test_bucket_keeps_first_occurrence_order():
    records = [
        _record("yield", datetime(2024, 1, 1)),
        _record("deposit", datetime(2024, 1, 2)),
        _record("yield", datetime(2024, 1, 3)),
    ]

    buckets = bucket(records, by_category)

    assert list(buckets) == ["yield", "deposit"]
    assert len(buckets["yield"]) == 2


def test_bucket_is_a_partition():
    """Every record lands in exactly one bucket"""
    records = [_record(c, datetime(2024, m, 1)) for c, m in [("a", 1), ("b", 2), ("a", 3), ("c", 3)]]

    buckets = bucket(records, by_month)
    regrouped = [r for group in buckets.values() for r in group]

    assert len(regrouped) == len(records)
    assert Counter(map(id, regrouped)) == Counter(map(id, records))


def test_monthly_buckets_include_empty_months():
    now = datetime(2024, 2, 15)
    records = [_record("yield", datetime(2024, 2, 1))]

    buckets = monthly_buckets(records, now, 3)

    assert list(buckets) == ["2023-12", "2024-01", "2024-02"]
    assert buckets["2023-12"] == []
    assert buckets["2024-01"] == []
    assert len(buckets["2024-02"]) == 1


def test_monthly_buckets_drop_records_outside_window():
    now = datetime(2024, 2, 15)
    records = [_record("yield", datetime(2023, 6, 1)), _record("yield", datetime(2024, 1, 31))]

    buckets = monthly_buckets(records, now, 2)

    assert sum(len(group) for group in buckets.values()) == 1
    assert len(buckets["2024-01"]) == 1
