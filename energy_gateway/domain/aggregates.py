"""Aggregate statistics over record sets.

All functions treat an empty input as the zero case. Results are left
unrounded; callers round at the presentation boundary with
`round_half_up`.
"""

import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Sequence
from energy_gateway.domain.models import Record


def total(records: Iterable[Record], field: str = "amount") -> float:
    """Sum a numeric attribute across records"""
    return sum((getattr(r, field) for r in records), 0.0)


def mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def variance(values: Sequence[float]) -> float:
    """Population variance: mean of squared deviations from the mean"""
    if not values:
        return 0.0
    avg = mean(values)
    return sum((x - avg) ** 2 for x in values) / len(values)


def stddev(values: Sequence[float]) -> float:
    return math.sqrt(variance(values))


def growth_rate(early: float, late: float) -> float:
    """Percent change from early to late; 0 when there is no positive baseline"""
    if early > 0:
        return ((late - early) / early) * 100
    return 0.0


def period_growth(previous: float, current: float) -> float:
    """
    Percent change between two consecutive period counts.

    Unlike growth_rate, a start from nothing counts as full growth: 100 when
    previous is 0 and current is positive, 0 when both are 0.
    """
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return ((current - previous) / previous) * 100


def consistency(values: Sequence[float]) -> float:
    """
    Inverse-of-variability as a percentage: (1 - stddev/mean) * 100.

    Not floored: a negative result means the spread exceeds the mean.
    """
    avg = mean(values)
    if avg > 0:
        return (1 - stddev(values) / avg) * 100
    return 0.0


def split_growth_rate(records: Sequence[Record]) -> float:
    """
    Growth between the older and newer halves of a record series.

    Records are ordered by timestamp; the first floor(n/2) form the early
    half. Fewer than two records give 0.
    """
    if len(records) < 2:
        return 0.0

    ordered = sorted(records, key=lambda r: r.timestamp)
    half = len(ordered) // 2
    early = total(ordered[:half])
    late = total(ordered[half:])
    return growth_rate(early, late)


def share(part: float, whole: float) -> float:
    """Percentage of whole; 0 when whole is not positive"""
    if whole > 0:
        return (part / whole) * 100
    return 0.0


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves away from zero (round() would round half to even)"""
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return float(rounded)


def amounts(records: Iterable[Record]) -> List[float]:
    return [r.amount for r in records]
