"""Balance analytics - income/expense breakdowns, yield performance, trends"""

from datetime import datetime
from typing import Dict, List, Sequence
from energy_gateway.domain import aggregates
from energy_gateway.domain.bucketing import bucket, by_category, by_month, monthly_buckets
from energy_gateway.domain.models import (
    AnalyticsReport,
    BreakdownItem,
    IncomeVsExpenses,
    MonthlyTrend,
    Record,
    YieldPerformance,
    DEPOSIT,
    INVESTMENT,
    WITHDRAWAL,
    YIELD,
)
from energy_gateway.domain.recommendations import generate_recommendations
from energy_gateway.domain.scoring import calculate_performance_score
from energy_gateway.utils.date_utils import month_name

PERIOD_MONTHS = {"1m": 1, "3m": 3, "6m": 6, "1y": 12}
DEFAULT_PERIOD_MONTHS = 3


def resolve_period(period: str) -> int:
    """Map an analytics period code to months; unknown codes fall back to 3"""
    return PERIOD_MONTHS.get(period, DEFAULT_PERIOD_MONTHS)


def _income(records: Sequence[Record]) -> List[Record]:
    return [r for r in records if r.amount > 0]


def _expenses(records: Sequence[Record]) -> List[Record]:
    return [r for r in records if r.amount < 0]


def _of_type(records: Sequence[Record], transaction_type: str) -> List[Record]:
    return [r for r in records if r.category == transaction_type]


def breakdown(records: Sequence[Record]) -> List[BreakdownItem]:
    """Per-type totals (absolute) with each type's share of the overall total"""
    grand_total = abs(aggregates.total(records))
    items = []
    for transaction_type, group in bucket(records, by_category).items():
        group_total = abs(aggregates.total(group))
        items.append(
            BreakdownItem(
                type=transaction_type,
                total=group_total,
                count=len(group),
                percentage=aggregates.share(group_total, grand_total),
            )
        )
    return items


def income_vs_expenses(records: Sequence[Record]) -> IncomeVsExpenses:
    income = _income(records)
    expenses = _expenses(records)
    return IncomeVsExpenses(
        total_income=aggregates.total(income),
        total_expenses=abs(aggregates.total(expenses)),
        net_flow=aggregates.total(records),
        income_sources=breakdown(income),
        expense_categories=breakdown(expenses),
    )


def yield_performance(records: Sequence[Record], months: int) -> YieldPerformance:
    yields = _of_type(records, YIELD)
    total_yield = aggregates.total(yields)
    return YieldPerformance(
        total_yield=total_yield,
        average_monthly_yield=total_yield / max(months, 1),
        yield_growth_rate=aggregates.split_growth_rate(yields),
        yield_consistency=aggregates.consistency(aggregates.amounts(yields)),
    )


def monthly_trends(records: Sequence[Record], now: datetime, months: int) -> List[MonthlyTrend]:
    """One entry per month in the window, oldest first, including empty months"""
    trends = []
    for key, group in monthly_buckets(records, now, months).items():
        label = month_name(datetime.strptime(key, "%Y-%m"))
        trends.append(
            MonthlyTrend(
                month=key,
                month_name=label,
                total_amount=aggregates.total(group),
                income=aggregates.total(_income(group)),
                expenses=abs(aggregates.total(_expenses(group))),
                net_flow=aggregates.total(group),
                transaction_count=len(group),
            )
        )
    return trends


def compute_analytics(records: Sequence[Record], months: int, now: datetime) -> AnalyticsReport:
    """
    Main entry point: aggregate a user's balance records over a window.

    `records` is the already-fetched window; `now` anchors the month walk so
    the computation stays pure.
    """
    flows = income_vs_expenses(records)
    performance = yield_performance(records, months)

    return AnalyticsReport(
        income_vs_expenses=flows,
        yield_performance=performance,
        monthly_trends=monthly_trends(records, now, months),
        performance_score=calculate_performance_score(
            flows.net_flow,
            performance.yield_consistency,
            performance.yield_growth_rate,
        ),
        recommendations=generate_recommendations(
            flows.net_flow,
            performance.yield_growth_rate,
            performance.yield_consistency,
        ),
    )


def monthly_breakdown(records: Sequence[Record]) -> List[Dict[str, object]]:
    """Per-month movement totals, months in first-occurrence order"""
    rows = []
    for key, group in bucket(records, by_month).items():
        rows.append(
            {
                "month": key,
                "total_amount": aggregates.total(group),
                "transaction_count": len(group),
                "deposits": aggregates.total(_of_type(group, DEPOSIT)),
                "withdrawals": abs(aggregates.total(_of_type(group, WITHDRAWAL))),
                "yields": aggregates.total(_of_type(group, YIELD)),
                "investments": abs(aggregates.total(_of_type(group, INVESTMENT))),
            }
        )
    return rows


def transaction_summary(records: Sequence[Record]) -> Dict[str, object]:
    """Totals per movement type for a transaction history window"""
    return {
        "total_transactions": len(records),
        "total_deposits": aggregates.total(_of_type(records, DEPOSIT)),
        "total_withdrawals": abs(aggregates.total(_of_type(records, WITHDRAWAL))),
        "total_yields": aggregates.total(_of_type(records, YIELD)),
        "total_investments": abs(aggregates.total(_of_type(records, INVESTMENT))),
        "net_flow": aggregates.total(records),
        "by_month": monthly_breakdown(records),
    }
