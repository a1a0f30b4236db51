"""Unit tests for balance analytics"""

import pytest
from datetime import datetime
from energy_gateway.domain.analytics import (
    breakdown,
    compute_analytics,
    resolve_period,
    transaction_summary,
)
from energy_gateway.domain.models import Record

NOW = datetime(2024, 2, 15, 12, 0, 0)


def test_resolve_period():
    assert resolve_period("1m") == 1
    assert resolve_period("1y") == 12
    assert resolve_period("2w") == 3


def test_compute_analytics_two_month_scenario(sample_records):
    """Yields in January and February with one January investment"""
    report = compute_analytics(sample_records, months=2, now=NOW)

    flows = report.income_vs_expenses
    assert flows.total_income == 2500
    assert flows.total_expenses == 200
    assert flows.net_flow == 2300

    performance = report.yield_performance
    assert performance.total_yield == 2500
    assert performance.average_monthly_yield == 1250
    assert performance.yield_growth_rate == pytest.approx(50)
    assert performance.yield_consistency == pytest.approx(80)

    trends = report.monthly_trends
    assert [t.month for t in trends] == ["2024-01", "2024-02"]
    assert trends[0].month_name == "January 2024"
    assert trends[0].income == 1000
    assert trends[0].expenses == 200
    assert trends[0].net_flow == 800
    assert trends[0].transaction_count == 2
    assert trends[1].total_amount == 1500

    # 23 (net flow) + 24 (consistency) + 30 (growth, capped)
    assert report.performance_score == 77
    assert report.recommendations == []


def test_compute_analytics_empty_window():
    """No records: zero aggregates, zero score, growth and consistency advice"""
    report = compute_analytics([], months=3, now=NOW)

    assert report.income_vs_expenses.total_income == 0
    assert report.income_vs_expenses.net_flow == 0
    assert report.income_vs_expenses.income_sources == []
    assert report.yield_performance.yield_consistency == 0
    assert report.performance_score == 0
    assert [r.type for r in report.recommendations] == ["suggestion", "tip"]

    assert len(report.monthly_trends) == 3
    assert all(t.transaction_count == 0 for t in report.monthly_trends)
    assert [t.month for t in report.monthly_trends] == ["2023-12", "2024-01", "2024-02"]


def test_breakdown_percentages_share_of_total():
    records = [
        Record(amount=300, category="deposit", timestamp=NOW, status="completed"),
        Record(amount=100, category="yield", timestamp=NOW, status="completed"),
    ]

    items = breakdown(records)

    assert [(i.type, i.total, i.count) for i in items] == [("deposit", 300, 1), ("yield", 100, 1)]
    assert items[0].percentage == 75
    assert items[1].percentage == 25


def test_breakdown_of_expenses_uses_absolute_totals():
    records = [Record(amount=-50, category="withdrawal", timestamp=NOW, status="pending")]

    items = breakdown(records)

    assert items[0].total == 50
    assert items[0].percentage == 100


def test_transaction_summary(sample_records):
    summary = transaction_summary(sample_records)

    assert summary["total_transactions"] == 3
    assert summary["total_yields"] == 2500
    assert summary["total_investments"] == 200
    assert summary["total_deposits"] == 0
    assert summary["net_flow"] == 2300
    assert [m["month"] for m in summary["by_month"]] == ["2024-01", "2024-02"]
    assert summary["by_month"][0]["investments"] == 200
