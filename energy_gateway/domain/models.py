"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, List


# Balance transaction types
DEPOSIT = "deposit"
WITHDRAWAL = "withdrawal"
YIELD = "yield"
INVESTMENT = "investment"
FEE = "fee"
REFUND = "refund"
TRANSACTION_TYPES = (DEPOSIT, WITHDRAWAL, YIELD, INVESTMENT, FEE, REFUND)

# Balance statuses
PENDING = "pending"
COMPLETED = "completed"
BALANCE_STATUSES = (PENDING, COMPLETED, "failed", "cancelled")

READING_TYPE_LABELS = {
    "production": "Production",
    "consumption": "Consumption",
    "storage": "Storage",
    "distribution": "Distribution",
    "export": "Export",
    "import": "Import",
}
READING_SOURCE_LABELS = {
    "manual": "Manual",
    "automatic": "Automatic",
    "api_import": "API import",
    "scada": "SCADA",
    "estimated": "Estimated",
    "corrected": "Corrected",
}
READING_STATUS_LABELS = {
    "valid": "Valid",
    "invalid": "Invalid",
    "suspicious": "Suspicious",
    "estimated": "Estimated",
    "corrected": "Corrected",
    "missing": "Missing",
}
READING_TYPES = tuple(READING_TYPE_LABELS)
READING_SOURCES = tuple(READING_SOURCE_LABELS)
READING_STATUSES = tuple(READING_STATUS_LABELS)

AFFILIATE_TYPES = ("partner", "reseller", "distributor", "consultant", "other")
AFFILIATE_STATUSES = ("active", "inactive", "pending", "suspended", "terminated")


@dataclass
class Record:
    """Financial or operational event being aggregated"""

    amount: float
    category: str  # transaction_type / reading_type
    timestamp: datetime
    status: str


@dataclass
class BreakdownItem:
    """Per-type share of income or expenses"""

    type: str
    total: float
    count: int
    percentage: float


@dataclass
class IncomeVsExpenses:
    total_income: float
    total_expenses: float
    net_flow: float
    income_sources: List[BreakdownItem]
    expense_categories: List[BreakdownItem]


@dataclass
class YieldPerformance:
    total_yield: float
    average_monthly_yield: float
    yield_growth_rate: float
    yield_consistency: float


@dataclass
class MonthlyTrend:
    month: str
    month_name: str
    total_amount: float
    income: float
    expenses: float
    net_flow: float
    transaction_count: int


@dataclass
class Recommendation:
    type: str  # warning | suggestion | tip
    title: str
    message: str


@dataclass
class AnalyticsReport:
    """Output of the analytics aggregator, unrounded"""

    income_vs_expenses: IncomeVsExpenses
    yield_performance: YieldPerformance
    monthly_trends: List[MonthlyTrend]
    performance_score: int
    recommendations: List[Recommendation] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BalanceMovement:
    """A balance row ready to be persisted"""

    user_id: int
    amount: float
    transaction_type: str
    description: str
    status: str
    reference_id: str
    metadata: Dict[str, Any]
    created_at: datetime
