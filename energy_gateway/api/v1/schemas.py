"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field, field_validator

TransactionType = Literal["deposit", "withdrawal", "yield", "investment", "fee", "refund"]
ReadingType = Literal["production", "consumption", "storage", "distribution", "export", "import"]
ReadingSource = Literal["manual", "automatic", "api_import", "scada", "estimated", "corrected"]
ReadingStatus = Literal["valid", "invalid", "suspicious", "estimated", "corrected", "missing"]
AffiliateType = Literal["partner", "reseller", "distributor", "consultant", "other"]
AffiliateStatus = Literal["active", "inactive", "pending", "suspended", "terminated"]


class PageMeta(BaseModel):
    """Pagination metadata for listing responses"""

    current_page: int
    total: int
    per_page: int
    last_page: int


# ---------------------------------------------------------------------------
# Balances
# ---------------------------------------------------------------------------


class DepositRequest(BaseModel):
    """Request body for POST /v1/balances/deposit"""

    user_id: int = Field(..., gt=0, description="User identifier")
    amount: float = Field(..., ge=1, description="Amount to credit")
    description: Optional[str] = Field(None, max_length=255)
    payment_method: Optional[str] = Field(None, max_length=50)


class WithdrawalRequest(BaseModel):
    """Request body for POST /v1/balances/withdraw"""

    user_id: int = Field(..., gt=0)
    amount: float = Field(..., ge=1)
    description: Optional[str] = Field(None, max_length=255)
    withdrawal_method: Optional[str] = Field(None, max_length=50)


class InvestmentRequest(BaseModel):
    """Request body for POST /v1/balances/investment"""

    user_id: int = Field(..., gt=0)
    amount: float = Field(..., ge=1)
    product_id: Optional[int] = None
    user_asset_id: Optional[int] = None
    description: Optional[str] = Field(None, max_length=255)


class YieldRequest(BaseModel):
    """Request body for POST /v1/balances/yield"""

    user_id: int = Field(..., gt=0)
    amount: float = Field(..., ge=0)
    user_asset_id: int
    description: Optional[str] = Field(None, max_length=255)


class BalanceSchema(BaseModel):
    """Single balance movement"""

    id: int
    user_id: int
    amount: float
    transaction_type: str
    description: Optional[str] = None
    status: str
    reference_id: Optional[str] = None
    metadata: Dict[str, Any] = {}
    created_at: str


class BalanceListResponse(BaseModel):
    data: List[BalanceSchema]
    meta: PageMeta


class MyBalanceResponse(BaseModel):
    """Response for GET /v1/balances/my-balance"""

    current_balance: float
    pending_balance: float
    available_balance: float
    currency: str
    recent_transactions: List[BalanceSchema]
    updated_at: str


class MonthBreakdownSchema(BaseModel):
    month: str
    total_amount: float
    transaction_count: int
    deposits: float
    withdrawals: float
    yields: float
    investments: float


class TransactionSummarySchema(BaseModel):
    total_transactions: int
    total_deposits: float
    total_withdrawals: float
    total_yields: float
    total_investments: float
    net_flow: float
    by_month: List[MonthBreakdownSchema]


class HistoryPeriod(BaseModel):
    model_config = {"populate_by_name": True}

    from_: str = Field(..., alias="from", serialization_alias="from")
    to: str
    months: int


class TransactionHistoryResponse(BaseModel):
    """Response for GET /v1/balances/transaction-history"""

    data: List[BalanceSchema]
    summary: TransactionSummarySchema
    period: HistoryPeriod


class BreakdownSchema(BaseModel):
    type: str
    total: float
    count: int
    percentage: float


class IncomeVsExpensesSchema(BaseModel):
    total_income: float
    total_expenses: float
    net_flow: float
    income_sources: List[BreakdownSchema]
    expense_categories: List[BreakdownSchema]


class YieldPerformanceSchema(BaseModel):
    total_yield: float
    average_monthly_yield: float
    yield_growth_rate: float
    yield_consistency: float


class MonthlyTrendSchema(BaseModel):
    month: str
    month_name: str
    total_amount: float
    income: float
    expenses: float
    net_flow: float
    transaction_count: int


class RecommendationSchema(BaseModel):
    type: Literal["warning", "suggestion", "tip"]
    title: str
    message: str


class AnalyticsResponse(BaseModel):
    """Response for GET /v1/balances/analytics"""

    period: str
    income_vs_expenses: IncomeVsExpensesSchema
    yield_performance: YieldPerformanceSchema
    monthly_trends: List[MonthlyTrendSchema]
    performance_score: int = Field(..., ge=0, le=100)
    recommendations: List[RecommendationSchema]


# ---------------------------------------------------------------------------
# Energy readings
# ---------------------------------------------------------------------------

READING_VALUE_LIMIT = 999999.9999


class EnergyReadingBase(BaseModel):
    """Fields shared by reading create and update payloads"""

    installation_id: Optional[int] = None
    consumption_point_id: Optional[int] = None
    reading_period: Optional[str] = Field(None, max_length=100)
    previous_reading_value: Optional[float] = Field(None, ge=-READING_VALUE_LIMIT, le=READING_VALUE_LIMIT)
    consumption_value: Optional[float] = Field(None, ge=0, le=READING_VALUE_LIMIT)
    demand_value: Optional[float] = Field(None, ge=0, le=READING_VALUE_LIMIT)
    power_factor: Optional[float] = Field(None, ge=-1, le=1)
    quality_score: Optional[float] = Field(None, ge=0, le=100)
    notes: Optional[str] = Field(None, max_length=1000)
    validation_notes: Optional[str] = Field(None, max_length=1000)


class EnergyReadingCreate(EnergyReadingBase):
    """Request body for POST /v1/energy-readings"""

    reading_number: str = Field(..., min_length=1, max_length=255)
    meter_id: int
    customer_id: int
    reading_type: ReadingType
    reading_source: ReadingSource
    reading_status: ReadingStatus
    reading_timestamp: datetime
    reading_value: float = Field(..., ge=-READING_VALUE_LIMIT, le=READING_VALUE_LIMIT)
    reading_unit: str = Field(..., min_length=1, max_length=50)


class EnergyReadingUpdate(EnergyReadingBase):
    """Request body for PUT /v1/energy-readings/{id}; every field optional"""

    reading_number: Optional[str] = Field(None, min_length=1, max_length=255)
    meter_id: Optional[int] = None
    customer_id: Optional[int] = None
    reading_type: Optional[ReadingType] = None
    reading_source: Optional[ReadingSource] = None
    reading_status: Optional[ReadingStatus] = None
    reading_timestamp: Optional[datetime] = None
    reading_value: Optional[float] = Field(None, ge=-READING_VALUE_LIMIT, le=READING_VALUE_LIMIT)
    reading_unit: Optional[str] = Field(None, min_length=1, max_length=50)

    @field_validator(
        "reading_number",
        "meter_id",
        "customer_id",
        "reading_type",
        "reading_source",
        "reading_status",
        "reading_timestamp",
        "reading_value",
        "reading_unit",
    )
    @classmethod
    def not_null(cls, value):
        # May be omitted, but a stored reading always has these
        if value is None:
            raise ValueError("may not be null")
        return value


class ReadingStatusUpdate(BaseModel):
    """Request body for PATCH /v1/energy-readings/{id}/status"""

    reading_status: ReadingStatus


class ReadingValidationRequest(BaseModel):
    """Request body for POST /v1/energy-readings/{id}/validate"""

    quality_score: Optional[float] = Field(None, ge=0, le=100)
    validation_notes: Optional[str] = Field(None, max_length=1000)
    validated_by: Optional[int] = None


class EnergyReadingSchema(BaseModel):
    id: int
    reading_number: str
    meter_id: int
    installation_id: Optional[int] = None
    consumption_point_id: Optional[int] = None
    customer_id: int
    reading_type: str
    reading_source: str
    reading_status: str
    reading_timestamp: str
    reading_period: Optional[str] = None
    reading_value: float
    reading_unit: str
    previous_reading_value: Optional[float] = None
    consumption_value: Optional[float] = None
    demand_value: Optional[float] = None
    power_factor: Optional[float] = None
    quality_score: Optional[float] = None
    notes: Optional[str] = None
    validation_notes: Optional[str] = None
    validated_by: Optional[int] = None
    validated_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class EnergyReadingListResponse(BaseModel):
    data: List[EnergyReadingSchema]
    meta: PageMeta


class EnergyReadingEnvelope(BaseModel):
    message: Optional[str] = None
    data: EnergyReadingSchema


class ReadingStatisticsSchema(BaseModel):
    total_readings: int
    valid_readings: int
    invalid_readings: int
    suspicious_readings: int
    estimated_readings: int
    corrected_readings: int
    missing_readings: int
    readings_by_type: Dict[str, int]
    readings_by_source: Dict[str, int]
    readings_by_status: Dict[str, int]
    average_quality_score: float


class ReadingStatisticsResponse(BaseModel):
    data: ReadingStatisticsSchema


# ---------------------------------------------------------------------------
# Affiliates
# ---------------------------------------------------------------------------


def normalize_email(value: str) -> str:
    """Lowercase an address after a minimal shape check"""
    local, _, domain = value.partition("@")
    if not local or "." not in domain:
        raise ValueError("must be a valid email address")
    return value.lower()


class AffiliateCreate(BaseModel):
    """Request body for POST /v1/affiliates"""

    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., max_length=255)
    company_name: Optional[str] = Field(None, max_length=255)
    website: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    type: AffiliateType
    status: AffiliateStatus = "pending"
    organization_id: Optional[int] = None
    user_id: Optional[int] = None
    commission_rate: float = Field(0, ge=0, le=100)
    performance_rating: Optional[int] = Field(None, ge=1, le=5)

    @field_validator("email")
    @classmethod
    def email_has_domain(cls, value: str) -> str:
        return normalize_email(value)


class AffiliateUpdate(BaseModel):
    """Request body for PUT /v1/affiliates/{id}; only sent fields change"""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    company_name: Optional[str] = Field(None, max_length=255)
    website: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    type: Optional[AffiliateType] = None
    status: Optional[AffiliateStatus] = None
    organization_id: Optional[int] = None
    user_id: Optional[int] = None
    commission_rate: Optional[float] = Field(None, ge=0, le=100)
    performance_rating: Optional[int] = Field(None, ge=1, le=5)

    @field_validator("name", "email", "type", "status", "commission_rate")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value

    @field_validator("email")
    @classmethod
    def email_has_domain(cls, value: str) -> str:
        return normalize_email(value)


class AffiliateVerifyRequest(BaseModel):
    verification_notes: Optional[str] = Field(None, max_length=1000)


class PerformanceRatingUpdate(BaseModel):
    performance_rating: int = Field(..., ge=1, le=5)


class CommissionRateUpdate(BaseModel):
    commission_rate: float = Field(..., ge=0, le=100)


class AffiliateSchema(BaseModel):
    id: int
    name: str
    email: str
    company_name: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None
    type: str
    status: str
    organization_id: Optional[int] = None
    user_id: Optional[int] = None
    commission_rate: float
    performance_rating: Optional[int] = None
    is_verified: bool
    verified_at: Optional[str] = None
    verification_notes: Optional[str] = None
    created_at: Optional[str] = None


class AffiliateListResponse(BaseModel):
    data: List[AffiliateSchema]
    meta: PageMeta


class AffiliateEnvelope(BaseModel):
    message: Optional[str] = None
    data: AffiliateSchema


class AffiliateStatisticsSchema(BaseModel):
    total_affiliates: int
    active_affiliates: int
    verified_affiliates: int
    affiliates_by_type: Dict[str, int]
    affiliates_by_status: Dict[str, int]
    average_commission_rate: float
    average_performance_rating: float
    monthly_growth: float


class AffiliateStatisticsResponse(BaseModel):
    data: AffiliateStatisticsSchema
    period: str
    message: str


class MessageResponse(BaseModel):
    message: str


class ActiveAffiliatesResponse(BaseModel):
    data: List[AffiliateSchema]
    meta: PageMeta
    message: str


class TopPerformersResponse(BaseModel):
    data: List[AffiliateSchema]
    period: str
    total_affiliates: int
    message: str


class EnumListResponse(BaseModel):
    """Allowed values of an enum field, mapped to display labels"""

    data: Dict[str, str]
