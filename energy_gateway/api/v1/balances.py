"""Balance endpoints - movements, listings, history and analytics"""

import time
from datetime import datetime
from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from energy_gateway.api.dependencies import get_now, get_query_params, get_request_id
from energy_gateway.api.v1.errors import to_http_exception
from energy_gateway.api.v1.schemas import (
    AnalyticsResponse,
    BalanceListResponse,
    BalanceSchema,
    DepositRequest,
    HistoryPeriod,
    InvestmentRequest,
    MyBalanceResponse,
    PageMeta,
    TransactionHistoryResponse,
    WithdrawalRequest,
    YieldRequest,
)
from energy_gateway.config import settings
from energy_gateway.domain.aggregates import round_half_up
from energy_gateway.domain.analytics import PERIOD_MONTHS, compute_analytics, resolve_period, transaction_summary
from energy_gateway.domain.exceptions import DomainException, InsufficientFundsError
from energy_gateway.domain.filters import DAY_FROM, DAY_TO, FilterField, parse_filters
from energy_gateway.domain.models import AnalyticsReport, DEPOSIT, INVESTMENT, WITHDRAWAL, YIELD
from energy_gateway.domain.movements import build_movement, ensure_sufficient_funds
from energy_gateway.infrastructure.database.models import Balance
from energy_gateway.infrastructure.database.repositories import BalanceRepository
from energy_gateway.infrastructure.database.session import get_db
from energy_gateway.infrastructure.observability.logging import log_analytics, log_write
from energy_gateway.infrastructure.observability.metrics import record_analytics, record_movement
from energy_gateway.utils.date_utils import subtract_months

router = APIRouter()

BALANCE_FILTERS = (
    FilterField("user_id", "user_id", kind="int"),
    FilterField("type", "transaction_type"),
    FilterField("date_from", "created_at", op=DAY_FROM, kind="date"),
    FilterField("date_to", "created_at", op=DAY_TO, kind="date"),
)


def _money(value: float) -> float:
    return round_half_up(value, 2)


def _percent(value: float) -> float:
    return round_half_up(value, 1)


def to_balance_schema(balance: Balance) -> BalanceSchema:
    return BalanceSchema(
        id=balance.id,
        user_id=balance.user_id,
        amount=float(balance.amount),
        transaction_type=balance.transaction_type,
        description=balance.description,
        status=balance.status,
        reference_id=balance.reference_id,
        metadata=balance.details or {},
        created_at=balance.created_at.isoformat(),
    )


def to_analytics_response(period: str, report: AnalyticsReport) -> AnalyticsResponse:
    """Presentation boundary: money to 2 decimals, percentages to 1"""
    payload = report.to_dict()
    flows = payload["income_vs_expenses"]
    for key in ("total_income", "total_expenses", "net_flow"):
        flows[key] = _money(flows[key])
    for item in flows["income_sources"] + flows["expense_categories"]:
        item["total"] = _money(item["total"])
        item["percentage"] = _percent(item["percentage"])

    performance = payload["yield_performance"]
    performance["total_yield"] = _money(performance["total_yield"])
    performance["average_monthly_yield"] = _money(performance["average_monthly_yield"])
    performance["yield_growth_rate"] = _percent(performance["yield_growth_rate"])
    performance["yield_consistency"] = _percent(performance["yield_consistency"])

    for trend in payload["monthly_trends"]:
        for key in ("total_amount", "income", "expenses", "net_flow"):
            trend[key] = _money(trend[key])

    return AnalyticsResponse(period=period, **payload)


@router.get("/balances", response_model=BalanceListResponse)
def list_balances(
    request: Request,
    params: Dict[str, Any] = Depends(get_query_params),
    db: Session = Depends(get_db),
):
    """
    List balance movements, newest first.

    Filters: user_id, type, date_from, date_to (whole days). Unknown type
    values are not rejected; they simply match nothing.
    """
    request_id = get_request_id(request)
    try:
        spec = parse_filters(params, BALANCE_FILTERS)
        # Always newest first
        spec.sort_by = "created_at"
        spec.sort_direction = "desc"
        page = BalanceRepository(db).paginate(spec)
    except DomainException as e:
        raise to_http_exception(e, request_id, "retrieving balances")

    return BalanceListResponse(
        data=[to_balance_schema(b) for b in page.items],
        meta=PageMeta(
            current_page=page.current_page,
            total=page.total,
            per_page=page.per_page,
            last_page=page.last_page,
        ),
    )


@router.get("/balances/my-balance", response_model=MyBalanceResponse)
def my_balance(
    request: Request,
    user_id: int = Query(..., description="User identifier"),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """
    Current, pending and available balance for a user.

    Pending withdrawals are already deducted from the available balance;
    current adds them back, so available = current - pending.
    """
    request_id = get_request_id(request)
    repo = BalanceRepository(db)
    try:
        available = repo.available_balance(user_id)
        pending = repo.pending_balance(user_id)
        recent = repo.recent(user_id, settings.recent_transactions_limit)
    except DomainException as e:
        raise to_http_exception(e, request_id, "retrieving balance")

    return MyBalanceResponse(
        current_balance=_money(available + pending),
        pending_balance=_money(pending),
        available_balance=_money(available),
        currency=settings.currency,
        recent_transactions=[to_balance_schema(b) for b in recent],
        updated_at=now.isoformat(),
    )


@router.get("/balances/transaction-history", response_model=TransactionHistoryResponse)
def transaction_history(
    request: Request,
    user_id: int = Query(..., description="User identifier"),
    months: int = Query(12, ge=1, description="Look back this many months"),
    transaction_type: Optional[str] = Query(None, alias="type", description="Filter by transaction type"),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Movements of the last N months with per-type totals and a monthly breakdown"""
    request_id = get_request_id(request)
    start = subtract_months(now, months)
    repo = BalanceRepository(db)
    try:
        rows = repo.since(user_id, start, transaction_type=transaction_type or None)
    except DomainException as e:
        raise to_http_exception(e, request_id, "retrieving transaction history")

    summary = transaction_summary(repo.to_records(rows))
    for key in ("total_deposits", "total_withdrawals", "total_yields", "total_investments", "net_flow"):
        summary[key] = _money(summary[key])
    for month in summary["by_month"]:
        for key in ("total_amount", "deposits", "withdrawals", "yields", "investments"):
            month[key] = _money(month[key])

    return TransactionHistoryResponse(
        data=[to_balance_schema(b) for b in rows],
        summary=summary,
        period=HistoryPeriod(**{"from": start.date().isoformat(), "to": now.date().isoformat(), "months": months}),
    )


def _record_movement(
    db: Session,
    request_id: str,
    transaction_type: str,
    user_id: int,
    amount: float,
    now: datetime,
    description: Optional[str],
    metadata: Dict[str, Any],
    check_funds: bool = False,
) -> BalanceSchema:
    """Validate funds if needed, persist the movement and commit"""
    repo = BalanceRepository(db)
    try:
        if check_funds:
            ensure_sufficient_funds(repo.available_balance(user_id), amount, transaction_type)

        movement = build_movement(transaction_type, user_id, amount, now, description, metadata)
        balance = repo.create_movement(movement)
        repo.commit()

    except InsufficientFundsError as e:
        db.rollback()
        record_movement(transaction_type, created=False)
        raise to_http_exception(e, request_id, f"recording {transaction_type}")

    except DomainException as e:
        db.rollback()
        raise to_http_exception(e, request_id, f"recording {transaction_type}")

    except Exception as e:
        db.rollback()
        raise to_http_exception(e, request_id, f"recording {transaction_type}")

    record_movement(transaction_type, created=True)
    log_write(request_id, "Balance", balance.id, "created", transaction_type=transaction_type, user_id=user_id)
    return to_balance_schema(balance)


@router.post("/balances/deposit", response_model=BalanceSchema, status_code=201)
def deposit(
    request_body: DepositRequest,
    request: Request,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Credit a deposit; settles immediately"""
    return _record_movement(
        db,
        get_request_id(request),
        DEPOSIT,
        request_body.user_id,
        request_body.amount,
        now,
        request_body.description,
        {"payment_method": request_body.payment_method, "processed_at": now.isoformat()},
    )


@router.post("/balances/withdraw", response_model=BalanceSchema, status_code=201)
def withdraw(
    request_body: WithdrawalRequest,
    request: Request,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Request a withdrawal; stays pending until processed. 400 on insufficient funds."""
    return _record_movement(
        db,
        get_request_id(request),
        WITHDRAWAL,
        request_body.user_id,
        request_body.amount,
        now,
        request_body.description,
        {"withdrawal_method": request_body.withdrawal_method, "requested_at": now.isoformat()},
        check_funds=True,
    )


@router.post("/balances/investment", response_model=BalanceSchema, status_code=201)
def investment(
    request_body: InvestmentRequest,
    request: Request,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Record an investment in an energy product. 400 on insufficient funds."""
    return _record_movement(
        db,
        get_request_id(request),
        INVESTMENT,
        request_body.user_id,
        request_body.amount,
        now,
        request_body.description,
        {
            "product_id": request_body.product_id,
            "user_asset_id": request_body.user_asset_id,
            "invested_at": now.isoformat(),
        },
        check_funds=True,
    )


@router.post("/balances/yield", response_model=BalanceSchema, status_code=201)
def register_yield(
    request_body: YieldRequest,
    request: Request,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Record the yield generated by an asset"""
    return _record_movement(
        db,
        get_request_id(request),
        YIELD,
        request_body.user_id,
        request_body.amount,
        now,
        request_body.description,
        {"user_asset_id": request_body.user_asset_id, "generated_at": now.isoformat()},
    )


@router.get("/balances/analytics", response_model=AnalyticsResponse)
def analytics(
    request: Request,
    user_id: int = Query(..., description="User identifier"),
    period: str = Query("3m", description="1m | 3m | 6m | 1y"),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """
    Financial analytics over the user's recent movements.

    Flow:
    1. Resolve the period to a month count (unknown periods → 3 months)
    2. Fetch every movement created since now - months
    3. Aggregate income/expenses, yield performance and monthly trends
    4. Derive the performance score and recommendations
    """
    start_time = time.time()
    request_id = get_request_id(request)
    months = resolve_period(period)

    repo = BalanceRepository(db)
    try:
        rows = repo.since(user_id, subtract_months(now, months))
    except DomainException as e:
        raise to_http_exception(e, request_id, "computing analytics")

    report = compute_analytics(repo.to_records(rows), months, now)

    duration_ms = (time.time() - start_time) * 1000
    record_analytics(period if period in PERIOD_MONTHS else "default", report.performance_score)
    log_analytics(request_id, user_id, period, len(rows), report.performance_score, duration_ms)

    return to_analytics_response(period, report)


@router.get("/balances/{balance_id}", response_model=BalanceSchema)
def get_balance(balance_id: int, request: Request, db: Session = Depends(get_db)):
    """Retrieve a single movement"""
    try:
        balance = BalanceRepository(db).get(balance_id)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request), "retrieving balance")

    return to_balance_schema(balance)
