"""Affiliate endpoints - registry, verification, ratings and statistics"""

from datetime import datetime
from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from energy_gateway.api.dependencies import get_now, get_query_params, get_request_id
from energy_gateway.api.v1.errors import to_http_exception
from energy_gateway.api.v1.schemas import (
    ActiveAffiliatesResponse,
    AffiliateCreate,
    AffiliateEnvelope,
    AffiliateListResponse,
    AffiliateSchema,
    AffiliateStatisticsResponse,
    AffiliateStatisticsSchema,
    AffiliateUpdate,
    AffiliateVerifyRequest,
    CommissionRateUpdate,
    MessageResponse,
    PageMeta,
    PerformanceRatingUpdate,
    TopPerformersResponse,
)
from energy_gateway.domain import aggregates
from energy_gateway.domain.bucketing import bucket
from energy_gateway.domain.exceptions import DomainException, InvalidTransitionError, ValidationError
from energy_gateway.domain.filters import DAY_FROM, DAY_TO, GTE, LTE, FilterField, parse_filters
from energy_gateway.infrastructure.database.models import Affiliate
from energy_gateway.infrastructure.database.repositories import AffiliateRepository
from energy_gateway.infrastructure.database.session import get_db
from energy_gateway.infrastructure.observability.logging import log_transition, log_write
from energy_gateway.infrastructure.observability.metrics import record_transition
from energy_gateway.utils.date_utils import month_key, subtract_months

router = APIRouter()

AFFILIATE_FILTERS = (
    FilterField("status", "status"),
    FilterField("type", "type"),
    FilterField("organization_id", "organization_id", kind="int"),
    FilterField("is_verified", "is_verified", kind="bool"),
    FilterField("commission_rate_min", "commission_rate", op=GTE, kind="float"),
    FilterField("commission_rate_max", "commission_rate", op=LTE, kind="float"),
    FilterField("performance_rating_min", "performance_rating", op=GTE, kind="int"),
    FilterField("performance_rating_max", "performance_rating", op=LTE, kind="int"),
    FilterField("created_at_from", "created_at", op=DAY_FROM, kind="date"),
    FilterField("created_at_to", "created_at", op=DAY_TO, kind="date"),
)

ACTIVE_FILTERS = (
    FilterField("type", "type"),
    FilterField("organization_id", "organization_id", kind="int"),
)


SORT_FIELDS = (
    "name",
    "email",
    "company_name",
    "status",
    "type",
    "commission_rate",
    "performance_rating",
    "created_at",
)
SEARCH_COLUMNS = ("name", "email", "company_name", "website", "description")


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def to_affiliate_schema(affiliate: Affiliate) -> AffiliateSchema:
    return AffiliateSchema(
        id=affiliate.id,
        name=affiliate.name,
        email=affiliate.email,
        company_name=affiliate.company_name,
        website=affiliate.website,
        description=affiliate.description,
        type=affiliate.type,
        status=affiliate.status,
        organization_id=affiliate.organization_id,
        user_id=affiliate.user_id,
        commission_rate=float(affiliate.commission_rate or 0),
        performance_rating=affiliate.performance_rating,
        is_verified=bool(affiliate.is_verified),
        verified_at=_iso(affiliate.verified_at),
        verification_notes=affiliate.verification_notes,
        created_at=_iso(affiliate.created_at),
    )


def monthly_growth(affiliates, now: datetime) -> float:
    """Affiliates created in now's calendar month against the month before"""
    current_key = month_key(now)
    previous_key = month_key(subtract_months(now, 1))
    per_month = bucket(affiliates, lambda a: month_key(a.created_at))
    return aggregates.period_growth(len(per_month.get(previous_key, [])), len(per_month.get(current_key, [])))


@router.get("/affiliates", response_model=AffiliateListResponse)
def list_affiliates(
    request: Request,
    params: Dict[str, Any] = Depends(get_query_params),
    db: Session = Depends(get_db),
):
    """
    List affiliates with search, filters, sorting and pagination.

    search matches name, email, company name, website and description.
    is_verified accepts 1/true/on/yes as true.
    """
    request_id = get_request_id(request)
    try:
        spec = parse_filters(
            params,
            AFFILIATE_FILTERS,
            sort_fields=SORT_FIELDS,
            default_sort="created_at",
            search_columns=SEARCH_COLUMNS,
        )
        page = AffiliateRepository(db).paginate(spec)
    except DomainException as e:
        raise to_http_exception(e, request_id, "retrieving affiliates")

    return AffiliateListResponse(
        data=[to_affiliate_schema(a) for a in page.items],
        meta=PageMeta(
            current_page=page.current_page,
            total=page.total,
            per_page=page.per_page,
            last_page=page.last_page,
        ),
    )


@router.post("/affiliates", response_model=AffiliateEnvelope, status_code=201)
def create_affiliate(
    request_body: AffiliateCreate,
    request: Request,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    request_id = get_request_id(request)
    repo = AffiliateRepository(db)
    try:
        if repo.email_taken(request_body.email):
            raise ValidationError.for_field("email", "The email has already been taken.")
        affiliate = repo.create(**request_body.model_dump(), is_verified=False, created_at=now, updated_at=now)
        repo.commit()
    except DomainException as e:
        db.rollback()
        raise to_http_exception(e, request_id, "creating affiliate")

    log_write(request_id, "Affiliate", affiliate.id, "created", email=affiliate.email, affiliate_type=affiliate.type)
    return AffiliateEnvelope(message="Affiliate created successfully", data=to_affiliate_schema(affiliate))


@router.get("/affiliates/statistics", response_model=AffiliateStatisticsResponse)
def affiliate_statistics(
    request: Request,
    organization_id: Optional[int] = Query(None, description="Restrict to one organization"),
    period: str = Query("year", description="Echoed back with the statistics"),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """
    Registry statistics, optionally for one organization.

    monthly_growth compares affiliates created this calendar month with the
    previous one.
    """
    request_id = get_request_id(request)
    params = {"organization_id": organization_id} if organization_id is not None else {}
    try:
        spec = parse_filters(params, AFFILIATE_FILTERS)
        affiliates = AffiliateRepository(db).fetch_all(spec)
    except DomainException as e:
        raise to_http_exception(e, request_id, "retrieving affiliate statistics")

    rates = [float(a.commission_rate) for a in affiliates if a.commission_rate is not None]
    ratings = [a.performance_rating for a in affiliates if a.performance_rating is not None]

    return AffiliateStatisticsResponse(
        data=AffiliateStatisticsSchema(
            total_affiliates=len(affiliates),
            active_affiliates=sum(1 for a in affiliates if a.status == "active"),
            verified_affiliates=sum(1 for a in affiliates if a.is_verified),
            affiliates_by_type={k: len(v) for k, v in bucket(affiliates, lambda a: a.type).items()},
            affiliates_by_status={k: len(v) for k, v in bucket(affiliates, lambda a: a.status).items()},
            average_commission_rate=aggregates.round_half_up(aggregates.mean(rates), 2),
            average_performance_rating=aggregates.round_half_up(aggregates.mean(ratings), 1),
            monthly_growth=aggregates.round_half_up(monthly_growth(affiliates, now), 1),
        ),
        period=period,
        message="Affiliate statistics retrieved successfully",
    )


@router.get("/affiliates/active", response_model=ActiveAffiliatesResponse)
def active_affiliates(
    request: Request,
    params: Dict[str, Any] = Depends(get_query_params),
    db: Session = Depends(get_db),
):
    """Active and verified affiliates by name, optionally narrowed by type or organization"""
    request_id = get_request_id(request)
    try:
        spec = parse_filters(params, ACTIVE_FILTERS)
        page = AffiliateRepository(db).active_verified(spec)
    except DomainException as e:
        raise to_http_exception(e, request_id, "retrieving active affiliates")

    return ActiveAffiliatesResponse(
        data=[to_affiliate_schema(a) for a in page.items],
        meta=PageMeta(
            current_page=page.current_page,
            total=page.total,
            per_page=page.per_page,
            last_page=page.last_page,
        ),
        message="Active affiliates retrieved successfully",
    )


@router.get("/affiliates/top-performers", response_model=TopPerformersResponse)
def top_performers(
    request: Request,
    limit: int = Query(10, ge=1, description="Capped at 50"),
    period: str = Query("month", description="Echoed back with the ranking"),
    organization_id: Optional[int] = Query(None, description="Restrict to one organization"),
    db: Session = Depends(get_db),
):
    """
    Best rated active, verified affiliates; unrated ones rank last.

    Ties on rating are broken by the higher commission rate.
    """
    request_id = get_request_id(request)
    repo = AffiliateRepository(db)
    try:
        affiliates = repo.top_performers(min(limit, 50), organization_id)
        total = repo.count_active(organization_id)
    except DomainException as e:
        raise to_http_exception(e, request_id, "retrieving top performers")

    return TopPerformersResponse(
        data=[to_affiliate_schema(a) for a in affiliates],
        period=period,
        total_affiliates=total,
        message="Top performing affiliates retrieved successfully",
    )


@router.get("/affiliates/{affiliate_id}", response_model=AffiliateEnvelope)
def get_affiliate(affiliate_id: int, request: Request, db: Session = Depends(get_db)):
    try:
        affiliate = AffiliateRepository(db).get(affiliate_id)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request), "retrieving affiliate")

    return AffiliateEnvelope(data=to_affiliate_schema(affiliate))


@router.put("/affiliates/{affiliate_id}", response_model=AffiliateEnvelope)
def update_affiliate(
    affiliate_id: int,
    request_body: AffiliateUpdate,
    request: Request,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Partial update; the email must stay unique among other affiliates"""
    request_id = get_request_id(request)
    repo = AffiliateRepository(db)
    values = request_body.model_dump(exclude_unset=True)
    try:
        affiliate = repo.get(affiliate_id)
        if "email" in values and repo.email_taken(values["email"], exclude_id=affiliate_id):
            raise ValidationError.for_field("email", "The email has already been taken.")
        repo.update(affiliate, **values, updated_at=now)
        repo.commit()
    except DomainException as e:
        db.rollback()
        raise to_http_exception(e, request_id, "updating affiliate")

    log_write(request_id, "Affiliate", affiliate.id, "updated", fields=sorted(values))
    return AffiliateEnvelope(message="Affiliate updated successfully", data=to_affiliate_schema(affiliate))


@router.delete("/affiliates/{affiliate_id}", response_model=MessageResponse)
def delete_affiliate(affiliate_id: int, request: Request, db: Session = Depends(get_db)):
    request_id = get_request_id(request)
    repo = AffiliateRepository(db)
    try:
        affiliate = repo.get(affiliate_id)
        email = affiliate.email
        repo.delete(affiliate)
        repo.commit()
    except DomainException as e:
        db.rollback()
        raise to_http_exception(e, request_id, "deleting affiliate")

    log_write(request_id, "Affiliate", affiliate_id, "deleted", email=email)
    return MessageResponse(message="Affiliate deleted successfully")


@router.post("/affiliates/{affiliate_id}/verify", response_model=MessageResponse)
def verify_affiliate(
    affiliate_id: int,
    request_body: AffiliateVerifyRequest,
    request: Request,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """
    Mark an affiliate as verified.

    Raises 422 when the affiliate is already verified.
    """
    request_id = get_request_id(request)
    repo = AffiliateRepository(db)
    try:
        affiliate = repo.get(affiliate_id)
        if affiliate.is_verified:
            raise InvalidTransitionError("Affiliate is already verified")
        repo.update(
            affiliate,
            is_verified=True,
            verified_at=now,
            verification_notes=request_body.verification_notes,
            updated_at=now,
        )
        repo.commit()
    except DomainException as e:
        db.rollback()
        raise to_http_exception(e, request_id, "verifying affiliate")

    record_transition("affiliate", "verified")
    log_transition(request_id, "Affiliate", affiliate.id, "unverified", "verified")
    return MessageResponse(message="Affiliate verified successfully")


@router.patch("/affiliates/{affiliate_id}/performance-rating", response_model=MessageResponse)
def update_performance_rating(
    affiliate_id: int,
    request_body: PerformanceRatingUpdate,
    request: Request,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    request_id = get_request_id(request)
    repo = AffiliateRepository(db)
    try:
        affiliate = repo.get(affiliate_id)
        repo.update(affiliate, performance_rating=request_body.performance_rating, updated_at=now)
        repo.commit()
    except DomainException as e:
        db.rollback()
        raise to_http_exception(e, request_id, "updating performance rating")

    log_write(request_id, "Affiliate", affiliate.id, "rated", performance_rating=request_body.performance_rating)
    return MessageResponse(message="Performance rating updated successfully")


@router.patch("/affiliates/{affiliate_id}/commission-rate", response_model=MessageResponse)
def update_commission_rate(
    affiliate_id: int,
    request_body: CommissionRateUpdate,
    request: Request,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    request_id = get_request_id(request)
    repo = AffiliateRepository(db)
    try:
        affiliate = repo.get(affiliate_id)
        repo.update(affiliate, commission_rate=request_body.commission_rate, updated_at=now)
        repo.commit()
    except DomainException as e:
        db.rollback()
        raise to_http_exception(e, request_id, "updating commission rate")

    log_write(request_id, "Affiliate", affiliate.id, "repriced", commission_rate=request_body.commission_rate)
    return MessageResponse(message="Commission rate updated successfully")
