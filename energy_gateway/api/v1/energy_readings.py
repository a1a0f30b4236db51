"""Energy reading endpoints - CRUD, status transitions and statistics"""

from datetime import datetime
from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from energy_gateway.api.dependencies import get_now, get_query_params, get_request_id
from energy_gateway.api.v1.errors import to_http_exception
from energy_gateway.api.v1.schemas import (
    EnergyReadingCreate,
    EnergyReadingEnvelope,
    EnergyReadingListResponse,
    EnergyReadingSchema,
    EnergyReadingUpdate,
    EnumListResponse,
    MessageResponse,
    PageMeta,
    ReadingStatisticsResponse,
    ReadingStatisticsSchema,
    ReadingStatusUpdate,
    ReadingValidationRequest,
)
from energy_gateway.domain import aggregates
from energy_gateway.domain.bucketing import bucket, by_category
from energy_gateway.domain.exceptions import DomainException, ValidationError
from energy_gateway.domain.filters import DAY_FROM, DAY_TO, GTE, LTE, FilterField, parse_filters
from energy_gateway.domain.models import (
    READING_SOURCE_LABELS,
    READING_STATUS_LABELS,
    READING_STATUSES,
    READING_TYPE_LABELS,
)
from energy_gateway.infrastructure.database.models import EnergyReading
from energy_gateway.infrastructure.database.repositories import EnergyReadingRepository
from energy_gateway.infrastructure.database.session import get_db
from energy_gateway.infrastructure.observability.logging import log_transition, log_write
from energy_gateway.infrastructure.observability.metrics import record_transition
from energy_gateway.utils.date_utils import to_naive_utc

router = APIRouter()

READING_FILTERS = (
    FilterField("reading_type", "reading_type"),
    FilterField("reading_source", "reading_source"),
    FilterField("reading_status", "reading_status"),
    FilterField("meter_id", "meter_id", kind="int"),
    FilterField("installation_id", "installation_id", kind="int"),
    FilterField("consumption_point_id", "consumption_point_id", kind="int"),
    FilterField("customer_id", "customer_id", kind="int"),
    FilterField("reading_timestamp_from", "reading_timestamp", op=DAY_FROM, kind="date"),
    FilterField("reading_timestamp_to", "reading_timestamp", op=DAY_TO, kind="date"),
    FilterField("quality_score_min", "quality_score", op=GTE, kind="float"),
    FilterField("quality_score_max", "quality_score", op=LTE, kind="float"),
)

STATISTICS_FILTERS = (
    FilterField("reading_type", "reading_type"),
    FilterField("reading_source", "reading_source"),
    FilterField("reading_status", "reading_status"),
    FilterField("meter_id", "meter_id", kind="int"),
    FilterField("customer_id", "customer_id", kind="int"),
)

SORT_FIELDS = ("reading_timestamp", "reading_value", "quality_score", "created_at")
SEARCH_COLUMNS = ("reading_number", "notes")


def _optional_float(value) -> Optional[float]:
    return float(value) if value is not None else None


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def to_reading_schema(reading: EnergyReading) -> EnergyReadingSchema:
    return EnergyReadingSchema(
        id=reading.id,
        reading_number=reading.reading_number,
        meter_id=reading.meter_id,
        installation_id=reading.installation_id,
        consumption_point_id=reading.consumption_point_id,
        customer_id=reading.customer_id,
        reading_type=reading.reading_type,
        reading_source=reading.reading_source,
        reading_status=reading.reading_status,
        reading_timestamp=reading.reading_timestamp.isoformat(),
        reading_period=reading.reading_period,
        reading_value=float(reading.reading_value),
        reading_unit=reading.reading_unit,
        previous_reading_value=_optional_float(reading.previous_reading_value),
        consumption_value=_optional_float(reading.consumption_value),
        demand_value=_optional_float(reading.demand_value),
        power_factor=_optional_float(reading.power_factor),
        quality_score=_optional_float(reading.quality_score),
        notes=reading.notes,
        validation_notes=reading.validation_notes,
        validated_by=reading.validated_by,
        validated_at=_iso(reading.validated_at),
        created_at=_iso(reading.created_at),
        updated_at=_iso(reading.updated_at),
    )


def _check_write(repo: EnergyReadingRepository, values: Dict[str, Any], now: datetime, reading_id: Optional[int] = None) -> None:
    """
    Rules the schema cannot express on its own.

    Raises:
        ValidationError: Future timestamp or duplicate reading number
    """
    errors = {}
    timestamp = values.get("reading_timestamp")
    if timestamp is not None and to_naive_utc(timestamp) > now:
        errors["reading_timestamp"] = ["The reading timestamp cannot be in the future."]

    number = values.get("reading_number")
    if number is not None and repo.reading_number_taken(number, exclude_id=reading_id):
        errors["reading_number"] = ["The reading number has already been taken."]

    if errors:
        raise ValidationError(errors)


def _naive(values: Dict[str, Any]) -> Dict[str, Any]:
    if values.get("reading_timestamp") is not None:
        values["reading_timestamp"] = to_naive_utc(values["reading_timestamp"])
    return values


@router.get("/energy-readings", response_model=EnergyReadingListResponse)
def list_readings(
    request: Request,
    params: Dict[str, Any] = Depends(get_query_params),
    db: Session = Depends(get_db),
):
    """
    List readings with search, filters, sorting and pagination.

    sort_by must be one of reading_timestamp, reading_value, quality_score or
    created_at; anything else leaves the listing unordered.
    """
    request_id = get_request_id(request)
    try:
        spec = parse_filters(
            params,
            READING_FILTERS,
            sort_fields=SORT_FIELDS,
            default_sort="reading_timestamp",
            search_columns=SEARCH_COLUMNS,
        )
        page = EnergyReadingRepository(db).paginate(spec)
    except DomainException as e:
        raise to_http_exception(e, request_id, "retrieving energy readings")

    return EnergyReadingListResponse(
        data=[to_reading_schema(r) for r in page.items],
        meta=PageMeta(
            current_page=page.current_page,
            total=page.total,
            per_page=page.per_page,
            last_page=page.last_page,
        ),
    )


@router.post("/energy-readings", response_model=EnergyReadingEnvelope, status_code=201)
def create_reading(
    request_body: EnergyReadingCreate,
    request: Request,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Create a reading; enums and ranges are validated strictly"""
    request_id = get_request_id(request)
    repo = EnergyReadingRepository(db)
    values = _naive(request_body.model_dump())
    try:
        _check_write(repo, values, now)
        reading = repo.create(**values, created_at=now, updated_at=now)
        repo.commit()
    except DomainException as e:
        db.rollback()
        raise to_http_exception(e, request_id, "creating energy reading")

    log_write(request_id, "Energy reading", reading.id, "created", reading_number=reading.reading_number)
    return EnergyReadingEnvelope(message="Energy reading created successfully", data=to_reading_schema(reading))


@router.get("/energy-readings/statistics", response_model=ReadingStatisticsResponse)
def reading_statistics(
    request: Request,
    params: Dict[str, Any] = Depends(get_query_params),
    db: Session = Depends(get_db),
):
    """Counts by status, type and source plus the average quality score"""
    request_id = get_request_id(request)
    try:
        spec = parse_filters(params, STATISTICS_FILTERS)
        readings = EnergyReadingRepository(db).fetch_all(spec)
    except DomainException as e:
        raise to_http_exception(e, request_id, "retrieving energy reading statistics")

    by_status = {status: len(group) for status, group in bucket(readings, lambda r: r.reading_status).items()}
    records = EnergyReadingRepository.to_records(readings)
    scores = [float(r.quality_score) for r in readings if r.quality_score is not None]

    counts = {f"{status}_readings": by_status.get(status, 0) for status in READING_STATUSES}

    return ReadingStatisticsResponse(
        data=ReadingStatisticsSchema(
            total_readings=len(readings),
            **counts,
            readings_by_type={k: len(v) for k, v in bucket(records, by_category).items()},
            readings_by_source={k: len(v) for k, v in bucket(readings, lambda r: r.reading_source).items()},
            readings_by_status=by_status,
            average_quality_score=aggregates.round_half_up(aggregates.mean(scores), 2),
        )
    )


@router.get("/energy-readings/types", response_model=EnumListResponse)
def reading_types():
    return EnumListResponse(data=READING_TYPE_LABELS)


@router.get("/energy-readings/sources", response_model=EnumListResponse)
def reading_sources():
    return EnumListResponse(data=READING_SOURCE_LABELS)


@router.get("/energy-readings/statuses", response_model=EnumListResponse)
def reading_statuses():
    return EnumListResponse(data=READING_STATUS_LABELS)

@router.get("/energy-readings/{reading_id}", response_model=EnergyReadingEnvelope)
def get_reading(reading_id: int, request: Request, db: Session = Depends(get_db)):
    try:
        reading = EnergyReadingRepository(db).get(reading_id)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request), "retrieving energy reading")

    return EnergyReadingEnvelope(data=to_reading_schema(reading))


@router.put("/energy-readings/{reading_id}", response_model=EnergyReadingEnvelope)
def update_reading(
    reading_id: int,
    request_body: EnergyReadingUpdate,
    request: Request,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Partial update; only fields present in the body are changed"""
    request_id = get_request_id(request)
    repo = EnergyReadingRepository(db)
    values = _naive(request_body.model_dump(exclude_unset=True))
    try:
        reading = repo.get(reading_id)
        _check_write(repo, values, now, reading_id=reading_id)
        repo.update(reading, **values, updated_at=now)
        repo.commit()
    except DomainException as e:
        db.rollback()
        raise to_http_exception(e, request_id, "updating energy reading")

    log_write(request_id, "Energy reading", reading.id, "updated", reading_number=reading.reading_number)
    return EnergyReadingEnvelope(message="Energy reading updated successfully", data=to_reading_schema(reading))


@router.delete("/energy-readings/{reading_id}", response_model=MessageResponse)
def delete_reading(reading_id: int, request: Request, db: Session = Depends(get_db)):
    request_id = get_request_id(request)
    repo = EnergyReadingRepository(db)
    try:
        reading = repo.get(reading_id)
        reading_number = reading.reading_number
        repo.delete(reading)
        repo.commit()
    except DomainException as e:
        db.rollback()
        raise to_http_exception(e, request_id, "deleting energy reading")

    log_write(request_id, "Energy reading", reading_id, "deleted", reading_number=reading_number)
    return MessageResponse(message="Energy reading deleted successfully")


@router.patch("/energy-readings/{reading_id}/status")
def update_reading_status(
    reading_id: int,
    request_body: ReadingStatusUpdate,
    request: Request,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Move a reading to another status; the new status must be a known one"""
    request_id = get_request_id(request)
    repo = EnergyReadingRepository(db)
    try:
        reading = repo.get(reading_id)
        old_status = reading.reading_status
        repo.update(reading, reading_status=request_body.reading_status, updated_at=now)
        repo.commit()
    except DomainException as e:
        db.rollback()
        raise to_http_exception(e, request_id, "updating energy reading status")

    record_transition("energy_reading", reading.reading_status)
    log_transition(request_id, "Energy reading", reading.id, old_status, reading.reading_status)

    return {
        "message": "Reading status updated successfully",
        "data": {
            "id": reading.id,
            "reading_status": reading.reading_status,
            "updated_at": _iso(reading.updated_at),
        },
    }


@router.post("/energy-readings/{reading_id}/validate")
def validate_reading(
    reading_id: int,
    request_body: ReadingValidationRequest,
    request: Request,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Stamp a reading as validated, optionally scoring its quality"""
    request_id = get_request_id(request)
    repo = EnergyReadingRepository(db)

    values: Dict[str, Any] = {"validated_by": request_body.validated_by, "validated_at": now, "updated_at": now}
    if request_body.quality_score is not None:
        values["quality_score"] = request_body.quality_score
    if request_body.validation_notes:
        values["validation_notes"] = request_body.validation_notes

    try:
        reading = repo.get(reading_id)
        repo.update(reading, **values)
        repo.commit()
    except DomainException as e:
        db.rollback()
        raise to_http_exception(e, request_id, "validating energy reading")

    log_write(request_id, "Energy reading", reading.id, "validated", quality_score=values.get("quality_score"))

    return {
        "message": "Reading validated successfully",
        "data": {
            "id": reading.id,
            "validated_at": _iso(reading.validated_at),
            "quality_score": _optional_float(reading.quality_score),
        },
    }
