"""Data access layer for balances, energy readings and affiliates"""

import math
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session
from energy_gateway.domain.exceptions import InfrastructureError, NotFoundError
from energy_gateway.domain.filters import DAY_FROM, DAY_TO, EQ, GTE, LTE, FilterSpec
from energy_gateway.domain.models import BalanceMovement, Record, PENDING
from energy_gateway.infrastructure.database.models import Affiliate, Balance, EnergyReading
from energy_gateway.infrastructure.observability.metrics import storage_failure_counter
from energy_gateway.utils.date_utils import end_of_day_exclusive, start_of_day


@dataclass
class Page:
    """One page of a listing plus pagination metadata"""

    items: List[Any]
    total: int
    current_page: int
    per_page: int

    @property
    def last_page(self) -> int:
        return max(math.ceil(self.total / self.per_page), 1)


@contextmanager
def storage_errors(filters: Optional[Dict[str, Any]] = None) -> Iterator[None]:
    """Re-raise driver/ORM failures as InfrastructureError"""
    try:
        yield
    except SQLAlchemyError as e:
        storage_failure_counter.inc()
        raise InfrastructureError(f"Storage failure: {e}", filters=filters) from e


class FilteredRepository:
    """Shared filter, sort and pagination handling for one ORM model"""

    model = None
    entity = "Record"

    def __init__(self, db: Session):
        self.db = db

    def apply_filters(self, query: Query, spec: FilterSpec) -> Query:
        for predicate in spec.predicates:
            column = getattr(self.model, predicate.column)
            if predicate.op == EQ:
                query = query.filter(column == predicate.value)
            elif predicate.op == GTE:
                query = query.filter(column >= predicate.value)
            elif predicate.op == LTE:
                query = query.filter(column <= predicate.value)
            elif predicate.op == DAY_FROM:
                query = query.filter(column >= start_of_day(predicate.value))
            elif predicate.op == DAY_TO:
                query = query.filter(column < end_of_day_exclusive(predicate.value))

        if spec.search:
            pattern = f"%{spec.search}%"
            query = query.filter(
                or_(*(getattr(self.model, name).like(pattern) for name in spec.search_columns))
            )

        if spec.sort_by:
            column = getattr(self.model, spec.sort_by)
            query = query.order_by(column.asc() if spec.sort_direction == "asc" else column.desc())

        return query

    def fetch_all(self, spec: FilterSpec) -> List[Any]:
        """Every matching row, unpaginated, for in-memory aggregation"""
        with storage_errors(spec.as_log_context()):
            return self.apply_filters(self.db.query(self.model), spec).all()

    def paginate(self, spec: FilterSpec) -> Page:
        """One page of matching rows for listing endpoints"""
        with storage_errors(spec.as_log_context()):
            query = self.apply_filters(self.db.query(self.model), spec)
            total = query.order_by(None).count()
            items = query.offset((spec.page - 1) * spec.per_page).limit(spec.per_page).all()
        return Page(items=items, total=total, current_page=spec.page, per_page=spec.per_page)

    def get(self, entity_id: int):
        """
        Raises:
            NotFoundError: When no row has this id
        """
        with storage_errors({"id": entity_id}):
            row = self.db.get(self.model, entity_id)
        if row is None:
            raise NotFoundError(self.entity, entity_id)
        return row

    def create(self, **values):
        with storage_errors():
            row = self.model(**values)
            self.db.add(row)
            self.db.flush()  # Get ID without committing
        return row

    def update(self, row, **values):
        with storage_errors({"id": row.id}):
            for name, value in values.items():
                setattr(row, name, value)
            self.db.flush()
        return row

    def delete(self, row) -> None:
        with storage_errors({"id": row.id}):
            self.db.delete(row)
            self.db.flush()

    def commit(self) -> None:
        with storage_errors():
            self.db.commit()


class BalanceRepository(FilteredRepository):
    """Repository for balance movements"""

    model = Balance
    entity = "Balance"

    def create_movement(self, movement: BalanceMovement) -> Balance:
        """Persist a generated movement"""
        return self.create(
            user_id=movement.user_id,
            amount=movement.amount,
            transaction_type=movement.transaction_type,
            description=movement.description,
            status=movement.status,
            reference_id=movement.reference_id,
            details=movement.metadata,
            created_at=movement.created_at,
            updated_at=movement.created_at,
        )

    def available_balance(self, user_id: int) -> float:
        """Sum of every movement, pending debits included"""
        with storage_errors({"user_id": user_id}):
            value = self.db.query(func.sum(Balance.amount)).filter(Balance.user_id == user_id).scalar()
        return float(value or 0)

    def pending_balance(self, user_id: int) -> float:
        """Funds held by movements still in processing, as a positive amount"""
        with storage_errors({"user_id": user_id, "status": PENDING}):
            value = (
                self.db.query(func.sum(Balance.amount))
                .filter(Balance.user_id == user_id, Balance.status == PENDING)
                .scalar()
            )
        return -float(value or 0)

    def recent(self, user_id: int, limit: int) -> List[Balance]:
        """Fetch the newest movements for a user"""
        with storage_errors({"user_id": user_id, "limit": limit}):
            return (
                self.db.query(Balance)
                .filter(Balance.user_id == user_id)
                .order_by(Balance.created_at.desc(), Balance.id.desc())
                .limit(limit)
                .all()
            )

    def since(self, user_id: int, start: datetime, transaction_type: Optional[str] = None) -> List[Balance]:
        """All of a user's movements created at or after `start`, newest first"""
        filters = {"user_id": user_id, "since": start.isoformat(), "type": transaction_type}
        with storage_errors(filters):
            query = self.db.query(Balance).filter(Balance.user_id == user_id, Balance.created_at >= start)
            if transaction_type:
                query = query.filter(Balance.transaction_type == transaction_type)
            return query.order_by(Balance.created_at.desc(), Balance.id.desc()).all()

    @staticmethod
    def to_records(rows: List[Balance]) -> List[Record]:
        return [
            Record(
                amount=float(row.amount),
                category=row.transaction_type,
                timestamp=row.created_at,
                status=row.status,
            )
            for row in rows
        ]


class EnergyReadingRepository(FilteredRepository):
    """Repository for energy meter readings"""

    model = EnergyReading
    entity = "Energy reading"

    def reading_number_taken(self, reading_number: str, exclude_id: Optional[int] = None) -> bool:
        with storage_errors({"reading_number": reading_number}):
            query = self.db.query(EnergyReading.id).filter(EnergyReading.reading_number == reading_number)
            if exclude_id is not None:
                query = query.filter(EnergyReading.id != exclude_id)
            return query.first() is not None

    @staticmethod
    def to_records(rows: List[EnergyReading]) -> List[Record]:
        return [
            Record(
                amount=float(row.reading_value),
                category=row.reading_type,
                timestamp=row.reading_timestamp,
                status=row.reading_status,
            )
            for row in rows
        ]


class AffiliateRepository(FilteredRepository):
    """Repository for affiliates"""

    model = Affiliate
    entity = "Affiliate"

    def email_taken(self, email: str, exclude_id: Optional[int] = None) -> bool:
        with storage_errors({"email": email}):
            query = self.db.query(Affiliate.id).filter(Affiliate.email == email)
            if exclude_id is not None:
                query = query.filter(Affiliate.id != exclude_id)
            return query.first() is not None

    def active_verified(self, spec: FilterSpec) -> Page:
        """Active, verified affiliates narrowed by spec, sorted by name"""
        with storage_errors(spec.as_log_context()):
            query = self.apply_filters(self.db.query(Affiliate), spec)
            query = query.filter(Affiliate.status == "active", Affiliate.is_verified.is_(True))
            total = query.order_by(None).count()
            items = (
                query.order_by(Affiliate.name.asc())
                .offset((spec.page - 1) * spec.per_page)
                .limit(spec.per_page)
                .all()
            )
        return Page(items=items, total=total, current_page=spec.page, per_page=spec.per_page)

    def top_performers(self, limit: int, organization_id: Optional[int] = None) -> List[Affiliate]:
        """Active, verified affiliates by rating, then commission, best first"""
        with storage_errors({"limit": limit, "organization_id": organization_id}):
            query = self.db.query(Affiliate).filter(Affiliate.status == "active", Affiliate.is_verified.is_(True))
            if organization_id is not None:
                query = query.filter(Affiliate.organization_id == organization_id)
            return (
                query.order_by(Affiliate.performance_rating.desc().nulls_last(), Affiliate.commission_rate.desc())
                .limit(limit)
                .all()
            )

    def count_active(self, organization_id: Optional[int] = None) -> int:
        with storage_errors({"organization_id": organization_id}):
            query = self.db.query(Affiliate).filter(Affiliate.status == "active")
            if organization_id is not None:
                query = query.filter(Affiliate.organization_id == organization_id)
            return query.count()
