"""SQLAlchemy ORM models for balances, energy readings and affiliates"""

from sqlalchemy import Column, String, Boolean, DateTime, Integer, Numeric, Text, JSON
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class Balance(Base):
    """Signed balance movement; a user's balance is the sum of their rows"""

    __tablename__ = "balances"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    amount = Column(Numeric(14, 2), nullable=False)
    transaction_type = Column(String(20), nullable=False, index=True)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="completed")
    reference_id = Column(String(64), nullable=True, unique=True)
    details = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now(), index=True)
    updated_at = Column(DateTime, nullable=False, server_default=func.now())


class EnergyReading(Base):
    """Meter reading with quality and validation annotations"""

    __tablename__ = "energy_readings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    reading_number = Column(String(255), nullable=False, unique=True)
    meter_id = Column(Integer, nullable=False, index=True)
    installation_id = Column(Integer, nullable=True)
    consumption_point_id = Column(Integer, nullable=True)
    customer_id = Column(Integer, nullable=False, index=True)
    reading_type = Column(String(20), nullable=False)
    reading_source = Column(String(20), nullable=False)
    reading_status = Column(String(20), nullable=False)
    reading_timestamp = Column(DateTime, nullable=False, index=True)
    reading_period = Column(String(100), nullable=True)
    reading_value = Column(Numeric(14, 4), nullable=False)
    reading_unit = Column(String(50), nullable=False)
    previous_reading_value = Column(Numeric(14, 4), nullable=True)
    consumption_value = Column(Numeric(14, 4), nullable=True)
    demand_value = Column(Numeric(14, 4), nullable=True)
    power_factor = Column(Numeric(5, 4), nullable=True)
    quality_score = Column(Numeric(5, 2), nullable=True)
    notes = Column(Text, nullable=True)
    validation_notes = Column(Text, nullable=True)
    validated_by = Column(Integer, nullable=True)
    validated_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now())


class Affiliate(Base):
    """Commercial partner of an organization"""

    __tablename__ = "affiliates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    company_name = Column(String(255), nullable=True)
    website = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    type = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    organization_id = Column(Integer, nullable=True, index=True)
    user_id = Column(Integer, nullable=True)
    commission_rate = Column(Numeric(5, 2), nullable=False, default=0)
    performance_rating = Column(Integer, nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    verified_at = Column(DateTime, nullable=True)
    verification_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now())
