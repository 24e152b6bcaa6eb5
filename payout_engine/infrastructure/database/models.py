"""SQLAlchemy ORM models for merchants and risk decisions"""

import uuid
from sqlalchemy import Column, Boolean, DateTime, Integer, Numeric, Text, JSON, Uuid
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class MerchantRecord(Base):
    """Merchant account with rolling 30-day risk metrics"""

    __tablename__ = "merchants"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    merchant_name = Column(Text, nullable=False)
    industry = Column(Text, nullable=False)
    country = Column(Text, nullable=False)

    transaction_volume_30d = Column(Numeric(15, 2, asdecimal=False), nullable=False, default=0)
    transaction_count_30d = Column(Integer, nullable=False, default=0)
    avg_ticket_size = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)

    chargeback_count_30d = Column(Integer, nullable=False, default=0)
    chargeback_rate = Column(Numeric(5, 2, asdecimal=False), nullable=False, default=0)
    refund_rate = Column(Numeric(5, 2, asdecimal=False), nullable=False, default=0)
    velocity_multiplier = Column(Numeric(5, 2, asdecimal=False), nullable=False, default=1.0)

    account_age_days = Column(Integer, nullable=False, default=0)
    account_created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    kyc_verified = Column(Boolean, nullable=False, default=False)
    kyc_level = Column(Text, nullable=False, default="NONE")

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class RiskDecisionRecord(Base):
    """Persisted risk decision; profile lookups only read non-simulation rows"""

    __tablename__ = "risk_decisions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    merchant_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    batch_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    risk_score = Column(Integer, nullable=False)
    risk_level = Column(Text, nullable=False)
    payout_hold_period = Column(Text, nullable=False)
    rolling_reserve_percentage = Column(Integer, nullable=False)
    reasoning = Column(JSON, nullable=False)
    evaluated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    simulation = Column(Boolean, nullable=False, default=False)
