"""Pytest fixtures for testing"""

import asyncio
import uuid
import pytest
from typing import Dict, Generator, List, Optional
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from payout_engine.api.main import create_app
from payout_engine.infrastructure.database.models import Base
from payout_engine.infrastructure.database.session import get_session_factory
from payout_engine.domain.models import Merchant, RiskDecision
from payout_engine.domain.deadline import WriteDeadline
from payout_engine.domain.exceptions import NotFoundError, RepositoryError


class FakeMerchantRepository:
    """In-memory merchant store with optional latency and failure injection"""

    def __init__(self, merchants: List[Merchant], delay: float = 0.0):
        self.merchants: Dict[uuid.UUID, Merchant] = {m.id: m for m in merchants}
        self.delay = delay
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.fail_ids: set = set()

    async def get(self, merchant_id: uuid.UUID) -> Merchant:
        self.calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if merchant_id in self.fail_ids:
                raise RepositoryError(f"failed to get merchant {merchant_id}: connection reset")
            if merchant_id not in self.merchants:
                raise NotFoundError(f"merchant not found: {merchant_id}")
            return self.merchants[merchant_id]
        finally:
            self.in_flight -= 1


class FakeDecisionRepository:
    """In-memory decision store that records every write"""

    def __init__(self, fail_create: bool = False):
        self.created: List[RiskDecision] = []
        self.fail_create = fail_create

    async def create(self, decision: RiskDecision, deadline: Optional[WriteDeadline] = None) -> RiskDecision:
        if self.fail_create:
            raise RepositoryError(f"failed to save decision for merchant {decision.merchant_id}")
        if deadline is None:
            self.created.append(decision)
        else:
            deadline.guard(lambda: self.created.append(decision), decision)
        return decision

    async def get_latest_by_merchant(self, merchant_id: uuid.UUID) -> Optional[RiskDecision]:
        persisted = [d for d in self.created if d.merchant_id == merchant_id and not d.simulation]
        return max(persisted, key=lambda d: d.evaluated_at) if persisted else None

    async def bulk_create(self, decisions: List[RiskDecision]) -> None:
        self.created.extend(decisions)

    async def list_by_batch(self, batch_id: uuid.UUID) -> List[RiskDecision]:
        return [d for d in self.created if d.batch_id == batch_id]


def make_merchant(**overrides) -> Merchant:
    """Low-risk veteran retail merchant unless overridden (scores 5)"""
    fields = dict(
        id=uuid.uuid4(),
        merchant_name="Test Merchant",
        industry="RETAIL",
        country="US",
        transaction_volume_30d=50000.0,
        transaction_count_30d=1000,
        avg_ticket_size=50.0,
        chargeback_rate=0.3,
        refund_rate=2.0,
        velocity_multiplier=1.2,
        account_age_days=800,
        kyc_verified=True,
        kyc_level="ENHANCED",
    )
    fields.update(overrides)
    return Merchant(**fields)


@pytest.fixture
def low_risk_merchant() -> Merchant:
    return make_merchant()


@pytest.fixture
def critical_merchant() -> Merchant:
    """Every factor maxed out: raw total 105, clamped to 100"""
    return make_merchant(
        merchant_name="Risky Digital",
        industry="DIGITAL_GOODS",
        chargeback_rate=4.5,
        account_age_days=15,
        velocity_multiplier=8.0,
        kyc_verified=False,
        kyc_level="NONE",
        refund_rate=8.5,
        transaction_volume_30d=120000.0,
    )


@pytest.fixture
def session_factory(tmp_path) -> Generator[sessionmaker, None, None]:
    """Create throwaway SQLite database and session factory"""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(session_factory: sessionmaker) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    return TestClient(app)
