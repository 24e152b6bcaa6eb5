"""Data access layer for merchants and risk decisions"""

import asyncio
import uuid
from typing import Any, Dict, List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from payout_engine.infrastructure.database.models import MerchantRecord, RiskDecisionRecord
from payout_engine.domain.models import (
    Merchant,
    RiskDecision,
    Reasoning,
    FactorExplanation,
    Impact,
    RiskLevel,
    HoldPeriod,
)
from payout_engine.domain.deadline import WriteDeadline
from payout_engine.domain.exceptions import NotFoundError, RepositoryError, DeadlineExceededError


def record_to_merchant(record: MerchantRecord) -> Merchant:
    return Merchant(
        id=record.id,
        merchant_name=record.merchant_name,
        industry=record.industry,
        country=record.country,
        transaction_volume_30d=float(record.transaction_volume_30d),
        transaction_count_30d=record.transaction_count_30d,
        avg_ticket_size=float(record.avg_ticket_size),
        chargeback_count_30d=record.chargeback_count_30d,
        chargeback_rate=float(record.chargeback_rate),
        refund_rate=float(record.refund_rate),
        velocity_multiplier=float(record.velocity_multiplier),
        account_age_days=record.account_age_days,
        account_created_at=record.account_created_at,
        kyc_verified=record.kyc_verified,
        kyc_level=record.kyc_level,
    )


def merchant_to_record(merchant: Merchant) -> MerchantRecord:
    return MerchantRecord(
        id=merchant.id,
        merchant_name=merchant.merchant_name,
        industry=merchant.industry,
        country=merchant.country,
        transaction_volume_30d=merchant.transaction_volume_30d,
        transaction_count_30d=merchant.transaction_count_30d,
        avg_ticket_size=merchant.avg_ticket_size,
        chargeback_count_30d=merchant.chargeback_count_30d,
        chargeback_rate=merchant.chargeback_rate,
        refund_rate=merchant.refund_rate,
        velocity_multiplier=merchant.velocity_multiplier,
        account_age_days=merchant.account_age_days,
        account_created_at=merchant.account_created_at,
        kyc_verified=merchant.kyc_verified,
        kyc_level=merchant.kyc_level,
    )


def reasoning_to_json(reasoning: Reasoning) -> Dict[str, Any]:
    return {
        "primary_factors": [
            {
                "factor": f.factor,
                "score": f.score,
                "contribution": f.contribution,
                "impact": f.impact.value,
            }
            for f in reasoning.primary_factors
        ],
        "policy_explanation": reasoning.policy_explanation,
    }


def reasoning_from_json(data: Dict[str, Any]) -> Reasoning:
    return Reasoning(
        primary_factors=tuple(
            FactorExplanation(
                factor=f["factor"],
                score=f["score"],
                contribution=f["contribution"],
                impact=Impact(f["impact"]),
            )
            for f in data.get("primary_factors", [])
        ),
        policy_explanation=data.get("policy_explanation", ""),
    )


def decision_to_record(decision: RiskDecision) -> RiskDecisionRecord:
    return RiskDecisionRecord(
        id=decision.decision_id,
        merchant_id=decision.merchant_id,
        batch_id=decision.batch_id,
        risk_score=decision.risk_score,
        risk_level=decision.risk_level.value,
        payout_hold_period=decision.payout_hold_period.value,
        rolling_reserve_percentage=decision.rolling_reserve_percentage,
        reasoning=reasoning_to_json(decision.reasoning),
        evaluated_at=decision.evaluated_at,
        simulation=decision.simulation,
    )


def record_to_decision(record: RiskDecisionRecord) -> RiskDecision:
    return RiskDecision(
        decision_id=record.id,
        merchant_id=record.merchant_id,
        batch_id=record.batch_id,
        risk_score=record.risk_score,
        risk_level=RiskLevel(record.risk_level),
        payout_hold_period=HoldPeriod(record.payout_hold_period),
        rolling_reserve_percentage=record.rolling_reserve_percentage,
        reasoning=reasoning_from_json(record.reasoning),
        evaluated_at=record.evaluated_at,
        simulation=record.simulation,
    )


class SqlMerchantRepository:
    """
    Read access to merchant snapshots.

    Each call opens its own session in a worker thread, so one repository can
    serve many concurrent evaluations.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    async def get(self, merchant_id: uuid.UUID) -> Merchant:
        return await asyncio.to_thread(self._get, merchant_id)

    def _get(self, merchant_id: uuid.UUID) -> Merchant:
        try:
            with self.session_factory() as db:
                record = db.get(MerchantRecord, merchant_id)
                if record is None:
                    raise NotFoundError(f"merchant not found: {merchant_id}")
                return record_to_merchant(record)
        except SQLAlchemyError as e:
            raise RepositoryError(f"failed to get merchant {merchant_id}: {e}") from e


class SqlDecisionRepository:
    """Repository for risk decisions"""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    async def create(self, decision: RiskDecision, deadline: Optional[WriteDeadline] = None) -> RiskDecision:
        """
        Persist a decision and return it as stored.

        The worker thread keeps running if the awaiting task is cancelled, so
        batch writes commit through `deadline` and are rolled back once it
        has expired.
        """
        return await asyncio.to_thread(self._create, decision, deadline)

    async def bulk_create(self, decisions: List[RiskDecision]) -> None:
        await asyncio.to_thread(self._bulk_create, decisions)

    async def get_latest_by_merchant(self, merchant_id: uuid.UUID) -> Optional[RiskDecision]:
        return await asyncio.to_thread(self._get_latest_by_merchant, merchant_id)

    async def list_by_batch(self, batch_id: uuid.UUID) -> List[RiskDecision]:
        return await asyncio.to_thread(self._list_by_batch, batch_id)

    def _create(self, decision: RiskDecision, deadline: Optional[WriteDeadline] = None) -> RiskDecision:
        try:
            with self.session_factory() as db:
                record = decision_to_record(decision)
                db.add(record)
                if deadline is None:
                    db.commit()
                else:
                    try:
                        deadline.guard(db.commit, decision)
                    except DeadlineExceededError:
                        db.rollback()
                        raise
                db.refresh(record)
                return record_to_decision(record)
        except SQLAlchemyError as e:
            raise RepositoryError(f"failed to save decision for merchant {decision.merchant_id}: {e}") from e

    def _bulk_create(self, decisions: List[RiskDecision]) -> None:
        try:
            with self.session_factory() as db:
                db.add_all([decision_to_record(d) for d in decisions])
                db.commit()
        except SQLAlchemyError as e:
            raise RepositoryError(f"failed to bulk create decisions: {e}") from e

    def _get_latest_by_merchant(self, merchant_id: uuid.UUID) -> Optional[RiskDecision]:
        try:
            with self.session_factory() as db:
                record = self._latest_query(db, merchant_id).first()
                return record_to_decision(record) if record else None
        except SQLAlchemyError as e:
            raise RepositoryError(f"failed to get latest decision: {e}") from e

    @staticmethod
    def _latest_query(db: Session, merchant_id: uuid.UUID):
        return (
            db.query(RiskDecisionRecord)
            .filter(
                RiskDecisionRecord.merchant_id == merchant_id,
                RiskDecisionRecord.simulation.is_(False),
            )
            .order_by(RiskDecisionRecord.evaluated_at.desc())
        )

    def _list_by_batch(self, batch_id: uuid.UUID) -> List[RiskDecision]:
        try:
            with self.session_factory() as db:
                records = (
                    db.query(RiskDecisionRecord)
                    .filter(RiskDecisionRecord.batch_id == batch_id)
                    .order_by(RiskDecisionRecord.evaluated_at)
                    .all()
                )
                return [record_to_decision(r) for r in records]
        except SQLAlchemyError as e:
            raise RepositoryError(f"failed to list decisions by batch: {e}") from e
