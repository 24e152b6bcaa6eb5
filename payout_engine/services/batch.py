"""Concurrent batch evaluation of many merchants"""

import asyncio
import logging
import time
import uuid
from collections import Counter, defaultdict
from typing import Dict, List, Optional, Sequence, Union

from payout_engine.config import settings
from payout_engine.domain.deadline import WriteDeadline
from payout_engine.domain.exceptions import DomainException, ValidationError
from payout_engine.domain.models import (
    BatchResult,
    BatchSummary,
    EvaluationFailure,
    HighRiskMerchant,
    Impact,
    Merchant,
    RiskDecision,
)
from payout_engine.domain.policy import reserve_bucket
from payout_engine.domain.repositories import MerchantRepository
from payout_engine.services.decision_service import DecisionService
from payout_engine.infrastructure.observability.logging import log_batch
from payout_engine.infrastructure.observability.metrics import record_batch

HIGH_RISK_SCORE = 60
CRITICAL_RISK_SCORE = 80
NO_SUCCESS_MESSAGE = "no merchants could be evaluated successfully"

Outcome = Union[RiskDecision, EvaluationFailure]


class BatchEvaluator:
    """
    Fan a list of merchant IDs out to bounded concurrent evaluations.

    Concurrency model:
    - One asyncio task per requested ID, admitted through a semaphore so at
      most `max_workers` evaluations run at once
    - Tasks return their outcome instead of writing shared lists; results are
      merged after the join, in request order
    - A shared deadline bounds the whole batch; tasks still running when it
      elapses are cancelled and counted as abandoned. Their writes go through
      a `WriteDeadline`, so a decision either committed before the deadline
      (and is reported as a success) or never lands
    """

    def __init__(
        self,
        decision_service: DecisionService,
        merchant_repository: MerchantRepository,
        max_workers: int | None = None,
        timeout_seconds: float | None = None,
        max_batch_size: int | None = None,
    ):
        self.decision_service = decision_service
        self.merchants = merchant_repository
        self.max_workers = max_workers or settings.batch_workers
        self.timeout_seconds = timeout_seconds or settings.batch_timeout_seconds
        self.max_batch_size = max_batch_size or settings.batch_max_size

    async def evaluate_batch(self, merchant_ids: Sequence[str], simulate: bool = False) -> BatchResult:
        """
        Evaluate every merchant in the batch under one batch ID.

        Per-item failures (bad ID, missing merchant, store errors) are
        reported in the result; only an empty or oversized request raises.

        Raises:
            ValidationError: Batch is empty or larger than max_batch_size
        """
        if not merchant_ids:
            raise ValidationError("merchant_ids cannot be empty")
        if len(merchant_ids) > self.max_batch_size:
            raise ValidationError(f"batch size exceeds maximum of {self.max_batch_size} merchants")

        batch_id = uuid.uuid4()
        start_time = time.monotonic()
        logging.info(
            "Starting batch evaluation",
            extra={"batch_id": str(batch_id), "requested": len(merchant_ids), "simulation": simulate},
        )

        gate = asyncio.Semaphore(self.max_workers)
        deadline = WriteDeadline()
        tasks = [
            asyncio.create_task(self._evaluate_one(gate, raw_id, batch_id, simulate, deadline))
            for raw_id in merchant_ids
        ]
        done, pending = await asyncio.wait(tasks, timeout=self.timeout_seconds)

        landed: Dict[uuid.UUID, List[RiskDecision]] = {}
        if pending:
            # Worker threads outlive cancelled tasks; close the write gate first
            deadline.expire()
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            landed = _landed_after_deadline(deadline, done)
            logging.warning(
                "Batch deadline exceeded",
                extra={
                    "batch_id": str(batch_id),
                    "pending": len(pending),
                    "committed_late": sum(len(v) for v in landed.values()),
                },
            )

        result = BatchResult(
            batch_id=batch_id,
            total_requested=len(merchant_ids),
            simulation=simulate,
        )
        for task, raw_id in zip(tasks, merchant_ids):
            if task in done:
                outcome = task.result()
            else:
                outcome = _claim_landed(landed, raw_id)
                if outcome is None:
                    result.abandoned += 1
                    continue
            if isinstance(outcome, EvaluationFailure):
                result.failures.append(outcome)
            else:
                result.decisions.append(outcome)

        if not result.decisions:
            logging.warning("All batch evaluations failed", extra={"batch_id": str(batch_id)})
            result.message = NO_SUCCESS_MESSAGE
        else:
            merchants = await self._lookup_merchants(result.decisions)
            result.summary = summarize(result.decisions, merchants)
            result.high_risk_merchants = identify_high_risk(result.decisions, merchants)
            if result.high_risk_merchants:
                logging.warning(
                    "High-risk merchants detected",
                    extra={"batch_id": str(batch_id), "high_risk": len(result.high_risk_merchants)},
                )

        duration = time.monotonic() - start_time
        log_batch(str(batch_id), len(merchant_ids), result.successful, result.failed, result.abandoned, duration * 1000)
        record_batch(duration, result.successful, result.failed, result.abandoned, len(result.high_risk_merchants))
        return result

    async def _evaluate_one(
        self,
        gate: asyncio.Semaphore,
        raw_id: str,
        batch_id: uuid.UUID,
        simulate: bool,
        deadline: WriteDeadline,
    ) -> Outcome:
        async with gate:
            try:
                merchant_id = uuid.UUID(str(raw_id))
            except ValueError:
                return EvaluationFailure(merchant_id=raw_id, error="invalid UUID format")

            try:
                return await self.decision_service.evaluate(merchant_id, simulate, batch_id=batch_id, deadline=deadline)
            except DomainException as e:
                logging.error(f"Batch item failed: {e}", extra={"batch_id": str(batch_id), "merchant_id": raw_id})
                return EvaluationFailure(merchant_id=raw_id, error=str(e))
            except Exception as e:
                # One merchant's failure must not abort the rest of the batch
                logging.exception("Unexpected batch item error", extra={"batch_id": str(batch_id), "merchant_id": raw_id})
                return EvaluationFailure(merchant_id=raw_id, error=f"unexpected error: {e}")

    async def _lookup_merchants(self, decisions: List[RiskDecision]) -> Dict[uuid.UUID, Merchant]:
        """Best-effort merchant fetch for volume reporting; misses are skipped"""
        merchants: Dict[uuid.UUID, Merchant] = {}
        for decision in decisions:
            if decision.merchant_id in merchants:
                continue
            try:
                merchants[decision.merchant_id] = await self.merchants.get(decision.merchant_id)
            except DomainException as e:
                logging.debug(f"Volume lookup skipped: {e}", extra={"merchant_id": str(decision.merchant_id)})
        return merchants


def _landed_after_deadline(deadline: WriteDeadline, done) -> Dict[uuid.UUID, List[RiskDecision]]:
    """Decisions committed by tasks that were still pending at the deadline, by merchant"""
    reported = set()
    for task in done:
        outcome = task.result()
        if isinstance(outcome, RiskDecision):
            reported.add(outcome.decision_id)

    landed: Dict[uuid.UUID, List[RiskDecision]] = defaultdict(list)
    for decision in deadline.committed:
        if decision.decision_id not in reported:
            landed[decision.merchant_id].append(decision)
    return landed


def _claim_landed(landed: Dict[uuid.UUID, List[RiskDecision]], raw_id: str) -> Optional[RiskDecision]:
    try:
        merchant_id = uuid.UUID(str(raw_id))
    except ValueError:
        return None
    decisions = landed.get(merchant_id)
    return decisions.pop(0) if decisions else None


def summarize(decisions: List[RiskDecision], merchants: Dict[uuid.UUID, Merchant]) -> BatchSummary:
    """
    Count decisions by hold period, reserve bucket and risk level.

    Volume totals only include merchants present in `merchants`.
    """
    by_hold_period = Counter(d.payout_hold_period.value for d in decisions)
    by_reserve = Counter(reserve_bucket(d.rolling_reserve_percentage) for d in decisions)
    by_risk_level = Counter(d.risk_level.value for d in decisions)

    total_volume = 0.0
    volume_by_tier: Dict[str, float] = defaultdict(float)
    for decision in decisions:
        merchant = merchants.get(decision.merchant_id)
        if merchant is None:
            continue
        total_volume += merchant.transaction_volume_30d
        volume_by_tier[decision.payout_hold_period.value] += merchant.transaction_volume_30d

    return BatchSummary(
        by_hold_period=dict(by_hold_period),
        by_reserve=dict(by_reserve),
        by_risk_level=dict(by_risk_level),
        total_volume=total_volume,
        volume_by_tier=dict(volume_by_tier),
    )


def identify_high_risk(
    decisions: List[RiskDecision],
    merchants: Dict[uuid.UUID, Merchant] | None = None,
) -> List[HighRiskMerchant]:
    """
    Select decisions scoring above 60 for manual review.

    Primary concerns are the contributions of NEGATIVE or CRITICAL factors.
    Scores above 80 need immediate manual approval.
    """
    merchants = merchants or {}
    high_risk = []
    for decision in decisions:
        if decision.risk_score <= HIGH_RISK_SCORE:
            continue

        concerns = [
            factor.contribution
            for factor in decision.reasoning.primary_factors
            if factor.impact in (Impact.NEGATIVE, Impact.CRITICAL)
        ]
        action = (
            "Immediate manual approval required"
            if decision.risk_score > CRITICAL_RISK_SCORE
            else "Manual review required"
        )
        merchant = merchants.get(decision.merchant_id)

        high_risk.append(
            HighRiskMerchant(
                merchant_id=decision.merchant_id,
                merchant_name=merchant.merchant_name if merchant else None,
                risk_score=decision.risk_score,
                risk_level=decision.risk_level,
                primary_concerns=concerns,
                recommended_action=action,
            )
        )
    return high_risk
