"""Merchant risk evaluation, simulation and profile lookup"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from payout_engine.domain.models import Merchant, RiskDecision, MerchantProfile, RiskMetrics, PolicyInfo
from payout_engine.domain.scoring import Evaluator
from payout_engine.domain.policy import PolicyMapper
from payout_engine.domain.explainer import Explainer
from payout_engine.domain.overrides import SimulationOverrides
from payout_engine.domain.deadline import WriteDeadline
from payout_engine.domain.repositories import MerchantRepository, DecisionRepository
from payout_engine.infrastructure.observability.logging import log_decision
from payout_engine.infrastructure.observability.metrics import record_decision


class DecisionService:
    """
    Orchestrates Evaluator -> PolicyMapper -> Explainer for single merchants.

    Repository errors (NotFoundError, RepositoryError) propagate unchanged;
    there are no retries and nothing is written unless the whole evaluation
    succeeded.
    """

    def __init__(
        self,
        merchant_repository: MerchantRepository,
        decision_repository: DecisionRepository,
        evaluator: Optional[Evaluator] = None,
        policy: Optional[PolicyMapper] = None,
        explainer: Optional[Explainer] = None,
    ):
        self.merchants = merchant_repository
        self.decisions = decision_repository
        self.evaluator = evaluator or Evaluator()
        self.policy = policy or PolicyMapper()
        self.explainer = explainer or Explainer()

    def _decide(
        self,
        merchant_id: uuid.UUID,
        merchant: Merchant,
        evaluator: Evaluator,
        simulation: bool,
        batch_id: Optional[uuid.UUID] = None,
    ) -> RiskDecision:
        total, factors = evaluator.score(merchant)
        tier = self.policy.tier_for(total)
        reasoning = self.explainer.explain(merchant, factors, tier)

        return RiskDecision(
            merchant_id=merchant_id,
            batch_id=batch_id,
            risk_score=total,
            risk_level=tier.risk_level,
            payout_hold_period=tier.hold_period,
            rolling_reserve_percentage=tier.reserve_percentage,
            reasoning=reasoning,
            evaluated_at=datetime.now(timezone.utc),
            simulation=simulation,
        )

    async def evaluate(
        self,
        merchant_id: uuid.UUID,
        simulate: bool = False,
        batch_id: Optional[uuid.UUID] = None,
        deadline: Optional[WriteDeadline] = None,
    ) -> RiskDecision:
        """
        Score a merchant and assign its payout policy.

        When simulate is False the decision is persisted and the stored form
        is returned. Simulated decisions are never written. The decision is
        logged and counted only once it has been saved.

        Raises:
            NotFoundError: Merchant does not exist
            RepositoryError: Merchant lookup or decision write failed
            DeadlineExceededError: `deadline` expired before the write
        """
        logging.info("Evaluating merchant", extra={"merchant_id": str(merchant_id), "simulation": simulate})

        merchant = await self.merchants.get(merchant_id)
        decision = self._decide(merchant_id, merchant, self.evaluator, simulate, batch_id)

        if not simulate:
            decision = await self.decisions.create(decision, deadline=deadline)
            logging.info(
                "Decision saved",
                extra={"merchant_id": str(merchant_id), "decision_id": str(decision.decision_id)},
            )

        log_decision(
            str(merchant_id),
            decision.risk_score,
            decision.risk_level.value,
            decision.payout_hold_period.value,
            simulate,
        )
        record_decision(decision.risk_level.value, decision.rolling_reserve_percentage, simulate)
        return decision

    async def simulate(
        self,
        merchant_id: uuid.UUID,
        overrides: Optional[SimulationOverrides] = None,
    ) -> RiskDecision:
        """
        What-if evaluation against a modified copy of the merchant.

        Custom scoring thresholds only affect scoring; the reasoning text is
        still classified with the default bands. Never persisted.
        """
        overrides = overrides or SimulationOverrides()
        logging.info("Simulating merchant", extra={"merchant_id": str(merchant_id)})

        merchant = await self.merchants.get(merchant_id)
        simulated = overrides.apply(merchant)

        evaluator = self.evaluator
        if overrides.scoring_thresholds is not None:
            logging.info("Using custom scoring thresholds", extra={"merchant_id": str(merchant_id)})
            evaluator = Evaluator(self.evaluator.thresholds.with_overrides(overrides.scoring_thresholds))

        decision = self._decide(merchant_id, simulated, evaluator, simulation=True)
        record_decision(decision.risk_level.value, decision.rolling_reserve_percentage, True)
        logging.info(
            "Simulation complete",
            extra={"merchant_id": str(merchant_id), "risk_score": decision.risk_score},
        )
        return decision

    async def profile(self, merchant_id: uuid.UUID) -> MerchantProfile:
        """Current merchant metrics joined with the latest persisted policy"""
        merchant = await self.merchants.get(merchant_id)
        latest = await self.decisions.get_latest_by_merchant(merchant_id)

        current_policy = None
        if latest is not None:
            current_policy = PolicyInfo(
                risk_score=latest.risk_score,
                payout_hold_period=latest.payout_hold_period,
                rolling_reserve_percentage=latest.rolling_reserve_percentage,
                last_evaluated_at=latest.evaluated_at,
            )

        return MerchantProfile(
            merchant_id=merchant.id,
            merchant_name=merchant.merchant_name,
            industry=merchant.industry,
            country=merchant.country,
            account_created_at=merchant.account_created_at,
            account_age_days=merchant.account_age_days,
            risk_metrics=RiskMetrics(
                transaction_volume_30d=merchant.transaction_volume_30d,
                transaction_count_30d=merchant.transaction_count_30d,
                avg_ticket_size=merchant.avg_ticket_size,
                chargeback_count_30d=merchant.chargeback_count_30d,
                chargeback_rate=merchant.chargeback_rate,
                refund_rate=merchant.refund_rate,
                velocity_multiplier=merchant.velocity_multiplier,
                kyc_verified=merchant.kyc_verified,
                kyc_level=merchant.kyc_level,
            ),
            current_policy=current_policy,
        )
