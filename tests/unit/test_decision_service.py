"""Unit tests for the decision service (evaluate, simulate, profile)"""

import uuid
import pytest
from prometheus_client import REGISTRY
from conftest import FakeMerchantRepository, FakeDecisionRepository, make_merchant
from payout_engine.domain.models import RiskLevel, HoldPeriod
from payout_engine.domain.overrides import SimulationOverrides
from payout_engine.domain.thresholds import ThresholdOverrides
from payout_engine.domain.exceptions import NotFoundError, RepositoryError
from payout_engine.services.decision_service import DecisionService


def build_service(*merchants, fail_create=False):
    merchant_repo = FakeMerchantRepository(list(merchants))
    decision_repo = FakeDecisionRepository(fail_create=fail_create)
    return DecisionService(merchant_repo, decision_repo), merchant_repo, decision_repo


async def test_evaluate_persists_decision(low_risk_merchant):
    """Test non-simulation evaluation is saved and returned"""
    service, _, decisions = build_service(low_risk_merchant)

    decision = await service.evaluate(low_risk_merchant.id, simulate=False)

    assert decision.merchant_id == low_risk_merchant.id
    assert decision.risk_score == 5
    assert decision.risk_level == RiskLevel.LOW
    assert decision.payout_hold_period == HoldPeriod.IMMEDIATE
    assert decision.rolling_reserve_percentage == 0
    assert decision.simulation is False
    assert decisions.created == [decision]


async def test_evaluate_critical_merchant(critical_merchant):
    service, _, _ = build_service(critical_merchant)

    decision = await service.evaluate(critical_merchant.id)

    assert decision.risk_score == 100
    assert decision.risk_level == RiskLevel.CRITICAL
    assert decision.payout_hold_period == HoldPeriod.FORTY_FIVE_DAYS
    assert decision.rolling_reserve_percentage == 20
    assert len(decision.reasoning.primary_factors) == 6


async def test_evaluate_simulation_never_writes(low_risk_merchant, critical_merchant):
    service, _, decisions = build_service(low_risk_merchant, critical_merchant)

    for merchant in (low_risk_merchant, critical_merchant):
        decision = await service.evaluate(merchant.id, simulate=True)
        assert decision.simulation is True

    assert decisions.created == []


async def test_evaluate_simulation_is_idempotent(critical_merchant):
    """Test repeated simulations agree on everything but the timestamp"""
    service, _, _ = build_service(critical_merchant)

    first = await service.evaluate(critical_merchant.id, simulate=True)
    second = await service.evaluate(critical_merchant.id, simulate=True)

    assert first.risk_score == second.risk_score
    assert first.risk_level == second.risk_level
    assert first.reasoning == second.reasoning


async def test_evaluate_tags_batch_id(low_risk_merchant):
    service, _, decisions = build_service(low_risk_merchant)
    batch_id = uuid.uuid4()

    decision = await service.evaluate(low_risk_merchant.id, batch_id=batch_id)

    assert decision.batch_id == batch_id
    assert decisions.created[0].batch_id == batch_id


async def test_evaluate_missing_merchant_raises_not_found():
    service, _, decisions = build_service()

    with pytest.raises(NotFoundError):
        await service.evaluate(uuid.uuid4())
    assert decisions.created == []


async def test_evaluate_propagates_persistence_error(low_risk_merchant):
    service, _, _ = build_service(low_risk_merchant, fail_create=True)

    with pytest.raises(RepositoryError):
        await service.evaluate(low_risk_merchant.id, simulate=False)


async def test_evaluate_simulation_ignores_broken_decision_store(low_risk_merchant):
    """Test simulation cannot hit persistence errors because it never persists"""
    service, _, _ = build_service(low_risk_merchant, fail_create=True)

    decision = await service.evaluate(low_risk_merchant.id, simulate=True)
    assert decision.simulation is True


async def test_simulate_applies_overrides_without_persisting(low_risk_merchant):
    service, merchants, decisions = build_service(low_risk_merchant)

    decision = await service.simulate(
        low_risk_merchant.id,
        SimulationOverrides(chargeback_rate=2.0, account_age_days=10, velocity_multiplier=7.0),
    )

    # 30 chargeback + 25 age + 20 velocity + 5 category
    assert decision.risk_score == 80
    assert decision.risk_level == RiskLevel.HIGH
    assert decision.simulation is True
    assert decisions.created == []
    assert merchants.merchants[low_risk_merchant.id].chargeback_rate == 0.3


async def test_simulate_kyc_promotion_leaves_store_unchanged():
    merchant = make_merchant(kyc_verified=False, kyc_level="NONE")
    service, merchants, _ = build_service(merchant)

    decision = await service.simulate(merchant.id, SimulationOverrides(kyc_verified=True))

    kyc = decision.reasoning.primary_factors[4]
    assert kyc.score == 3  # FULL level after promotion
    assert kyc.contribution == "Full KYC - ID and address verified"
    stored = merchants.merchants[merchant.id]
    assert stored.kyc_verified is False
    assert stored.kyc_level == "NONE"


async def test_simulate_with_custom_thresholds():
    """Test threshold overrides change the score but not the default explanation bands"""
    merchant = make_merchant(chargeback_rate=0.4)
    service, _, _ = build_service(merchant)

    default = await service.simulate(merchant.id)
    strict = await service.simulate(
        merchant.id,
        SimulationOverrides(scoring_thresholds=ThresholdOverrides(chargeback_excellent=0.3)),
    )

    assert default.risk_score == 5
    assert strict.risk_score == 15
    chargeback = strict.reasoning.primary_factors[0]
    assert chargeback.score == 10
    assert chargeback.contribution == "0.40% rate - Excellent"
    # Shared evaluator keeps its defaults
    assert service.evaluator.thresholds.chargeback_excellent == 0.5


async def test_simulate_missing_merchant_raises_not_found():
    service, _, _ = build_service()

    with pytest.raises(NotFoundError):
        await service.simulate(uuid.uuid4(), SimulationOverrides(chargeback_rate=1.0))


async def test_profile_without_decisions_has_no_policy(low_risk_merchant):
    service, _, _ = build_service(low_risk_merchant)

    profile = await service.profile(low_risk_merchant.id)

    assert profile.merchant_id == low_risk_merchant.id
    assert profile.merchant_name == "Test Merchant"
    assert profile.risk_metrics.chargeback_rate == 0.3
    assert profile.current_policy is None


async def test_profile_uses_latest_persisted_decision(critical_merchant):
    service, _, _ = build_service(critical_merchant)
    await service.evaluate(critical_merchant.id, simulate=True)
    saved = await service.evaluate(critical_merchant.id, simulate=False)

    profile = await service.profile(critical_merchant.id)

    assert profile.current_policy is not None
    assert profile.current_policy.risk_score == 100
    assert profile.current_policy.payout_hold_period == HoldPeriod.FORTY_FIVE_DAYS
    assert profile.current_policy.rolling_reserve_percentage == 20
    assert profile.current_policy.last_evaluated_at == saved.evaluated_at


async def test_profile_missing_merchant_raises_not_found():
    service, _, _ = build_service()

    with pytest.raises(NotFoundError):
        await service.profile(uuid.uuid4())


def decisions_counted(risk_level: str, simulation: str) -> float:
    value = REGISTRY.get_sample_value(
        "payout_decision_total", {"risk_level": risk_level, "simulation": simulation}
    )
    return value or 0.0


async def test_failed_persist_is_not_counted(low_risk_merchant):
    """Test a decision that could not be saved never reaches the decision metrics"""
    service, _, _ = build_service(low_risk_merchant, fail_create=True)
    before = decisions_counted("LOW", "false")

    with pytest.raises(RepositoryError):
        await service.evaluate(low_risk_merchant.id, simulate=False)

    assert decisions_counted("LOW", "false") == before


async def test_saved_decision_is_counted(low_risk_merchant):
    service, _, _ = build_service(low_risk_merchant)
    before = decisions_counted("LOW", "false")

    await service.evaluate(low_risk_merchant.id, simulate=False)

    assert decisions_counted("LOW", "false") == before + 1
