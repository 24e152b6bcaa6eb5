"""Unit tests for simulation override parsing and application"""

from conftest import make_merchant
from payout_engine.domain.overrides import SimulationOverrides
from payout_engine.domain.thresholds import ThresholdOverrides


def test_from_mapping_reads_supported_fields():
    overrides = SimulationOverrides.from_mapping(
        {
            "chargeback_rate": 1.2,
            "account_age_days": 45,
            "kyc_verified": True,
            "velocity_multiplier": 3,
            "scoring_thresholds": {"chargeback_excellent": 0.3, "refund_elevated": 8},
        }
    )

    assert overrides.chargeback_rate == 1.2
    assert overrides.account_age_days == 45
    assert overrides.kyc_verified is True
    assert overrides.velocity_multiplier == 3.0
    assert overrides.scoring_thresholds == ThresholdOverrides(chargeback_excellent=0.3, refund_elevated=8.0)


def test_from_mapping_ignores_wrong_types():
    """Test incompatible values are dropped silently instead of raising"""
    overrides = SimulationOverrides.from_mapping(
        {
            "chargeback_rate": "high",
            "account_age_days": None,
            "kyc_verified": "yes",
            "velocity_multiplier": True,
            "scoring_thresholds": ["not", "a", "mapping"],
            "industry": "TRAVEL",  # not overridable
        }
    )

    assert overrides == SimulationOverrides()


def test_from_mapping_truncates_fractional_account_age():
    assert SimulationOverrides.from_mapping({"account_age_days": 45.9}).account_age_days == 45


def test_from_mapping_empty_payload():
    assert SimulationOverrides.from_mapping(None) == SimulationOverrides()
    assert SimulationOverrides.from_mapping({}) == SimulationOverrides()


def test_empty_threshold_mapping_still_counts_as_present():
    overrides = SimulationOverrides.from_mapping({"scoring_thresholds": {}})
    assert overrides.scoring_thresholds == ThresholdOverrides()


def test_apply_returns_copy_and_leaves_original_untouched():
    merchant = make_merchant(chargeback_rate=0.3, account_age_days=800)
    simulated = SimulationOverrides(chargeback_rate=2.0, account_age_days=10).apply(merchant)

    assert simulated.chargeback_rate == 2.0
    assert simulated.account_age_days == 10
    assert simulated.id == merchant.id
    assert merchant.chargeback_rate == 0.3
    assert merchant.account_age_days == 800


def test_kyc_verification_promotes_none_level_to_full():
    merchant = make_merchant(kyc_verified=False, kyc_level="NONE")
    simulated = SimulationOverrides(kyc_verified=True).apply(merchant)

    assert simulated.kyc_verified is True
    assert simulated.kyc_level == "FULL"
    assert merchant.kyc_level == "NONE"


def test_kyc_verification_keeps_existing_level():
    merchant = make_merchant(kyc_verified=False, kyc_level="PARTIAL")
    assert SimulationOverrides(kyc_verified=True).apply(merchant).kyc_level == "PARTIAL"


def test_kyc_unverify_keeps_level():
    merchant = make_merchant(kyc_verified=True, kyc_level="ENHANCED")
    simulated = SimulationOverrides(kyc_verified=False).apply(merchant)

    assert simulated.kyc_verified is False
    assert simulated.kyc_level == "ENHANCED"
