"""Risk scoring engine - maps merchant attributes to bounded factor scores"""

from typing import Tuple
from payout_engine.domain.models import Merchant, FactorScore
from payout_engine.domain.thresholds import (
    DEFAULT_THRESHOLDS,
    ScoringThresholds,
    ACCOUNT_AGE_VERY_NEW,
    ACCOUNT_AGE_NEW,
    ACCOUNT_AGE_EARLY,
    ACCOUNT_AGE_ESTABLISHED,
    ACCOUNT_AGE_MATURE,
)

MAX_SCORE = 100

HIGH_RISK_CATEGORIES = frozenset({"DIGITAL_GOODS", "TRAVEL", "ELECTRONICS"})
MEDIUM_RISK_CATEGORIES = frozenset({"FASHION", "SERVICES"})
LOW_RISK_CATEGORIES = frozenset({"FOOD_DELIVERY", "RETAIL"})
MINIMAL_RISK_CATEGORIES = frozenset({"UTILITIES", "HEALTHCARE"})

KYC_LEVEL_SCORES = {
    "NONE": 10,
    "PARTIAL": 7,
    "FULL": 3,
    "ENHANCED": 0,
}


class Evaluator:
    """
    Scores a merchant on six independent risk factors.

    Factor caps (sum to 105, total is clamped to 100):
    - 30: Chargeback rate - most critical indicator
    - 25: Account age - established track record
    - 20: Transaction velocity - sudden volume spikes
    - 15: Business category - industry risk level
    - 10: KYC verification
    - 5:  Refund rate - fraud signal
    """

    def __init__(self, thresholds: ScoringThresholds = DEFAULT_THRESHOLDS):
        self.thresholds = thresholds

    def chargeback_score(self, merchant: Merchant) -> int:
        """
        Score chargeback rate (0-30).

        - < 0.5%:    0  (excellent)
        - 0.5-1.0%:  10 (acceptable)
        - 1.0-1.5%:  20 (concerning, approaching processor limits)
        - >= 1.5%:   30 (critical)
        """
        rate = merchant.chargeback_rate
        if rate < self.thresholds.chargeback_excellent:
            return 0
        elif rate < self.thresholds.chargeback_acceptable:
            return 10
        elif rate < self.thresholds.chargeback_critical:
            return 20
        return 30

    def account_age_score(self, merchant: Merchant) -> int:
        """Score account maturity (0-25); newer accounts have no track record"""
        days = merchant.account_age_days
        if days < ACCOUNT_AGE_VERY_NEW:
            return 25
        elif days < ACCOUNT_AGE_NEW:
            return 20
        elif days < ACCOUNT_AGE_EARLY:
            return 15
        elif days < ACCOUNT_AGE_ESTABLISHED:
            return 10
        elif days < ACCOUNT_AGE_MATURE:
            return 5
        return 0

    def velocity_score(self, merchant: Merchant) -> int:
        """Score current volume against the merchant's baseline (0-20)"""
        multiplier = merchant.velocity_multiplier
        if multiplier < self.thresholds.velocity_normal:
            return 0
        elif multiplier < self.thresholds.velocity_elevated:
            return 5
        elif multiplier < self.thresholds.velocity_concerning:
            return 10
        elif multiplier < self.thresholds.velocity_high_risk:
            return 15
        return 20

    def category_score(self, merchant: Merchant) -> int:
        # Unknown industries get the medium score rather than a pass
        if merchant.industry in HIGH_RISK_CATEGORIES:
            return 15
        elif merchant.industry in MEDIUM_RISK_CATEGORIES:
            return 10
        elif merchant.industry in LOW_RISK_CATEGORIES:
            return 5
        elif merchant.industry in MINIMAL_RISK_CATEGORIES:
            return 0
        return 10

    def kyc_score(self, merchant: Merchant) -> int:
        if not merchant.kyc_verified:
            return 10
        return KYC_LEVEL_SCORES.get(merchant.kyc_level, 10)

    def refund_score(self, merchant: Merchant) -> int:
        """
        Score refund rate (0-5).

        High refunds alongside low chargebacks can mean the merchant is
        refunding to dodge disputes.
        """
        rate = merchant.refund_rate
        if rate < self.thresholds.refund_normal:
            return 0
        elif rate < self.thresholds.refund_elevated:
            return 3
        return 5

    def score(self, merchant: Merchant) -> Tuple[int, FactorScore]:
        """
        Main entry point: score every factor and sum them.

        Returns: (total clamped to 0-100, individual factor scores)
        """
        factors = FactorScore(
            chargeback=self.chargeback_score(merchant),
            account_age=self.account_age_score(merchant),
            velocity=self.velocity_score(merchant),
            category=self.category_score(merchant),
            kyc=self.kyc_score(merchant),
            refund=self.refund_score(merchant),
        )
        return min(factors.raw_total, MAX_SCORE), factors
