"""Human-readable reasoning for risk decisions"""

from payout_engine.domain.models import (
    Merchant,
    FactorScore,
    PolicyTier,
    FactorExplanation,
    Reasoning,
    Impact,
)
from payout_engine.domain.scoring import MAX_SCORE
from payout_engine.domain.thresholds import (
    DEFAULT_THRESHOLDS,
    ScoringThresholds,
    ACCOUNT_AGE_VERY_NEW,
    ACCOUNT_AGE_NEW,
    ACCOUNT_AGE_EARLY,
    ACCOUNT_AGE_ESTABLISHED,
    ACCOUNT_AGE_MATURE,
)


class Explainer:
    """
    Describe each factor score and the resulting policy.

    Impact bands use the thresholds passed at construction, which are the
    defaults unless a caller supplies others. Simulations with custom scoring
    thresholds are still described with the default bands.
    """

    def __init__(self, thresholds: ScoringThresholds = DEFAULT_THRESHOLDS):
        self.thresholds = thresholds

    def explain(self, merchant: Merchant, factors: FactorScore, tier: PolicyTier) -> Reasoning:
        primary_factors = (
            self.explain_chargeback(factors.chargeback, merchant.chargeback_rate),
            self.explain_account_age(factors.account_age, merchant.account_age_days),
            self.explain_velocity(factors.velocity, merchant.velocity_multiplier),
            self.explain_category(factors.category, merchant.industry),
            self.explain_kyc(factors.kyc, merchant.kyc_verified, merchant.kyc_level),
            self.explain_refund(factors.refund, merchant.refund_rate),
        )

        total = min(factors.raw_total, MAX_SCORE)
        policy_explanation = (
            f"Score of {total} places merchant in {tier.risk_level.value} tier ({tier.label}) "
            f"requiring {tier.hold_period.value} hold and {tier.reserve_percentage}% reserve"
        )

        return Reasoning(primary_factors=primary_factors, policy_explanation=policy_explanation)

    def explain_chargeback(self, score: int, rate: float) -> FactorExplanation:
        t = self.thresholds
        if rate < t.chargeback_excellent:
            label, impact = "Excellent", Impact.POSITIVE
        elif rate < t.chargeback_acceptable:
            label, impact = "Acceptable range", Impact.NEUTRAL
        elif rate < t.chargeback_critical:
            label, impact = "Concerning", Impact.NEGATIVE
        else:
            label, impact = "Critical", Impact.CRITICAL

        return FactorExplanation("Chargeback Rate", score, f"{rate:.2f}% rate - {label}", impact)

    def explain_account_age(self, score: int, days: int) -> FactorExplanation:
        if days < ACCOUNT_AGE_VERY_NEW:
            label, impact = "Very new", Impact.CRITICAL
        elif days < ACCOUNT_AGE_NEW:
            label, impact = "New", Impact.NEGATIVE
        elif days < ACCOUNT_AGE_EARLY:
            label, impact = "Early stage", Impact.NEUTRAL
        elif days < ACCOUNT_AGE_ESTABLISHED:
            label, impact = "Established", Impact.NEUTRAL
        elif days < ACCOUNT_AGE_MATURE:
            label, impact = "Mature", Impact.POSITIVE
        else:
            label, impact = "Veteran", Impact.POSITIVE

        return FactorExplanation("Account Age", score, f"Account {days} days old - {label}", impact)

    def explain_velocity(self, score: int, multiplier: float) -> FactorExplanation:
        t = self.thresholds
        if multiplier < t.velocity_normal:
            label, impact = "Normal", Impact.POSITIVE
        elif multiplier < t.velocity_elevated:
            label, impact = "Elevated", Impact.NEUTRAL
        elif multiplier < t.velocity_concerning:
            label, impact = "Concerning", Impact.NEGATIVE
        elif multiplier < t.velocity_high_risk:
            label, impact = "High risk", Impact.NEGATIVE
        else:
            label, impact = "Critical", Impact.CRITICAL

        return FactorExplanation("Transaction Velocity", score, f"{multiplier:.1f}x velocity - {label}", impact)

    def explain_category(self, score: int, industry: str) -> FactorExplanation:
        # Classified by score so unknown industries read as medium risk
        if score == 15:
            label, impact = "High risk category", Impact.NEGATIVE
        elif score == 10:
            label, impact = "Medium risk category", Impact.NEUTRAL
        elif score == 5:
            label, impact = "Low risk category", Impact.POSITIVE
        elif score == 0:
            label, impact = "Minimal risk category", Impact.POSITIVE
        else:
            label, impact = "Unknown category", Impact.NEUTRAL

        return FactorExplanation("Business Category", score, f"{industry} - {label}", impact)

    def explain_kyc(self, score: int, verified: bool, level: str) -> FactorExplanation:
        if verified and level == "ENHANCED":
            contribution, impact = "Enhanced KYC - Full business documentation", Impact.POSITIVE
        elif verified and level == "FULL":
            contribution, impact = "Full KYC - ID and address verified", Impact.NEUTRAL
        elif verified and level == "PARTIAL":
            contribution, impact = "Partial KYC - ID only", Impact.NEGATIVE
        else:
            contribution, impact = "No KYC verification", Impact.CRITICAL

        return FactorExplanation("KYC Verification", score, contribution, impact)

    def explain_refund(self, score: int, rate: float) -> FactorExplanation:
        t = self.thresholds
        if rate < t.refund_normal:
            label, impact = "Normal", Impact.POSITIVE
        elif rate < t.refund_elevated:
            label, impact = "Elevated", Impact.NEUTRAL
        else:
            label, impact = "High (fraud signal)", Impact.NEGATIVE

        return FactorExplanation("Refund Rate", score, f"{rate:.1f}% refund rate - {label}", impact)
