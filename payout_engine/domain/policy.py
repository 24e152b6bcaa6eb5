"""Payout policy tiers keyed by risk score"""

from typing import Sequence
from payout_engine.domain.models import PolicyTier, RiskLevel, HoldPeriod

POLICY_TIERS = (
    PolicyTier(0, 20, RiskLevel.LOW, HoldPeriod.IMMEDIATE, 0, "Low Risk - Trusted Merchant"),
    PolicyTier(21, 40, RiskLevel.MEDIUM_LOW, HoldPeriod.SEVEN_DAYS, 0, "Medium-Low Risk - Standard Processing"),
    PolicyTier(41, 60, RiskLevel.MEDIUM, HoldPeriod.FOURTEEN_DAYS, 10, "Medium Risk - Enhanced Monitoring"),
    PolicyTier(61, 80, RiskLevel.HIGH, HoldPeriod.FORTY_FIVE_DAYS, 20, "High Risk - Requires Review"),
    PolicyTier(81, 100, RiskLevel.CRITICAL, HoldPeriod.FORTY_FIVE_DAYS, 20, "Critical Risk - Manual Approval Required"),
)


class PolicyMapper:
    """
    Map a 0-100 risk score to its policy tier.

    Tier bounds are inclusive on both ends and ascending:
    - 0-20:   LOW        - immediate payout, no reserve
    - 21-40:  MEDIUM_LOW - 7 day hold, no reserve
    - 41-60:  MEDIUM     - 14 day hold, 10% reserve
    - 61-80:  HIGH       - 45 day hold, 20% reserve
    - 81-100: CRITICAL   - 45 day hold, 20% reserve
    """

    def __init__(self, tiers: Sequence[PolicyTier] = POLICY_TIERS):
        self.tiers = tuple(tiers)

    def tier_for(self, score: int) -> PolicyTier:
        for tier in self.tiers:
            if tier.contains(score):
                return tier
        # Out-of-range scores get the most severe tier
        return self.tiers[-1]

    def hold_period_for(self, score: int) -> HoldPeriod:
        return self.tier_for(score).hold_period

    def reserve_percentage_for(self, score: int) -> int:
        return self.tier_for(score).reserve_percentage


def reserve_bucket(reserve_percentage: int) -> str:
    """Reporting bucket for a reserve percentage: 0_PERCENT, 10_PERCENT or 20_PERCENT"""
    if reserve_percentage >= 20:
        return "20_PERCENT"
    elif reserve_percentage >= 10:
        return "10_PERCENT"
    return "0_PERCENT"
