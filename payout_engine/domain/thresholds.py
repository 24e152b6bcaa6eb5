"""Scoring threshold configuration"""

from dataclasses import dataclass, replace
from typing import Optional

# Account age breakpoints in days (not overridable)
ACCOUNT_AGE_VERY_NEW = 30
ACCOUNT_AGE_NEW = 91
ACCOUNT_AGE_EARLY = 181
ACCOUNT_AGE_ESTABLISHED = 366
ACCOUNT_AGE_MATURE = 731


@dataclass(frozen=True)
class ThresholdOverrides:
    """Per-request threshold overrides; None keeps the configured value"""

    chargeback_excellent: Optional[float] = None
    chargeback_acceptable: Optional[float] = None
    chargeback_critical: Optional[float] = None
    velocity_normal: Optional[float] = None
    refund_normal: Optional[float] = None
    refund_elevated: Optional[float] = None


@dataclass(frozen=True)
class ScoringThresholds:
    """
    Breakpoints for the rate-based risk factors.

    Each value is the inclusive lower bound of the next, worse bucket:
    a chargeback rate of exactly 1.5% is already critical.
    """

    chargeback_excellent: float = 0.5
    chargeback_acceptable: float = 1.0
    chargeback_critical: float = 1.5  # Most processors cap chargebacks at 1.5%
    velocity_normal: float = 1.5
    velocity_elevated: float = 2.5
    velocity_concerning: float = 4.0
    velocity_high_risk: float = 6.0
    refund_normal: float = 3.0
    refund_elevated: float = 6.0

    def with_overrides(self, overrides: Optional[ThresholdOverrides]) -> "ScoringThresholds":
        """Return a new thresholds object with the given overrides applied"""
        if overrides is None:
            return self
        changes = {
            name: value
            for name, value in vars(overrides).items()
            if value is not None
        }
        return replace(self, **changes)


DEFAULT_THRESHOLDS = ScoringThresholds()
