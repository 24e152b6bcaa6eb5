"""What-if overrides for merchant simulations"""

from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional
from payout_engine.domain.models import Merchant
from payout_engine.domain.thresholds import ThresholdOverrides

THRESHOLD_KEYS = (
    "chargeback_excellent",
    "chargeback_acceptable",
    "chargeback_critical",
    "velocity_normal",
    "refund_normal",
    "refund_elevated",
)


def _number(value: Any) -> Optional[float]:
    # bool is an int subclass but never a valid numeric override
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return None


def _flag(value: Any) -> Optional[bool]:
    return value if isinstance(value, bool) else None


@dataclass(frozen=True)
class SimulationOverrides:
    """
    Attribute and threshold overrides for one simulation.

    Only these merchant attributes can be overridden: chargeback_rate,
    account_age_days, kyc_verified and velocity_multiplier. Fields left as
    None keep the stored merchant value.
    """

    chargeback_rate: Optional[float] = None
    account_age_days: Optional[int] = None
    kyc_verified: Optional[bool] = None
    velocity_multiplier: Optional[float] = None
    scoring_thresholds: Optional[ThresholdOverrides] = None

    @classmethod
    def from_mapping(cls, raw: Optional[Mapping[str, Any]]) -> "SimulationOverrides":
        """
        Build overrides from an untyped payload (e.g. a JSON body).

        Values of the wrong type are dropped without error, as are unknown keys.
        """
        if not raw:
            return cls()

        account_age = _number(raw.get("account_age_days"))

        thresholds = None
        raw_thresholds = raw.get("scoring_thresholds")
        if isinstance(raw_thresholds, Mapping):
            thresholds = ThresholdOverrides(
                **{key: _number(raw_thresholds.get(key)) for key in THRESHOLD_KEYS}
            )

        return cls(
            chargeback_rate=_number(raw.get("chargeback_rate")),
            account_age_days=int(account_age) if account_age is not None else None,
            kyc_verified=_flag(raw.get("kyc_verified")),
            velocity_multiplier=_number(raw.get("velocity_multiplier")),
            scoring_thresholds=thresholds,
        )

    def apply(self, merchant: Merchant) -> Merchant:
        """Return a modified copy; the given merchant is left untouched"""
        changes: dict = {}
        if self.chargeback_rate is not None:
            changes["chargeback_rate"] = self.chargeback_rate
        if self.account_age_days is not None:
            changes["account_age_days"] = self.account_age_days
        if self.kyc_verified is not None:
            changes["kyc_verified"] = self.kyc_verified
            # Verifying a merchant with no KYC level assumes full verification
            if self.kyc_verified and merchant.kyc_level == "NONE":
                changes["kyc_level"] = "FULL"
        if self.velocity_multiplier is not None:
            changes["velocity_multiplier"] = self.velocity_multiplier
        return replace(merchant, **changes)
