"""Domain models - pure Python dataclasses representing business entities"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM_LOW = "MEDIUM_LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class HoldPeriod(str, Enum):
    IMMEDIATE = "IMMEDIATE"
    SEVEN_DAYS = "7_DAYS"
    FOURTEEN_DAYS = "14_DAYS"
    FORTY_FIVE_DAYS = "45_DAYS"


class Impact(str, Enum):
    POSITIVE = "POSITIVE"
    NEUTRAL = "NEUTRAL"
    NEGATIVE = "NEGATIVE"
    CRITICAL = "CRITICAL"


@dataclass(frozen=True)
class Merchant:
    """Merchant snapshot read from the merchant store"""

    id: uuid.UUID
    merchant_name: str
    industry: str
    country: str = "US"
    transaction_volume_30d: float = 0.0
    transaction_count_30d: int = 0
    avg_ticket_size: float = 0.0
    chargeback_count_30d: int = 0
    chargeback_rate: float = 0.0  # percent
    refund_rate: float = 0.0  # percent
    velocity_multiplier: float = 1.0
    account_age_days: int = 0
    account_created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    kyc_verified: bool = False
    kyc_level: str = "NONE"  # NONE | PARTIAL | FULL | ENHANCED


@dataclass(frozen=True)
class FactorScore:
    """Bounded sub-scores for the six risk factors"""

    chargeback: int  # 0-30
    account_age: int  # 0-25
    velocity: int  # 0-20
    category: int  # 0-15
    kyc: int  # 0-10
    refund: int  # 0-5

    @property
    def raw_total(self) -> int:
        return self.chargeback + self.account_age + self.velocity + self.category + self.kyc + self.refund


@dataclass(frozen=True)
class PolicyTier:
    """Score bracket with its payout hold and rolling reserve"""

    min_score: int
    max_score: int
    risk_level: RiskLevel
    hold_period: HoldPeriod
    reserve_percentage: int
    label: str

    def contains(self, score: int) -> bool:
        return self.min_score <= score <= self.max_score


@dataclass(frozen=True)
class FactorExplanation:
    factor: str
    score: int
    contribution: str
    impact: Impact


@dataclass(frozen=True)
class Reasoning:
    """Per-factor explanations (fixed order) plus the policy summary sentence"""

    primary_factors: Tuple[FactorExplanation, ...]
    policy_explanation: str


@dataclass(frozen=True)
class RiskDecision:
    """Output of one merchant evaluation"""

    merchant_id: uuid.UUID
    risk_score: int
    risk_level: RiskLevel
    payout_hold_period: HoldPeriod
    rolling_reserve_percentage: int
    reasoning: Reasoning
    evaluated_at: datetime
    simulation: bool = False
    batch_id: Optional[uuid.UUID] = None
    decision_id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass(frozen=True)
class RiskMetrics:
    transaction_volume_30d: float
    transaction_count_30d: int
    avg_ticket_size: float
    chargeback_count_30d: int
    chargeback_rate: float
    refund_rate: float
    velocity_multiplier: float
    kyc_verified: bool
    kyc_level: str


@dataclass(frozen=True)
class PolicyInfo:
    """Policy currently applied, taken from the latest persisted decision"""

    risk_score: int
    payout_hold_period: HoldPeriod
    rolling_reserve_percentage: int
    last_evaluated_at: datetime


@dataclass(frozen=True)
class MerchantProfile:
    merchant_id: uuid.UUID
    merchant_name: str
    industry: str
    country: str
    account_created_at: datetime
    account_age_days: int
    risk_metrics: RiskMetrics
    current_policy: Optional[PolicyInfo] = None


@dataclass(frozen=True)
class EvaluationFailure:
    """Batch item that could not be evaluated"""

    merchant_id: str  # raw identifier as requested
    error: str


@dataclass
class BatchSummary:
    by_hold_period: Dict[str, int]
    by_reserve: Dict[str, int]
    by_risk_level: Dict[str, int]
    total_volume: float
    volume_by_tier: Dict[str, float]


@dataclass
class HighRiskMerchant:
    merchant_id: uuid.UUID
    risk_score: int
    risk_level: RiskLevel
    primary_concerns: List[str]
    recommended_action: str
    merchant_name: Optional[str] = None


@dataclass
class BatchResult:
    """Aggregate of one batch request; lives only as long as the response"""

    batch_id: uuid.UUID
    total_requested: int
    simulation: bool
    decisions: List[RiskDecision] = field(default_factory=list)
    failures: List[EvaluationFailure] = field(default_factory=list)
    summary: Optional[BatchSummary] = None
    high_risk_merchants: List[HighRiskMerchant] = field(default_factory=list)
    abandoned: int = 0  # still running when the deadline elapsed
    message: Optional[str] = None

    @property
    def successful(self) -> int:
        return len(self.decisions)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def evaluated_at(self) -> Optional[datetime]:
        return self.decisions[0].evaluated_at if self.decisions else None
