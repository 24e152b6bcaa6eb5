"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from payout_engine.domain.models import RiskLevel, HoldPeriod, Impact


class EvaluateRequest(BaseModel):
    """Request body for POST /v1/risk/evaluate"""

    merchant_id: str = Field(..., min_length=1, description="Merchant UUID")
    simulation: bool = False


class SimulateRequest(BaseModel):
    """Request body for POST /v1/risk/simulate"""

    merchant_id: str = Field(..., min_length=1, description="Merchant UUID")
    # Values of the wrong type are ignored, not rejected; null means no overrides
    overrides: Optional[Dict[str, Any]] = None


class BatchEvaluateRequest(BaseModel):
    """Request body for POST /v1/risk/batch-evaluate"""

    merchant_ids: List[str] = Field(..., description="Merchant UUIDs to evaluate")
    simulation: bool = False


class FactorExplanationSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    factor: str
    score: int
    contribution: str
    impact: Impact


class ReasoningSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    primary_factors: List[FactorExplanationSchema]
    policy_explanation: str


class DecisionResponse(BaseModel):
    """Single risk decision"""

    model_config = ConfigDict(from_attributes=True)

    decision_id: str
    merchant_id: str
    batch_id: Optional[str] = None
    risk_score: int
    risk_level: RiskLevel
    payout_hold_period: HoldPeriod
    rolling_reserve_percentage: int
    reasoning: ReasoningSchema
    evaluated_at: datetime
    simulation: bool

    @classmethod
    def from_domain(cls, decision) -> "DecisionResponse":
        return cls(
            decision_id=str(decision.decision_id),
            merchant_id=str(decision.merchant_id),
            batch_id=str(decision.batch_id) if decision.batch_id else None,
            risk_score=decision.risk_score,
            risk_level=decision.risk_level,
            payout_hold_period=decision.payout_hold_period,
            rolling_reserve_percentage=decision.rolling_reserve_percentage,
            reasoning=ReasoningSchema.model_validate(decision.reasoning),
            evaluated_at=decision.evaluated_at,
            simulation=decision.simulation,
        )


class RiskMetricsSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    transaction_volume_30d: float
    transaction_count_30d: int
    avg_ticket_size: float
    chargeback_count_30d: int
    chargeback_rate: float
    refund_rate: float
    velocity_multiplier: float
    kyc_verified: bool
    kyc_level: str


class PolicyInfoSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    risk_score: int
    payout_hold_period: HoldPeriod
    rolling_reserve_percentage: int
    last_evaluated_at: datetime


class ProfileResponse(BaseModel):
    """Response for GET /v1/risk/merchants/{merchant_id}/profile"""

    merchant_id: str
    merchant_name: str
    industry: str
    country: str
    account_created_at: datetime
    account_age_days: int
    risk_metrics: RiskMetricsSchema
    current_policy: Optional[PolicyInfoSchema] = None

    @classmethod
    def from_domain(cls, profile) -> "ProfileResponse":
        return cls(
            merchant_id=str(profile.merchant_id),
            merchant_name=profile.merchant_name,
            industry=profile.industry,
            country=profile.country,
            account_created_at=profile.account_created_at,
            account_age_days=profile.account_age_days,
            risk_metrics=RiskMetricsSchema.model_validate(profile.risk_metrics),
            current_policy=(
                PolicyInfoSchema.model_validate(profile.current_policy)
                if profile.current_policy
                else None
            ),
        )


class EvaluationErrorSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    merchant_id: str
    error: str


class BatchSummarySchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    by_hold_period: Dict[str, int]
    by_reserve: Dict[str, int]
    by_risk_level: Dict[str, int]
    total_volume: float
    volume_by_tier: Dict[str, float]


class HighRiskMerchantSchema(BaseModel):
    merchant_id: str
    merchant_name: Optional[str] = None
    risk_score: int
    risk_level: RiskLevel
    primary_concerns: List[str]
    recommended_action: str


class BatchResponse(BaseModel):
    """Response for POST /v1/risk/batch-evaluate"""

    batch_id: str
    total_merchants: int
    successful: int
    failed: int
    abandoned: int
    evaluated_at: Optional[datetime] = None
    summary: Optional[BatchSummarySchema] = None
    high_risk_merchants: Optional[List[HighRiskMerchantSchema]] = None
    decisions: List[DecisionResponse]
    errors: List[EvaluationErrorSchema]
    message: Optional[str] = None
    simulation: bool

    @classmethod
    def from_domain(cls, result) -> "BatchResponse":
        # No summary or high-risk section when nothing succeeded
        high_risk = None
        if result.summary is not None:
            high_risk = [
                HighRiskMerchantSchema(
                    merchant_id=str(m.merchant_id),
                    merchant_name=m.merchant_name,
                    risk_score=m.risk_score,
                    risk_level=m.risk_level,
                    primary_concerns=m.primary_concerns,
                    recommended_action=m.recommended_action,
                )
                for m in result.high_risk_merchants
            ]

        return cls(
            batch_id=str(result.batch_id),
            total_merchants=result.total_requested,
            successful=result.successful,
            failed=result.failed,
            abandoned=result.abandoned,
            evaluated_at=result.evaluated_at,
            summary=BatchSummarySchema.model_validate(result.summary) if result.summary else None,
            high_risk_merchants=high_risk,
            decisions=[DecisionResponse.from_domain(d) for d in result.decisions],
            errors=[EvaluationErrorSchema.model_validate(f) for f in result.failures],
            message=result.message,
            simulation=result.simulation,
        )


class BatchDecisionsResponse(BaseModel):
    """Response for GET /v1/risk/batches/{batch_id}/decisions"""

    batch_id: str
    decisions: List[DecisionResponse]
