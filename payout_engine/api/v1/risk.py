"""Single-merchant risk endpoints: evaluate, simulate, profile"""

import time
import uuid
import logging
from fastapi import APIRouter, Depends, HTTPException, Request

from payout_engine.api.v1.schemas import EvaluateRequest, SimulateRequest, DecisionResponse, ProfileResponse
from payout_engine.api.dependencies import get_decision_service, get_request_id
from payout_engine.services.decision_service import DecisionService
from payout_engine.domain.overrides import SimulationOverrides
from payout_engine.domain.exceptions import NotFoundError, RepositoryError

router = APIRouter()


def parse_merchant_id(raw: str) -> uuid.UUID:
    try:
        return uuid.UUID(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail="invalid merchant ID")


@router.post("/risk/evaluate", response_model=DecisionResponse)
async def evaluate_merchant(
    request_body: EvaluateRequest,
    request: Request,
    service: DecisionService = Depends(get_decision_service),
):
    """
    Score a merchant and assign its payout policy.

    Persists the decision unless `simulation` is true.
    """
    start_time = time.time()
    request_id = get_request_id(request)
    merchant_id = parse_merchant_id(request_body.merchant_id)

    try:
        decision = await service.evaluate(merchant_id, request_body.simulation)

    except NotFoundError as e:
        logging.warning(f"Merchant not found: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=404, detail=str(e))

    except RepositoryError as e:
        logging.error(f"Repository error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Risk store unavailable")

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    logging.info(
        "Evaluate request completed",
        extra={"request_id": request_id, "duration_ms": (time.time() - start_time) * 1000},
    )
    return DecisionResponse.from_domain(decision)


@router.post("/risk/simulate", response_model=DecisionResponse)
async def simulate_merchant(
    request_body: SimulateRequest,
    request: Request,
    service: DecisionService = Depends(get_decision_service),
):
    """
    What-if evaluation with attribute and threshold overrides. Never persisted.

    Supported overrides: chargeback_rate, account_age_days, kyc_verified,
    velocity_multiplier and a `scoring_thresholds` object.
    """
    request_id = get_request_id(request)
    merchant_id = parse_merchant_id(request_body.merchant_id)
    overrides = SimulationOverrides.from_mapping(request_body.overrides)

    try:
        decision = await service.simulate(merchant_id, overrides)

    except NotFoundError as e:
        logging.warning(f"Merchant not found: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=404, detail=str(e))

    except RepositoryError as e:
        logging.error(f"Repository error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Risk store unavailable")

    return DecisionResponse.from_domain(decision)


@router.get("/risk/merchants/{merchant_id}/profile", response_model=ProfileResponse)
async def get_merchant_profile(
    merchant_id: str,
    request: Request,
    service: DecisionService = Depends(get_decision_service),
):
    """Merchant metrics plus the currently applied payout policy, if any"""
    request_id = get_request_id(request)
    merchant_uuid = parse_merchant_id(merchant_id)

    try:
        profile = await service.profile(merchant_uuid)

    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    except RepositoryError as e:
        logging.error(f"Repository error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Risk store unavailable")

    return ProfileResponse.from_domain(profile)
