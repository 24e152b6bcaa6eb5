"""POST /v1/risk/batch-evaluate and batch decision lookup"""

import uuid
import logging
from fastapi import APIRouter, Depends, HTTPException, Request

from payout_engine.api.v1.schemas import BatchEvaluateRequest, BatchResponse, BatchDecisionsResponse, DecisionResponse
from payout_engine.api.dependencies import get_batch_evaluator, get_decision_repository, get_request_id
from payout_engine.services.batch import BatchEvaluator
from payout_engine.infrastructure.database.repositories import SqlDecisionRepository
from payout_engine.domain.exceptions import ValidationError, RepositoryError

router = APIRouter()


@router.post("/risk/batch-evaluate", response_model=BatchResponse)
async def batch_evaluate(
    request_body: BatchEvaluateRequest,
    request: Request,
    evaluator: BatchEvaluator = Depends(get_batch_evaluator),
):
    """
    Evaluate up to `batch_max_size` merchants concurrently.

    Individual failures are listed under `errors`; the request only fails
    as a whole when the batch is empty or too large.
    """
    request_id = get_request_id(request)

    try:
        result = await evaluator.evaluate_batch(request_body.merchant_ids, request_body.simulation)

    except ValidationError as e:
        logging.warning(f"Rejected batch: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail=str(e))

    return BatchResponse.from_domain(result)


@router.get("/risk/batches/{batch_id}/decisions", response_model=BatchDecisionsResponse)
async def get_batch_decisions(
    batch_id: str,
    request: Request,
    decisions: SqlDecisionRepository = Depends(get_decision_repository),
):
    """Persisted decisions produced by a non-simulation batch"""
    try:
        batch_uuid = uuid.UUID(batch_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid batch ID format")

    try:
        stored = await decisions.list_by_batch(batch_uuid)
    except RepositoryError as e:
        logging.error(f"Repository error: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=503, detail="Risk store unavailable")

    return BatchDecisionsResponse(
        batch_id=batch_id,
        decisions=[DecisionResponse.from_domain(d) for d in stored],
    )
