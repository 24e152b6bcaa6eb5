"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import sessionmaker

from payout_engine.infrastructure.database.session import get_session_factory
from payout_engine.infrastructure.database.repositories import SqlMerchantRepository, SqlDecisionRepository
from payout_engine.services.decision_service import DecisionService
from payout_engine.services.batch import BatchEvaluator


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_merchant_repository(session_factory: sessionmaker = Depends(get_session_factory)) -> SqlMerchantRepository:
    return SqlMerchantRepository(session_factory)


def get_decision_repository(session_factory: sessionmaker = Depends(get_session_factory)) -> SqlDecisionRepository:
    return SqlDecisionRepository(session_factory)


def get_decision_service(
    merchants: SqlMerchantRepository = Depends(get_merchant_repository),
    decisions: SqlDecisionRepository = Depends(get_decision_repository),
) -> DecisionService:
    """Provide the risk decision service wired to the SQL repositories"""
    return DecisionService(merchants, decisions)


def get_batch_evaluator(
    service: DecisionService = Depends(get_decision_service),
    merchants: SqlMerchantRepository = Depends(get_merchant_repository),
) -> BatchEvaluator:
    """Provide the batch evaluator; limits come from settings"""
    return BatchEvaluator(service, merchants)
