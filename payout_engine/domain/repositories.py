"""Storage interfaces the risk engine depends on"""

import uuid
from typing import List, Optional, Protocol
from payout_engine.domain.models import Merchant, RiskDecision
from payout_engine.domain.deadline import WriteDeadline


class MerchantRepository(Protocol):
    async def get(self, merchant_id: uuid.UUID) -> Merchant:
        """Raises NotFoundError if the merchant does not exist"""
        ...


class DecisionRepository(Protocol):
    """
    Persistence for risk decisions.

    Implementations must be safe to call from concurrent tasks.
    """

    async def create(self, decision: RiskDecision, deadline: Optional[WriteDeadline] = None) -> RiskDecision:
        """Raises DeadlineExceededError instead of committing once `deadline` has expired"""
        ...

    async def get_latest_by_merchant(self, merchant_id: uuid.UUID) -> Optional[RiskDecision]:
        """Most recent non-simulation decision, or None"""
        ...

    async def bulk_create(self, decisions: List[RiskDecision]) -> None: ...

    async def list_by_batch(self, batch_id: uuid.UUID) -> List[RiskDecision]: ...
