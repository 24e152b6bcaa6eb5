"""Write gate that closes when a batch deadline passes"""

import threading
from typing import Callable, List
from payout_engine.domain.exceptions import DeadlineExceededError
from payout_engine.domain.models import RiskDecision


class WriteDeadline:
    """
    Decides, under one lock, whether a decision write may still commit.

    Repositories run their commits through `guard` from worker threads. Once
    `expire` returns, no further commit can land, and `committed` holds every
    decision that did.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._expired = False
        self.committed: List[RiskDecision] = []

    @property
    def expired(self) -> bool:
        return self._expired

    def guard(self, commit: Callable[[], None], decision: RiskDecision) -> None:
        """
        Run `commit` unless the deadline has passed.

        Raises:
            DeadlineExceededError: Deadline passed before the write
        """
        with self._lock:
            if self._expired:
                raise DeadlineExceededError(f"batch deadline passed before saving merchant {decision.merchant_id}")
            commit()
            self.committed.append(decision)

    def expire(self) -> None:
        """Close the gate; blocks until a commit already in progress finishes"""
        with self._lock:
            self._expired = True
