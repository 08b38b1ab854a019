"""Explicit request budget for rate-limited APIs."""
import logging

from core.errors import BudgetExhausted

logger = logging.getLogger(__name__)


class RequestBudget:
    """Counts requests against a fixed limit; injected into each client that spends it."""

    def __init__(self, source: str, limit: int):
        if limit < 0:
            raise ValueError("limit must be non-negative")
        self.source = source
        self.limit = limit
        self.used = 0

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.used)

    @property
    def exhausted(self) -> bool:
        return self.used >= self.limit

    def consume(self, count: int = 1) -> int:
        """Spend `count` requests; raises BudgetExhausted without spending if short."""
        if self.used + count > self.limit:
            raise BudgetExhausted(self.source, self.limit)
        self.used += count
        logger.debug(f"{self.source}: {self.used}/{self.limit} requests used")
        return self.remaining

    def reset(self):
        """Start a new billing window."""
        self.used = 0
