"""Assign categories to extracted transactions.

The remote classifier is tried first when configured; any failure falls back
to deterministic keyword rules, so categorization itself never fails.
"""

import asyncio
from dataclasses import dataclass
from decimal import Decimal
from typing import Awaitable, Callable, Optional, Protocol, Sequence

from finsight.domain.categories import CategoryCache
from finsight.domain.classifier import (
    ClassificationFailure,
    ClassificationRequest,
    ClassificationResult,
)
from finsight.domain.entities import CategorizedTransaction, ExtractedTransaction
from finsight.domain.fallback import fallback_category
from finsight.logging_setup import get_logger

BATCH_SIZE = 5
BATCH_DELAY_SECONDS = 1.0

_logger = get_logger("finsight.domain.categorizer")


class Classifier(Protocol):
    async def classify(self, request: ClassificationRequest) -> ClassificationResult: ...


@dataclass(frozen=True)
class CategoryDecision:
    """Category, optional subcategory and confidence for one transaction."""

    category: str
    confidence: float
    subcategory: Optional[str] = None
    source: str = "fallback"


def _attach(txn: ExtractedTransaction, decision: CategoryDecision) -> CategorizedTransaction:
    return CategorizedTransaction.from_extracted(
        txn,
        category=decision.category,
        confidence=decision.confidence,
        subcategory=decision.subcategory,
    )


class Categorizer:
    """Categorize transactions one at a time or in rate-limited batches."""

    def __init__(
        self,
        cache: CategoryCache,
        classifier: Optional[Classifier] = None,
        batch_size: int = BATCH_SIZE,
        batch_delay: float = BATCH_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize categorizer.

        Args:
            cache: Category vocabulary cache
            classifier: Remote classifier, or None to use keyword rules only
            batch_size: Transactions classified concurrently per batch
            batch_delay: Seconds to wait between batches
            sleep: Awaitable sleep (injectable for tests)
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.cache = cache
        self.classifier = classifier
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self._sleep = sleep

    async def categorize(
        self, description: str, amount: Decimal, is_income: bool
    ) -> CategoryDecision:
        """Categorize a single transaction from its description, amount and direction.

        Only the category half of the record is returned; pair it with the
        source transaction through :meth:`categorize_transaction`, or use
        :meth:`categorize_many` for whole statements.

        Returns:
            A decision whose category is always non-empty, tagged with the
            path (``"classifier"`` or ``"fallback"``) that produced it
        """
        if self.classifier is None:
            return self._fallback(description, is_income)

        request = ClassificationRequest(
            description=description,
            amount=amount,
            is_income=is_income,
            categories=tuple(self.cache.get()),
        )
        result = await self.classifier.classify(request)
        if isinstance(result, ClassificationFailure):
            _logger.warning(
                "categorize:fallback reason=%s description=%r", result.reason, description
            )
            return self._fallback(description, is_income)

        decision = result.decision
        return CategoryDecision(
            category=decision.category,
            subcategory=decision.subcategory,
            confidence=decision.confidence,
            source="classifier",
        )

    async def categorize_transaction(self, txn: ExtractedTransaction) -> CategorizedTransaction:
        decision = await self.categorize(txn.description, txn.amount, txn.is_income)
        return _attach(txn, decision)

    async def categorize_many(
        self, transactions: Sequence[ExtractedTransaction]
    ) -> list[CategorizedTransaction]:
        """Categorize transactions in batches, preserving input order.

        Each batch runs concurrently; batches run sequentially with
        ``batch_delay`` seconds between them (none after the last).
        """
        results: list[CategorizedTransaction] = []
        from_classifier = 0
        total = len(transactions)
        for start in range(0, total, self.batch_size):
            batch = transactions[start : start + self.batch_size]
            decisions = await asyncio.gather(
                *(self.categorize(t.description, t.amount, t.is_income) for t in batch)
            )
            for txn, decision in zip(batch, decisions):
                if decision.source == "classifier":
                    from_classifier += 1
                results.append(_attach(txn, decision))
            if start + self.batch_size < total and self.batch_delay > 0:
                await self._sleep(self.batch_delay)
        _logger.info(
            "categorize:done count=%d classifier=%d fallback=%d",
            total,
            from_classifier,
            total - from_classifier,
        )
        return results

    @staticmethod
    def _fallback(description: str, is_income: bool) -> CategoryDecision:
        category, confidence = fallback_category(description, is_income)
        return CategoryDecision(category=category, confidence=confidence)
