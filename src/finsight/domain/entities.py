"""Domain model entities for finsight.

These are pure data classes representing business concepts, independent of
database schema.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class FileStatus(str, Enum):
    """Processing state of an uploaded statement.

    pending -> processing -> completed | error
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True)
class ExtractedTransaction:
    """A transaction parsed out of a statement, before categorization.

    ``amount`` is never negative; direction lives in ``is_income``.
    """

    date: date
    description: str
    amount: Decimal
    is_income: bool

    def __post_init__(self):
        if self.amount < 0:
            raise ValueError(f"amount must be non-negative, got {self.amount}")

    @property
    def key(self) -> tuple[date, str, Decimal]:
        """Identity used for duplicate detection."""
        return (self.date, self.description, self.amount)


@dataclass(frozen=True)
class CategorizedTransaction:
    """Extracted transaction plus its assigned category."""

    date: date
    description: str
    amount: Decimal
    is_income: bool
    category: str
    subcategory: Optional[str]
    confidence: float

    def __post_init__(self):
        if not self.category:
            raise ValueError("category must be non-empty")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {self.confidence}")

    @classmethod
    def from_extracted(
        cls,
        txn: ExtractedTransaction,
        category: str,
        confidence: float,
        subcategory: Optional[str] = None,
    ) -> "CategorizedTransaction":
        return cls(
            date=txn.date,
            description=txn.description,
            amount=txn.amount,
            is_income=txn.is_income,
            category=category,
            subcategory=subcategory,
            confidence=confidence,
        )


@dataclass(frozen=True)
class User:
    """Owner of uploaded files and transactions."""

    id: int
    email: str
    created_at: datetime


@dataclass(frozen=True)
class UploadedFile:
    """Uploaded statement metadata."""

    id: int
    user_id: int
    original_filename: str
    file_path: str
    file_size: Optional[int]
    mime_type: Optional[str]
    status: FileStatus
    uploaded_at: datetime
    processed_at: Optional[datetime]


@dataclass(frozen=True)
class Transaction:
    """Persisted transaction domain entity."""

    id: int
    user_id: int
    file_id: Optional[int]
    date: date
    description: str
    amount: Decimal
    category: Optional[str]
    subcategory: Optional[str]
    is_income: bool
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Category:
    """Spending category in the classification vocabulary."""

    id: int
    name: str
    parent_category: Optional[str]
    icon: Optional[str]
    color: Optional[str]
    is_default: bool
    created_at: datetime


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of running one uploaded file through the pipeline."""

    file_id: int
    saved_count: int
    duplicate_count: int

    @property
    def message(self) -> str:
        message = f"File processed successfully. Saved {self.saved_count} transactions."
        if self.duplicate_count > 0:
            message += f" Skipped {self.duplicate_count} duplicate(s)."
        return message


@dataclass(frozen=True)
class CategoryBreakdown:
    """Summed expenses for one category."""

    category: str
    total: Decimal
    count: int


@dataclass(frozen=True)
class DailyTotal:
    """Income and expenses on one calendar day."""

    date: date
    income: Decimal
    expenses: Decimal


@dataclass(frozen=True)
class TopExpense:
    """One of the largest single expenses in a period."""

    description: str
    amount: Decimal
    category: Optional[str]
    date: date


@dataclass(frozen=True)
class PeriodAnalytics:
    """Aggregated view of a user's transactions for one month."""

    month: int
    year: int
    total_income: Decimal
    total_expenses: Decimal
    savings_rate: float
    category_breakdown: tuple[CategoryBreakdown, ...] = ()
    daily_trend: tuple[DailyTotal, ...] = ()
    top_expenses: tuple[TopExpense, ...] = ()
    transaction_count: int = 0

    @property
    def spending_by_category(self) -> dict[str, Decimal]:
        """Mapping from category to summed expense amount."""
        return {item.category: item.total for item in self.category_breakdown}

    @property
    def net(self) -> Decimal:
        return self.total_income - self.total_expenses


@dataclass(frozen=True)
class ExtractedDocument:
    """Intermediate form produced by the extractor.

    Exactly one of ``rows`` (tabular input) or ``lines`` (document input)
    carries content.
    """

    kind: str
    rows: tuple[dict[str, str], ...] = field(default_factory=tuple)
    lines: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_tabular(self) -> bool:
        return self.kind == "tabular"


@dataclass(frozen=True)
class BudgetRecommendation:
    """Suggested monthly amount for one category next to what was spent."""

    category: str
    recommended_amount: Decimal
    current_spending: Decimal
    percentage_of_income: float
    reasoning: str


@dataclass(frozen=True)
class BudgetSummary:
    """Budget recommendations and insights for one month of a user's data.

    ``source`` is ``"advisor"`` when the recommendations came from the remote
    advisor and ``"rule"`` when the fixed 50/30/20 split was used.
    """

    month: int
    year: int
    total_income: Decimal
    total_expenses: Decimal
    savings_rate: float
    recommendations: tuple[BudgetRecommendation, ...]
    insights: str
    source: str = "rule"
