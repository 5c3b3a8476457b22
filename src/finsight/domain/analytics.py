"""Period aggregation over stored transactions."""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from finsight.database.base import Database
from finsight.domain.categories import OTHER
from finsight.domain.entities import (
    CategoryBreakdown,
    DailyTotal,
    PeriodAnalytics,
    TopExpense,
    Transaction,
)
from finsight.domain.errors import ValidationError
from finsight.utils.date_parser import get_month_range

TOP_EXPENSES_LIMIT = 10

ZERO = Decimal("0")


def savings_rate(total_income: Decimal, total_expenses: Decimal) -> float:
    """Percentage of income left after expenses; 0 when there is no income."""
    if total_income == 0:
        return 0.0
    return float((total_income - total_expenses) / total_income * 100)


def summarize(
    transactions: Sequence[Transaction],
    month: int,
    year: int,
    top_n: int = TOP_EXPENSES_LIMIT,
) -> PeriodAnalytics:
    """Aggregate already-filtered transactions into a PeriodAnalytics.

    Args:
        transactions: Transactions inside the period
        month: Period month
        year: Period year
        top_n: How many of the largest expenses to keep

    Returns:
        PeriodAnalytics for the period
    """
    total_income = ZERO
    total_expenses = ZERO
    by_category: dict[str, list] = defaultdict(lambda: [ZERO, 0])
    by_day: dict[date, list] = defaultdict(lambda: [ZERO, ZERO])

    for txn in transactions:
        day = by_day[txn.date]
        if txn.is_income:
            total_income += txn.amount
            day[0] += txn.amount
            continue
        total_expenses += txn.amount
        day[1] += txn.amount
        bucket = by_category[txn.category or OTHER]
        bucket[0] += txn.amount
        bucket[1] += 1

    breakdown = sorted(
        (CategoryBreakdown(category=name, total=total, count=count)
         for name, (total, count) in by_category.items()),
        key=lambda item: (-item.total, item.category),
    )
    trend = [
        DailyTotal(date=day, income=income, expenses=expenses)
        for day, (income, expenses) in sorted(by_day.items())
    ]
    expenses = sorted(
        (t for t in transactions if not t.is_income),
        key=lambda t: (-t.amount, t.date),
    )
    top = [
        TopExpense(description=t.description, amount=t.amount, category=t.category, date=t.date)
        for t in expenses[:top_n]
    ]

    return PeriodAnalytics(
        month=month,
        year=year,
        total_income=total_income,
        total_expenses=total_expenses,
        savings_rate=savings_rate(total_income, total_expenses),
        category_breakdown=tuple(breakdown),
        daily_trend=tuple(trend),
        top_expenses=tuple(top),
        transaction_count=len(transactions),
    )


class AnalyticsService:
    """Read-only aggregation of a user's transactions by month."""

    def __init__(self, db: Database):
        """Initialize analytics service.

        Args:
            db: Database instance
        """
        self.db = db

    def get_period_analytics(
        self,
        user_id: int,
        month: Optional[int] = None,
        year: Optional[int] = None,
        top_n: int = TOP_EXPENSES_LIMIT,
    ) -> PeriodAnalytics:
        """Aggregate one month of transactions; defaults to the current month.

        Raises:
            ValidationError: If the month is out of range
        """
        today = date.today()
        month = today.month if month is None else month
        year = today.year if year is None else year
        try:
            start_date, end_date = get_month_range(month, year)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        transactions = self.db.list_transactions(user_id, start_date=start_date, end_date=end_date)
        return summarize(transactions, month, year, top_n=top_n)
