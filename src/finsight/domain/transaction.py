"""Transaction domain service."""

from typing import Optional

from finsight.database.base import Database
from finsight.domain.entities import Transaction as TransactionEntity
from finsight.domain.errors import NotFoundError, ValidationError, transaction_not_found
from finsight.utils.date_parser import get_month_range

MAX_DESCRIPTION_LENGTH = 500
TRUNCATION_MARKER = "..."

EXPORT_HEADER = "Date,Description,Amount,Category,Subcategory,Type"


def truncate_description(description: str, max_length: int = MAX_DESCRIPTION_LENGTH) -> str:
    """Cut a description to ``max_length`` characters, marker included."""
    if len(description) <= max_length:
        return description
    return description[: max_length - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER


def _quote(value: Optional[str]) -> str:
    return '"' + (value or "").replace('"', '""') + '"'


class TransactionService:
    """Service for reading and editing stored transactions."""

    def __init__(self, db: Database):
        """Initialize transaction service.

        Args:
            db: Database instance
        """
        self.db = db

    def get_transaction(self, user_id: int, transaction_id: int) -> TransactionEntity:
        """Get a transaction owned by the user.

        Raises:
            NotFoundError: If the transaction does not exist or belongs to someone else
        """
        txn = self.db.get_transaction(transaction_id)
        if txn is None or txn.user_id != user_id:
            raise NotFoundError(transaction_not_found(transaction_id))
        return txn

    def list_transactions(
        self,
        user_id: int,
        month: Optional[int] = None,
        year: Optional[int] = None,
        category: Optional[str] = None,
    ) -> list[TransactionEntity]:
        """List transactions, newest first.

        Args:
            user_id: Owning user ID
            month: Optional month (1-12); requires ``year``
            year: Optional year; alone it selects the whole year
            category: Optional exact category filter

        Raises:
            ValidationError: If month is given without year, or is out of range
        """
        start_date = end_date = None
        if month is not None:
            if year is None:
                raise ValidationError("A month filter requires a year")
            try:
                start_date, end_date = get_month_range(month, year)
            except ValueError as e:
                raise ValidationError(str(e)) from e
        elif year is not None:
            start_date, _ = get_month_range(1, year)
            _, end_date = get_month_range(12, year)

        return self.db.list_transactions(
            user_id, start_date=start_date, end_date=end_date, category=category
        )

    def update_transaction(
        self,
        user_id: int,
        transaction_id: int,
        category: Optional[str] = None,
        subcategory: Optional[str] = None,
        description: Optional[str] = None,
    ) -> TransactionEntity:
        """Edit category, subcategory or description.

        Returns:
            The updated transaction

        Raises:
            ValidationError: If no field is given
            NotFoundError: If the transaction does not exist for this user
        """
        if category is None and subcategory is None and description is None:
            raise ValidationError("No fields to update")
        self.get_transaction(user_id, transaction_id)

        if description is not None:
            description = truncate_description(description)
        self.db.update_transaction(
            transaction_id,
            category=category,
            subcategory=subcategory,
            description=description,
        )
        return self.get_transaction(user_id, transaction_id)

    def delete_transaction(self, user_id: int, transaction_id: int) -> None:
        """Delete one of the user's transactions."""
        self.get_transaction(user_id, transaction_id)
        self.db.delete_transaction(transaction_id)

    def export_csv(self, user_id: int, month: Optional[int] = None, year: Optional[int] = None) -> str:
        """Render the user's transactions as CSV text.

        Returns:
            CSV text, header first, one line per transaction (newest first)
        """
        lines = [EXPORT_HEADER]
        for txn in self.list_transactions(user_id, month=month, year=year):
            lines.append(
                ",".join(
                    [
                        txn.date.isoformat(),
                        _quote(txn.description),
                        f"{txn.amount:.2f}",
                        _quote(txn.category),
                        _quote(txn.subcategory),
                        "Income" if txn.is_income else "Expense",
                    ]
                )
            )
        return "\n".join(lines) + "\n"

    @staticmethod
    def export_filename(month: Optional[int] = None, year: Optional[int] = None) -> str:
        """Suggested file name for an export, e.g. ``transactions-2024-03.csv``."""
        if month is not None and year is not None:
            return f"transactions-{year}-{month:02d}.csv"
        if year is not None:
            return f"transactions-{year}.csv"
        return "transactions.csv"
