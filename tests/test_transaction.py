"""Tests for the transaction service."""

import pytest
from datetime import date
from decimal import Decimal

from finsight.domain.errors import NotFoundError, ValidationError


@pytest.fixture
def stored(temp_db, sample_user):
    """Three transactions across two months for the sample user."""

    def add(d, description, amount, is_income=False, category=None, subcategory=None):
        return temp_db.create_transaction(
            user_id=sample_user.id,
            file_id=None,
            date=d,
            description=description,
            amount=Decimal(amount),
            is_income=is_income,
            category=category,
            subcategory=subcategory,
        )

    return {
        "coffee": add(date(2024, 1, 15), 'Joe\'s "Best" Coffee', "4.50", category="Food & Dining", subcategory="Coffee"),
        "salary": add(date(2024, 1, 31), "Salary", "3000.00", is_income=True, category="Income"),
        "rent": add(date(2024, 2, 1), "Rent", "1500.00", category="Housing"),
    }


class TestListTransactions:
    """Tests for listing with filters."""

    def test_list_all_newest_first(self, transaction_service, sample_user, stored):
        """Test listing without filters."""
        result = transaction_service.list_transactions(sample_user.id)
        assert [t.id for t in result] == [stored["rent"], stored["salary"], stored["coffee"]]

    def test_filter_by_month(self, transaction_service, sample_user, stored):
        """Test the month filter is inclusive of the last day."""
        result = transaction_service.list_transactions(sample_user.id, month=1, year=2024)
        assert {t.id for t in result} == {stored["coffee"], stored["salary"]}

    def test_filter_by_year(self, transaction_service, sample_user, stored):
        """Test that a year alone selects the whole year."""
        assert len(transaction_service.list_transactions(sample_user.id, year=2024)) == 3
        assert transaction_service.list_transactions(sample_user.id, year=2023) == []

    def test_filter_by_category(self, transaction_service, sample_user, stored):
        """Test the category filter."""
        result = transaction_service.list_transactions(sample_user.id, category="Housing")
        assert [t.id for t in result] == [stored["rent"]]

    def test_month_requires_year(self, transaction_service, sample_user):
        """Test that a month without a year is rejected."""
        with pytest.raises(ValidationError):
            transaction_service.list_transactions(sample_user.id, month=1)

    def test_invalid_month(self, transaction_service, sample_user):
        """Test that an out-of-range month is rejected."""
        with pytest.raises(ValidationError):
            transaction_service.list_transactions(sample_user.id, month=13, year=2024)

    def test_other_users_transactions_hidden(self, transaction_service, user_service, stored):
        """Test that listing is scoped to the user."""
        other_id = user_service.create_user("sam@example.com")
        assert transaction_service.list_transactions(other_id) == []


class TestUpdateTransaction:
    """Tests for editing transactions."""

    def test_update_category(self, transaction_service, sample_user, stored):
        """Test changing the category keeps other fields."""
        updated = transaction_service.update_transaction(
            sample_user.id, stored["rent"], category="Utilities", subcategory="Deposit"
        )
        assert updated.category == "Utilities"
        assert updated.subcategory == "Deposit"
        assert updated.description == "Rent"

    def test_update_description_truncates(self, transaction_service, sample_user, stored):
        """Test that edited descriptions obey the length limit."""
        updated = transaction_service.update_transaction(
            sample_user.id, stored["rent"], description="y" * 700
        )
        assert len(updated.description) == 500
        assert updated.description.endswith("...")

    def test_no_fields(self, transaction_service, sample_user, stored):
        """Test that an empty update is rejected."""
        with pytest.raises(ValidationError, match="No fields to update"):
            transaction_service.update_transaction(sample_user.id, stored["rent"])

    def test_update_other_users_transaction(self, transaction_service, user_service, stored):
        """Test that users cannot edit each other's transactions."""
        other_id = user_service.create_user("sam@example.com")
        with pytest.raises(NotFoundError):
            transaction_service.update_transaction(other_id, stored["rent"], category="Other")

    def test_update_missing(self, transaction_service, sample_user):
        """Test updating a transaction that does not exist."""
        with pytest.raises(NotFoundError):
            transaction_service.update_transaction(sample_user.id, 999, category="Other")


class TestDeleteTransaction:
    """Tests for deleting transactions."""

    def test_delete(self, transaction_service, sample_user, stored):
        """Test deleting a transaction."""
        transaction_service.delete_transaction(sample_user.id, stored["coffee"])
        with pytest.raises(NotFoundError):
            transaction_service.get_transaction(sample_user.id, stored["coffee"])
        assert len(transaction_service.list_transactions(sample_user.id)) == 2

    def test_delete_other_users_transaction(self, transaction_service, user_service, sample_user, stored):
        """Test that deletion checks ownership."""
        other_id = user_service.create_user("sam@example.com")
        with pytest.raises(NotFoundError):
            transaction_service.delete_transaction(other_id, stored["coffee"])
        assert transaction_service.get_transaction(sample_user.id, stored["coffee"])


class TestExport:
    """Tests for CSV export."""

    def test_export_month(self, transaction_service, sample_user, stored):
        """Test export layout, quoting and ordering."""
        text = transaction_service.export_csv(sample_user.id, month=1, year=2024)
        assert text == (
            "Date,Description,Amount,Category,Subcategory,Type\n"
            '2024-01-31,"Salary",3000.00,"Income","",Income\n'
            '2024-01-15,"Joe\'s ""Best"" Coffee",4.50,"Food & Dining","Coffee",Expense\n'
        )

    def test_export_empty(self, transaction_service, sample_user):
        """Test that an empty export still has the header."""
        assert transaction_service.export_csv(sample_user.id) == (
            "Date,Description,Amount,Category,Subcategory,Type\n"
        )

    @pytest.mark.parametrize(
        "month,year,expected",
        [
            (3, 2024, "transactions-2024-03.csv"),
            (None, 2024, "transactions-2024.csv"),
            (None, None, "transactions.csv"),
        ],
    )
    def test_export_filename(self, transaction_service, month, year, expected):
        """Test suggested export file names."""
        assert transaction_service.export_filename(month, year) == expected
