"""Tests for statement parsing strategies."""

import pytest
from datetime import date
from decimal import Decimal
from finsight.domain.entities import ExtractedDocument, ExtractedTransaction
from finsight.domain.parsing import (
    UNKNOWN_DESCRIPTION,
    clean_description,
    is_summary_line,
    parse_document,
    parse_dual_amount_columns,
    parse_lines,
    parse_loose_lines,
    parse_row,
    parse_rows,
    parse_single_amount_lines,
)

TODAY = date(2024, 2, 1)

SINGLE_AMOUNT_STATEMENT = [
    "ACME BANK STATEMENT",
    "01/15/2024 STARBUCKS STORE 1234 $5.50",
    "01/16/2024 PAYROLL DIRECT DEP +$3,000.00",
    "01/17/2024 WHOLE FOODS MARKET ($85.20)",
    "01/31/2024 Ending Balance $2,909.30",
]

DUAL_COLUMN_STATEMENT = [
    "ACME BANK STATEMENT",
    "Date Description Debit Credit",
    "2024-01-15 GROCERY OUTLET 45.20 0.00",
    "2024-01-16 EMPLOYER PAYROLL 0.00 2,500.00",
    "2024-01-17 SHELL OIL 38.10",
]

LOOSE_STATEMENT = [
    "Activity",
    "01/15 Corner Deli 12",
    "01/16 Venmo from Alex +30.00",
]


def txn(d, description, amount, is_income=False):
    return ExtractedTransaction(
        date=d, description=description, amount=Decimal(amount), is_income=is_income
    )


class TestHelpers:
    """Tests for shared parsing helpers."""

    def test_summary_lines(self):
        """Test that short header/summary lines are recognized."""
        assert is_summary_line("Ending Balance $1,234.56")
        assert is_summary_line("Page 2 of 3")
        assert not is_summary_line("01/15/2024 TRANSFER TO SAVINGS BALANCE ACCT $50.00")
        assert not is_summary_line("01/15/2024 Coffee $4.50")

    def test_clean_description(self):
        """Test whitespace collapse and stripping of bullets and stray integers."""
        assert clean_description("•  1234   STARBUCKS #123  5") == "STARBUCKS #123"
        assert clean_description("-- ATM WITHDRAWAL --") == "ATM WITHDRAWAL"
        assert clean_description("   ") == UNKNOWN_DESCRIPTION


class TestSingleAmountStrategy:
    """Tests for strategy A."""

    def test_parses_currency_lines(self):
        """Test plain, signed and parenthesized currency amounts."""
        result = parse_single_amount_lines(SINGLE_AMOUNT_STATEMENT, TODAY)
        assert result == [
            txn(date(2024, 1, 15), "STARBUCKS STORE 1234", "5.50"),
            txn(date(2024, 1, 16), "PAYROLL DIRECT DEP", "3000.00", is_income=True),
            txn(date(2024, 1, 17), "WHOLE FOODS MARKET", "85.20"),
        ]

    def test_amount_on_next_line(self):
        """Test that the amount and description may come from the following line."""
        result = parse_single_amount_lines(["Jan 15, 2024", "Coffee Shop $4.75"], TODAY)
        assert result == [txn(date(2024, 1, 15), "Coffee Shop", "4.75")]

    def test_next_dated_line_is_not_borrowed(self):
        """Test that a following transaction line is never used as continuation."""
        result = parse_single_amount_lines(
            ["01/15/2024 Coffee", "01/16/2024 Bagel $3.25"], TODAY
        )
        assert result == [txn(date(2024, 1, 16), "Bagel", "3.25")]

    def test_income_keyword(self):
        """Test that income keywords mark a line as income."""
        result = parse_single_amount_lines(["15 Jan 2024 Refund from store $20.00"], TODAY)
        assert result[0].is_income is True

    def test_parenthesized_plus_is_not_income(self):
        """Test that a parenthesized amount is a debit even with a plus sign."""
        result = parse_single_amount_lines(["01/15/2024 Adjustment (+$9.99)"], TODAY)
        assert result[0].is_income is False
        assert result[0].amount == Decimal("9.99")

    def test_ignores_bare_decimals(self):
        """Test that amounts without a currency marker are left to strategy B."""
        assert parse_single_amount_lines(DUAL_COLUMN_STATEMENT, TODAY) == []


class TestDualColumnStrategy:
    """Tests for strategy B."""

    def test_debit_and_credit_columns(self):
        """Test that the second amount is read as the credit column."""
        result = parse_dual_amount_columns(DUAL_COLUMN_STATEMENT, TODAY)
        assert result == [
            txn(date(2024, 1, 15), "GROCERY OUTLET", "45.20"),
            txn(date(2024, 1, 16), "EMPLOYER PAYROLL", "2500.00", is_income=True),
            txn(date(2024, 1, 17), "SHELL OIL", "38.10"),
        ]

    def test_zero_row_is_skipped(self):
        """Test that a row with both columns zero yields nothing."""
        assert parse_dual_amount_columns(["2024-01-15 NOTHING 0.00 0.00"], TODAY) == []

    def test_single_amount_with_income_keyword(self):
        """Test that a lone amount is income only with an income keyword."""
        result = parse_dual_amount_columns(["2024-01-20 Interest earned 1.25"], TODAY)
        assert result == [txn(date(2024, 1, 20), "Interest earned", "1.25", is_income=True)]


class TestLooseStrategy:
    """Tests for strategy C."""

    def test_partial_dates_and_last_number(self):
        """Test that partial dates are accepted and the last number is the amount."""
        result = parse_loose_lines(LOOSE_STATEMENT, TODAY)
        assert result == [
            txn(date(2024, 1, 15), "Corner Deli", "12.00"),
            txn(date(2024, 1, 16), "Venmo from Alex", "30.00", is_income=True),
        ]

    def test_last_number_wins(self):
        """Test the running-balance limitation: the trailing number is taken."""
        result = parse_loose_lines(["01/15 Coffee 4.50 1,204.50"], TODAY)
        assert result[0].amount == Decimal("1204.50")

    def test_ignores_numbers_over_ceiling(self):
        """Test that numbers of a million or more are not amounts."""
        result = parse_loose_lines(["01/15 Ref 25.00 1000000"], TODAY)
        assert result[0].amount == Decimal("25.00")

    def test_no_numbers(self):
        """Test that a dated line without numbers yields nothing."""
        assert parse_loose_lines(["Jan 15 Coffee"], TODAY) == []


class TestParseLines:
    """Tests for the strategy cascade."""

    def test_first_strategy_wins(self):
        """Test that strategy A results are returned and cleaned."""
        result = parse_lines(SINGLE_AMOUNT_STATEMENT, TODAY)
        assert [t.description for t in result] == [
            "STARBUCKS STORE",
            "PAYROLL DIRECT DEP",
            "WHOLE FOODS MARKET",
        ]

    def test_falls_back_to_dual_columns(self):
        """Test that B runs when A finds nothing."""
        result = parse_lines(DUAL_COLUMN_STATEMENT, TODAY)
        assert len(result) == 3
        assert result[1].is_income is True

    def test_falls_back_to_loose(self):
        """Test that C runs when A and B find nothing."""
        result = parse_lines(LOOSE_STATEMENT, TODAY)
        assert [t.description for t in result] == ["Corner Deli", "Venmo from Alex"]

    def test_nothing_matches(self):
        """Test that text without transactions yields an empty list."""
        lines = ["Thank you for banking with us", "Questions? Call 1-800-555-0100"]
        assert parse_lines(lines, TODAY) == []

    def test_duplicates_removed(self):
        """Test that a repeated line survives once."""
        lines = ["01/15/2024 Coffee $4.50", "01/15/2024 Coffee $4.50", "01/15/2024 Coffee $5.00"]
        result = parse_lines(lines, TODAY)
        assert [t.amount for t in result] == [Decimal("4.50"), Decimal("5.00")]

    def test_custom_strategies(self):
        """Test that the strategy list is injectable."""
        calls = []

        def empty(lines, today):
            calls.append("empty")
            return []

        def fixed(lines, today):
            calls.append("fixed")
            return [txn(today, "  • Fixed  ", "1.00")]

        result = parse_lines(["anything"], TODAY, strategies=[("empty", empty), ("fixed", fixed)])
        assert calls == ["empty", "fixed"]
        assert result == [txn(TODAY, "Fixed", "1.00")]


class TestParseRows:
    """Tests for tabular parsing."""

    def test_sign_sets_direction(self):
        """Test that positive amounts are income and amounts are absolute."""
        rows = [
            {"Date": "2024-01-15", "Description": "Starbucks", "Amount": "-5.50"},
            {"Date": "2024-01-16", "Description": "Salary", "Amount": "3000.00"},
        ]
        assert parse_rows(rows, TODAY) == [
            txn(date(2024, 1, 15), "Starbucks", "5.50"),
            txn(date(2024, 1, 16), "Salary", "3000.00", is_income=True),
        ]

    def test_synonym_headers(self):
        """Test that header synonyms and case differences are accepted."""
        row = {"transaction date": "01/15/2024", "Merchant": "Cafe", "Transaction Amount": "$-3.50"}
        assert parse_row(row, TODAY) == txn(date(2024, 1, 15), "Cafe", "3.50")

    def test_first_present_synonym_wins(self):
        """Test that empty synonym values are skipped."""
        row = {"Date": "", "Posting Date": "2024-01-15", "Description": "Cafe", "Amount": "-1"}
        assert parse_row(row, TODAY).date == date(2024, 1, 15)

    def test_debit_and_credit_columns(self):
        """Test that debit columns are outflows and credit columns inflows."""
        debit = {"Date": "2024-01-05", "Description": "ATM", "Debit": "40.00", "Credit": ""}
        credit = {"Date": "2024-01-06", "Description": "Deposit", "Debit": "0.00", "Credit": "100.00"}
        assert parse_row(debit, TODAY) == txn(date(2024, 1, 5), "ATM", "40.00")
        assert parse_row(credit, TODAY) == txn(date(2024, 1, 6), "Deposit", "100.00", is_income=True)

    @pytest.mark.parametrize(
        "row",
        [
            {"Date": "2024-01-15", "Amount": "-5.50"},
            {"Description": "Cafe", "Amount": "-5.50"},
            {"Date": "2024-01-15", "Description": "Cafe"},
            {"Date": "2024-01-15", "Description": "Cafe", "Amount": "n/a"},
        ],
    )
    def test_incomplete_rows_are_skipped(self, row):
        """Test that rows missing a field or with a bad amount are skipped."""
        assert parse_row(row, TODAY) is None

    def test_unparseable_date_uses_today(self):
        """Test that a bad date falls back to the processing date."""
        row = {"Date": "sometime", "Description": "Cafe", "Amount": "-1.00"}
        assert parse_row(row, TODAY).date == TODAY

    def test_parse_document_dispatch(self):
        """Test that parse_document routes rows and lines."""
        rows_doc = ExtractedDocument(
            kind="tabular",
            rows=({"Date": "2024-01-15", "Description": "Cafe", "Amount": "-1.00"},),
        )
        lines_doc = ExtractedDocument(kind="document", lines=tuple(LOOSE_STATEMENT))
        assert len(parse_document(rows_doc, TODAY)) == 1
        assert len(parse_document(lines_doc, TODAY)) == 2
