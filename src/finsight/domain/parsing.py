"""Statement parsing: rows and text lines into ExtractedTransaction records.

Tabular input maps one row to at most one transaction. Document input has no
known layout, so three line strategies are tried in order and the first one
that finds anything wins:

1. ``single_amount``: a date token plus one currency-marked amount on the
   same line (or the line after).
2. ``dual_column``: a date followed by bare decimal amounts laid out as
   separate debit and credit columns.
3. ``aggressive``: any partial date and any number under 1,000,000; the last
   number on the line is taken as the amount. Lines that end in a running
   balance column are misread by this pass.
"""

import re
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, Mapping, Optional, Sequence

from finsight.domain.dedup import deduplicate
from finsight.domain.entities import ExtractedDocument, ExtractedTransaction
from finsight.logging_setup import get_logger
from finsight.utils.amount_parser import parse_amount, to_cents
from finsight.utils.date_parser import normalize_date

_logger = get_logger("finsight.domain.parsing")

UNKNOWN_DESCRIPTION = "Unknown transaction"
AGGRESSIVE_AMOUNT_CEILING = Decimal("1000000")

# Column synonyms, tried in order
DATE_KEYS = (
    "Date",
    "Transaction Date",
    "Trans Date",
    "Posting Date",
    "Posted Date",
    "posting_date",
    "transaction_date",
)
DESCRIPTION_KEYS = (
    "Description",
    "Merchant",
    "Details",
    "Payee",
    "Name",
    "Memo",
    "Narrative",
)
AMOUNT_KEYS = ("Amount", "Transaction Amount", "amount_usd")
DEBIT_KEYS = ("Debit", "Withdrawal", "Withdrawals", "Debit Amount")
CREDIT_KEYS = ("Credit", "Deposit", "Deposits", "Credit Amount")

_MONTHS = (
    r"(?:jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?"
    r"|aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)"
)
_FULL_DATE = (
    r"\b\d{4}[/-]\d{1,2}[/-]\d{1,2}\b"
    r"|\b\d{1,2}[/-]\d{1,2}[/-](?:\d{4}|\d{2})\b"
    rf"|\b{_MONTHS}\.?\s+\d{{1,2}}(?:st|nd|rd|th)?,?\s+\d{{4}}\b"
    rf"|\b\d{{1,2}}(?:st|nd|rd|th)?\s+{_MONTHS}\.?,?\s+\d{{4}}\b"
)
_PARTIAL_DATE = (
    r"\b\d{1,2}[/-]\d{1,2}\b"
    rf"|\b{_MONTHS}\.?\s+\d{{1,2}}\b"
    rf"|\b\d{{1,2}}\s+{_MONTHS}\b"
)

DATE_RE = re.compile(_FULL_DATE, re.IGNORECASE)
PARTIAL_DATE_RE = re.compile(rf"{_FULL_DATE}|{_PARTIAL_DATE}", re.IGNORECASE)

# "$1,234.56", "-$12.00", "+$5", "($1,234.56)"
CURRENCY_AMOUNT_RE = re.compile(
    r"\(\s*[+-]?\$\s?[\d,]*\d(?:\.\d{1,2})?\s*\)"
    r"|[+-]?\s?\$\s?[+-]?[\d,]*\d(?:\.\d{1,2})?"
)
# Bare column amounts always carry cents: "1,234.56", "-45.00"
DECIMAL_AMOUNT_RE = re.compile(r"(?<![\w.,])-?\$?(?:\d{1,3}(?:,\d{3})+|\d+)\.\d{2}(?![\d])")
NUMBER_RE = re.compile(r"(?<![\w.,])[+-]?\$?\d[\d,]*(?:\.\d+)?(?![\w])")

INCOME_RE = re.compile(
    r"\b(?:deposit|credit|refund|payment received|direct dep|payroll|salary|income"
    r"|interest earned|dividend|cash ?back|reimbursement|transfer from"
    r"|(?:venmo|zelle|paypal) from)",
    re.IGNORECASE,
)
SUMMARY_RE = re.compile(
    r"\b(?:balance|total|page|statement|routing|summary|beginning|ending"
    r"|opening|closing|previous|account number|period)\b",
    re.IGNORECASE,
)
SUMMARY_MAX_TOKENS = 5

_BULLETS = "•·*-–—|>~#:"
_LEADING_INT_RE = re.compile(r"^\d+\s+")
_TRAILING_INT_RE = re.compile(r"\s+\d+$")
_WS_RE = re.compile(r"\s+")

LineStrategy = Callable[[Sequence[str], date], list[ExtractedTransaction]]


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def is_summary_line(line: str) -> bool:
    """Return True for short header/summary lines such as 'Ending Balance'."""
    return len(line.split()) < SUMMARY_MAX_TOKENS and SUMMARY_RE.search(line) is not None


def has_income_keyword(text: str) -> bool:
    return INCOME_RE.search(text) is not None


def clean_description(text: str) -> str:
    """Collapse whitespace and strip bullets and stray integers at either end."""
    text = _WS_RE.sub(" ", text or "").strip()
    previous = None
    while text and text != previous:
        previous = text
        text = text.strip(_BULLETS + " ")
        text = _LEADING_INT_RE.sub("", text)
        text = _TRAILING_INT_RE.sub("", text)
    return text or UNKNOWN_DESCRIPTION


def _strip_spans(line: str, spans: Iterable[tuple[int, int]]) -> str:
    out = line
    for start, end in sorted(spans, reverse=True):
        out = out[:start] + " " + out[end:]
    return _WS_RE.sub(" ", out).strip()


def _remainder(line: str, date_re: re.Pattern, amount_re: re.Pattern) -> str:
    spans = [m.span() for m in date_re.finditer(line)]
    spans.extend(m.span() for m in amount_re.finditer(line))
    return _strip_spans(line, spans)


def _signed_amount(token: str) -> Optional[Decimal]:
    try:
        return parse_amount(token)
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Strategy A: single currency amount per line
# ---------------------------------------------------------------------------


def parse_single_amount_lines(
    lines: Sequence[str], today: date
) -> list[ExtractedTransaction]:
    """Match dated lines carrying one currency-marked amount."""
    transactions: list[ExtractedTransaction] = []
    stripped = [line.strip() for line in lines]

    for i, line in enumerate(stripped):
        if not line or is_summary_line(line):
            continue
        date_match = DATE_RE.search(line)
        if date_match is None:
            continue

        next_line = stripped[i + 1] if i + 1 < len(stripped) else ""
        next_is_entry = bool(next_line) and DATE_RE.search(next_line) is not None

        amount_match = CURRENCY_AMOUNT_RE.search(line[date_match.end():])
        from_next = False
        if amount_match is None and next_line and not next_is_entry:
            amount_match = CURRENCY_AMOUNT_RE.search(next_line)
            from_next = True
        if amount_match is None:
            continue

        token = amount_match.group(0).strip()
        value = _signed_amount(token)
        if value is None or value == 0:
            continue

        description = _remainder(line, DATE_RE, CURRENCY_AMOUNT_RE)
        if not description and next_line and not next_is_entry:
            description = _remainder(next_line, DATE_RE, CURRENCY_AMOUNT_RE)

        parenthesized = token.startswith("(")
        is_income = has_income_keyword(line) or (from_next and has_income_keyword(next_line))
        if not parenthesized and "+" in token:
            is_income = True

        transactions.append(
            ExtractedTransaction(
                date=normalize_date(date_match.group(0), today),
                description=description,
                amount=to_cents(abs(value)),
                is_income=is_income,
            )
        )
    return transactions


# ---------------------------------------------------------------------------
# Strategy B: separate debit / credit columns
# ---------------------------------------------------------------------------


def parse_dual_amount_columns(
    lines: Sequence[str], today: date
) -> list[ExtractedTransaction]:
    """Match '<date> <description> <debit> [<credit>] [...]' layouts.

    With two amounts the second is the credit column: a nonzero credit with
    a zero debit is income, otherwise the nonzero amount is an expense. A
    lone amount is an expense unless the line names an income keyword.
    """
    transactions: list[ExtractedTransaction] = []
    for raw in lines:
        line = raw.strip()
        if not line or is_summary_line(line):
            continue
        date_match = DATE_RE.search(line)
        if date_match is None:
            continue

        tail = line[date_match.end():]
        amount_matches = list(DECIMAL_AMOUNT_RE.finditer(tail))
        if not amount_matches:
            continue
        amounts = [_signed_amount(m.group(0)) for m in amount_matches[:2]]
        if any(a is None for a in amounts):
            continue
        debit = abs(amounts[0])
        credit = abs(amounts[1]) if len(amounts) > 1 else None

        if credit is not None:
            if credit != 0 and debit == 0:
                amount, is_income = credit, True
            elif debit != 0:
                amount, is_income = debit, False
            else:
                continue
        else:
            if debit == 0:
                continue
            amount, is_income = debit, has_income_keyword(line)

        description = tail[: amount_matches[0].start()].strip()
        transactions.append(
            ExtractedTransaction(
                date=normalize_date(date_match.group(0), today),
                description=description,
                amount=to_cents(amount),
                is_income=is_income,
            )
        )
    return transactions


# ---------------------------------------------------------------------------
# Strategy C: aggressive fallback
# ---------------------------------------------------------------------------


def parse_loose_lines(lines: Sequence[str], today: date) -> list[ExtractedTransaction]:
    """Accept any line with a partial date and a number under 1,000,000.

    The last qualifying number on the line is the amount.
    """
    transactions: list[ExtractedTransaction] = []
    for raw in lines:
        line = raw.strip()
        if not line or is_summary_line(line):
            continue
        date_matches = list(PARTIAL_DATE_RE.finditer(line))
        if not date_matches:
            continue
        date_match = date_matches[0]

        without_date = _strip_spans(line, [m.span() for m in date_matches])
        candidates = []
        for m in NUMBER_RE.finditer(without_date):
            value = _signed_amount(m.group(0))
            if value is not None and abs(value) < AGGRESSIVE_AMOUNT_CEILING:
                candidates.append((m, value))
        if not candidates:
            continue

        match, value = candidates[-1]
        if value == 0:
            continue
        description = _strip_spans(without_date, [match.span()])
        is_income = has_income_keyword(line) or match.group(0).startswith("+")

        transactions.append(
            ExtractedTransaction(
                date=normalize_date(date_match.group(0), today),
                description=description,
                amount=to_cents(abs(value)),
                is_income=is_income,
            )
        )
    return transactions


STRATEGIES: tuple[tuple[str, LineStrategy], ...] = (
    ("single_amount", parse_single_amount_lines),
    ("dual_column", parse_dual_amount_columns),
    ("aggressive", parse_loose_lines),
)


def parse_lines(
    lines: Sequence[str],
    today: Optional[date] = None,
    strategies: Sequence[tuple[str, LineStrategy]] = STRATEGIES,
) -> list[ExtractedTransaction]:
    """Parse document lines with the first strategy that yields anything.

    Results are not merged across strategies. The winning strategy's output
    gets description cleanup and deduplication.
    """
    today = today or date.today()
    for name, strategy in strategies:
        found = strategy(lines, today)
        if found:
            _logger.info("parse:strategy name=%s transactions=%d", name, len(found))
            cleaned = [
                replace(txn, description=clean_description(txn.description))
                for txn in found
            ]
            return deduplicate(cleaned)
    _logger.info("parse:no_match lines=%d", len(lines))
    return []


# ---------------------------------------------------------------------------
# Tabular input
# ---------------------------------------------------------------------------


def find_value(row: Mapping[str, str], keys: Sequence[str]) -> Optional[tuple[str, str]]:
    """Return ``(key, value)`` for the first synonym present with a non-empty value.

    Header matching ignores case and surrounding whitespace.
    """
    folded = {k.strip().casefold(): v for k, v in row.items() if k is not None}
    for key in keys:
        value = folded.get(key.casefold())
        if value is not None and str(value).strip():
            return key, str(value).strip()
    return None


def _row_amount(row: Mapping[str, str]) -> Optional[Decimal]:
    found = find_value(row, AMOUNT_KEYS)
    if found is not None:
        return _signed_amount(found[1])

    # Debit/credit columns: zero cells count as empty
    for keys, outflow in ((DEBIT_KEYS, True), (CREDIT_KEYS, False)):
        found = find_value(row, keys)
        if found is None:
            continue
        value = _signed_amount(found[1])
        if value is None:
            return None
        if value == 0:
            continue
        return -abs(value) if outflow else abs(value)
    return None


def parse_row(row: Mapping[str, str], today: Optional[date] = None) -> Optional[ExtractedTransaction]:
    """Parse one CSV row, or return None if it must be skipped.

    Rows are skipped when date, description or amount is missing, or the
    amount does not parse. A positive amount is income.
    """
    date_found = find_value(row, DATE_KEYS)
    desc_found = find_value(row, DESCRIPTION_KEYS)
    if date_found is None or desc_found is None:
        return None

    amount = _row_amount(row)
    if amount is None:
        return None

    return ExtractedTransaction(
        date=normalize_date(date_found[1], today),
        description=_WS_RE.sub(" ", desc_found[1]).strip(),
        amount=to_cents(abs(amount)),
        is_income=amount > 0,
    )


def parse_rows(
    rows: Sequence[Mapping[str, str]], today: Optional[date] = None
) -> list[ExtractedTransaction]:
    """Parse CSV rows; unusable rows are skipped, not reported."""
    today = today or date.today()
    transactions = []
    skipped = 0
    for row in rows:
        txn = parse_row(row, today)
        if txn is None:
            skipped += 1
            continue
        transactions.append(txn)
    if skipped:
        _logger.info("parse:rows_skipped count=%d", skipped)
    return deduplicate(transactions)


def parse_document(
    document: ExtractedDocument, today: Optional[date] = None
) -> list[ExtractedTransaction]:
    """Parse an extracted document, dispatching on its kind."""
    if document.is_tabular:
        return parse_rows(document.rows, today)
    return parse_lines(document.lines, today)
