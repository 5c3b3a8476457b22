"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re

CENTS = Decimal("0.01")

_CURRENCY_RE = re.compile(r"[$€£¥]|\bUSD\b", re.IGNORECASE)


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a signed Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "-123.45" / "-$123.45" / "$-123.45"
    - "+123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)
    - "123.45-" (trailing minus)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if amount_str is None or not str(amount_str).strip():
        raise ValueError("Empty amount string")

    amount_str = str(amount_str).strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    amount_str = _CURRENCY_RE.sub("", amount_str)
    amount_str = amount_str.replace(",", "").replace(" ", "")

    if amount_str.endswith("-"):
        is_negative = not is_negative
        amount_str = amount_str[:-1]

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -amount if is_negative else amount


def to_cents(amount: Decimal) -> Decimal:
    """Round an amount to two decimal places."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)
