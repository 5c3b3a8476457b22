"""Utility functions for finsight."""

from finsight.utils.date_parser import parse_date, normalize_date, get_month_range
from finsight.utils.amount_parser import parse_amount, to_cents
from finsight.utils.retry import retry_async

__all__ = [
    "parse_date",
    "normalize_date",
    "get_month_range",
    "parse_amount",
    "to_cents",
    "retry_async",
]
