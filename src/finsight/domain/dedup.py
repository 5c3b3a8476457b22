"""In-run duplicate removal for extracted transactions."""

from typing import Iterable

from finsight.domain.entities import ExtractedTransaction


def deduplicate(transactions: Iterable[ExtractedTransaction]) -> list[ExtractedTransaction]:
    """Drop repeats of an identical (date, description, amount) triple.

    The first occurrence wins and input order is preserved. Direction is not
    part of the key.
    """
    seen: set[tuple] = set()
    unique: list[ExtractedTransaction] = []
    for txn in transactions:
        if txn.key in seen:
            continue
        seen.add(txn.key)
        unique.append(txn)
    return unique
