"""Deterministic keyword categorization.

Used whenever the remote classifier is unconfigured or fails. The group with
the longest matching keyword wins, so "uber eats" beats "uber" and "car
rental" beats "car". Equal-length matches go to the earlier group, which is
why narrow groups (Housing, Utilities, Healthcare) come before broad ones
(Shopping). Keywords match on word boundaries: "rent" does not fire on
"current", "car" not on "card".
"""

import re
from dataclasses import dataclass
from typing import Optional

from finsight.domain.categories import INCOME, OTHER

INCOME_CONFIDENCE = 0.8
OTHER_CONFIDENCE = 0.5


@dataclass(frozen=True)
class KeywordGroup:
    """A category with the merchant keywords that select it."""

    category: str
    confidence: float
    keywords: tuple[str, ...]

    @property
    def pattern(self) -> re.Pattern:
        # Longest first so "car wash" is preferred over "car" at the same position
        ordered = sorted(self.keywords, key=len, reverse=True)
        alternatives = "|".join(re.escape(k) for k in ordered)
        return re.compile(rf"(?<![a-z0-9])(?:{alternatives})(?![a-z0-9])")


KEYWORD_GROUPS: tuple[KeywordGroup, ...] = (
    KeywordGroup(
        "Housing",
        0.9,
        (
            "rent", "mortgage", "hoa", "landlord", "property management",
            "apartments", "apartment", "property tax", "home insurance",
        ),
    ),
    KeywordGroup(
        "Utilities",
        0.9,
        (
            "electric", "electricity", "water", "sewer", "internet", "phone",
            "utility", "utilities", "comcast", "xfinity", "verizon", "at&t",
            "t-mobile", "spectrum", "pg&e", "con edison", "duke energy",
            "power", "energy", "trash", "waste management",
        ),
    ),
    KeywordGroup(
        "Healthcare",
        0.9,
        (
            "pharmacy", "doctor", "medical", "health", "hospital", "clinic",
            "dental", "dentist", "cvs", "walgreens", "rite aid", "urgent care",
            "optometry", "vision", "labcorp", "quest diagnostics",
        ),
    ),
    KeywordGroup(
        "Transportation",
        0.85,
        (
            "uber", "lyft", "gas", "parking", "car", "shell", "chevron",
            "exxon", "exxonmobil", "mobil", "bp", "sunoco", "valero", "fuel",
            "toll", "metro", "transit", "mta", "bart", "auto", "dmv",
            "car wash", "jiffy lube",
        ),
    ),
    KeywordGroup(
        "Food & Dining",
        0.85,
        (
            "restaurant", "restaurants", "cafe", "coffee", "food", "foods",
            "doordash", "grubhub", "ubereats", "uber eats", "postmates",
            "grocery", "groceries", "market", "starbucks", "dunkin",
            "mcdonald's", "mcdonalds", "chipotle", "subway", "pizza",
            "burger", "bakery", "deli", "kitchen", "grill", "bar", "diner",
            "trader joe's", "safeway", "kroger", "aldi", "publix", "wegmans",
            "instacart",
        ),
    ),
    KeywordGroup(
        "Entertainment",
        0.85,
        (
            "netflix", "spotify", "movie", "movies", "theater", "theatre",
            "cinema", "game", "games", "music", "hulu", "disney+", "hbo",
            "steam", "playstation", "xbox", "ticketmaster", "concert",
            "amc", "bowling",
        ),
    ),
    KeywordGroup(
        "Subscriptions",
        0.8,
        (
            "subscription", "membership", "patreon", "icloud", "apple.com/bill",
            "google storage", "dropbox", "adobe", "microsoft 365", "audible",
            "prime video", "youtube premium", "monthly plan",
        ),
    ),
    KeywordGroup(
        "Personal Care",
        0.8,
        (
            "salon", "barber", "spa", "haircut", "nail", "nails", "massage",
            "sephora", "ulta", "cosmetics", "gym", "fitness", "planet fitness",
        ),
    ),
    KeywordGroup(
        "Education",
        0.85,
        (
            "tuition", "school", "university", "college", "course", "courses",
            "udemy", "coursera", "textbook", "books", "student loan", "academy",
        ),
    ),
    KeywordGroup(
        "Travel",
        0.85,
        (
            "airline", "airlines", "airways", "hotel", "hotels", "motel",
            "airbnb", "expedia", "booking.com", "delta air", "united air",
            "american air", "southwest", "jetblue", "marriott", "hilton",
            "hyatt", "amtrak", "car rental", "hertz", "avis", "travel",
        ),
    ),
    KeywordGroup(
        "Shopping",
        0.75,
        (
            "amazon", "amzn", "target", "walmart", "costco", "store", "shop",
            "shopping", "best buy", "ebay", "etsy", "ikea", "home depot",
            "lowe's", "macy's", "nordstrom", "mall", "outlet",
        ),
    ),
)

_COMPILED = tuple((group, group.pattern) for group in KEYWORD_GROUPS)


def match_keyword_group(description: str) -> Optional[KeywordGroup]:
    """Return the group with the longest keyword found in the description.

    Ties go to the group listed first.
    """
    lowered = (description or "").lower()
    best: Optional[KeywordGroup] = None
    best_length = 0
    for group, pattern in _COMPILED:
        length = max((len(m.group(0)) for m in pattern.finditer(lowered)), default=0)
        if length > best_length:
            best, best_length = group, length
    return best


def fallback_category(description: str, is_income: bool) -> tuple[str, float]:
    """Categorize without a remote call.

    Args:
        description: Transaction description
        is_income: Whether the transaction is an inflow

    Returns:
        Tuple of (category, confidence)
    """
    if is_income:
        return INCOME, INCOME_CONFIDENCE
    group = match_keyword_group(description)
    if group is None:
        return OTHER, OTHER_CONFIDENCE
    return group.category, group.confidence
