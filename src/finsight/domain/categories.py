"""Category vocabulary: defaults, TTL cache, and category service."""

import time
from typing import Callable, Optional, Sequence

from finsight.database.base import Database
from finsight.domain.entities import Category
from finsight.domain.errors import ConflictError, ValidationError
from finsight.logging_setup import get_logger

OTHER = "Other"
INCOME = "Income"

# (name, icon, color)
DEFAULT_CATEGORIES: tuple[tuple[str, str, str], ...] = (
    ("Housing", "home", "#4F46E5"),
    ("Transportation", "car", "#0EA5E9"),
    ("Food & Dining", "utensils", "#F97316"),
    ("Utilities", "bolt", "#EAB308"),
    ("Entertainment", "film", "#EC4899"),
    ("Shopping", "shopping-bag", "#8B5CF6"),
    ("Healthcare", "heart-pulse", "#EF4444"),
    ("Personal Care", "spa", "#14B8A6"),
    ("Education", "graduation-cap", "#6366F1"),
    ("Travel", "plane", "#06B6D4"),
    ("Subscriptions", "repeat", "#A855F7"),
    (INCOME, "wallet", "#22C55E"),
    (OTHER, "circle", "#6B7280"),
)

DEFAULT_CATEGORY_NAMES: tuple[str, ...] = tuple(name for name, _, _ in DEFAULT_CATEGORIES)

_logger = get_logger("finsight.domain.categories")


class CategoryCache:
    """Category names with a fetch timestamp and a TTL.

    The value is refreshed on read once stale. When the backing store raises
    or returns nothing, the built-in defaults are used (and cached) instead.
    Concurrent refreshes are harmless: the last writer wins.
    """

    def __init__(
        self,
        fetch: Callable[[], Sequence[str]],
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize category cache.

        Args:
            fetch: Callable returning category names from the store
            ttl_seconds: Seconds a fetched list stays fresh
            clock: Monotonic clock (injectable for tests)
        """
        self._fetch = fetch
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._value: Optional[tuple[str, ...]] = None
        self._fetched_at: Optional[float] = None

    def is_stale(self) -> bool:
        if self._value is None or self._fetched_at is None:
            return True
        return self._clock() - self._fetched_at >= self.ttl_seconds

    def invalidate(self) -> None:
        self._value = None
        self._fetched_at = None

    def get(self) -> tuple[str, ...]:
        """Return the category vocabulary, refreshing it when stale."""
        if self.is_stale():
            self._value = self._load()
            self._fetched_at = self._clock()
        return self._value

    def _load(self) -> tuple[str, ...]:
        try:
            names = [n.strip() for n in self._fetch() if n and n.strip()]
        except Exception as e:  # store unavailable: fall back to defaults
            _logger.warning("categories:store_unavailable error=%s", e.__class__.__name__)
            return DEFAULT_CATEGORY_NAMES
        if not names:
            return DEFAULT_CATEGORY_NAMES
        names = list(dict.fromkeys(names))
        if OTHER not in names:
            names.append(OTHER)
        return tuple(names)


class CategoryService:
    """Service for managing the category vocabulary."""

    def __init__(self, db: Database):
        """Initialize category service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_category(
        self,
        name: str,
        icon: Optional[str] = None,
        color: Optional[str] = None,
        is_default: bool = True,
        parent_category: Optional[str] = None,
    ) -> int:
        """Create a category.

        Args:
            name: Category name
            icon: Optional icon name
            color: Optional display color
            is_default: Whether the category is offered to the classifier
            parent_category: Optional parent category name

        Returns:
            Category ID

        Raises:
            ValidationError: If the name is blank
            ConflictError: If a category with this name exists
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name must not be empty")
        if self.db.get_category_by_name(name) is not None:
            raise ConflictError(f"Category '{name}' already exists")
        return self.db.create_category(
            name=name,
            icon=icon,
            color=color,
            is_default=is_default,
            parent_category=parent_category,
        )

    def list_categories(self, default_only: bool = False) -> list[Category]:
        """List categories ordered by name."""
        return self.db.list_categories(default_only=default_only)

    def vocabulary(self) -> list[str]:
        """Names of the categories offered to the classifier."""
        return [c.name for c in self.db.list_categories(default_only=True)]

    def seed_defaults(self) -> int:
        """Create any missing built-in categories.

        Returns:
            Number of categories created
        """
        created = 0
        for name, icon, color in DEFAULT_CATEGORIES:
            if self.db.get_category_by_name(name) is not None:
                continue
            self.db.create_category(name=name, icon=icon, color=color, is_default=True)
            created += 1
        return created

    def make_cache(self, ttl_seconds: float = 300.0) -> CategoryCache:
        """Build a TTL cache backed by this service."""
        return CategoryCache(self.vocabulary, ttl_seconds=ttl_seconds)
