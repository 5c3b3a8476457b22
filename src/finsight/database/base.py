"""Abstract database interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    # Runtime import would cycle through domain/__init__.py
    from finsight.domain.entities import Category, FileStatus, Transaction, UploadedFile, User


class Database(ABC):
    """Abstract database interface for finsight."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def rollback(self) -> None:
        """Discard uncommitted changes after a failed write."""
        pass

    # User operations
    @abstractmethod
    def create_user(self, email: str) -> int:
        """Create a user. Returns user ID."""
        pass

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        pass

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by email address."""
        pass

    @abstractmethod
    def list_users(self) -> list[User]:
        """List all users ordered by email."""
        pass

    @abstractmethod
    def delete_user(self, user_id: int) -> None:
        """Delete a user along with their files and transactions."""
        pass

    # Uploaded file operations
    @abstractmethod
    def create_file(
        self,
        user_id: int,
        original_filename: str,
        file_path: str,
        file_size: Optional[int] = None,
        mime_type: Optional[str] = None,
    ) -> int:
        """Create an uploaded file record in pending state. Returns file ID."""
        pass

    @abstractmethod
    def get_file(self, file_id: int) -> Optional[UploadedFile]:
        """Get uploaded file by ID."""
        pass

    @abstractmethod
    def list_files(self, user_id: int) -> list[UploadedFile]:
        """List a user's uploaded files, newest first."""
        pass

    @abstractmethod
    def update_file_status(
        self, file_id: int, status: FileStatus, processed_at: Optional[datetime] = None
    ) -> None:
        """Set the processing status of a file."""
        pass

    @abstractmethod
    def delete_file(self, file_id: int) -> None:
        """Delete a file record, detaching its transactions."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        user_id: int,
        file_id: Optional[int],
        date: date,
        description: str,
        amount: Decimal,
        is_income: bool,
        category: Optional[str] = None,
        subcategory: Optional[str] = None,
    ) -> int:
        """Create a transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def transaction_exists(
        self, user_id: int, date: date, description: str, amount: Decimal
    ) -> bool:
        """Check whether the user already has this (date, description, amount)."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        user_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        category: Optional[str] = None,
    ) -> list[Transaction]:
        """List a user's transactions with optional filters, newest first."""
        pass

    @abstractmethod
    def update_transaction(
        self,
        transaction_id: int,
        category: Optional[str] = None,
        subcategory: Optional[str] = None,
        description: Optional[str] = None,
    ) -> None:
        """Update the editable fields of a transaction."""
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction."""
        pass

    # Category operations
    @abstractmethod
    def create_category(
        self,
        name: str,
        icon: Optional[str] = None,
        color: Optional[str] = None,
        is_default: bool = True,
        parent_category: Optional[str] = None,
    ) -> int:
        """Create a category. Returns category ID."""
        pass

    @abstractmethod
    def get_category_by_name(self, name: str) -> Optional[Category]:
        """Get category by name."""
        pass

    @abstractmethod
    def list_categories(self, default_only: bool = False) -> list[Category]:
        """List categories ordered by name."""
        pass
