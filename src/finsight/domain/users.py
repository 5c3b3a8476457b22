"""User domain service."""

from typing import Optional

from finsight.database.base import Database
from finsight.domain.entities import User as UserEntity
from finsight.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    duplicate_user_email,
    user_not_found,
)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class UserService:
    """Service for managing users."""

    def __init__(self, db: Database):
        """Initialize user service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_user(self, email: str) -> int:
        """Create a new user.

        Args:
            email: Email address (stored lowercased)

        Returns:
            User ID

        Raises:
            ValidationError: If the email is blank or malformed
            ConflictError: If a user with this email exists
        """
        email = normalize_email(email)
        if not email or "@" not in email:
            raise ValidationError(f"Invalid email address '{email}'")
        if self.db.get_user_by_email(email) is not None:
            raise ConflictError(duplicate_user_email(email))
        return self.db.create_user(email)

    def get_user(self, user_id: int) -> Optional[UserEntity]:
        return self.db.get_user(user_id)

    def get_user_by_email(self, email: str) -> Optional[UserEntity]:
        return self.db.get_user_by_email(normalize_email(email))

    def require_user(self, email: str) -> UserEntity:
        """Look up a user by email.

        Raises:
            NotFoundError: If no such user exists
        """
        user = self.get_user_by_email(email)
        if user is None:
            raise NotFoundError(user_not_found(email))
        return user

    def list_users(self) -> list[UserEntity]:
        return self.db.list_users()

    def delete_user(self, user_id: int) -> None:
        """Delete a user together with their files and transactions.

        Raises:
            NotFoundError: If the user does not exist
        """
        if self.db.get_user(user_id) is None:
            raise NotFoundError(user_not_found(user_id))
        self.db.delete_user(user_id)
