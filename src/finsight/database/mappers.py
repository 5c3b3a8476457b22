"""Mapper functions to convert SQLAlchemy models into domain entities."""

from decimal import Decimal

from finsight.domain import entities as domain
from finsight.database.models import (
    User as ORMUser,
    UploadedFile as ORMUploadedFile,
    Transaction as ORMTransaction,
    Category as ORMCategory,
)


def user_to_domain(orm_user: ORMUser) -> domain.User:
    """Convert SQLAlchemy User model to domain User entity."""
    return domain.User(
        id=orm_user.id,
        email=orm_user.email,
        created_at=orm_user.created_at,
    )


def uploaded_file_to_domain(orm_file: ORMUploadedFile) -> domain.UploadedFile:
    """Convert SQLAlchemy UploadedFile model to domain UploadedFile entity."""
    return domain.UploadedFile(
        id=orm_file.id,
        user_id=orm_file.user_id,
        original_filename=orm_file.original_filename,
        file_path=orm_file.file_path,
        file_size=orm_file.file_size,
        mime_type=orm_file.mime_type,
        status=domain.FileStatus(orm_file.status),
        uploaded_at=orm_file.uploaded_at,
        processed_at=orm_file.processed_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        user_id=orm_transaction.user_id,
        file_id=orm_transaction.file_id,
        date=orm_transaction.transaction_date,
        description=orm_transaction.description,
        amount=Decimal(orm_transaction.amount),
        category=orm_transaction.category,
        subcategory=orm_transaction.subcategory,
        is_income=bool(orm_transaction.is_income),
        created_at=orm_transaction.created_at,
        updated_at=orm_transaction.updated_at,
    )


def category_to_domain(orm_category: ORMCategory) -> domain.Category:
    """Convert SQLAlchemy Category model to domain Category entity."""
    return domain.Category(
        id=orm_category.id,
        name=orm_category.name,
        parent_category=orm_category.parent_category,
        icon=orm_category.icon,
        color=orm_category.color,
        is_default=bool(orm_category.is_default),
        created_at=orm_category.created_at,
    )
