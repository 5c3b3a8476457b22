"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class UnsupportedFormatError(ValidationError):
    """File is neither a recognized tabular nor a recognized document type."""


class EmptyExtractionError(DomainError):
    """A statement produced zero transactions."""


class ProcessingError(DomainError):
    """Unrecoverable failure while extracting, categorizing or saving a file."""


def unsupported_format(mime_type: str, filename: str) -> str:
    """Return message for a file type the extractor cannot read."""
    return (
        f"Unsupported file type '{mime_type or 'unknown'}' for '{filename}'. "
        "Only PDF and CSV files are allowed"
    )


def file_too_large(size: int, limit: int) -> str:
    """Return message for uploads over the size ceiling."""
    return f"File is {size} bytes; the maximum upload size is {limit} bytes"


def no_transactions_found() -> str:
    """Return message for a statement with nothing extractable."""
    return "No transactions found in file"


def processing_failed(error: BaseException) -> str:
    """Return message surfaced when a file aborts mid-pipeline."""
    return f"Failed to process file: {error}"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def file_not_found(file_id: int) -> str:
    """Return message for missing uploaded file."""
    return f"File {file_id} not found"


def user_not_found(user_ref) -> str:
    """Return message for missing user by ID or email."""
    return f"User {user_ref} not found"


def duplicate_user_email(email: str) -> str:
    """Return message for duplicate user email."""
    return f"User with email '{email}' already exists"


def no_transaction_history(month: int, year: int) -> str:
    """Return message for a budget request over an empty period."""
    return f"No transaction history found for {year}-{month:02d}"
