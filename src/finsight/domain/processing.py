"""Statement processing pipeline.

extract -> parse -> categorize -> persist, driving the uploaded file through
``pending -> processing -> completed | error``.
"""

from datetime import date, datetime, UTC
from pathlib import Path
from typing import Optional, Sequence

from finsight.database.base import Database
from finsight.domain.categorizer import Categorizer
from finsight.domain.entities import CategorizedTransaction, FileStatus, ProcessResult
from finsight.domain.errors import (
    EmptyExtractionError,
    NotFoundError,
    ProcessingError,
    UnsupportedFormatError,
    file_not_found,
    no_transactions_found,
    processing_failed,
)
from finsight.domain.extraction import detect_format, extract
from finsight.domain.parsing import parse_document
from finsight.domain.transaction import truncate_description
from finsight.logging_setup import get_logger

_logger = get_logger("finsight.domain.processing")


class FileProcessingService:
    """Run uploaded statements through extraction, categorization and storage."""

    def __init__(self, db: Database, categorizer: Categorizer):
        """Initialize processing service.

        Args:
            db: Database instance
            categorizer: Categorizer used for every extracted transaction
        """
        self.db = db
        self.categorizer = categorizer

    async def process_file(
        self, user_id: int, file_id: int, today: Optional[date] = None
    ) -> ProcessResult:
        """Process one uploaded file for its owner.

        Args:
            user_id: Owning user ID
            file_id: Uploaded file ID
            today: Date used when a statement date cannot be parsed

        Returns:
            ProcessResult with saved and duplicate counts

        Raises:
            NotFoundError: If the file does not exist for this user
            UnsupportedFormatError: If the file is neither CSV nor PDF
            EmptyExtractionError: If no transactions could be parsed
            ProcessingError: If reading, extraction, categorization or storage fails
        """
        uploaded = self.db.get_file(file_id)
        if uploaded is None or uploaded.user_id != user_id:
            raise NotFoundError(file_not_found(file_id))

        try:
            detect_format(uploaded.mime_type, uploaded.original_filename)
        except UnsupportedFormatError:
            self._mark(file_id, FileStatus.ERROR)
            raise

        self._mark(file_id, FileStatus.PROCESSING)
        _logger.info("process:start file_id=%d user_id=%d", file_id, user_id)

        try:
            file_bytes = Path(uploaded.file_path).read_bytes()
            document = extract(file_bytes, uploaded.mime_type, uploaded.original_filename)
            extracted = parse_document(document, today)
        except Exception as e:
            self._fail(file_id, e)
            raise ProcessingError(processing_failed(e)) from e

        if not extracted:
            self._mark(file_id, FileStatus.ERROR)
            _logger.error("process:empty file_id=%d", file_id)
            raise EmptyExtractionError(no_transactions_found())

        try:
            categorized = await self.categorizer.categorize_many(extracted)
            saved, duplicates = self.persist(user_id, file_id, categorized)
        except Exception as e:
            self._fail(file_id, e)
            raise ProcessingError(processing_failed(e)) from e

        self._mark(file_id, FileStatus.COMPLETED, processed_at=datetime.now(UTC))
        _logger.info(
            "process:completed file_id=%d saved=%d duplicates=%d", file_id, saved, duplicates
        )
        return ProcessResult(file_id=file_id, saved_count=saved, duplicate_count=duplicates)

    def persist(
        self,
        user_id: int,
        file_id: Optional[int],
        transactions: Sequence[CategorizedTransaction],
    ) -> tuple[int, int]:
        """Insert transactions the user does not already have.

        The stored (truncated) description is what the duplicate check
        compares against.

        Returns:
            Tuple of (saved_count, duplicate_count)
        """
        saved = 0
        duplicates = 0
        for txn in transactions:
            description = truncate_description(txn.description)
            if self.db.transaction_exists(user_id, txn.date, description, txn.amount):
                duplicates += 1
                continue
            self.db.create_transaction(
                user_id=user_id,
                file_id=file_id,
                date=txn.date,
                description=description,
                amount=txn.amount,
                is_income=txn.is_income,
                category=txn.category,
                subcategory=txn.subcategory,
            )
            saved += 1
        return saved, duplicates

    def _mark(
        self, file_id: int, status: FileStatus, processed_at: Optional[datetime] = None
    ) -> None:
        self.db.update_file_status(file_id, status, processed_at=processed_at)

    def _fail(self, file_id: int, error: BaseException) -> None:
        _logger.error("process:failed file_id=%d error=%s", file_id, error)
        self.db.rollback()
        self._mark(file_id, FileStatus.ERROR)
