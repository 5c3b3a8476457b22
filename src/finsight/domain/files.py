"""Uploaded file domain service."""

import mimetypes
from pathlib import Path
from typing import Optional

from finsight.database.base import Database
from finsight.domain.entities import UploadedFile as UploadedFileEntity
from finsight.domain.errors import (
    NotFoundError,
    ValidationError,
    file_not_found,
    file_too_large,
)
from finsight.domain.extraction import detect_format
from finsight.logging_setup import get_logger

MAX_UPLOAD_BYTES = 10 * 1024 * 1024

_logger = get_logger("finsight.domain.files")


class UploadedFileService:
    """Service for registering, listing and deleting uploaded statements."""

    def __init__(self, db: Database):
        """Initialize uploaded file service.

        Args:
            db: Database instance
        """
        self.db = db

    def register_upload(
        self, user_id: int, path: str, mime_type: Optional[str] = None
    ) -> int:
        """Record a statement file as a pending upload.

        Args:
            user_id: Owning user ID
            path: Path to the file on disk
            mime_type: Declared MIME type; guessed from the name when omitted

        Returns:
            Uploaded file ID

        Raises:
            ValidationError: If the path is not a file or is over the size limit
            UnsupportedFormatError: If the file is neither CSV nor PDF
            NotFoundError: If the user does not exist
        """
        if self.db.get_user(user_id) is None:
            raise NotFoundError(f"User {user_id} not found")

        file_path = Path(path)
        if not file_path.is_file():
            raise ValidationError(f"File not found: {path}")

        mime_type = mime_type or mimetypes.guess_type(file_path.name)[0]
        detect_format(mime_type, file_path.name)

        size = file_path.stat().st_size
        if size > MAX_UPLOAD_BYTES:
            raise ValidationError(file_too_large(size, MAX_UPLOAD_BYTES))

        file_id = self.db.create_file(
            user_id=user_id,
            original_filename=file_path.name,
            file_path=str(file_path.resolve()),
            file_size=size,
            mime_type=mime_type,
        )
        _logger.info("upload:registered file_id=%d size=%d mime=%s", file_id, size, mime_type)
        return file_id

    def get_file(self, user_id: int, file_id: int) -> UploadedFileEntity:
        """Get a file owned by the user.

        Raises:
            NotFoundError: If the file does not exist or belongs to someone else
        """
        uploaded = self.db.get_file(file_id)
        if uploaded is None or uploaded.user_id != user_id:
            raise NotFoundError(file_not_found(file_id))
        return uploaded

    def list_files(self, user_id: int) -> list[UploadedFileEntity]:
        """List the user's uploads, newest first."""
        return self.db.list_files(user_id)

    def delete_file(self, user_id: int, file_id: int) -> None:
        """Delete an upload record; its transactions stay with ``file_id`` cleared."""
        self.get_file(user_id, file_id)
        self.db.delete_file(file_id)
