"""Tests for user and uploaded file services."""

import pytest
from datetime import date
from decimal import Decimal

from finsight.domain import files as files_module
from finsight.domain.entities import FileStatus
from finsight.domain.errors import (
    ConflictError,
    NotFoundError,
    UnsupportedFormatError,
    ValidationError,
)


class TestUserService:
    """Tests for UserService."""

    def test_create_user_normalizes_email(self, user_service):
        """Test that emails are stored trimmed and lowercased."""
        user_id = user_service.create_user("  Alex@Example.COM ")
        user = user_service.get_user(user_id)
        assert user.email == "alex@example.com"
        assert user_service.require_user("ALEX@example.com").id == user_id

    def test_duplicate_email(self, user_service, sample_user):
        """Test that emails are unique regardless of case."""
        with pytest.raises(ConflictError):
            user_service.create_user("ALEX@example.com")

    @pytest.mark.parametrize("email", ["", "   ", "not-an-email"])
    def test_invalid_email(self, user_service, email):
        """Test that malformed emails are rejected."""
        with pytest.raises(ValidationError):
            user_service.create_user(email)

    def test_require_missing_user(self, user_service):
        """Test looking up an unknown user."""
        with pytest.raises(NotFoundError):
            user_service.require_user("nobody@example.com")

    def test_list_users(self, user_service, sample_user):
        """Test listing users."""
        user_service.create_user("sam@example.com")
        assert sorted(u.email for u in user_service.list_users()) == [
            "alex@example.com",
            "sam@example.com",
        ]

    def test_delete_user_removes_owned_data(self, user_service, file_service, temp_db, sample_user, sample_csv):
        """Test that deleting a user deletes their files and transactions."""
        file_id = file_service.register_upload(sample_user.id, str(sample_csv))
        txn_id = temp_db.create_transaction(
            user_id=sample_user.id,
            file_id=file_id,
            date=date(2024, 1, 15),
            description="Starbucks",
            amount=Decimal("5.50"),
            is_income=False,
        )

        user_service.delete_user(sample_user.id)

        assert user_service.get_user(sample_user.id) is None
        assert temp_db.get_file(file_id) is None
        assert temp_db.get_transaction(txn_id) is None

    def test_delete_missing_user(self, user_service):
        """Test deleting a user that does not exist."""
        with pytest.raises(NotFoundError):
            user_service.delete_user(42)


class TestUploadedFileService:
    """Tests for UploadedFileService."""

    def test_register_upload(self, file_service, sample_user, sample_csv):
        """Test registering a CSV upload."""
        file_id = file_service.register_upload(sample_user.id, str(sample_csv))
        uploaded = file_service.get_file(sample_user.id, file_id)

        assert uploaded.original_filename == "january.csv"
        assert uploaded.file_size == sample_csv.stat().st_size
        assert uploaded.status == FileStatus.PENDING
        assert uploaded.processed_at is None

    def test_declared_mime_type_wins(self, file_service, sample_user, write_statement):
        """Test that an explicit MIME type is stored."""
        path = write_statement("export", "Date,Description,Amount\n")
        file_id = file_service.register_upload(sample_user.id, str(path), mime_type="text/csv")
        assert file_service.get_file(sample_user.id, file_id).mime_type == "text/csv"

    def test_unsupported_type(self, file_service, sample_user, write_statement):
        """Test that non-statement files are rejected."""
        path = write_statement("notes.txt", "hello")
        with pytest.raises(UnsupportedFormatError):
            file_service.register_upload(sample_user.id, str(path))

    def test_missing_path(self, file_service, sample_user, tmp_path):
        """Test that a missing path is rejected."""
        with pytest.raises(ValidationError):
            file_service.register_upload(sample_user.id, str(tmp_path / "missing.csv"))

    def test_too_large(self, file_service, sample_user, sample_csv, monkeypatch):
        """Test the upload size limit."""
        monkeypatch.setattr(files_module, "MAX_UPLOAD_BYTES", 10)
        with pytest.raises(ValidationError, match="maximum upload size"):
            file_service.register_upload(sample_user.id, str(sample_csv))

    def test_unknown_user(self, file_service, sample_csv):
        """Test that uploads need an existing user."""
        with pytest.raises(NotFoundError):
            file_service.register_upload(999, str(sample_csv))

    def test_list_newest_first(self, file_service, sample_user, sample_csv):
        """Test listing a user's uploads."""
        first = file_service.register_upload(sample_user.id, str(sample_csv))
        second = file_service.register_upload(sample_user.id, str(sample_csv))
        assert [f.id for f in file_service.list_files(sample_user.id)] == [second, first]

    def test_get_other_users_file(self, file_service, user_service, sample_user, sample_csv):
        """Test that files are scoped to their owner."""
        other_id = user_service.create_user("sam@example.com")
        file_id = file_service.register_upload(sample_user.id, str(sample_csv))
        with pytest.raises(NotFoundError):
            file_service.get_file(other_id, file_id)

    def test_delete_keeps_transactions(self, file_service, temp_db, sample_user, sample_csv):
        """Test that deleting a file detaches its transactions."""
        file_id = file_service.register_upload(sample_user.id, str(sample_csv))
        txn_id = temp_db.create_transaction(
            user_id=sample_user.id,
            file_id=file_id,
            date=date(2024, 1, 15),
            description="Starbucks",
            amount=Decimal("5.50"),
            is_income=False,
        )

        file_service.delete_file(sample_user.id, file_id)

        assert file_service.list_files(sample_user.id) == []
        txn = temp_db.get_transaction(txn_id)
        assert txn is not None
        assert txn.file_id is None
