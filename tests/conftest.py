"""Shared pytest fixtures for finsight tests."""

import tempfile
import os
from types import SimpleNamespace
from pathlib import Path
import pytest

from finsight.database.factories import create_sqlite_database
from finsight.domain.categories import CategoryCache, CategoryService
from finsight.domain.categorizer import Categorizer
from finsight.domain.files import UploadedFileService
from finsight.domain.processing import FileProcessingService
from finsight.domain.transaction import TransactionService
from finsight.domain.users import UserService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def user_service(temp_db):
    """Create a UserService with a temporary database."""
    return UserService(temp_db)


@pytest.fixture
def category_service(temp_db):
    """Create a CategoryService with a temporary database."""
    return CategoryService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def file_service(temp_db):
    """Create an UploadedFileService with a temporary database."""
    return UploadedFileService(temp_db)


@pytest.fixture
def sample_user(user_service):
    """Create a sample user for testing."""
    user_id = user_service.create_user("alex@example.com")
    return user_service.get_user(user_id)


@pytest.fixture
def sleeps():
    """Recorded sleep durations from an injected async sleep."""
    return []


@pytest.fixture
def fake_sleep(sleeps):
    """Async sleep that records its argument instead of waiting."""

    async def _sleep(seconds):
        sleeps.append(seconds)

    return _sleep


@pytest.fixture
def offline_categorizer(category_service, fake_sleep):
    """Categorizer with no remote classifier (keyword rules only)."""
    return Categorizer(category_service.make_cache(), classifier=None, sleep=fake_sleep)


@pytest.fixture
def processing_service(temp_db, offline_categorizer):
    """Create a FileProcessingService that never calls out."""
    return FileProcessingService(temp_db, offline_categorizer)


@pytest.fixture
def write_statement(tmp_path):
    """Write statement content to a file and return its path."""

    def _write(name: str, content):
        path = tmp_path / name
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def sample_csv(write_statement):
    """CSV statement with one coffee, one salary and one grocery row."""
    return write_statement(
        "january.csv",
        "Date,Description,Amount\n"
        "2024-01-15,Starbucks,-5.50\n"
        "2024-01-16,Salary,3000.00\n"
        "2024-01-17,Whole Foods,-85.20\n",
    )


class StubCompletions:
    """Stands in for ``client.chat.completions``.

    Each queued item is either reply text or an exception to raise; the last
    item repeats once the queue is down to one.
    """

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, BaseException):
            raise reply
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class StatusError(Exception):
    """Error carrying an HTTP status code, like the OpenAI SDK's API errors."""

    def __init__(self, status_code):
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


@pytest.fixture
def status_error():
    """Exception class carrying an HTTP status code."""
    return StatusError


@pytest.fixture
def stub_client():
    """Build a fake OpenAI client around queued replies."""

    def _build(*replies):
        completions = StubCompletions(*replies)
        return SimpleNamespace(chat=SimpleNamespace(completions=completions))

    return _build


@pytest.fixture
def static_cache():
    """Category cache over the built-in vocabulary, never hitting a store."""
    from finsight.domain.categories import DEFAULT_CATEGORY_NAMES

    return CategoryCache(lambda: DEFAULT_CATEGORY_NAMES)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()

