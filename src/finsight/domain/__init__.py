"""Domain layer for finsight."""

from finsight.domain.transaction import TransactionService
from finsight.domain.categories import CategoryService
from finsight.domain.files import UploadedFileService
from finsight.domain.users import UserService
from finsight.domain.processing import FileProcessingService
from finsight.domain.analytics import AnalyticsService
from finsight.domain.budget import BudgetService

__all__ = [
    "TransactionService",
    "CategoryService",
    "UploadedFileService",
    "UserService",
    "FileProcessingService",
    "AnalyticsService",
    "BudgetService",
]
