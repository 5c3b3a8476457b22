"""CLI helpers for user lookup and pipeline wiring."""

from __future__ import annotations

import click

from finsight.config import Settings
from finsight.domain.budget import BudgetService, create_budget_advisor
from finsight.domain.categories import CategoryService
from finsight.domain.categorizer import Categorizer
from finsight.domain.classifier import create_classifier
from finsight.domain.entities import User
from finsight.domain.errors import NotFoundError
from finsight.domain.processing import FileProcessingService
from finsight.domain.users import UserService
from finsight.cli.error_handling import handle_domain_error


def resolve_user_or_exit(ctx: click.Context, email: str) -> User:
    """Look up a user by email, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return UserService(ctx.obj["db"]).require_user(email)
    except NotFoundError as exc:
        handle_domain_error(ctx, exc)


def build_processing_service(ctx: click.Context) -> FileProcessingService:
    """Wire the categorizer and processing service from CLI settings."""
    db = ctx.obj["db"]
    settings: Settings = ctx.obj["settings"]
    cache = CategoryService(db).make_cache(ttl_seconds=settings.category_ttl)
    classifier = create_classifier(
        settings.openai_api_key,
        model=settings.openai_model,
        timeout=settings.openai_timeout,
    )
    return FileProcessingService(db, Categorizer(cache, classifier=classifier))


def build_budget_service(ctx: click.Context) -> BudgetService:
    """Wire the budget service, with a remote advisor when a key is configured."""
    settings: Settings = ctx.obj["settings"]
    advisor = create_budget_advisor(
        settings.openai_api_key,
        model=settings.openai_model,
        timeout=settings.openai_timeout,
    )
    return BudgetService(ctx.obj["db"], advisor=advisor)
