"""Main CLI entry point."""

import click
from dotenv import load_dotenv

from finsight.config import Settings
from finsight.database.factories import create_sqlite_database
from finsight.domain.errors import DomainError
from finsight.logging_setup import configure_logging
from finsight.cli.error_handling import handle_domain_error

# Import and register all commands at module level
from finsight.cli.commands import (
    upload,
    files,
    transactions,
    analytics,
    budget,
    category,
    init_categories,
    user,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides FINSIGHT_DB_PATH environment variable)",
    envvar="FINSIGHT_DB_PATH",
)
@click.option(
    "--log-level",
    help="Logging level, e.g. DEBUG or WARNING (overrides FINSIGHT_LOG_LEVEL)",
    envvar="FINSIGHT_LOG_LEVEL",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str | None):
    """Finsight - statement import and spending analytics.

    Upload CSV or PDF bank statements, extract and categorize their
    transactions, and summarize spending by month.
    """
    ctx.ensure_object(dict)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        try:
            settings = Settings.from_env()
        except DomainError as e:
            handle_domain_error(ctx, e)
        configure_logging(log_level or settings.log_level)

        db = create_sqlite_database(database_path=db_path or settings.database_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["settings"] = settings
        ctx.call_on_close(db.disconnect)


# Register all commands
upload.register_commands(cli)
files.register_commands(cli)
transactions.register_commands(cli)
analytics.register_commands(cli)
budget.register_commands(cli)
category.register_commands(cli)
init_categories.register_commands(cli)
user.register_commands(cli)


def main():
    """Main entry point for CLI."""
    load_dotenv()
    cli()


if __name__ == "__main__":
    main()
