"""Transaction management commands."""

import click
from finsight.domain.errors import DomainError
from finsight.domain.transaction import TransactionService
from finsight.cli.error_handling import handle_domain_error
from finsight.cli.user_resolution import resolve_user_or_exit

_month_option = click.option("--month", type=click.IntRange(1, 12), help="Month (1-12); requires --year")
_year_option = click.option("--year", type=int, help="Year, e.g. 2024")


def _truncate(text: str, width: int) -> str:
    return text if len(text) <= width else text[: width - 3] + "..."


@click.group("transactions")
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("list")
@click.option("--user", "email", required=True, help="Email of the owning user")
@_month_option
@_year_option
@click.option("--category", help="Only show this category")
@click.pass_context
def list_transactions(ctx, email: str, month: int | None, year: int | None, category: str | None):
    """View transactions, newest first."""
    user = resolve_user_or_exit(ctx, email)
    service = TransactionService(ctx.obj["db"])

    try:
        transactions = service.list_transactions(user.id, month=month, year=year, category=category)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo(f"{'ID':>5}  {'Date':<10}  {'Description':<40}  {'Amount':>10}  Category")
    for txn in transactions:
        sign = "+" if txn.is_income else "-"
        category_label = txn.category or ""
        if txn.subcategory:
            category_label = f"{category_label} > {txn.subcategory}"
        click.echo(
            f"{txn.id:>5}  {txn.date.isoformat():<10}  {_truncate(txn.description, 40):<40}  "
            f"{sign}{txn.amount:>9.2f}  {category_label}"
        )


@transaction_group.command("update")
@click.argument("transaction_id", type=int)
@click.option("--user", "email", required=True, help="Email of the owning user")
@click.option("--category", help="New category")
@click.option("--subcategory", help="New subcategory")
@click.option("--description", help="New description")
@click.pass_context
def update_transaction(
    ctx,
    transaction_id: int,
    email: str,
    category: str | None,
    subcategory: str | None,
    description: str | None,
):
    """Update a transaction's category, subcategory or description.

    Examples:
        finsight transactions update 12 --user me@example.com --category Travel
    """
    user = resolve_user_or_exit(ctx, email)
    service = TransactionService(ctx.obj["db"])
    try:
        service.update_transaction(
            user.id,
            transaction_id,
            category=category,
            subcategory=subcategory,
            description=description,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Updated transaction {transaction_id}")


@transaction_group.command("delete")
@click.argument("transaction_id", type=int)
@click.option("--user", "email", required=True, help="Email of the owning user")
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_transaction(ctx, transaction_id: int, email: str, yes: bool):
    """Delete a transaction."""
    user = resolve_user_or_exit(ctx, email)
    service = TransactionService(ctx.obj["db"])

    if not yes:
        click.confirm(f"Delete transaction {transaction_id}?", abort=True)
    try:
        service.delete_transaction(user.id, transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Deleted transaction {transaction_id}")


@transaction_group.command("export")
@click.option("--user", "email", required=True, help="Email of the owning user")
@_month_option
@_year_option
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write to this file instead of stdout")
@click.pass_context
def export_transactions(ctx, email: str, month: int | None, year: int | None, output: str | None):
    """Export transactions as CSV."""
    user = resolve_user_or_exit(ctx, email)
    service = TransactionService(ctx.obj["db"])

    try:
        text = service.export_csv(user.id, month=month, year=year)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if output is None:
        click.echo(text, nl=False)
        return
    with open(output, "w", encoding="utf-8", newline="") as f:
        f.write(text)
    click.echo(f"Exported to {output}")


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group)
