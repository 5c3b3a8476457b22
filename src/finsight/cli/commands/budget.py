"""Monthly budget recommendation command."""

import asyncio

import click
from finsight.domain.errors import DomainError
from finsight.cli.error_handling import handle_domain_error
from finsight.cli.user_resolution import build_budget_service, resolve_user_or_exit


@click.command("budget")
@click.option("--user", "email", required=True, help="Email of the owning user")
@click.option("--month", type=int, help="Month (1-12), defaults to the current month")
@click.option("--year", type=int, help="Year, defaults to the current year")
@click.pass_context
def budget(ctx, email: str, month: int | None, year: int | None):
    """Recommend a monthly budget from one month of transactions."""
    user = resolve_user_or_exit(ctx, email)
    service = build_budget_service(ctx)

    try:
        summary = asyncio.run(service.generate_budget(user.id, month=month, year=year))
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"\nBudget for {summary.year}-{summary.month:02d} ({summary.source})")
    click.echo(f"  Income:       {summary.total_income:>12.2f}")
    click.echo(f"  Expenses:     {summary.total_expenses:>12.2f}")
    click.echo(f"  Savings rate: {summary.savings_rate:>11.1f}%")

    click.echo(f"\n  {'Category':<22} {'Recommended':>12} {'Current':>12} {'% income':>9}")
    for rec in summary.recommendations:
        click.echo(
            f"  {rec.category:<22} {rec.recommended_amount:>12.2f} "
            f"{rec.current_spending:>12.2f} {rec.percentage_of_income:>8.1f}%"
        )

    click.echo(f"\n{summary.insights}")


def register_commands(cli):
    """Register budget command with main CLI."""
    cli.add_command(budget)
