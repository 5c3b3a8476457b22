"""Monthly analytics command."""

import click
from finsight.domain.analytics import AnalyticsService
from finsight.domain.errors import DomainError
from finsight.cli.error_handling import handle_domain_error
from finsight.cli.user_resolution import resolve_user_or_exit


@click.command("analytics")
@click.option("--user", "email", required=True, help="Email of the owning user")
@click.option("--month", type=int, help="Month (1-12), defaults to the current month")
@click.option("--year", type=int, help="Year, defaults to the current year")
@click.option("--top", "top_n", type=int, default=10, show_default=True, help="Largest expenses to list")
@click.option("--daily", is_flag=True, help="Show the daily income/expense series")
@click.pass_context
def analytics(ctx, email: str, month: int | None, year: int | None, top_n: int, daily: bool):
    """Summarize income, spending and savings for one month."""
    user = resolve_user_or_exit(ctx, email)
    service = AnalyticsService(ctx.obj["db"])

    try:
        report = service.get_period_analytics(user.id, month=month, year=year, top_n=top_n)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"\nPeriod: {report.year}-{report.month:02d} ({report.transaction_count} transactions)")
    click.echo(f"  Income:       {report.total_income:>12.2f}")
    click.echo(f"  Expenses:     {report.total_expenses:>12.2f}")
    click.echo(f"  Net:          {report.net:>12.2f}")
    click.echo(f"  Savings rate: {report.savings_rate:>11.1f}%")

    if report.category_breakdown:
        click.echo("\nSpending by category:")
        for item in report.category_breakdown:
            click.echo(f"  {item.category:<20} {item.total:>12.2f}  ({item.count})")

    if report.top_expenses:
        click.echo("\nTop expenses:")
        for item in report.top_expenses:
            click.echo(
                f"  {item.date.isoformat()}  {item.description[:40]:<40} "
                f"{item.amount:>10.2f}  {item.category or ''}"
            )

    if daily and report.daily_trend:
        click.echo("\nDaily trend:")
        for day in report.daily_trend:
            click.echo(f"  {day.date.isoformat()}  +{day.income:>10.2f}  -{day.expenses:>10.2f}")


def register_commands(cli):
    """Register analytics command with main CLI."""
    cli.add_command(analytics)
