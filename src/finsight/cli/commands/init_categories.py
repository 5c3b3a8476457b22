"""Initialize default categories."""

import click
from finsight.domain.categories import CategoryService


@click.command("init-categories")
@click.pass_context
def init_categories(ctx):
    """Create the built-in category vocabulary (existing names are kept)."""
    service = CategoryService(ctx.obj["db"])
    created = service.seed_defaults()
    if created == 0:
        click.echo("Categories already exist.")
        return
    click.echo(f"Created {created} categories.")


def register_commands(cli):
    """Register init-categories command with main CLI."""
    cli.add_command(init_categories)
