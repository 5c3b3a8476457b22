"""Category management commands."""

import click
from finsight.domain.categories import CategoryService
from finsight.domain.errors import DomainError
from finsight.cli.error_handling import handle_domain_error


@click.group("category")
def category_group():
    """Manage categories."""
    pass


@category_group.command("list")
@click.pass_context
def list_categories(ctx):
    """List all categories."""
    service = CategoryService(ctx.obj["db"])

    categories = service.list_categories()
    if not categories:
        click.echo("No categories found. Run 'init-categories' to create default categories.")
        return

    click.echo("\nCategories:")
    for cat in categories:
        marker = "" if cat.is_default else " (custom)"
        parent = f" [{cat.parent_category}]" if cat.parent_category else ""
        click.echo(f"  {cat.name}{parent}{marker}")


@category_group.command("create")
@click.argument("name")
@click.option("--icon", help="Icon name")
@click.option("--color", help="Display color, e.g. #4F46E5")
@click.option("--parent", help="Parent category name")
@click.option(
    "--custom",
    is_flag=True,
    help="Do not offer this category to the classifier",
)
@click.pass_context
def create_category(ctx, name: str, icon: str | None, color: str | None, parent: str | None, custom: bool):
    """Create a new category."""
    service = CategoryService(ctx.obj["db"])
    try:
        category_id = service.create_category(
            name=name, icon=icon, color=color, is_default=not custom, parent_category=parent
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Created category '{name}' (ID: {category_id})")


def register_commands(cli):
    """Register category commands with main CLI."""
    cli.add_command(category_group)
