"""User management commands."""

import click
from finsight.domain.errors import DomainError
from finsight.domain.users import UserService
from finsight.cli.error_handling import handle_domain_error
from finsight.cli.user_resolution import resolve_user_or_exit


@click.group("user")
def user_group():
    """Manage users."""
    pass


@user_group.command("create")
@click.argument("email")
@click.pass_context
def create_user(ctx, email: str):
    """Create a user."""
    service = UserService(ctx.obj["db"])
    try:
        user_id = service.create_user(email)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Created user {email.strip().lower()} (ID: {user_id})")


@user_group.command("list")
@click.pass_context
def list_users(ctx):
    """List users."""
    users = UserService(ctx.obj["db"]).list_users()
    if not users:
        click.echo("No users found.")
        return
    for u in users:
        click.echo(f"{u.id:>5}  {u.email}")


@user_group.command("delete")
@click.argument("email")
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_user(ctx, email: str, yes: bool):
    """Delete a user with all of their files and transactions."""
    user = resolve_user_or_exit(ctx, email)
    if not yes:
        click.confirm(f"Delete {user.email} and all their data?", abort=True)
    UserService(ctx.obj["db"]).delete_user(user.id)
    click.echo(f"Deleted user {user.email}")


def register_commands(cli):
    """Register user commands with main CLI."""
    cli.add_command(user_group)
