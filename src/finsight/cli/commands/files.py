"""Uploaded file commands."""

import click
from finsight.domain.errors import DomainError
from finsight.domain.files import UploadedFileService
from finsight.cli.error_handling import handle_domain_error
from finsight.cli.user_resolution import resolve_user_or_exit


def _format_size(size: int | None) -> str:
    if size is None:
        return "-"
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


@click.group("files")
def files_group():
    """Manage uploaded statements."""
    pass


@files_group.command("list")
@click.option("--user", "email", required=True, help="Email of the owning user")
@click.pass_context
def list_files(ctx, email: str):
    """List uploaded files, newest first."""
    user = resolve_user_or_exit(ctx, email)
    uploads = UploadedFileService(ctx.obj["db"]).list_files(user.id)

    if not uploads:
        click.echo("No files uploaded.")
        return

    click.echo(f"{'ID':>5}  {'Status':<11} {'Size':>9}  {'Uploaded':<16}  Name")
    for f in uploads:
        uploaded = f.uploaded_at.strftime("%Y-%m-%d %H:%M")
        click.echo(
            f"{f.id:>5}  {f.status.value:<11} {_format_size(f.file_size):>9}  "
            f"{uploaded:<16}  {f.original_filename}"
        )


@files_group.command("delete")
@click.argument("file_id", type=int)
@click.option("--user", "email", required=True, help="Email of the owning user")
@click.pass_context
def delete_file(ctx, file_id: int, email: str):
    """Delete an uploaded file. Its transactions are kept."""
    user = resolve_user_or_exit(ctx, email)
    try:
        UploadedFileService(ctx.obj["db"]).delete_file(user.id, file_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Deleted file {file_id}")


def register_commands(cli):
    """Register file commands with main CLI."""
    cli.add_command(files_group)
