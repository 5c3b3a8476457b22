"""Statement upload and processing commands."""

import asyncio

import click
from finsight.domain.errors import DomainError
from finsight.domain.files import UploadedFileService
from finsight.cli.error_handling import handle_domain_error
from finsight.cli.user_resolution import build_processing_service, resolve_user_or_exit


def _run_processing(ctx, user_id: int, file_id: int) -> None:
    service = build_processing_service(ctx)
    try:
        result = asyncio.run(service.process_file(user_id, file_id))
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(result.message)


@click.command("upload")
@click.argument("statement", type=click.Path(exists=True, dir_okay=False))
@click.option("--user", "email", required=True, help="Email of the owning user")
@click.option("--mime", "mime_type", help="Declared MIME type (guessed from the extension if omitted)")
@click.option("--no-process", is_flag=True, help="Only register the file; process it later")
@click.pass_context
def upload(ctx, statement: str, email: str, mime_type: str | None, no_process: bool):
    """Upload a CSV or PDF statement and extract its transactions.

    Examples:
        finsight upload january.csv --user me@example.com
        finsight upload statement.pdf --user me@example.com --mime application/pdf
    """
    user = resolve_user_or_exit(ctx, email)
    service = UploadedFileService(ctx.obj["db"])

    try:
        file_id = service.register_upload(user.id, statement, mime_type=mime_type)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Uploaded file {file_id}")

    if not no_process:
        _run_processing(ctx, user.id, file_id)


@click.command("process")
@click.argument("file_id", type=int)
@click.option("--user", "email", required=True, help="Email of the owning user")
@click.pass_context
def process(ctx, file_id: int, email: str):
    """Run extraction and categorization for an uploaded file."""
    user = resolve_user_or_exit(ctx, email)
    _run_processing(ctx, user.id, file_id)


def register_commands(cli):
    """Register upload commands with main CLI."""
    cli.add_command(upload)
    cli.add_command(process)
