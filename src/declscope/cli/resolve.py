"""dscope resolve command - print analyzer arguments for a caret position."""

import asyncio
import json
import shlex
from pathlib import Path

import click

from declscope.config import load_config
from declscope.core.errors import ConfigError, DeclScopeError
from declscope.core.logging import configure_logging, get_log_file_path
from declscope.resolve import (
    DeclarationResolver,
    ResolutionOutcome,
    ResolutionRequest,
    offset_from_line_col,
    read_source_document,
)


async def _run(resolver: DeclarationResolver, request: ResolutionRequest) -> ResolutionOutcome:
    try:
        return await resolver.resolve(request)
    finally:
        await resolver.close()


@click.command()
@click.option(
    "--solution",
    "solution_path",
    required=True,
    type=click.Path(path_type=Path),
    help="Solution (.sln/.slnx) or project file",
)
@click.option(
    "--file",
    "document_path",
    required=True,
    type=click.Path(path_type=Path),
    help="Source file containing the caret",
)
@click.option("--offset", type=int, default=None, help="Caret character offset")
@click.option("--line", type=int, default=None, help="Caret line (1-based)")
@click.option("--column", type=int, default=None, help="Caret column (0-based)")
@click.option("--selection", required=True, help="Selected method name")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def resolve_command(
    ctx: click.Context,
    solution_path: Path,
    document_path: Path,
    offset: int | None,
    line: int | None,
    column: int | None,
    selection: str,
    as_json: bool,
) -> None:
    """Resolve the declaration around a caret position.

    Prints the analyzer's positional arguments:
    SOLUTION NAMESPACE TYPE METHOD.
    """
    if (offset is None) == (line is None):
        raise click.UsageError("Pass exactly one of --offset or --line/--column")

    try:
        config = load_config()
    except ConfigError as e:
        raise click.ClickException(e.message) from e

    logging_config = config.logging
    if (ctx.obj or {}).get("verbose"):
        logging_config = logging_config.model_copy(update={"level": "DEBUG"})
    configure_logging(config=logging_config)

    if offset is None:
        try:
            text = read_source_document(document_path).text
            offset = offset_from_line_col(text, line or 1, column or 0)
        except DeclScopeError as e:
            raise click.ClickException(e.message) from e

    request = ResolutionRequest(
        solution_path=solution_path.resolve(),
        document_path=document_path.resolve(),
        caret_offset=offset,
        selection_text=selection,
    )
    outcome = asyncio.run(_run(DeclarationResolver(config), request))

    if as_json:
        click.echo(json.dumps(outcome.to_dict(), indent=2))
    elif outcome.descriptor is not None:
        click.echo(shlex.join(outcome.descriptor.to_args()))
        for diagnostic in outcome.diagnostics:
            click.echo(f"warning: {diagnostic.message}", err=True)

    if not outcome.ok:
        if not as_json:
            click.echo(f"Error: {outcome.error}", err=True)
            log_file = get_log_file_path()
            if log_file is not None:
                click.echo(f"Details in {log_file}", err=True)
        raise SystemExit(1)
