"""declscope CLI - dscope command."""

import click

from declscope import __version__
from declscope.cli.resolve import resolve_command
from declscope.core.logging import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="dscope")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """declscope - resolve a caret position to its enclosing declaration."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(resolve_command, name="resolve")


if __name__ == "__main__":
    cli()
