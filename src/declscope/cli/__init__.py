"""declscope command line interface."""

from declscope.cli.main import cli

__all__ = ["cli"]
