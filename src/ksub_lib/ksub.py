# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import sys

import click
from click_help_colors import HelpColorsGroup

from ksub_lib.core.config import CFG
from ksub_lib.submit.cli import submit

__version__ = "0.1.0"

# support both --help and -h
_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


@click.group(
    cls=HelpColorsGroup,
    help_options_color="bright_blue",
    invoke_without_command=True,
    context_settings=_CONTEXT_SETTINGS,
)
@click.option(
    "--version",
    is_flag=True,
    help=f"Print the current version of {CFG.binary_name} and exit.",
)
@click.pass_context
def cli(ctx: click.Context, version: bool):
    """
    Run any ksub command.

    ksub submits Spark applications to Kubernetes clusters, shipping their
    dependencies into the driver pod.
    """
    if version:
        print(__version__)
        sys.exit(0)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        sys.exit(0)


cli.add_command(submit)
