# vocfeat/cli/main.py

"""
Main entry point for the vocfeat CLI application.
Uses Click for command-line interface handling.
"""

import logging

import click
from rich.console import Console
from rich.table import Table

from vocfeat.version import __version__
from vocfeat.config import VocfeatConfig
from vocfeat.core.features import feature_layout
from .base_cmd import ConfigGroup, verbose_option, quiet_option, config_option
from .dump_cmd import dump_cmd
from .batch_cmd import batch_cmd

logger = logging.getLogger(__name__)

CONTEXT_SETTINGS = dict(help_option_names=['-h', '--help'])


@click.group(context_settings=CONTEXT_SETTINGS, cls=ConfigGroup)
@click.version_option(__version__, '-V', '--version', package_name='vocfeat', prog_name='vocfeat')
@verbose_option
@quiet_option
@config_option
@click.pass_context
def main_cli(ctx, verbose: int, quiet: bool, config_files):
    """
    vocfeat: LPCNet-style feature extraction for 16 kHz speech.

    Configuration is built from the defaults and any --config files
    (later files win).

    Use -v for verbose output, -vv for debug output, -q for quiet mode.
    """


@main_cli.command("info")
@click.pass_context
def info_cmd(ctx):
    """Show the feature vector layout for the active configuration."""
    config: VocfeatConfig = ctx.obj['config']
    analysis = config.analysis
    table = Table(title=f"{analysis.nb_features} features per {analysis.frame_size}-sample frame")
    table.add_column("Field")
    table.add_column("Indices", justify="right")
    for name, sl in feature_layout(config).items():
        indices = str(sl.start) if sl.stop - sl.start == 1 else f"{sl.start}-{sl.stop - 1}"
        table.add_row(name, indices)
    Console().print(table)


main_cli.add_command(dump_cmd)
main_cli.add_command(batch_cmd)

cli = main_cli

if __name__ == "__main__":
    cli()
