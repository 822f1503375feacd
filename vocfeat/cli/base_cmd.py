# vocfeat/cli/base_cmd.py

"""
Base setup for CLI commands: configuration loading and logging initialization.
"""

import logging
from typing import Any, Dict

import click

from vocfeat.config import load_configuration, build_configuration, deep_merge_dicts, VocfeatConfig
from vocfeat.errors import ConfigurationError
from vocfeat.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


class ConfigGroup(click.Group):
    """
    A custom Click Group that loads configuration and sets up logging before
    invoking its subcommands. The config is passed via ctx.obj['config'].
    """
    def invoke(self, ctx: click.Context):
        if ctx.obj is None:
            ctx.obj = {}

        if 'config' not in ctx.obj:
            try:
                config = load_configuration(config_files=list(ctx.params.get('config_files') or ()))
            except ConfigurationError as e:
                raise click.ClickException(str(e)) from e
            ctx.obj['config'] = config

            verbosity = -1 if ctx.params.get('quiet') else ctx.params.get('verbose', 0)
            setup_logging(config, verbosity)
            logger.debug("Logging setup complete in ConfigGroup.")
        else:
            logger.debug("Configuration already loaded in context.")

        return super().invoke(ctx)


def apply_overrides(config: VocfeatConfig, overrides: Dict[str, Any]) -> VocfeatConfig:
    """Returns a re-validated copy of `config` with nested `overrides` applied."""
    if not overrides:
        return config
    try:
        return build_configuration(deep_merge_dicts(config.model_dump(), overrides))
    except ConfigurationError as e:
        raise click.UsageError(str(e)) from e


# --- Common CLI Options ---
verbose_option = click.option(
    '-v', '--verbose',
    count=True,
    help="Increase verbosity level (-v for INFO, -vv for DEBUG)."
)
quiet_option = click.option(
    '-q', '--quiet',
    is_flag=True,
    default=False,
    help="Suppress all log output."
)
config_option = click.option(
    '-c', '--config', 'config_files',
    type=click.Path(exists=True, dir_okay=False),
    multiple=True,
    help="TOML configuration file (repeatable, later files win)."
)
seed_option = click.option(
    '--seed',
    type=int,
    default=None,
    help="Seed for the tilt filter and dither generator (reproducible output)."
)
