# vocfeat/cli/batch_cmd.py

"""
`vocfeat batch`: extract features for every speech file of a directory.
"""

import logging
from pathlib import Path
from typing import Optional

import click

from vocfeat.config import VocfeatConfig
from vocfeat.core.batch_processor import process_batch
from .base_cmd import seed_option

logger = logging.getLogger(__name__)


@click.command("batch")
@click.argument("input_dir", type=click.Path(exists=True, file_okay=False, resolve_path=True))
@click.argument("output_dir", type=click.Path(file_okay=False, resolve_path=True))
@seed_option
@click.pass_context
def batch_cmd(ctx, input_dir: str, output_dir: str, seed: Optional[int]):
    """Extract features for every file in INPUT_DIR into OUTPUT_DIR/<stem>.f32."""
    config: VocfeatConfig = ctx.obj['config']
    processed, skipped = process_batch(Path(input_dir), Path(output_dir), config, seed)
    click.echo(f"Processed {processed} file(s), skipped {skipped}.")
    if processed == 0 and skipped > 0:
        ctx.exit(1)
