# vocfeat/cli/dump_cmd.py

"""
`vocfeat dump`: stream one speech input into a float32 feature file.
"""

import logging
from typing import Any, BinaryIO, Dict, Optional

import click

from vocfeat.config import VocfeatConfig
from vocfeat.core.audio_io import iter_input_frames, write_features
from vocfeat.core.pipeline import FeatureExtractor
from .base_cmd import apply_overrides, seed_option

logger = logging.getLogger(__name__)


@click.command("dump")
@click.argument("input_file", type=click.File("rb", lazy=False))
@click.argument("output_file", type=click.File("wb", lazy=False))
@seed_option
@click.option("--lowpass", type=int, default=None,
              help="Zero FFT bins at or above this index (default: no band limiting).")
@click.option("--alt-pitch", is_flag=True, default=False,
              help="Override the pitch period with the YIN estimator.")
@click.option("--no-dither", is_flag=True, default=False, help="Disable dither.")
@click.option("--no-tilt", is_flag=True, default=False, help="Disable the random tilt filter.")
@click.pass_context
def dump_cmd(
    ctx,
    input_file: BinaryIO,
    output_file: BinaryIO,
    seed: Optional[int],
    lowpass: Optional[int],
    alt_pitch: bool,
    no_dither: bool,
    no_tilt: bool,
):
    """
    Extract features from INPUT_FILE into OUTPUT_FILE.

    INPUT_FILE is 16-bit little-endian PCM (or any soundfile-readable format
    by extension); OUTPUT_FILE receives one float32 vector per frame.
    Use '-' for stdin / stdout.
    """
    config: VocfeatConfig = ctx.obj['config']
    overrides: Dict[str, Any] = {}
    if lowpass is not None:
        overrides.setdefault('analysis', {})['lowpass'] = lowpass
    if alt_pitch:
        overrides.setdefault('pitch', {})['alternate'] = True
    if no_dither:
        overrides.setdefault('conditioning', {})['dither'] = False
    if no_tilt:
        overrides.setdefault('conditioning', {})['tilt'] = False
    config = apply_overrides(config, overrides)

    extractor = FeatureExtractor(config, seed)
    input_name = getattr(input_file, "name", "-")
    output_name = getattr(output_file, "name", "-")
    logger.info(f"Extracting {extractor.nb_features} features per frame from '{input_name}' to '{output_name}'")

    n_frames = 0
    try:
        frames = iter_input_frames(input_file, extractor.frame_size, config.analysis.sample_rate,
                                   name=input_name)
        for features in extractor.process_stream(frames):
            write_features(output_file, features)
            n_frames += 1
        output_file.flush()
    except ValueError as e:
        raise click.ClickException(f"Cannot read input: {e}") from e
    except RuntimeError as e:
        # soundfile decoding errors
        raise click.ClickException(f"Cannot decode input: {e}") from e
    except OSError as e:
        raise click.ClickException(f"I/O error: {e}") from e

    logger.info(f"Wrote {n_frames} feature vectors.")
