# vocfeat/core/batch_processor.py

"""
Feature extraction over every speech file of a directory.

Each file gets its own FeatureExtractor, so files are processed by fully
independent pipelines; the per-file seed is derived from the batch seed and
the file position, which keeps a batch run reproducible.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

from vocfeat.config import VocfeatConfig
from vocfeat.core.audio_io import RAW_PCM_EXTENSIONS, SUPPORTED_AUDIO_EXTENSIONS, iter_input_frames, write_features
from vocfeat.core.pipeline import FeatureExtractor

logger = logging.getLogger(__name__)

FEATURE_EXTENSION = ".f32"


def process_file(
    input_path: Path,
    output_path: Path,
    config: VocfeatConfig,
    seed: Optional[int] = None,
) -> int:
    """
    Extracts features from one file into `output_path`.

    Returns:
        Number of frames written.
    """
    extractor = FeatureExtractor(config, seed)
    n_frames = 0
    with open(input_path, 'rb') as fin, open(output_path, 'wb') as fout:
        frames = iter_input_frames(fin, extractor.frame_size, config.analysis.sample_rate, name=input_path)
        for features in extractor.process_stream(frames):
            write_features(fout, features)
            n_frames += 1
    return n_frames


def process_batch(
    input_dir: Union[str, Path],
    output_dir: Union[str, Path],
    config: Optional[VocfeatConfig] = None,
    seed: Optional[int] = None,
) -> Tuple[int, int]:
    """
    Processes every supported file of `input_dir` into `<stem>.f32` under `output_dir`.

    Files with unsupported extensions are skipped; files that fail to decode
    are logged and skipped.

    Returns:
        A tuple (processed, skipped).

    Raises:
        FileNotFoundError: If the input directory does not exist.
    """
    input_path = Path(input_dir)
    output_path_dir = Path(output_dir)
    config = config if config is not None else VocfeatConfig()

    if not input_path.is_dir():
        raise FileNotFoundError(f"Input directory not found: {input_dir}")
    output_path_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"Starting batch feature extraction from '{input_path}' to '{output_path_dir}'")

    processed_count = 0
    skipped_count = 0
    supported = RAW_PCM_EXTENSIONS | SUPPORTED_AUDIO_EXTENSIONS

    for index, file_path in enumerate(sorted(input_path.iterdir())):
        if not file_path.is_file():
            logger.debug(f"Skipping non-file item: {file_path.name}")
            continue
        if file_path.suffix.lower() not in supported:
            logger.warning(f"Skipping file {file_path.name}: Unsupported format '{file_path.suffix}'.")
            skipped_count += 1
            continue

        output_file_path = output_path_dir / f"{file_path.stem}{FEATURE_EXTENSION}"
        file_seed = None if seed is None else seed + index
        try:
            n_frames = process_file(file_path, output_file_path, config, file_seed)
            logger.info(f"Processed {file_path.name} -> {output_file_path.name} ({n_frames} frames)")
            processed_count += 1
        except (ValueError, RuntimeError) as e:
            # soundfile raises RuntimeError (LibsndfileError) on undecodable input
            logger.error(f"Error processing file {file_path.name}: {e}. Skipping.")
            output_file_path.unlink(missing_ok=True)
            skipped_count += 1

    logger.info(f"Batch processing finished. Processed: {processed_count}, Skipped: {skipped_count}")
    return processed_count, skipped_count
