# vocfeat/core/audio_io.py

"""
Frame-wise reading of speech input and writing of the feature stream.

Raw input is headerless little-endian int16 PCM; container formats (WAV,
FLAC, ...) are read through soundfile. Features are written as headerless
little-endian float32, one fixed-size vector after another.
"""

import logging
from pathlib import Path
from typing import BinaryIO, Iterator, Union

import numpy as np
import soundfile as sf
from numpy.typing import NDArray

logger = logging.getLogger(__name__)

PCM_DTYPE = np.dtype('<i2')
FEATURE_DTYPE = np.dtype('<f4')

# Extensions treated as headerless int16 PCM
RAW_PCM_EXTENSIONS = {".s16", ".raw", ".pcm", ".sw"}

# Container formats soundfile can decode
SUPPORTED_AUDIO_EXTENSIONS = {f".{fmt.lower()}" for fmt in sf.available_formats()}


def is_raw_pcm(name: Union[str, Path]) -> bool:
    """True for stdin ('-'), unknown extensions and the raw PCM extensions."""
    suffix = Path(str(name)).suffix.lower()
    if str(name) in ("-", "<stdin>") or suffix in RAW_PCM_EXTENSIONS:
        return True
    return suffix not in SUPPORTED_AUDIO_EXTENSIONS


def iter_pcm_frames(stream: BinaryIO, frame_size: int) -> Iterator[NDArray[np.int16]]:
    """
    Yields consecutive blocks of exactly `frame_size` int16 samples.

    A short final block ends the iteration without being yielded.
    """
    nbytes = frame_size * PCM_DTYPE.itemsize
    while True:
        chunk = stream.read(nbytes)
        if len(chunk) < nbytes:
            if chunk:
                logger.debug(f"Discarding {len(chunk) // PCM_DTYPE.itemsize} trailing samples (short block).")
            return
        yield np.frombuffer(chunk, dtype=PCM_DTYPE).astype(np.int16)


def iter_audio_file_frames(
    source: Union[str, Path, BinaryIO],
    frame_size: int,
    sample_rate: int,
) -> Iterator[NDArray[np.int16]]:
    """
    Yields int16 frames from a soundfile-readable container.

    Raises:
        ValueError: If the file's sample rate differs from `sample_rate` or it is not mono.
    """
    with sf.SoundFile(source) as f:
        if f.samplerate != sample_rate:
            raise ValueError(f"Input sample rate is {f.samplerate} Hz, expected {sample_rate} Hz.")
        if f.channels != 1:
            raise ValueError(f"Input has {f.channels} channels, expected mono.")
        logger.debug(f"Reading {f.frames} samples ({f.format}/{f.subtype}) at {f.samplerate} Hz")
        for block in f.blocks(blocksize=frame_size, dtype='int16'):
            if len(block) < frame_size:
                return
            yield block


def iter_input_frames(
    stream: BinaryIO,
    frame_size: int,
    sample_rate: int,
    name: Union[str, Path, None] = None,
) -> Iterator[NDArray[np.int16]]:
    """Dispatches on the input name: raw PCM for stdin / raw extensions, soundfile otherwise."""
    name = name if name is not None else getattr(stream, "name", "-")
    if is_raw_pcm(name):
        return iter_pcm_frames(stream, frame_size)
    return iter_audio_file_frames(stream, frame_size, sample_rate)


def write_features(stream: BinaryIO, features: NDArray) -> None:
    """Appends one feature vector as little-endian float32."""
    stream.write(np.asarray(features, dtype=FEATURE_DTYPE).tobytes())


def read_features(path: Union[str, Path], nb_features: int) -> NDArray[np.float32]:
    """Loads a feature dump as an (n_frames, nb_features) array."""
    data = np.fromfile(path, dtype=FEATURE_DTYPE)
    if data.size % nb_features:
        raise ValueError(f"File size of {path} is not a multiple of {nb_features} features.")
    return data.reshape(-1, nb_features).astype(np.float32)
