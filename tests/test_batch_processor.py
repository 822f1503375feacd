# tests/test_batch_processor.py

import pytest
import numpy as np
import soundfile as sf
from pathlib import Path
from typing import Tuple

from vocfeat.config import build_configuration
from vocfeat.core.audio_io import read_features
from vocfeat.core.batch_processor import process_batch, process_file

FRAME = 160
NB_FEATURES = 55

# --- Test Fixture ---

@pytest.fixture
def setup_batch_dirs(tmp_path: Path) -> Tuple[Path, Path]:
    """Creates an input directory with raw, WAV, unsupported and corrupt files."""
    input_dir = tmp_path / "batch_input"
    output_dir = tmp_path / "batch_output"
    input_dir.mkdir()

    rng = np.random.default_rng(21)
    # Raw PCM: 4 frames
    rng.integers(-3000, 3000, size=4 * FRAME, dtype=np.int16).astype('<i2').tofile(input_dir / "a_raw.s16")
    # WAV: 6 frames
    sf.write(input_dir / "b_speech.wav", rng.integers(-3000, 3000, size=6 * FRAME, dtype=np.int16), 16000,
             subtype='PCM_16')
    # Unsupported extension
    (input_dir / "c_notes.txt").write_text("not audio")
    # Not a real WAV
    (input_dir / "d_corrupt.wav").write_bytes(b"RIFF0000garbage")
    # Sub-directories are ignored
    (input_dir / "nested").mkdir()

    return input_dir, output_dir

# --- Test Cases ---

def test_process_batch(setup_batch_dirs):
    input_dir, output_dir = setup_batch_dirs
    processed, skipped = process_batch(input_dir, output_dir, seed=0)

    assert (processed, skipped) == (2, 2)
    assert output_dir.is_dir()
    assert read_features(output_dir / "a_raw.f32", NB_FEATURES).shape == (4, NB_FEATURES)
    assert read_features(output_dir / "b_speech.f32", NB_FEATURES).shape == (6, NB_FEATURES)
    # Failed outputs are removed, skipped inputs produce nothing
    assert not (output_dir / "c_notes.f32").exists()
    assert not (output_dir / "d_corrupt.f32").exists()

def test_process_batch_reproducible(setup_batch_dirs, tmp_path: Path):
    input_dir, output_dir = setup_batch_dirs
    second_dir = tmp_path / "batch_output_2"
    process_batch(input_dir, output_dir, seed=7)
    process_batch(input_dir, second_dir, seed=7)
    for name in ("a_raw.f32", "b_speech.f32"):
        assert (output_dir / name).read_bytes() == (second_dir / name).read_bytes()

def test_process_batch_logs_skips(setup_batch_dirs, caplog):
    input_dir, output_dir = setup_batch_dirs
    with caplog.at_level("WARNING", logger="vocfeat"):
        process_batch(input_dir, output_dir, seed=0)
    assert "Unsupported format '.txt'" in caplog.text
    assert "d_corrupt.wav" in caplog.text

def test_process_batch_missing_input(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        process_batch(tmp_path / "missing", tmp_path / "out")

def test_process_file_with_config(setup_batch_dirs, tmp_path: Path):
    input_dir, _ = setup_batch_dirs
    config = build_configuration({"analysis": {"lpc_order": 8}})
    out = tmp_path / "single.f32"
    n_frames = process_file(input_dir / "a_raw.s16", out, config, seed=1)
    assert n_frames == 4
    assert out.stat().st_size == 4 * (2 * 18 + 3 + 8) * 4
