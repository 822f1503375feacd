# vocfeat/config/models.py

"""
Pydantic models for the vocfeat configuration (vocfeat.toml).
Uses Pydantic V2 syntax. The defaults reproduce the fixed LPCNet analysis
constants for 16 kHz speech, so an empty configuration is always valid.
"""

from pathlib import Path
from typing import List, Optional, Tuple, Any

from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict

# Band edges in units of 4 FFT bins (5 ms of a 320-sample window at 16 kHz)
DEFAULT_BAND_EDGES: Tuple[int, ...] = (0, 1, 2, 3, 4, 5, 6, 7, 8, 10, 12, 14, 16, 20, 24, 28, 34, 40)

# Per-band correction applied when rebuilding a power spectrum from cepstra
DEFAULT_COMPENSATION: Tuple[float, ...] = (
    0.8, 1.0, 1.0, 1.0, 1.0, 1.0, 1.0, 1.0, 0.666667, 0.5, 0.5, 0.5,
    0.333333, 0.25, 0.25, 0.2, 0.166667, 0.173913,
)


class AnalysisConfig(BaseModel):
    """Framing, spectral analysis and cepstral parameters."""
    sample_rate: int = Field(16000, gt=0, description="Input sample rate (Hz).")
    frame_size: int = Field(160, gt=0, description="Samples consumed per frame.")
    overlap_size: int = Field(160, gt=0, description="Overlap carried from the previous frame.")
    band_edges: List[int] = Field(default_factory=lambda: list(DEFAULT_BAND_EDGES),
                                  description="Band edges, in units of `band_unit` bins.")
    band_unit: int = Field(4, gt=0, description="FFT bins per band-edge unit.")
    compensation: List[float] = Field(default_factory=lambda: list(DEFAULT_COMPENSATION),
                                      description="Per-band gain used by the cepstrum-to-LPC conversion.")
    lpc_order: int = Field(16, gt=0, description="Linear prediction order.")
    preemphasis: float = Field(0.85, ge=0.0, lt=1.0, description="Preemphasis coefficient.")
    lowpass: Optional[int] = Field(None, ge=1, description="Bins at or above this index are zeroed. None disables band limiting.")
    log_floor: float = Field(1e-2, gt=0, description="Constant added to band energies before log10.")
    log_spread: float = Field(8.0, gt=0, description="Max drop below the running maximum (log10 units).")
    log_step: float = Field(2.5, gt=0, description="Max drop per band of the decaying follower.")
    c0_offset: float = Field(4.0, description="Subtracted from the first cepstral coefficient.")

    @property
    def window_size(self) -> int:
        return self.frame_size + self.overlap_size

    @property
    def freq_size(self) -> int:
        return self.window_size // 2 + 1

    @property
    def nb_bands(self) -> int:
        return len(self.band_edges)

    @property
    def effective_lowpass(self) -> int:
        return self.freq_size if self.lowpass is None else self.lowpass

    @property
    def nb_features(self) -> int:
        return 2 * self.nb_bands + 3 + self.lpc_order

    @field_validator('band_edges')
    @classmethod
    def check_band_edges(cls, value: List[int]) -> List[int]:
        """Band edges must start at 0 and increase strictly."""
        if len(value) < 2:
            raise ValueError("At least two band edges are required.")
        if value[0] != 0:
            raise ValueError("The first band edge must be 0.")
        if any(b <= a for a, b in zip(value, value[1:])):
            raise ValueError(f"Band edges must be strictly increasing, got {value}.")
        return value

    @model_validator(mode='after')
    def check_geometry(self) -> "AnalysisConfig":
        if self.overlap_size > self.frame_size:
            raise ValueError(f"overlap_size ({self.overlap_size}) cannot exceed frame_size ({self.frame_size}).")
        last_bin = self.band_edges[-1] * self.band_unit
        if last_bin != self.freq_size - 1:
            raise ValueError(f"Last band edge maps to bin {last_bin}, expected the Nyquist bin {self.freq_size - 1}.")
        if len(self.compensation) != self.nb_bands:
            raise ValueError(f"compensation needs {self.nb_bands} values, got {len(self.compensation)}.")
        if self.lowpass is not None and self.lowpass > self.freq_size:
            raise ValueError(f"lowpass ({self.lowpass}) cannot exceed freq_size ({self.freq_size}).")
        if self.lpc_order >= self.window_size:
            raise ValueError("lpc_order must be smaller than the analysis window.")
        return self


class ConditioningConfig(BaseModel):
    """Per-sample conditioning chain applied before analysis."""
    highpass_b: Tuple[float, float] = Field((-2.0, 1.0), description="Highpass biquad numerator taps (b1, b2).")
    highpass_a: Tuple[float, float] = Field((-1.99599, 0.99600), description="Highpass biquad denominator taps (a1, a2).")
    tilt: bool = Field(True, description="Apply the randomized spectral tilt biquad.")
    tilt_scale: float = Field(0.75, ge=0.0, lt=2.0, description="Scale of the uniform tilt coefficients.")
    dither: bool = Field(True, description="Add uniform dither in [-0.5, 0.5).")
    speech_gain: float = Field(1.0, gt=0, description="Gain ramped in across each frame.")


class PitchConfig(BaseModel):
    """Pitch search geometry and feature normalization."""
    min_period: int = Field(32, gt=1, description="Shortest period searched (samples).")
    max_period: int = Field(256, gt=2, description="Longest period searched (samples).")
    frame_size: int = Field(320, gt=0, description="Correlation span of the search (samples).")
    reference_period: float = Field(200.0, description="Period mapped to 0 in the normalized feature.")
    alternate: bool = Field(False, description="Override the period slot with the YIN estimator.")
    alternate_history: int = Field(1024, gt=0, description="Rolling history length of the YIN estimator.")

    @property
    def buf_size(self) -> int:
        return self.max_period + self.frame_size

    @model_validator(mode='after')
    def check_periods(self) -> "PitchConfig":
        if self.min_period >= self.max_period:
            raise ValueError(f"min_period ({self.min_period}) must be smaller than max_period ({self.max_period}).")
        if 3 * self.min_period >= self.max_period:
            raise ValueError("max_period must exceed three times min_period.")
        if self.max_period % 4 or self.frame_size % 4:
            raise ValueError("max_period and frame_size must be multiples of 4.")
        if self.alternate_history <= 2 * self.max_period:
            raise ValueError("alternate_history must be longer than twice max_period.")
        return self


class LoggingConfig(BaseModel):
    """Logging configuration settings."""
    log_file_enabled: bool = Field(False, description="Enable/disable persistent file logging.")
    log_directory: Path = Field(default=Path("./vocfeat_logs"), description="Directory for log files.")
    log_filename_template: str = Field("vocfeat_run_{timestamp:%Y%m%d_%H%M%S}.log", description="Naming pattern for log files.")
    log_level_file: str = Field("DEBUG", description="Minimum level for file logs (DEBUG, INFO, WARNING, ERROR, CRITICAL).")
    log_format: str = Field("%(asctime)s [%(levelname)-8s] %(name)-30s - %(message)s (%(filename)s:%(lineno)d)", description="Format string for file log entries.")

    @field_validator('log_level_file')
    @classmethod
    def check_log_level(cls, value: str) -> str:
        """Validate log level strings."""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in allowed_levels:
            raise ValueError(f"Invalid log level '{value}'. Must be one of {allowed_levels}")
        return upper_value

    @field_validator('log_directory', mode='before')
    @classmethod
    def expand_log_directory(cls, value: Any) -> Any:
        if isinstance(value, (str, Path)):
            return Path(value).expanduser()
        return value


class VocfeatConfig(BaseModel):
    """Root configuration model for vocfeat."""
    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True
    )

    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    conditioning: ConditioningConfig = Field(default_factory=ConditioningConfig)
    pitch: PitchConfig = Field(default_factory=PitchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode='after')
    def check_pitch_framing(self) -> "VocfeatConfig":
        if self.pitch.frame_size < self.analysis.frame_size:
            raise ValueError("pitch.frame_size cannot be shorter than analysis.frame_size.")
        if self.analysis.frame_size > self.pitch.buf_size:
            raise ValueError("analysis.frame_size cannot exceed the pitch buffer.")
        return self
