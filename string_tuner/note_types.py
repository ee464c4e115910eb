"""Type definitions for the String Tuner project."""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import numpy as np


class TuningMode(Enum):
    """How a detected frequency is matched against the active targets."""

    AUTO = "auto"  # Search every target in the set
    MANUAL = "manual"  # Only the pinned target counts


class PitchStatus(Enum):
    SILENT = "silent"
    NO_PITCH = "no_pitch"
    PITCH = "pitch"


class TuningDirection(Enum):
    """Coarse verdict for a frame, used for TOO LOW / TOO HIGH feedback."""

    NONE = "none"
    IN_TUNE = "in_tune"
    TOO_LOW = "too_low"
    TOO_HIGH = "too_high"


@dataclass(frozen=True, eq=False)
class Frame:
    """A block of mono samples in [-1, 1] and the rate they were taken at."""

    samples: np.ndarray
    sample_rate: float

    def __post_init__(self):
        if not self.sample_rate or self.sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {self.sample_rate}")
        samples = np.asarray(self.samples, dtype=np.float64)
        if samples.ndim != 1:
            raise ValueError(f"Frame samples must be 1-D, got shape {samples.shape}")
        object.__setattr__(self, "samples", samples)

    def __len__(self) -> int:
        return len(self.samples)


@dataclass(frozen=True)
class TargetNote:
    """A reference frequency with the window of frequencies accepted as that note."""

    id: str  # Note name, e.g. 'A2'
    reference_freq: float  # Hz
    min_freq: float  # Lower window edge, inclusive
    max_freq: float  # Upper window edge, inclusive

    def __post_init__(self):
        if self.reference_freq <= 0:
            raise ValueError(
                f"Reference frequency for {self.id} must be positive, "
                f"got {self.reference_freq}"
            )
        if not self.min_freq < self.reference_freq < self.max_freq:
            raise ValueError(
                f"Malformed window for {self.id}: expected "
                f"{self.min_freq} < {self.reference_freq} < {self.max_freq}"
            )

    def contains(self, frequency: float) -> bool:
        return self.min_freq <= frequency <= self.max_freq


@dataclass(frozen=True)
class PitchReading:
    """Outcome of gating and pitch estimation for one frame."""

    status: PitchStatus
    rms: float = 0.0
    frequency: Optional[float] = None
    fallback: bool = False  # Lag came from the global-max fallback, less reliable

    @classmethod
    def silent(cls, rms: float) -> PitchReading:
        return cls(PitchStatus.SILENT, rms)

    @classmethod
    def no_pitch(cls, rms: float) -> PitchReading:
        return cls(PitchStatus.NO_PITCH, rms)

    @classmethod
    def pitch(cls, frequency: float, rms: float, fallback: bool = False) -> PitchReading:
        return cls(PitchStatus.PITCH, rms, frequency, fallback)

    @property
    def has_pitch(self) -> bool:
        return self.status is PitchStatus.PITCH


@dataclass(frozen=True)
class ResolvedMatch:
    """A frequency attributed to a target note."""

    target_id: str
    reference_freq: float
    cents: float
    in_window: bool = True  # False when auto mode fell back to the nearest note


@dataclass(frozen=True)
class StabilityState:
    """Dwell time accumulated in tolerance for the current target."""

    target_id: Optional[str] = None
    dwell_ms: float = 0.0
    confirmed: bool = False


@dataclass(frozen=True)
class FrameResult:
    """Everything the presentation layer needs for one frame."""

    pitch: PitchReading
    resolved: Optional[ResolvedMatch]
    cents: Optional[float]
    stability: StabilityState = field(default_factory=StabilityState)
    confirmed: bool = False  # One-shot: True only on the frame that confirmed
    progress: float = 0.0  # 0..1 towards confirmation
    direction: TuningDirection = TuningDirection.NONE

    @property
    def rms(self) -> float:
        return self.pitch.rms
