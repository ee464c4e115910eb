"""RMS noise gate shared by the pitch estimator and the presentation layer."""

import numpy as np

from ..note_types import Frame


class SilenceGate:
    """Classifies frames as silent when their RMS falls below a threshold."""

    def __init__(self, silence_rms: float):
        if silence_rms <= 0:
            raise ValueError(f"silence_rms must be positive, got {silence_rms}")
        self._silence_rms = silence_rms

    @property
    def silence_rms(self) -> float:
        return self._silence_rms

    @staticmethod
    def measure(frame: Frame) -> float:
        """Root-mean-square amplitude of the frame."""
        if len(frame) == 0:
            return 0.0
        return float(np.sqrt(np.mean(np.square(frame.samples))))

    def is_silent(self, rms: float) -> bool:
        return rms < self._silence_rms
