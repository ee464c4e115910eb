"""Autocorrelation pitch estimation for monophonic instrument frames."""

from __future__ import annotations
from typing import ClassVar, Optional, Tuple

import numpy as np

from ..logger import get_logger
from ..note_types import Frame, PitchReading

logger = get_logger(__name__)


def fit_to_buffer(frame: Frame, buffer_size: int) -> Frame:
    """Return a frame of exactly ``buffer_size`` samples.

    Longer frames keep their most recent samples.

    Raises:
        ValueError: If the frame is shorter than ``buffer_size``
    """
    if len(frame) < buffer_size:
        raise ValueError(
            f"Frame has {len(frame)} samples, expected at least {buffer_size}"
        )
    if len(frame) == buffer_size:
        return frame
    return Frame(frame.samples[-buffer_size:], frame.sample_rate)


class PitchEstimator:
    """Estimates the fundamental frequency of a frame by autocorrelation.

    The estimator trims the noisy edges of the frame, correlates the rest with
    itself over a fixed lag window and picks the *first* local maximum whose
    correlation exceeds a fraction of the zero-lag energy. Picking the first
    qualifying peak rather than the largest one biases the result towards the
    fundamental, since harmonics produce strong peaks at longer lags as well.
    When no peak qualifies the global maximum is used instead and the reading
    is flagged as a fallback.
    """

    MIN_LAG: ClassVar[int] = 30  # Shortest period searched, in samples
    MAX_LAG: ClassVar[int] = 800  # Exclusive upper bound of the period search
    TRIM_THRESHOLD: ClassVar[float] = 0.2  # Edge-trim amplitude
    PEAK_RATIO: ClassVar[float] = 0.8  # Share of zero-lag energy a peak must exceed

    def __init__(self, buffer_size: int, silence_rms: float):
        """
        Args:
            buffer_size: Number of samples analysed per frame
            silence_rms: Frames quieter than this are rejected without analysis
        """
        self._buffer_size = buffer_size
        self._silence_rms = silence_rms

    def estimate(self, frame: Frame, rms: float) -> PitchReading:
        """Estimate the pitch of one frame.

        Args:
            frame: Frame of at least ``buffer_size`` samples
            rms: RMS of the frame, as measured by the silence gate

        Returns:
            A PITCH reading, or NO_PITCH when nothing usable was found

        Raises:
            ValueError: If the frame is shorter than ``buffer_size``
        """
        frame = fit_to_buffer(frame, self._buffer_size)

        if rms < self._silence_rms:
            return PitchReading.no_pitch(rms)

        trimmed = self.trim_edges(frame.samples)
        if len(trimmed) <= self.MIN_LAG:
            logger.debug(f"Trimmed region too short to correlate ({len(trimmed)} samples)")
            return PitchReading.no_pitch(rms)

        correlation = self.autocorrelate(trimmed)
        zero_lag_energy = float(np.dot(trimmed, trimmed))
        lag, fallback = self.select_lag(correlation, zero_lag_energy)

        period = lag + self.parabolic_shift(correlation, lag)
        frequency = frame.sample_rate / period if period > 0 else float("nan")
        if not np.isfinite(frequency) or frequency <= 0:
            logger.debug(f"Discarding non-physical estimate at lag {lag}: {frequency}")
            return PitchReading.no_pitch(rms)

        if fallback:
            logger.debug(f"No peak above threshold, fell back to global max: {frequency:.2f} Hz")
        else:
            logger.debug(f"Pitch {frequency:.2f} Hz (lag {lag}, period {period:.2f})")
        return PitchReading.pitch(frequency, rms, fallback=fallback)

    @classmethod
    def trim_edges(cls, samples: np.ndarray) -> np.ndarray:
        """Drop the onset and decay edges of a frame.

        The left edge is the first sample in the first half quieter than
        ``TRIM_THRESHOLD``; the right edge is the first such sample scanning
        back from the end towards the middle. If the edges cross, the
        untrimmed samples are returned.
        """
        n = len(samples)
        if n == 0:
            return samples

        half = (n + 1) // 2  # indices i < n / 2
        quiet = np.abs(samples) < cls.TRIM_THRESHOLD

        left_hits = np.flatnonzero(quiet[:half])
        left = int(left_hits[0]) if left_hits.size else 0

        # Scan n-1, n-2, ... for offsets 1 <= k < n / 2
        right = n - 1
        tail = quiet[n - half + 1:][::-1]
        right_hits = np.flatnonzero(tail)
        if right_hits.size:
            right = n - 1 - int(right_hits[0])

        if right <= left:
            logger.debug(f"Degenerate trim [{left}, {right}), using the whole frame")
            return samples
        return samples[left:right]

    @classmethod
    def autocorrelate(cls, trimmed: np.ndarray) -> np.ndarray:
        """Correlation of ``trimmed`` with itself for lags 0..MAX_LAG.

        Lags ``MIN_LAG - 1`` through ``MAX_LAG`` are computed so the lags at
        either end of the search window have real neighbours. Lags outside
        that span, or at or beyond the signal length, are left at zero.
        """
        correlation = np.zeros(cls.MAX_LAG + 1)
        n = len(trimmed)
        for lag in range(cls.MIN_LAG - 1, min(cls.MAX_LAG + 1, n)):
            correlation[lag] = np.dot(trimmed[: n - lag], trimmed[lag:])
        return correlation

    @classmethod
    def select_lag(cls, correlation: np.ndarray, zero_lag_energy: float) -> Tuple[int, bool]:
        """Pick the period lag.

        Returns:
            Tuple of (lag, fallback) where fallback is True when no local
            maximum cleared the threshold and the global maximum was used
        """
        first = cls.first_peak_above(correlation, cls.PEAK_RATIO * zero_lag_energy)
        if first is not None:
            return first, False

        window = correlation[cls.MIN_LAG:cls.MAX_LAG]
        return cls.MIN_LAG + int(np.argmax(window)), True

    @classmethod
    def first_peak_above(cls, correlation: np.ndarray, threshold: float) -> Optional[int]:
        """First lag in [MIN_LAG, MAX_LAG - 1) that is a local maximum above ``threshold``."""
        lo, hi = cls.MIN_LAG, cls.MAX_LAG - 1
        current = correlation[lo:hi]
        qualifies = (
            (current > threshold)
            & (current > correlation[lo - 1:hi - 1])
            & (current > correlation[lo + 1:hi + 1])
        )
        if not qualifies.any():
            return None
        return lo + int(np.argmax(qualifies))

    @staticmethod
    def parabolic_shift(correlation: np.ndarray, lag: int) -> float:
        """Sub-sample offset of the true peak near ``lag``; 0 for a flat neighbourhood."""
        prev = correlation[lag - 1] if lag - 1 >= 0 else 0.0
        nxt = correlation[lag + 1] if lag + 1 < len(correlation) else 0.0
        curr = correlation[lag]
        denominator = 2.0 * (prev - 2.0 * curr + nxt)
        if denominator == 0:
            return 0.0
        return float((prev - nxt) / denominator)
