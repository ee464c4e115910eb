"""Synthetic test signals."""

import numpy as np

SAMPLE_RATE = 44100
BUFFER_SIZE = 4096


def sine(frequency, amplitude=0.5, size=BUFFER_SIZE, sample_rate=SAMPLE_RATE, phase=0.0):
    t = np.arange(size) / sample_rate
    return amplitude * np.sin(2 * np.pi * frequency * t + phase)


def harmonic_tone(frequency, amplitudes=(0.5, 0.3, 0.15), size=BUFFER_SIZE, sample_rate=SAMPLE_RATE):
    """Fundamental plus overtones, loosely like a plucked string."""
    t = np.arange(size) / sample_rate
    return sum(
        a * np.sin(2 * np.pi * frequency * (k + 1) * t) for k, a in enumerate(amplitudes)
    )
