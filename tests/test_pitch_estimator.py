import unittest

import numpy as np

from string_tuner.detection.pitch_estimator import PitchEstimator, fit_to_buffer
from string_tuner.detection.silence_gate import SilenceGate
from string_tuner.note_types import Frame, PitchStatus

from .signals import BUFFER_SIZE, SAMPLE_RATE, harmonic_tone, sine

SILENCE_RMS = 0.015


def estimate(samples, sample_rate=SAMPLE_RATE, buffer_size=BUFFER_SIZE):
    frame = Frame(samples, sample_rate)
    estimator = PitchEstimator(buffer_size, SILENCE_RMS)
    return estimator.estimate(frame, SilenceGate.measure(frame))


class TestPureTones(unittest.TestCase):
    def assertWithin(self, measured, expected, tolerance):
        self.assertLess(
            abs(measured - expected) / expected,
            tolerance,
            f"{measured:.3f} Hz is not within {tolerance:.1%} of {expected} Hz",
        )

    def test_sine_within_half_percent(self):
        for freq in (146.83, 196.0, 246.94, 329.63, 440.0, 659.25):
            reading = estimate(sine(freq))
            self.assertEqual(reading.status, PitchStatus.PITCH, freq)
            self.assertFalse(reading.fallback)
            self.assertWithin(reading.frequency, freq, 0.005)

    def test_low_strings(self):
        for freq in (82.41, 110.0):
            reading = estimate(sine(freq))
            self.assertEqual(reading.status, PitchStatus.PITCH, freq)
            self.assertWithin(reading.frequency, freq, 0.005)

    def test_other_sample_rate(self):
        reading = estimate(sine(196.0, sample_rate=48000), sample_rate=48000)
        self.assertWithin(reading.frequency, 196.0, 0.005)

    def test_harmonics_do_not_cause_octave_errors(self):
        for freq in (110.0, 146.83, 196.0):
            reading = estimate(harmonic_tone(freq))
            self.assertWithin(reading.frequency, freq, 0.01)

    def test_reading_carries_rms(self):
        samples = sine(440.0, amplitude=0.5)
        reading = estimate(samples)
        self.assertAlmostEqual(reading.rms, 0.5 / np.sqrt(2), places=2)


class TestRejections(unittest.TestCase):
    def test_zero_frame_has_no_pitch(self):
        reading = estimate(np.zeros(BUFFER_SIZE))
        self.assertEqual(reading.status, PitchStatus.NO_PITCH)
        self.assertIsNone(reading.frequency)

    def test_noise_below_gate_has_no_pitch(self):
        noise = np.random.default_rng(0).normal(0.0, 0.002, BUFFER_SIZE)
        self.assertEqual(estimate(noise).status, PitchStatus.NO_PITCH)

    def test_region_shorter_than_min_lag(self):
        samples = sine(440.0, size=20)
        reading = estimate(samples, buffer_size=20)
        self.assertEqual(reading.status, PitchStatus.NO_PITCH)

    def test_short_frame_rejected(self):
        with self.assertRaises(ValueError):
            estimate(sine(440.0, size=BUFFER_SIZE - 1))

    def test_longer_frame_keeps_latest_samples(self):
        samples = np.concatenate([np.zeros(100), sine(440.0)])
        frame = fit_to_buffer(Frame(samples, SAMPLE_RATE), BUFFER_SIZE)
        self.assertEqual(len(frame), BUFFER_SIZE)
        np.testing.assert_allclose(frame.samples, sine(440.0))

    def test_invalid_sample_rate(self):
        with self.assertRaises(ValueError):
            Frame(sine(440.0), 0)
        with self.assertRaises(ValueError):
            Frame(sine(440.0), -44100)


class TestEdgeTrimming(unittest.TestCase):
    def test_trims_at_first_quiet_samples(self):
        samples = np.full(10, 0.5)
        samples[2] = 0.1
        samples[8] = 0.1
        trimmed = PitchEstimator.trim_edges(samples)
        self.assertEqual(len(trimmed), 6)
        self.assertEqual(trimmed[0], 0.1)

    def test_only_first_half_is_scanned_from_the_left(self):
        samples = np.full(10, 0.5)
        samples[7] = 0.1
        # Left stays at 0; right stops at index 7
        self.assertEqual(len(PitchEstimator.trim_edges(samples)), 7)

    def test_no_quiet_samples_drops_last_sample(self):
        samples = np.full(10, 0.5)
        self.assertEqual(len(PitchEstimator.trim_edges(samples)), 9)

    def test_degenerate_trim_uses_whole_frame(self):
        samples = np.array([0.05])
        np.testing.assert_array_equal(PitchEstimator.trim_edges(samples), samples)


class TestPeakSelection(unittest.TestCase):
    def correlation_with_peaks(self, peaks):
        c = np.zeros(PitchEstimator.MAX_LAG + 1)
        for lag, value in peaks.items():
            c[lag] = value
            c[lag - 1] = value * 0.9
            c[lag + 1] = value * 0.9
        return c

    def test_first_qualifying_peak_beats_global_max(self):
        c = self.correlation_with_peaks({100: 85.0, 200: 95.0})
        lag, fallback = PitchEstimator.select_lag(c, zero_lag_energy=100.0)
        self.assertEqual(lag, 100)
        self.assertFalse(fallback)

    def test_peaks_below_threshold_are_skipped(self):
        c = self.correlation_with_peaks({100: 70.0, 200: 95.0, 400: 99.0})
        lag, fallback = PitchEstimator.select_lag(c, zero_lag_energy=100.0)
        self.assertEqual(lag, 200)
        self.assertFalse(fallback)

    def test_falls_back_to_global_max(self):
        c = self.correlation_with_peaks({100: 40.0, 300: 60.0, 500: 50.0})
        lag, fallback = PitchEstimator.select_lag(c, zero_lag_energy=100.0)
        self.assertEqual(lag, 300)
        self.assertTrue(fallback)

    def test_monotonic_edge_is_not_a_peak(self):
        c = np.zeros(PitchEstimator.MAX_LAG + 1)
        c[29:] = np.linspace(100.0, 0.0, len(c) - 29)
        self.assertIsNone(PitchEstimator.first_peak_above(c, 50.0))

    def test_parabolic_shift(self):
        c = np.zeros(10)
        c[4], c[5], c[6] = 1.0, 2.0, 1.0
        self.assertEqual(PitchEstimator.parabolic_shift(c, 5), 0.0)

        c[6] = 1.5
        self.assertGreater(PitchEstimator.parabolic_shift(c, 5), 0.0)

    def test_flat_neighbourhood_has_zero_shift(self):
        c = np.ones(10)
        self.assertEqual(PitchEstimator.parabolic_shift(c, 5), 0.0)

    def test_missing_neighbour_counts_as_zero(self):
        c = np.array([0.0, 1.0, 2.0])
        # next neighbour of lag 2 is missing and treated as 0
        self.assertAlmostEqual(PitchEstimator.parabolic_shift(c, 2), (1.0 - 0.0) / (2 * (1.0 - 4.0)))


if __name__ == "__main__":
    unittest.main()
