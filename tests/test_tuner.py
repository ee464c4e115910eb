import unittest

import numpy as np

from string_tuner.core.config import TunerConfig
from string_tuner.note_types import (
    Frame,
    PitchStatus,
    StabilityState,
    TargetNote,
    TuningDirection,
    TuningMode,
)
from string_tuner.tuner import TunerSession, process_frame
from string_tuner.tunings import TargetNoteSet, default_target_set

from .signals import BUFFER_SIZE, SAMPLE_RATE, sine

A2 = TargetNote("A2", 110.0, 95.0, 125.0)
D3 = TargetNote("D3", 146.83, 130.0, 165.0)

CONFIG = TunerConfig()


def frame(freq=None, samples=None):
    if samples is None:
        samples = sine(freq)
    return Frame(samples, SAMPLE_RATE)


class TestProcessFrame(unittest.TestCase):
    def test_silent_frame(self):
        result = process_frame(
            frame(samples=np.zeros(BUFFER_SIZE)), 16.0, TuningMode.AUTO,
            default_target_set(), CONFIG, StabilityState("A2", 400.0),
        )
        self.assertEqual(result.pitch.status, PitchStatus.SILENT)
        self.assertIsNone(result.resolved)
        self.assertIsNone(result.cents)
        self.assertEqual(result.stability, StabilityState())
        self.assertFalse(result.confirmed)
        self.assertEqual(result.direction, TuningDirection.NONE)

    def test_quiet_noise_is_silent(self):
        noise = np.random.default_rng(1).normal(0.0, 0.003, BUFFER_SIZE)
        result = process_frame(
            frame(samples=noise), 16.0, TuningMode.AUTO, default_target_set(), CONFIG, StabilityState()
        )
        self.assertEqual(result.pitch.status, PitchStatus.SILENT)
        self.assertLess(result.rms, CONFIG.silence_rms)

    def test_manual_in_window(self):
        result = process_frame(frame(110.0), 16.0, TuningMode.MANUAL, A2, CONFIG, StabilityState())
        self.assertEqual(result.resolved.target_id, "A2")
        self.assertLess(abs(result.cents), CONFIG.tuned_tolerance_cents)
        self.assertEqual(result.direction, TuningDirection.IN_TUNE)
        self.assertEqual(result.stability.dwell_ms, 16.0)

    def test_manual_out_of_window_is_unresolved(self):
        result = process_frame(
            frame(146.83), 16.0, TuningMode.MANUAL, A2, CONFIG, StabilityState("A2", 500.0)
        )
        self.assertEqual(result.pitch.status, PitchStatus.PITCH)
        self.assertIsNone(result.resolved)
        self.assertIsNone(result.cents)
        self.assertEqual(result.stability.dwell_ms, 0.0)

    def test_direction(self):
        high = process_frame(frame(115.0), 16.0, TuningMode.MANUAL, A2, CONFIG, StabilityState())
        self.assertEqual(high.direction, TuningDirection.TOO_HIGH)
        self.assertEqual(high.progress, 0.0)

        low = process_frame(frame(104.0), 16.0, TuningMode.MANUAL, A2, CONFIG, StabilityState())
        self.assertEqual(low.direction, TuningDirection.TOO_LOW)

    def test_auto_mode_window_containment(self):
        targets = TargetNoteSet([A2, D3])
        result = process_frame(frame(150.0), 16.0, TuningMode.AUTO, targets, CONFIG, StabilityState())
        self.assertEqual(result.resolved.target_id, "D3")
        self.assertTrue(result.resolved.in_window)

    def test_mode_and_targets_must_agree(self):
        with self.assertRaises(ValueError):
            process_frame(frame(110.0), 16.0, TuningMode.MANUAL, TargetNoteSet([A2]), CONFIG, StabilityState())
        with self.assertRaises(ValueError):
            process_frame(frame(110.0), 16.0, TuningMode.AUTO, A2, CONFIG, StabilityState())

    def test_short_frame_rejected(self):
        with self.assertRaises(ValueError):
            process_frame(
                Frame(sine(110.0, size=1024), SAMPLE_RATE), 16.0,
                TuningMode.MANUAL, A2, CONFIG, StabilityState(),
            )

    def test_input_state_is_not_mutated(self):
        state = StabilityState("A2", 100.0)
        process_frame(frame(110.0), 16.0, TuningMode.MANUAL, A2, CONFIG, state)
        self.assertEqual(state, StabilityState("A2", 100.0))


class TestTunerSession(unittest.TestCase):
    def setUp(self):
        self.session = TunerSession(config=CONFIG, targets=TargetNoteSet([A2, D3], name="Test"))
        self.confirmed = []
        self.session.events.on_tuned_confirmed(self.confirmed.append)

    def test_a2_confirms_after_stable_duration(self):
        results = [self.session.process(frame(110.0), 100.0) for _ in range(10)]
        flags = [r.confirmed for r in results]
        # 600 ms is reached on the sixth frame and exceeded on the seventh
        self.assertEqual(flags, [False] * 6 + [True] + [False] * 3)
        self.assertEqual(len(self.confirmed), 1)
        self.assertEqual(self.confirmed[0].target_id, "A2")
        self.assertEqual(results[-1].progress, 1.0)

    def test_target_change_resets_dwell(self):
        for _ in range(3):
            self.session.process(frame(110.0), 100.0)
        self.assertEqual(self.session.state.dwell_ms, 300.0)

        result = self.session.process(frame(146.83), 100.0)
        self.assertEqual(result.stability.target_id, "D3")
        self.assertEqual(result.stability.dwell_ms, 100.0)

    def test_silence_breaks_streak(self):
        for _ in range(5):
            self.session.process(frame(110.0), 100.0)
        self.session.process(frame(samples=np.zeros(BUFFER_SIZE)), 100.0)
        self.assertEqual(self.session.state, StabilityState())

        results = [self.session.process(frame(110.0), 100.0) for _ in range(6)]
        self.assertFalse(any(r.confirmed for r in results))

    def test_select_target_switches_to_manual(self):
        changes = []
        self.session.events.on_target_changed(changes.append)
        for _ in range(3):
            self.session.process(frame(110.0), 100.0)

        self.session.select_target("D3")
        self.assertEqual(self.session.mode, TuningMode.MANUAL)
        self.assertEqual(self.session.state, StabilityState())
        self.assertEqual(changes, ["D3"])

        # A2 is outside the pinned D3 window
        result = self.session.process(frame(110.0), 100.0)
        self.assertIsNone(result.resolved)

        self.session.set_auto()
        self.assertEqual(self.session.mode, TuningMode.AUTO)
        self.assertIsNone(self.session.pinned_target)
        self.assertEqual(changes, ["D3", None])

    def test_unknown_target_rejected(self):
        with self.assertRaises(ValueError):
            self.session.select_target("E9")

    def test_apply_targets_resets(self):
        self.session.select_target("A2")
        self.session.process(frame(110.0), 100.0)
        self.session.apply_targets(default_target_set())
        self.assertEqual(self.session.mode, TuningMode.AUTO)
        self.assertEqual(self.session.state, StabilityState())
        self.assertEqual(len(self.session.targets), 6)

    def test_listener_errors_do_not_escape(self):
        def broken(_match):
            raise RuntimeError("boom")

        self.session.events.on_tuned_confirmed(broken)
        results = [self.session.process(frame(110.0), 100.0) for _ in range(7)]
        self.assertTrue(results[-1].confirmed)
        self.assertEqual(len(self.confirmed), 1)

    def test_default_session_confirms_a2(self):
        session = TunerSession()
        flags = [session.process(frame(110.0), 100.0).confirmed for _ in range(10)]
        self.assertEqual(flags, [False] * 6 + [True] + [False] * 3)
        self.assertEqual(session.state.target_id, "A2")

    def test_defaults(self):
        session = TunerSession()
        self.assertEqual(session.config, TunerConfig())
        self.assertEqual(list(session.targets), ["E2", "A2", "D3", "G3", "B3", "E4"])
        self.assertEqual(session.mode, TuningMode.AUTO)


if __name__ == "__main__":
    unittest.main()
