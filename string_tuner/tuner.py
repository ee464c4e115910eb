"""Per-frame tuning pipeline and the caller-owned tuning session."""

from __future__ import annotations
from typing import Optional, Union

from .core.config import TunerConfig
from .core.events import TuningEvents
from .detection.pitch_estimator import PitchEstimator, fit_to_buffer
from .detection.silence_gate import SilenceGate
from .detection.stability_tracker import TuningStabilityTracker
from .logger import get_logger
from .note_matcher import NoteResolver
from .note_types import (
    Frame,
    FrameResult,
    PitchReading,
    StabilityState,
    TargetNote,
    TuningDirection,
    TuningMode,
)
from .tunings import TargetNoteSet, default_target_set

logger = get_logger(__name__)

Targets = Union[TargetNoteSet, TargetNote]


def _direction(cents: Optional[float], tolerance: float) -> TuningDirection:
    if cents is None:
        return TuningDirection.NONE
    if abs(cents) <= tolerance:
        return TuningDirection.IN_TUNE
    return TuningDirection.TOO_LOW if cents < 0 else TuningDirection.TOO_HIGH


def process_frame(
    frame: Frame,
    dt_ms: float,
    mode: TuningMode,
    targets: Targets,
    config: TunerConfig,
    state: StabilityState,
) -> FrameResult:
    """Run one frame through gating, estimation, resolution and stability.

    Args:
        frame: At least ``config.buffer_size`` samples; longer frames keep the tail
        dt_ms: Milliseconds since the previous frame
        mode: AUTO searches ``targets`` as a set, MANUAL expects a single TargetNote
        targets: TargetNoteSet for AUTO, pinned TargetNote for MANUAL
        config: Session configuration
        state: Stability state returned for the previous frame

    Returns:
        FrameResult carrying the updated stability state. Silent, pitchless
        and unresolved frames are ordinary results.

    Raises:
        ValueError: If the frame is too short, dt_ms is negative or the
            targets do not fit the mode
    """
    if mode is TuningMode.MANUAL and not isinstance(targets, TargetNote):
        raise ValueError("Manual mode needs a single pinned TargetNote")
    if mode is TuningMode.AUTO and isinstance(targets, TargetNote):
        raise ValueError("Auto mode needs a TargetNoteSet")

    frame = fit_to_buffer(frame, config.buffer_size)
    gate = SilenceGate(config.silence_rms)
    tracker = TuningStabilityTracker(config.tuned_tolerance_cents, config.stable_duration_ms)

    rms = gate.measure(frame)
    if gate.is_silent(rms):
        reading = PitchReading.silent(rms)
    else:
        reading = PitchEstimator(config.buffer_size, config.silence_rms).estimate(frame, rms)

    if not reading.has_pitch:
        # Silence or noise ends the streak and forgets the target
        stability, _ = tracker.update(state, None, dt_ms, target_id=None)
        return FrameResult(reading, None, None, stability)

    frequency = reading.frequency
    if not config.within_frequency_bounds(frequency):
        logger.debug(
            f"{frequency:.2f} Hz outside advisory bounds "
            f"[{config.min_frequency}, {config.max_frequency}]"
        )

    if mode is TuningMode.MANUAL:
        resolved = NoteResolver.resolve_manual(frequency, targets)
    else:
        resolved = NoteResolver.resolve_auto(frequency, targets)

    if resolved is None:
        stability, _ = tracker.update(state, None, dt_ms, target_id=state.target_id)
        return FrameResult(reading, None, None, stability)

    stability, confirmed = tracker.update(state, resolved.cents, dt_ms, resolved.target_id)
    return FrameResult(
        pitch=reading,
        resolved=resolved,
        cents=resolved.cents,
        stability=stability,
        confirmed=confirmed,
        progress=tracker.progress(stability),
        direction=_direction(resolved.cents, config.tuned_tolerance_cents),
    )


class TunerSession:
    """State for one tuning session, owned and driven by the caller's frame loop.

    The session is not thread-safe; call it from a single loop only.
    """

    def __init__(
        self,
        config: Optional[TunerConfig] = None,
        targets: Optional[TargetNoteSet] = None,
        events: Optional[TuningEvents] = None,
    ) -> None:
        """
        Args:
            config: Session configuration, or None for defaults
            targets: Target notes, or None for standard guitar tuning
            events: Event hub for confirmations, or None to create one
        """
        self.config = config or TunerConfig()
        self.events = events or TuningEvents()
        self._targets = targets if targets is not None else default_target_set()
        self._mode = TuningMode.AUTO
        self._pinned: Optional[TargetNote] = None
        self._state = StabilityState()
        logger.info(
            f"Tuner session started: {self._targets.name or 'custom'} "
            f"({len(self._targets)} targets), buffer={self.config.buffer_size}"
        )

    @property
    def mode(self) -> TuningMode:
        return self._mode

    @property
    def targets(self) -> TargetNoteSet:
        return self._targets

    @property
    def pinned_target(self) -> Optional[TargetNote]:
        return self._pinned

    @property
    def state(self) -> StabilityState:
        return self._state

    def reset(self) -> None:
        """Forget any accumulated dwell time."""
        self._state = StabilityState()

    def set_auto(self) -> None:
        """Match against every target in the set."""
        self._mode = TuningMode.AUTO
        self._pinned = None
        self.reset()
        self.events.emit_target_changed(None)

    def select_target(self, target_id: str) -> TargetNote:
        """Pin a single target and switch to manual matching.

        Raises:
            ValueError: If the id is not in the current target set
        """
        if target_id not in self._targets:
            raise ValueError(
                f"Unknown target {target_id!r}; choose from {list(self._targets)}"
            )
        self._pinned = self._targets[target_id]
        self._mode = TuningMode.MANUAL
        self.reset()
        logger.info(
            f"Target: {target_id} ({self._pinned.reference_freq:.2f} Hz)"
        )
        self.events.emit_target_changed(target_id)
        return self._pinned

    def apply_targets(self, targets: TargetNoteSet) -> None:
        """Replace the target set; the session returns to auto mode."""
        self._targets = targets
        logger.info(f"Applied tuning {targets.name or 'custom'}: {' '.join(targets)}")
        self.set_auto()

    def process(self, frame: Frame, dt_ms: float) -> FrameResult:
        """Process one frame and publish a confirmation if it occurred."""
        active = self._pinned if self._mode is TuningMode.MANUAL else self._targets
        result = process_frame(frame, dt_ms, self._mode, active, self.config, self._state)
        self._state = result.stability
        if result.confirmed:
            self.events.emit_tuned_confirmed(result.resolved)
        return result
