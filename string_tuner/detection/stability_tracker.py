from typing import Optional, Tuple

from ..logger import get_logger
from ..note_types import StabilityState

logger = get_logger(__name__)


class TuningStabilityTracker:
    """
    Turns per-frame cents readings into a debounced "in tune" verdict.

    Time spent within tolerance of the current target accumulates as dwell;
    once dwell exceeds the stable duration a single confirmation is reported.
    Any frame that is out of tolerance, unresolved or silent breaks the
    streak, and a new target always starts from zero.
    """

    def __init__(self, tuned_tolerance_cents: float, stable_duration_ms: float):
        self._tolerance = tuned_tolerance_cents
        self._stable_duration_ms = stable_duration_ms

    @property
    def stable_duration_ms(self) -> float:
        return self._stable_duration_ms

    def is_in_tune(self, cents: Optional[float]) -> bool:
        return cents is not None and abs(cents) <= self._tolerance

    def progress(self, state: StabilityState) -> float:
        """Share of the stable duration already spent in tune, capped at 1."""
        return min(1.0, state.dwell_ms / self._stable_duration_ms)

    def update(
        self,
        state: StabilityState,
        cents: Optional[float],
        dt_ms: float,
        target_id: Optional[str] = None,
    ) -> Tuple[StabilityState, bool]:
        """Advance the state by one frame.

        Args:
            state: State after the previous frame
            cents: Deviation from the target, or None when unresolved or silent
            dt_ms: Time elapsed since the previous frame
            target_id: Target the cents were measured against

        Returns:
            Tuple of (new state, confirmed) where confirmed is True only on the
            frame the dwell first exceeds the stable duration

        Raises:
            ValueError: If dt_ms is negative
        """
        if dt_ms < 0:
            raise ValueError(f"Frame time must not be negative, got {dt_ms}")

        if target_id != state.target_id:
            if state.dwell_ms > 0:
                logger.debug(f"Target changed {state.target_id} -> {target_id}, dwell reset")
            state = StabilityState(target_id=target_id)

        if not self.is_in_tune(cents):
            return StabilityState(target_id=target_id), False

        dwell_ms = state.dwell_ms + dt_ms
        confirmed = dwell_ms > self._stable_duration_ms and not state.confirmed
        if confirmed:
            logger.info(f"{target_id} held in tune for {dwell_ms:.0f} ms")
        return StabilityState(target_id, dwell_ms, state.confirmed or confirmed), confirmed
